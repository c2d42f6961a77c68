"""
Shared helpers for commands that operate on a document file.

Read-only commands run the file through migration and repair in memory
and never write it back. Editing commands go through a DocumentService
over a JsonFileStore so that saves are atomic and backed up.
"""

from __future__ import annotations

from pathlib import Path

import typer

from planboard.cli.errors import ExitCode, print_document_not_found_error, print_error
from planboard.core.config import load_config
from planboard.core.document.exceptions import MalformedDocumentError, StoreError
from planboard.core.document.models import Document
from planboard.core.document.service import (
    DocumentService,
    parse_document,
    prepare_document,
)
from planboard.core.document.store import BackupRing, JsonFileStore


def resolve_path(path: Path | None) -> Path:
    """The given path, or the configured document file."""
    if path is not None:
        return path
    config = load_config()
    return config.storage_path() / f"{config.storage.document_key}.json"


def read_text(path: Path) -> str:
    if not path.exists():
        print_document_not_found_error(str(path))
        raise typer.Exit(ExitCode.USER_ERROR)
    return path.read_text(encoding="utf-8")


def read_document(path: Path | None) -> Document:
    """Load a document file for reading: migrated and repaired, not saved."""
    path = resolve_path(path)
    try:
        doc, _, _ = prepare_document(parse_document(read_text(path)))
    except MalformedDocumentError as e:
        print_error(f"Cannot read {path}", reason=str(e))
        raise typer.Exit(ExitCode.USER_ERROR)
    return doc


def open_service(path: Path | None) -> DocumentService:
    """
    DocumentService for editing a document file.

    The file's directory is the store and its stem is the key. Backups go
    to the configured backup key in the same directory.
    """
    path = resolve_path(path)
    text = read_text(path)
    config = load_config()

    store = JsonFileStore(path.parent)
    backups = None
    if config.backups.enabled:
        backups = BackupRing(store, config.storage.backup_key, config.backups.max_backups)
    try:
        store.path_for(path.stem)
        service = DocumentService(
            store,
            key=path.stem,
            backups=backups,
            backup_interval=config.backups.interval,
        )
        service.import_document(text)
    except StoreError as e:
        print_error(f"Cannot use {path}", reason=str(e), solution="rename the file")
        raise typer.Exit(ExitCode.USER_ERROR)
    except MalformedDocumentError as e:
        print_error(f"Cannot read {path}", reason=str(e))
        raise typer.Exit(ExitCode.USER_ERROR)
    return service
