"""
Planboard CLI - document commands.

Upgrade documents to the current schema and check their consistency.
"""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape

from planboard.cli.common import read_text, resolve_path
from planboard.cli.errors import ExitCode, print_error
from planboard.core.document.exceptions import MalformedDocumentError, StoreError
from planboard.core.document.migrations import CURRENT_VERSION
from planboard.core.document.models import Document
from planboard.core.document.service import (
    DocumentService,
    migrate_document,
    parse_document,
    prepare_document,
)
from planboard.core.document.store import JsonFileStore
from planboard.core.document.validate import check_invariants, require_fields

console = Console()


def migrate(
    file: Annotated[
        Path | None,
        typer.Argument(help="Document to upgrade (defaults to the configured document)"),
    ] = None,
    output: Annotated[
        Path | None,
        typer.Option("--output", "-o", help="Write the result here instead of in place"),
    ] = None,
) -> None:
    """
    Upgrade a document to the current schema version.

    The document is migrated, validated and repaired, then written back
    (or to --output).

    Examples:
        planboard migrate plan.json
        planboard migrate old.json --output plan.json
    """
    path = resolve_path(file)
    target = output or path
    try:
        doc, migration, repairs = prepare_document(parse_document(read_text(path)))
    except MalformedDocumentError as e:
        print_error(f"Cannot migrate {path}", reason=str(e))
        raise typer.Exit(ExitCode.USER_ERROR)

    try:
        saved = JsonFileStore(target.parent).save(target.stem, DocumentService.serialize(doc))
    except StoreError as e:
        print_error(f"Cannot write {target}", reason=str(e))
        raise typer.Exit(ExitCode.GENERAL_ERROR)
    if not saved:
        print_error(f"Failed to write {target}")
        raise typer.Exit(ExitCode.GENERAL_ERROR)

    if migration.applied:
        console.print(
            f"[green]✓[/green] Migrated v{migration.from_version} → v{migration.version}"
        )
    else:
        console.print(f"[dim]Already at v{migration.version}[/dim]")
    for message in repairs:
        console.print(f"  [yellow]repaired[/yellow] {message}")
    if migration.gap is not None:
        console.print(f"[yellow]Warning:[/yellow] {migration.gap}")
    console.print(f"Wrote {target}")


def check(
    file: Annotated[
        Path | None,
        typer.Argument(help="Document to check (defaults to the configured document)"),
    ] = None,
) -> None:
    """
    Report consistency problems in a document.

    The document is migrated in memory but not repaired, so problems in
    the stored data are reported rather than silently fixed. Exits 1 when
    anything is wrong.
    """
    path = resolve_path(file)
    try:
        data = parse_document(read_text(path))
        require_fields(data)
        migration = migrate_document(data)
        doc = Document.model_validate(migration.data)
    except MalformedDocumentError as e:
        print_error(f"Cannot read {path}", reason=str(e))
        raise typer.Exit(ExitCode.USER_ERROR)
    except ValidationError as e:
        print_error(f"{path} does not match the document schema", reason=str(e))
        raise typer.Exit(ExitCode.USER_ERROR)

    if migration.from_version < CURRENT_VERSION:
        console.print(
            f"[yellow]![/yellow] Stored at v{migration.from_version}; "
            f"run `planboard migrate` to upgrade to v{CURRENT_VERSION}"
        )

    violations = check_invariants(doc)
    if migration.gap is not None:
        console.print(f"[red]✗[/red] {migration.gap}")
    for violation in violations:
        console.print(f"[red]✗[/red] {escape(str(violation))}")

    if violations or migration.gap is not None:
        raise typer.Exit(ExitCode.GENERAL_ERROR)
    console.print(f"[green]✓[/green] {path}: {len(doc.tasks)} tasks, no problems found")
