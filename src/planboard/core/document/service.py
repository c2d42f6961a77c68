"""
Document orchestration.

DocumentService owns the one in-memory document of a context. Loading runs
the raw text through a fixed pipeline before any component sees it:

    parse -> required fields -> migrate -> validate -> repair

Components then mutate the document through ``apply`` and the service
persists the result, taking a backup every ``backup_interval`` saves.

Example:
    >>> service = DocumentService(MemoryStore())
    >>> task = service.apply(lambda doc: add_task(doc, "Write docs"))
    >>> service.document.get_task(task.id).name
    'Write docs'
"""

from __future__ import annotations

import json
import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Any, TypeVar

from pydantic import ValidationError

from planboard.core.sprints.backlog import normalize_backlog
from planboard.core.tasks.board import normalize_board
from planboard.core.tasks.dependencies import break_cycles, validate_dependencies

from .exceptions import MalformedDocumentError, MigrationGapError, PlanboardError
from .migrations import CURRENT_VERSION, MigrationResult, detect_version, migrate_to_latest
from .models import Document, default_document, generate_id
from .store import DEFAULT_MAX_BACKUPS, BackupRing, DocumentStore
from .validate import require_fields

logger = logging.getLogger(__name__)

DEFAULT_DOCUMENT_KEY = "ganttProject"
DEFAULT_BACKUP_KEY = "ganttProject_backups"
DEFAULT_BACKUP_INTERVAL = 10

T = TypeVar("T")


class LoadSource(str, Enum):
    """Where the in-memory document came from."""

    STORED = "stored"
    DEFAULT = "default"
    IMPORTED = "imported"
    EXTERNAL = "external"


@dataclass
class LoadResult:
    """
    Outcome of loading or importing a document.

    Attributes:
        document: The document now held by the service
        source: Where it came from
        migration: Migration outcome (None for fresh defaults)
        repairs: Human-readable description of each repair made
        error: Malformed-input or migration-gap condition, if any
    """

    document: Document
    source: LoadSource
    migration: MigrationResult | None = None
    repairs: list[str] = field(default_factory=list)
    error: PlanboardError | None = None

    @property
    def migrated(self) -> bool:
        return self.migration is not None and self.migration.migrated

    @property
    def gap(self) -> MigrationGapError | None:
        return self.migration.gap if self.migration else None


def parse_document(text: str) -> dict[str, Any]:
    """
    Parse serialized document text.

    Raises:
        MalformedDocumentError: If the text is not a JSON object
    """
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise MalformedDocumentError(f"Document is not valid JSON: {e}") from e
    if not isinstance(data, dict):
        raise MalformedDocumentError("Document must be a JSON object", found=type(data).__name__)
    return data


def migrate_document(data: dict[str, Any]) -> MigrationResult:
    """
    Run the migration chain over untrusted input.

    The steps tolerate missing and mistyped fields; anything they still
    trip over is reported as a malformed document rather than escaping as
    a TypeError.

    Raises:
        MalformedDocumentError: If a step cannot handle the input
    """
    try:
        return migrate_to_latest(data)
    except (TypeError, ValueError, AttributeError, KeyError) as e:
        raise MalformedDocumentError(
            f"Document could not be migrated: {e}",
            version=detect_version(data),
        ) from e


def _validate(data: dict[str, Any]) -> Document:
    try:
        return Document.model_validate(data)
    except ValidationError as e:
        raise MalformedDocumentError(
            f"Document failed validation: {e.error_count()} error(s)",
            errors=e.errors(include_url=False),
        ) from e


def _dedupe_task_ids(doc: Document) -> list[str]:
    seen: set[str] = set()
    repairs = []
    for task in doc.tasks:
        if task.id in seen:
            old = task.id
            task.id = generate_id("task")
            repairs.append(f"Renamed duplicate task id {old} to {task.id}")
        seen.add(task.id)
    return repairs


def _flatten_retro_groups(doc: Document) -> list[str]:
    repairs = []
    for retro in doc.retrospectives:
        parents = {i.id: i.group_id for i in retro.items}
        for item in retro.items:
            if item.group_id and (item.group_id not in parents or parents[item.group_id]):
                repairs.append(f"Ungrouped retro item {item.id}")
                item.group_id = None
    return repairs


def _unlink_time_entries(doc: Document) -> list[str]:
    known = doc.task_ids()
    repairs = []
    for entry in doc.time_entries:
        if entry.task_id and entry.task_id not in known:
            repairs.append(f"Unlinked time entry {entry.id} from unknown task {entry.task_id}")
            entry.task_id = None
    return repairs


def repair_document(doc: Document) -> list[str]:
    """
    Restore the document invariants after loading untrusted input.

    Renames duplicate task ids, prunes dangling dependencies, breaks
    dependency cycles and renumbers board and backlog positions.

    Returns:
        One message per repair made (empty when nothing needed fixing)
    """
    repairs = _dedupe_task_ids(doc)

    pruned = validate_dependencies(doc)
    if pruned:
        repairs.append(f"Pruned {pruned} dangling dependency reference(s)")
    broken = break_cycles(doc)
    if broken:
        repairs.append(f"Removed {broken} dependency edge(s) to break cycles")

    repairs += _unlink_time_entries(doc)
    repairs += _flatten_retro_groups(doc)

    before = [(t.board.column_id, t.board.position, t.backlog_position) for t in doc.tasks]
    normalize_board(doc)
    normalize_backlog(doc)
    after = [(t.board.column_id, t.board.position, t.backlog_position) for t in doc.tasks]
    if before != after:
        repairs.append("Renumbered board and backlog positions")

    for message in repairs:
        logger.info("Repair: %s", message)
    return repairs


def prepare_document(data: dict[str, Any]) -> tuple[Document, MigrationResult, list[str]]:
    """
    Migrate, validate and repair a parsed document.

    Raises:
        MalformedDocumentError: If required fields are missing or the
            migrated document does not validate
    """
    require_fields(data)
    migration = migrate_document(data)
    doc = _validate(migration.data)
    repairs = repair_document(doc)
    return doc, migration, repairs


class DocumentService:
    """
    Holds and persists one project document.

    Attributes:
        store: Persistence backend
        key: Store key of the document
        backups: Backup ring, or None to disable backups
        backup_interval: Take a backup every this many saves
    """

    def __init__(
        self,
        store: DocumentStore,
        key: str = DEFAULT_DOCUMENT_KEY,
        backups: BackupRing | None = None,
        backup_interval: int = DEFAULT_BACKUP_INTERVAL,
        today: date | None = None,
    ) -> None:
        self.store = store
        self.key = key
        self.backups = backups
        self.backup_interval = max(1, backup_interval)
        self._today = today
        self._document: Document | None = None
        self._save_count = 0

    @classmethod
    def with_backups(
        cls,
        store: DocumentStore,
        key: str = DEFAULT_DOCUMENT_KEY,
        backup_key: str = DEFAULT_BACKUP_KEY,
        max_backups: int = DEFAULT_MAX_BACKUPS,
        backup_interval: int = DEFAULT_BACKUP_INTERVAL,
    ) -> DocumentService:
        return cls(
            store,
            key=key,
            backups=BackupRing(store, backup_key, max_backups),
            backup_interval=backup_interval,
        )

    @property
    def document(self) -> Document:
        """The current document, loading it on first access."""
        if self._document is None:
            return self.load().document
        return self._document

    def load(self) -> LoadResult:
        """
        Load the stored document.

        Never raises for bad input. Missing or malformed documents fall
        back to a fresh default; a migration gap keeps the partially
        migrated document when it still validates. Migrated or repaired
        documents are written back immediately.
        """
        text = self.store.load(self.key)
        if text is None:
            logger.info("No document stored under %s, starting fresh", self.key)
            doc = default_document(self._today)
            self._document = doc
            self._write(doc)
            return LoadResult(document=doc, source=LoadSource.DEFAULT)

        try:
            data = parse_document(text)
            require_fields(data)
            migration = migrate_document(data)
        except MalformedDocumentError as e:
            return self._fallback(e)
        try:
            doc = _validate(migration.data)
        except MalformedDocumentError as e:
            return self._fallback(e, migration)

        repairs = repair_document(doc)
        self._document = doc
        if migration.migrated or repairs:
            self._write(doc)

        return LoadResult(
            document=doc,
            source=LoadSource.STORED,
            migration=migration,
            repairs=repairs,
            error=migration.gap,
        )

    def _fallback(
        self, error: MalformedDocumentError, migration: MigrationResult | None = None
    ) -> LoadResult:
        logger.warning("Stored document %s is unusable (%s); using a fresh one", self.key, error)
        doc = default_document(self._today)
        self._document = doc
        return LoadResult(
            document=doc, source=LoadSource.DEFAULT, migration=migration, error=error
        )

    def _write(self, doc: Document) -> bool:
        text = self.serialize(doc)
        ok = self.store.save(self.key, text)
        if not ok:
            logger.error("Failed to save document %s", self.key)
        return ok

    @staticmethod
    def serialize(doc: Document) -> str:
        return json.dumps(doc.to_json_dict(), indent=2, ensure_ascii=False)

    def save(self) -> bool:
        """Persist the current document; every Nth save also takes a backup."""
        doc = self.document
        text = self.serialize(doc)
        if not self.store.save(self.key, text):
            logger.error("Failed to save document %s", self.key)
            return False

        self._save_count += 1
        if self.backups is not None and self._save_count % self.backup_interval == 0:
            self.backups.create(text)
        return True

    def apply(self, mutation: Callable[[Document], T]) -> T:
        """Run one component mutation against the document and persist it."""
        result = mutation(self.document)
        self.save()
        return result

    def on_external_change(self, key: str, raw_text: str | None) -> bool:
        """
        React to another context having written the document.

        The in-memory document is replaced wholesale (local unsaved edits
        are lost) when the key matches and the incoming document is at the
        current schema version or newer.

        Returns:
            True if the document was replaced
        """
        if key != self.key or not raw_text:
            return False
        try:
            data = parse_document(raw_text)
        except MalformedDocumentError as e:
            logger.warning("Ignoring external change to %s: %s", key, e)
            return False
        if detect_version(data) < CURRENT_VERSION:
            logger.debug("Ignoring external change to %s at an older version", key)
            return False
        try:
            self._document = _validate(data)
        except MalformedDocumentError as e:
            logger.warning("Ignoring external change to %s: %s", key, e)
            return False
        logger.info("Reloaded %s after an external change", key)
        return True

    def import_document(self, text: str) -> LoadResult:
        """
        Replace the document with imported text and persist it.

        Unlike ``load`` this fails loudly so the caller can retry with a
        corrected file.

        Raises:
            MalformedDocumentError: If the text does not parse, lacks a
                required field, or does not validate after migration
        """
        doc, migration, repairs = prepare_document(parse_document(text))
        self._document = doc
        self.save()
        return LoadResult(
            document=doc,
            source=LoadSource.IMPORTED,
            migration=migration,
            repairs=repairs,
            error=migration.gap,
        )

    def export_document(self) -> str:
        """Serialize the in-memory document as it is."""
        return self.serialize(self.document)

    def restore_backup(self, timestamp: str) -> LoadResult | None:
        """Import a backup by timestamp; None when there is no such backup."""
        if self.backups is None:
            return None
        text = self.backups.restore(timestamp)
        if text is None:
            return None
        return self.import_document(text)
