"""
The project document: models, schema migrations, validation and storage.

``DocumentService`` (in ``planboard.core.document.service``) ties these
together and is imported from its module directly.
"""

from .exceptions import MalformedDocumentError, MigrationGapError, PlanboardError, StoreError
from .migrations import CURRENT_VERSION, MigrationResult, detect_version, migrate_to_latest
from .models import (
    BoardPlacement,
    Document,
    Project,
    RetroItem,
    Retrospective,
    Sprint,
    SprintStatus,
    Task,
    TimeEntry,
    Workflow,
    WorkflowColumn,
    default_document,
)
from .store import BackupRing, DocumentStore, JsonFileStore, MemoryStore
from .validate import Violation, check_invariants

__all__ = [
    # Models
    "BoardPlacement",
    "Document",
    "Project",
    "RetroItem",
    "Retrospective",
    "Sprint",
    "SprintStatus",
    "Task",
    "TimeEntry",
    "Workflow",
    "WorkflowColumn",
    "default_document",
    # Migrations
    "CURRENT_VERSION",
    "MigrationResult",
    "detect_version",
    "migrate_to_latest",
    # Storage
    "BackupRing",
    "DocumentStore",
    "JsonFileStore",
    "MemoryStore",
    # Validation
    "Violation",
    "check_invariants",
    # Errors
    "MalformedDocumentError",
    "MigrationGapError",
    "PlanboardError",
    "StoreError",
]
