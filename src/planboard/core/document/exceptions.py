"""
Exceptions for project document handling.

Exception Hierarchy:
    PlanboardError (base)
    ├── MalformedDocumentError (missing top-level fields, unparseable text)
    ├── MigrationGapError (no step registered for a required version)
    └── StoreError (persistence failures)

Invariant-violation rejections (cycles, duplicate edges, protected
columns) are not exceptions; components report them as return values.

Example:
    >>> from planboard.core.document.exceptions import MalformedDocumentError
    >>> try:
    ...     raise MalformedDocumentError("Missing 'tasks'", missing=["tasks"])
    ... except MalformedDocumentError as e:
    ...     print(e.context["missing"])
    ['tasks']
"""


class PlanboardError(Exception):
    """
    Base exception for all planboard errors.

    Attributes:
        message: Human-readable error message
        context: Additional context passed as keyword arguments
    """

    def __init__(self, message: str, **context: object) -> None:
        super().__init__(message)
        self.message = message
        self.context = context

    def __str__(self) -> str:
        return self.message


class MalformedDocumentError(PlanboardError):
    """
    Raised when a document cannot be trusted as a project document.

    Covers unparseable text and documents missing one of the required
    top-level fields (``project``, ``tasks``, ``categories``). Loading
    recovers by falling back to a fresh document; importing propagates.
    """


class MigrationGapError(PlanboardError):
    """
    A document's version has no registered step to the next version.

    This is recoverable: the chain halts at the last reached version and
    the error is carried in the migration result instead of being raised.

    Attributes:
        from_version: Version the document had before migration
        reached_version: Last version successfully reached
        missing_version: Target version with no registered step
    """

    def __init__(
        self,
        from_version: int,
        reached_version: int,
        missing_version: int,
        **context: object,
    ) -> None:
        message = (
            f"No migration step to v{missing_version}; "
            f"halted at v{reached_version} (started at v{from_version})"
        )
        super().__init__(message, **context)
        self.from_version = from_version
        self.reached_version = reached_version
        self.missing_version = missing_version


class StoreError(PlanboardError):
    """
    Raised when the document store cannot read or write a key.

    Attributes:
        key: The storage key involved
    """

    def __init__(self, key: str, message: str, **context: object) -> None:
        super().__init__(message, **context)
        self.key = key
