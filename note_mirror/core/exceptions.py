from __future__ import annotations

from enum import Enum, auto

__all__ = [
    "NoteNotFoundError",
    "RemoteError",
    "RemoteErrorKind",
    "SyncError",
    "ValidationError",
]


class RemoteErrorKind(Enum):
    """
    Classification of a failed remote call, decided once at the adapter
    boundary.
    """

    NOT_FOUND = auto()
    """Path does not exist in the remote tree"""

    UNAUTHORIZED = auto()
    """Credential missing, expired or lacking access"""

    TRANSIENT = auto()
    """Network failure, server error or rate limiting; may succeed later"""

    FATAL = auto()
    """Request rejected, e.g. a stale version token"""


class RemoteError(Exception):
    """
    Raised by a remote tree service when a call fails.
    """

    kind: RemoteErrorKind
    status: int | None
    message: str

    def __init__(
        self, kind: RemoteErrorKind, message: str, *, status: int | None = None
    ):
        self.kind = kind
        self.status = status
        self.message = message
        super().__init__(message)

    @property
    def is_not_found(self) -> bool:
        return self.kind is RemoteErrorKind.NOT_FOUND


class ValidationError(Exception):
    """
    Raised when a note set or configuration is invalid.

    Examples:

    - Two notes in one set share an id
    - Repository owner or name is empty
    """

    errors: list[str]

    def __init__(self, errors: list[str]):
        self.errors = errors
        errors_str = "\n".join([e for e in errors])
        super().__init__(f"Errors found during validation: {errors_str}")


class SyncError(Exception):
    """
    Raised by a manual push which failed, carrying one message per failed item.
    """

    errors: list[str]

    def __init__(self, errors: list[str]):
        self.errors = errors
        super().__init__("; ".join(errors) or "Sync failed")


class NoteNotFoundError(KeyError):
    """
    Raised when a store operation references a note id which doesn't exist.
    """

    note_id: str

    def __init__(self, note_id: str):
        self.note_id = note_id
        super().__init__(note_id)

    def __str__(self) -> str:
        return f"Note with id '{self.note_id}' does not exist"
