"""
Note and repository models shared by the local store, the sync core and the
HTTP endpoints.
"""
from __future__ import annotations

import datetime
import hashlib
import json
from typing import Any, Iterable

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

__all__ = [
    "DEFAULT_BRANCH",
    "PLACEHOLDER_NOTE_ID",
    "Note",
    "RepoConfig",
    "fingerprint",
    "is_placeholder",
    "make_placeholder_note",
    "now_iso",
]

DEFAULT_BRANCH = "main"

PLACEHOLDER_NOTE_ID = "welcome"
"""
Id of the note created for first-time users.
"""

PLACEHOLDER_TITLE = "Welcome to NoteEverything"
PLACEHOLDER_CONTENT = "<h1>Welcome!</h1><p>Start writing your notes here...</p>"


def now_iso() -> str:
    """
    Current time as an ISO 8601 string in UTC, millisecond precision.
    """
    now = datetime.datetime.now(datetime.timezone.utc)
    return now.isoformat(timespec="milliseconds").replace("+00:00", "Z")


class Note(BaseModel):
    """
    A single note. Notes form a forest through `parent_id`, which references
    another note's `id` or is `None` for a root note.

    Serialized with camelCase keys (`createdAt`, `updatedAt`, `parentId`).
    """

    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, frozen=True
    )

    id: str
    """
    Unique, stable identifier within a note set.
    """

    title: str = ""

    content: str = ""
    """
    Rich-text payload (HTML).
    """

    created_at: str = Field(default_factory=now_iso)
    updated_at: str = Field(default_factory=now_iso)

    parent_id: str | None = None

    @field_validator("created_at", "updated_at", mode="before")
    @classmethod
    def validate_timestamp(cls, value: Any) -> Any:
        # yaml parses unquoted timestamps into datetime objects
        if isinstance(value, (datetime.datetime, datetime.date)):
            return value.isoformat()
        return value

    @field_validator("parent_id", mode="before")
    @classmethod
    def validate_parent_id(cls, value: Any) -> Any:
        if value is None or value == "":
            return None
        if isinstance(value, int):
            return str(value)
        return value

    def to_json(self) -> dict[str, Any]:
        """
        Get JSON-compatible dict using wire field names.
        """
        return self.model_dump(by_alias=True, mode="json")

    @property
    def str_short(self) -> str:
        title = self.title.replace("'", "\\'")
        return f"Note('{title}', id='{self.id}')"


class RepoConfig(BaseModel):
    """
    Identifies the single remote repository and branch notes are mirrored to.
    """

    owner: str
    repo: str
    branch: str = DEFAULT_BRANCH

    @field_validator("branch", mode="before")
    @classmethod
    def validate_branch(cls, value: Any) -> Any:
        return value or DEFAULT_BRANCH

    @property
    def is_complete(self) -> bool:
        return bool(self.owner.strip() and self.repo.strip())

    def __str__(self) -> str:
        return f"{self.owner}/{self.repo}@{self.branch}"


def make_placeholder_note() -> Note:
    """
    Create the built-in note shown to first-time users.
    """
    return Note(
        id=PLACEHOLDER_NOTE_ID,
        title=PLACEHOLDER_TITLE,
        content=PLACEHOLDER_CONTENT,
        parent_id=None,
    )


def is_placeholder(notes: list[Note]) -> bool:
    """
    Check whether the note set is exactly the unedited placeholder note.
    """
    if len(notes) != 1:
        return False

    note = notes[0]
    return (
        note.id == PLACEHOLDER_NOTE_ID
        and note.title == PLACEHOLDER_TITLE
        and note.content == PLACEHOLDER_CONTENT
        and note.parent_id is None
    )


def fingerprint(notes: Iterable[Note]) -> str:
    """
    Get a digest of a stable serialization of the note set, in order.
    """
    data = [note.to_json() for note in notes]
    blob = json.dumps(
        data, sort_keys=True, separators=(",", ":"), ensure_ascii=False
    )
    return hashlib.sha256(blob.encode(encoding="utf-8")).hexdigest()
