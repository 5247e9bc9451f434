"""
Local note store: the authoritative note collection, persisted to a
{obj}`LocalCache`.
"""
from __future__ import annotations

import logging
import uuid
from logging import Logger
from typing import Any, Callable, Iterable, Iterator

from pydantic import ValidationError as PydanticValidationError

from .cache import LocalCache
from .exceptions import NoteNotFoundError, ValidationError
from .note import Note, make_placeholder_note, now_iso

__all__ = [
    "NoteStore",
]

DEFAULT_TITLE = "New Note"

UPDATABLE_FIELDS = {"title", "content", "parent_id"}
"""
Fields which may be changed through {obj}`NoteStore.update_note`.
"""

type ChangeCallback = Callable[[], None]


class NoteStore:
    """
    Collection of notes keyed by id, in insertion order. Parent/child
    relationships are held by id only, so the collection is a flat arena
    rather than a nested structure.

    Every mutation is persisted to the cache and reported to subscribers,
    which is how the sync session learns that local state is dirty.
    """

    _notes: dict[str, Note]
    """
    Mapping of note id to note, in insertion order.
    """

    _active_note_id: str | None
    """
    Note currently selected for editing.
    """

    _cache: LocalCache
    _callbacks: list[ChangeCallback]
    _logger: Logger

    def __init__(
        self,
        cache: LocalCache | None = None,
        *,
        logger: Logger | None = None,
    ):
        self._cache = cache if cache is not None else LocalCache()
        self._callbacks = []
        self._logger = logger or logging.getLogger()
        self._notes = {}
        self._active_note_id = None

        self._load()

    def __len__(self) -> int:
        return len(self._notes)

    def __contains__(self, note_id: str) -> bool:
        return note_id in self._notes

    def __iter__(self) -> Iterator[Note]:
        return iter(list(self._notes.values()))

    @property
    def cache(self) -> LocalCache:
        return self._cache

    @property
    def notes(self) -> list[Note]:
        """
        Copy of all notes in insertion order.
        """
        return list(self._notes.values())

    @property
    def active_note_id(self) -> str | None:
        return self._active_note_id

    @active_note_id.setter
    def active_note_id(self, note_id: str | None):
        if note_id is not None and note_id not in self._notes:
            raise NoteNotFoundError(note_id)

        self._active_note_id = note_id
        self._cache.set("active_note_id", note_id)

    def get(self, note_id: str) -> Note:
        try:
            return self._notes[note_id]
        except KeyError:
            raise NoteNotFoundError(note_id) from None

    def children(self, note_id: str | None) -> list[Note]:
        """
        Get direct children of a note, or root notes if `None`.
        """
        return [n for n in self._notes.values() if n.parent_id == note_id]

    def roots(self) -> list[Note]:
        """
        Get notes which have no parent, or whose parent is not in the store.
        """
        return [
            n
            for n in self._notes.values()
            if n.parent_id is None or n.parent_id not in self._notes
        ]

    def ancestors(self, note_id: str) -> list[Note]:
        """
        Get ancestors of a note, nearest first. Stops at a root, a missing
        parent or a cycle.
        """
        ancestors: list[Note] = []
        seen: set[str] = {note_id}
        note = self.get(note_id)

        while note.parent_id is not None and note.parent_id not in seen:
            parent = self._notes.get(note.parent_id)
            if parent is None:
                break

            seen.add(parent.id)
            ancestors.append(parent)
            note = parent

        return ancestors

    def walk(self, note_id: str | None = None) -> Iterator[tuple[int, Note]]:
        """
        Depth-first traversal yielding `(depth, note)`, starting at the given
        note or at all roots. Each note is yielded at most once.
        """
        seen: set[str] = set()

        def recurse(note: Note, depth: int) -> Iterator[tuple[int, Note]]:
            if note.id in seen:
                return
            seen.add(note.id)

            yield depth, note
            for child in self.children(note.id):
                yield from recurse(child, depth + 1)

        start = [self.get(note_id)] if note_id is not None else self.roots()
        for note in start:
            yield from recurse(note, 0)

    def add_note(
        self,
        parent_id: str | None = None,
        *,
        title: str = DEFAULT_TITLE,
        content: str = "",
    ) -> Note:
        """
        Create a note, optionally as a child of another, and make it active.
        """
        if parent_id is not None and parent_id not in self._notes:
            raise NoteNotFoundError(parent_id)

        timestamp = now_iso()
        note = Note(
            id=str(uuid.uuid4()),
            title=title,
            content=content,
            created_at=timestamp,
            updated_at=timestamp,
            parent_id=parent_id,
        )

        self._notes[note.id] = note
        self.active_note_id = note.id
        self._commit()

        return note

    def update_note(self, note_id: str, **updates: Any) -> Note:
        """
        Update title, content and/or parent of a note, bumping its
        `updated_at` timestamp.
        """
        note = self.get(note_id)

        invalid_fields = set(updates) - UPDATABLE_FIELDS
        if invalid_fields:
            raise ValidationError(
                [f"Cannot update field '{f}'" for f in sorted(invalid_fields)]
            )

        parent_id = updates.get("parent_id")
        if parent_id is not None:
            if parent_id not in self._notes:
                raise NoteNotFoundError(parent_id)
            if parent_id == note_id or note_id in {
                a.id for a in self.ancestors(parent_id)
            }:
                raise ValidationError(
                    [
                        f"Cannot move {note.str_short} under {parent_id}, would create a cycle"
                    ]
                )

        updated = note.model_copy(update={**updates, "updated_at": now_iso()})
        self._notes[note_id] = updated
        self._commit()

        return updated

    def delete_note(self, note_id: str) -> list[str]:
        """
        Delete a note along with all of its descendants, returning the
        deleted ids.
        """
        self.get(note_id)

        deleted_ids: list[str] = [note_id]
        pending: list[str] = [note_id]

        while pending:
            parent_id = pending.pop()
            for note in self._notes.values():
                if note.parent_id == parent_id and note.id not in deleted_ids:
                    deleted_ids.append(note.id)
                    pending.append(note.id)

        for deleted_id in deleted_ids:
            del self._notes[deleted_id]

        if self._active_note_id in deleted_ids:
            self.active_note_id = None

        self._commit()

        return deleted_ids

    def set_notes(self, notes: Iterable[Note], *, notify: bool = True):
        """
        Replace the whole note set. With `notify=False`, subscribers aren't
        informed; used when applying a pull, which must not look like a
        local edit.
        """
        notes = list(notes)

        ids: set[str] = set()
        errors: list[str] = []

        for note in notes:
            if note.id in ids:
                errors.append(f"Duplicate note id: '{note.id}'")
            ids.add(note.id)

        if errors:
            raise ValidationError(errors)

        self._notes = {note.id: note for note in notes}

        if self._active_note_id not in self._notes:
            self.active_note_id = None

        self._commit(notify=notify)

    def subscribe(self, callback: ChangeCallback):
        """
        Register callback invoked after every local mutation.
        """
        self._callbacks.append(callback)

    def unsubscribe(self, callback: ChangeCallback):
        if callback in self._callbacks:
            self._callbacks.remove(callback)

    def _load(self):
        """
        Load notes and active note from cache, or create the placeholder note
        if nothing was saved.
        """
        saved_notes = self._cache.get("notes")

        if saved_notes is not None:
            try:
                notes = [Note.model_validate(n) for n in saved_notes]
            except (PydanticValidationError, TypeError) as e:
                self._logger.error(f"Failed to parse saved notes: {e}")
            else:
                self._notes = {note.id: note for note in notes}

                active_note_id = self._cache.get("active_note_id")
                if active_note_id in self._notes:
                    self._active_note_id = active_note_id

                return

        placeholder = make_placeholder_note()
        self._notes = {placeholder.id: placeholder}
        self.active_note_id = placeholder.id
        self._save()

    def _save(self):
        self._cache.set(
            "notes", [note.to_json() for note in self._notes.values()]
        )

    def _commit(self, *, notify: bool = True):
        self._save()

        if notify:
            for callback in list(self._callbacks):
                callback()
