"""
Fetch and decode all note files from the remote tree.
"""
from __future__ import annotations

import logging
from logging import Logger

from ..core.exceptions import RemoteError
from ..core.note import Note, now_iso
from ..remote.service import RemoteTreeService
from ..remote.walker import NOTES_ROOT, list_all_files
from .codec import decode_note
from .paths import NOTE_EXTENSION

__all__ = [
    "pull_notes",
]


def pull_notes(
    service: RemoteTreeService,
    *,
    logger: Logger | None = None,
) -> list[Note]:
    """
    Get notes from all note files under the notes folder, ordered by path.

    A file which can't be read or decoded, or which repeats the id of an
    earlier file, is logged and skipped. If the notes folder doesn't exist,
    no notes are returned; any other failure to list the folder propagates.
    """
    logger = logger or logging.getLogger()

    try:
        files = list_all_files(service, NOTES_ROOT)
    except RemoteError as e:
        if e.is_not_found:
            return []
        raise

    note_files = sorted(
        (f for f in files if f.name.endswith(NOTE_EXTENSION)),
        key=lambda f: f.path,
    )

    notes: list[Note] = []
    seen_ids: set[str] = set()
    now = now_iso()

    for file in note_files:
        try:
            remote_file = service.read_file(file.path)
            text = remote_file.content.decode("utf-8")
            note = decode_note(text, filename=file.name, now=now)
        except Exception as e:
            logger.error(f"Failed to fetch/parse '{file.path}': {e}")
            continue

        if note.id in seen_ids:
            logger.error(
                f"Skipping '{file.path}': duplicate note id '{note.id}'"
            )
            continue

        seen_ids.add(note.id)
        notes.append(note)

    logger.debug(f"Pulled {len(notes)} of {len(note_files)} note files")

    return notes
