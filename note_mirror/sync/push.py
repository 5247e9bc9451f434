"""
Reconcile the remote tree with a local note set.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from logging import Logger

from ..core.exceptions import RemoteError
from ..core.note import Note
from ..remote.service import RemoteEntry, RemoteTreeService, git_blob_sha
from ..remote.walker import NOTES_ROOT, list_all_files
from .codec import encode_note
from .paths import NOTE_EXTENSION, build_path

__all__ = [
    "PushResult",
    "push_notes",
]


@dataclass(kw_only=True)
class PushResult:
    """
    Encapsulates outcome of push operation.
    """

    errors: list[str] = field(default_factory=list)
    """
    One message per note or file which failed to be written or deleted.
    """

    paths: dict[str, str] = field(default_factory=dict)
    """
    Mapping of note id to the path it was assigned.
    """

    written: int = 0
    """
    Number of files created or updated.
    """

    unchanged: int = 0
    """
    Number of files skipped as their content was already up to date.
    """

    deleted: int = 0
    """
    Number of files deleted as they no longer belong to any note.
    """

    @property
    def success(self) -> bool:
        return not self.errors


def push_notes(
    service: RemoteTreeService,
    notes: list[Note],
    *,
    logger: Logger | None = None,
    dry_run: bool = False,
) -> PushResult:
    """
    Write every note to its path and delete note files which don't belong to
    any note.

    With `dry_run`, planned writes and deletes are only logged.

    All writes are attempted before any delete, since deletes are decided from
    the complete set of assigned paths. A failure of an individual write or
    delete is logged and recorded in the result without stopping the batch.
    The remote is not left in any particular state upon partial failure;
    writes and deletes are independent operations.

    Raises {obj}`RemoteError` if the current remote files can't be listed for
    any reason besides the notes folder not existing.
    """
    logger = logger or logging.getLogger()
    result = PushResult()

    # get current remote files, to find version tokens and stale files
    try:
        current_files = list_all_files(service, NOTES_ROOT)
    except RemoteError as e:
        if not e.is_not_found:
            logger.error(f"Error fetching notes folder: {e}")
            raise
        current_files = []

    files_by_path: dict[str, RemoteEntry] = {f.path: f for f in current_files}
    notes_by_id: dict[str, Note] = {n.id: n for n in notes}
    used_paths: set[str] = set()

    # write notes
    for note in notes:
        try:
            path = build_path(note, notes_by_id, used_paths, logger=logger)
            result.paths[note.id] = path

            content = encode_note(note).encode("utf-8")
            existing_file = files_by_path.get(path)
            sha = existing_file.sha if existing_file else None

            # skip notes whose file content is already current
            if sha is not None and sha == git_blob_sha(content):
                result.unchanged += 1
                continue

            if dry_run:
                logger.info(f"Would write {note.str_short} to '{path}'")
            else:
                service.write_file(
                    path,
                    content,
                    message=f"Update note: {note.title}",
                    sha=sha,
                )
            result.written += 1
        except Exception as e:
            logger.error(f"Failed to push note {note.id}: {e}")
            result.errors.append(f"Failed to push {note.title}: {e}")

    # delete files which weren't written (presumed deleted locally)
    new_paths = set(result.paths.values())
    stale_files = [
        f
        for f in current_files
        if f.path not in new_paths and f.path.endswith(NOTE_EXTENSION)
    ]

    for file in stale_files:
        try:
            if dry_run:
                logger.info(f"Would delete file: '{file.path}'")
            else:
                service.delete_file(
                    file.path, message=f"Delete note {file.name}", sha=file.sha
                )
            result.deleted += 1
        except Exception as e:
            logger.error(f"Failed to delete file {file.path}: {e}")
            result.errors.append(f"Failed to delete {file.name}: {e}")

    return result
