"""
Map notes to remote paths mirroring their ancestor chain.
"""
from __future__ import annotations

import logging
import re
from logging import Logger
from typing import Mapping

from ..core.note import Note
from ..remote.walker import NOTES_ROOT

__all__ = [
    "NOTE_EXTENSION",
    "UNTITLED_SLUG",
    "build_path",
    "sanitize_slug",
]

NOTE_EXTENSION = ".md"

UNTITLED_SLUG = "untitled"
"""
Slug used when a title has no alphanumeric characters.
"""

_NON_ALNUM = re.compile(r"[^a-z0-9]+")


def sanitize_slug(title: str, *, logger: Logger | None = None) -> str:
    """
    Lowercase title and collapse each run of other characters to a dash.

    Logs a warning if more than half of the characters were dropped or the
    fallback slug was used, since such titles are likely to collide.
    """
    logger = logger or logging.getLogger()

    slug = _NON_ALNUM.sub("-", title.lower()).strip("-")

    if not slug:
        logger.warning(
            f"Title '{title}' has no usable characters, using '{UNTITLED_SLUG}'"
        )
        return UNTITLED_SLUG

    kept = len(slug.replace("-", ""))
    if kept * 2 < len(title):
        logger.warning(
            f"Title '{title}' lost {len(title) - kept} of {len(title)} characters in slug '{slug}'"
        )

    return slug


def build_path(
    note: Note,
    notes_by_id: Mapping[str, Note],
    used_paths: set[str],
    *,
    logger: Logger | None = None,
) -> str:
    """
    Get a unique path for the note, e.g. `notes/parent/child.md`, and register
    it in `used_paths`.

    The same `used_paths` must be shared by all notes in a push so that notes
    whose slugs collide get numeric suffixes: `child-1.md`, `child-2.md`, ...

    A broken parent chain (missing parent or cycle) ends the walk early, so
    every note gets a path.
    """
    slugs: list[str] = []
    visited: set[str] = set()
    current: Note | None = note

    while current is not None and current.id not in visited:
        visited.add(current.id)
        slugs.append(sanitize_slug(current.title, logger=logger))

        if current.parent_id is None:
            break
        current = notes_by_id.get(current.parent_id)

    base_path = "/".join([NOTES_ROOT] + list(reversed(slugs)))
    path = f"{base_path}{NOTE_EXTENSION}"

    counter = 1
    while path in used_paths:
        path = f"{base_path}-{counter}{NOTE_EXTENSION}"
        counter += 1

    used_paths.add(path)
    return path
