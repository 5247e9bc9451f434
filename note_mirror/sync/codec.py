"""
Translation between notes and note files: Markdown with YAML front matter.
"""
from __future__ import annotations

import re
from typing import Any

import markdown
import yaml
from markdownify import markdownify

from ..core.note import Note, now_iso
from .paths import NOTE_EXTENSION

__all__ = [
    "decode_note",
    "encode_note",
    "split_front_matter",
]

FRONT_MATTER_DELIMITER = "---"

_FRONT_MATTER = re.compile(
    r"\A---[ \t]*\r?\n(.*?)(?:\r?\n)?^---[ \t]*(?:\r?\n|\Z)",
    re.DOTALL | re.MULTILINE,
)


def encode_note(note: Note) -> str:
    """
    Get text of note file: front matter with note metadata followed by
    content converted to Markdown.
    """
    body = markdownify(note.content or "", heading_style="ATX").strip()

    front_matter = {
        "id": note.id,
        "title": note.title,
        "createdAt": note.created_at,
        "updatedAt": note.updated_at,
        "parentId": note.parent_id,
    }
    front_matter_yaml = yaml.safe_dump(
        front_matter,
        default_flow_style=False,
        sort_keys=False,
        allow_unicode=True,
    )

    delimiter = FRONT_MATTER_DELIMITER
    return f"{delimiter}\n{front_matter_yaml}{delimiter}\n{body}\n"


def split_front_matter(text: str) -> tuple[dict[str, Any], str]:
    """
    Split text into front matter mapping and body. Text without front matter
    yields an empty mapping.
    """
    match = _FRONT_MATTER.match(text)

    if match is None:
        return {}, text

    front_matter = yaml.safe_load(match.group(1)) or {}

    if not isinstance(front_matter, dict):
        raise ValueError(f"Front matter is not a mapping: {front_matter!r}")

    return front_matter, text[match.end() :]


def decode_note(text: str, *, filename: str, now: str | None = None) -> Note:
    """
    Get note from text of note file. Fields missing from front matter are
    derived from the filename, or set to `now` for timestamps.
    """
    front_matter, body = split_front_matter(text)

    stem = (
        filename[: -len(NOTE_EXTENSION)]
        if filename.endswith(NOTE_EXTENSION)
        else filename
    )
    timestamp = now or now_iso()

    return Note(
        id=str(front_matter.get("id") or stem),
        title=str(front_matter.get("title") or stem),
        content=markdown.markdown(body.strip()),
        created_at=front_matter.get("createdAt") or timestamp,
        updated_at=front_matter.get("updatedAt") or timestamp,
        parent_id=front_matter.get("parentId") or None,
    )
