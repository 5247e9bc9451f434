"""
Recursive listing of a remote folder.
"""
from __future__ import annotations

from ..core.exceptions import RemoteError
from .service import RemoteEntry, RemoteTreeService

__all__ = [
    "NOTES_ROOT",
    "list_all_files",
]

NOTES_ROOT = "notes"
"""
Top-level folder holding note files.
"""


def list_all_files(
    service: RemoteTreeService, root: str = NOTES_ROOT
) -> list[RemoteEntry]:
    """
    Recursively list files under a folder, flattened. A missing folder
    yields no files; any other failure propagates.
    """

    def recurse(path: str) -> list[RemoteEntry]:
        try:
            entries = service.list_dir(path)
        except RemoteError as e:
            if e.is_not_found:
                return []
            raise

        files: list[RemoteEntry] = []

        for entry in entries:
            if entry.type == "file":
                files.append(entry)
            elif entry.type == "dir":
                files += recurse(entry.path)

        return files

    return recurse(root)
