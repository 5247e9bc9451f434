"""
Durable key/value cache for local state: notes, config, active note,
last-synced fingerprint and dirty flag.
"""
from __future__ import annotations

import logging
import os
from logging import Logger
from pathlib import Path
from typing import Any

import yaml

__all__ = [
    "CACHE_KEYS",
    "LocalCache",
]

CACHE_KEYS = (
    "notes",
    "config",
    "active_note_id",
    "fingerprint",
    "dirty",
)
"""
Keys persisted by the store and sync session. Each is stored independently.
"""


class LocalCache:
    """
    Stores each key as its own .yaml file in a folder, so keys can be read and
    written independently; the last write to a key wins. If no folder is
    given, values are kept in memory only.
    """

    _root: Path | None
    _values: dict[str, Any]
    _logger: Logger

    def __init__(
        self, root: Path | None = None, *, logger: Logger | None = None
    ):
        self._root = root
        self._values = {}
        self._logger = logger or logging.getLogger()

        if root is not None:
            root.mkdir(parents=True, exist_ok=True)

    def __repr__(self) -> str:
        return f"LocalCache({self._root})"

    @property
    def root(self) -> Path | None:
        return self._root

    def get(self, key: str, default: Any = None) -> Any:
        """
        Get value for key, or default if not set.
        """
        _check_key(key)

        if self._root is None:
            return self._values.get(key, default)

        path = self._path(key)
        if not path.is_file():
            return default

        with path.open(encoding="utf-8") as fh:
            value = yaml.safe_load(fh)

        return default if value is None else value

    def set(self, key: str, value: Any):
        """
        Set value for key. Setting `None` removes the key.
        """
        _check_key(key)

        if value is None:
            self.delete(key)
            return

        if self._root is None:
            self._values[key] = value
            return

        path = self._path(key)
        tmp_path = path.with_name(f".{path.name}.tmp")

        tmp_path.write_text(
            yaml.safe_dump(
                value,
                default_flow_style=False,
                sort_keys=False,
                allow_unicode=True,
            ),
            encoding="utf-8",
        )
        os.replace(tmp_path, path)

    def delete(self, key: str):
        _check_key(key)

        if self._root is None:
            self._values.pop(key, None)
            return

        self._path(key).unlink(missing_ok=True)

    def __contains__(self, key: str) -> bool:
        _check_key(key)

        if self._root is None:
            return key in self._values
        return self._path(key).is_file()

    def _path(self, key: str) -> Path:
        assert self._root is not None
        return self._root / f"{key}.yaml"


def _check_key(key: str):
    if key not in CACHE_KEYS:
        raise KeyError(f"Unknown cache key: {key}")
