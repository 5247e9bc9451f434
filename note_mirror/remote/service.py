"""
Abstract remote file tree service.
"""
from __future__ import annotations

import hashlib
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Literal

from ..core.note import RepoConfig

__all__ = [
    "RemoteEntry",
    "RemoteFile",
    "RemoteTreeService",
    "git_blob_sha",
]


@dataclass(frozen=True, kw_only=True)
class RemoteEntry:
    """
    A single entry returned by a directory listing.
    """

    type: Literal["file", "dir"]
    path: str
    name: str

    sha: str | None = None
    """
    Version token required to safely overwrite or delete this file.
    """


@dataclass(frozen=True, kw_only=True)
class RemoteFile:
    """
    Contents of a remote file along with its version token.
    """

    path: str
    content: bytes
    sha: str | None = None


class RemoteTreeService(ABC):
    """
    File tree in a remote repository, bound to a single repository and ref.

    Implementations raise {obj}`RemoteError` with a {obj}`RemoteErrorKind`
    upon failure; in particular, a missing path is reported as
    `RemoteErrorKind.NOT_FOUND`.
    """

    config: RepoConfig

    def __init__(self, config: RepoConfig):
        self.config = config

    @abstractmethod
    def list_dir(self, path: str) -> list[RemoteEntry]:
        """
        List entries of a folder.
        """
        ...

    @abstractmethod
    def read_file(self, path: str) -> RemoteFile:
        ...

    @abstractmethod
    def write_file(
        self,
        path: str,
        content: bytes,
        *,
        message: str,
        sha: str | None = None,
    ):
        """
        Create file if `sha` is `None`, else update it; must fail if `sha`
        is stale.
        """
        ...

    @abstractmethod
    def delete_file(self, path: str, *, message: str, sha: str | None):
        ...


def git_blob_sha(content: bytes) -> str:
    """
    Get git's object id of a blob with the given content, which is the version
    token the remote reports for an unchanged file.
    """
    header = f"blob {len(content)}\0".encode()
    return hashlib.sha1(header + content).hexdigest()
