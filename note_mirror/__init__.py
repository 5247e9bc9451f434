"""
NoteMirror: keep a hierarchy of rich-text notes mirrored to a directory tree
in a remote repository.
"""

from pyrollup import rollup

from . import core, remote, sync
from .core import *  # noqa
from .remote import *  # noqa
from .sync import *  # noqa

__all__ = rollup(core, remote, sync)

__canonical_children__ = [
    "core",
    "remote",
    "sync",
]
