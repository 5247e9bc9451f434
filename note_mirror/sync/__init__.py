"""
This package contains the synchronization core: mapping notes to remote
paths, translating between notes and note files, and reconciling the remote
tree with a local note set.

The remote tree is slow to query and write and has no multi-file
transaction, so a push is a batch of independent writes followed by a batch
of independent deletes; see {obj}`push_notes`.
"""

from pyrollup import rollup

from . import backend, codec, paths, pull, push
from .backend import *  # noqa
from .codec import *  # noqa
from .paths import *  # noqa
from .pull import *  # noqa
from .push import *  # noqa

__all__ = rollup(paths, codec, pull, push, backend)

__canonical_children__ = [
    "paths",
    "codec",
    "pull",
    "push",
    "backend",
]
