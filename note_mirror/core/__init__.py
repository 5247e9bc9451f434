"""
This module implements the local side of synchronization: the note model,
the durable cache and note store, and the session which decides when to pull
and push.
"""

from pyrollup import rollup

from . import cache, exceptions, note, session, store
from .cache import *  # noqa
from .exceptions import *  # noqa
from .note import *  # noqa
from .session import *  # noqa
from .store import *  # noqa

__all__ = rollup(
    session,
    store,
    note,
    cache,
    exceptions,
)

__canonical_children__ = [
    "session",
    "store",
    "note",
    "cache",
    "exceptions",
]
