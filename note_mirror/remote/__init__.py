"""
Interface to the remote file tree in which notes are mirrored.
"""

from pyrollup import rollup

from . import github, service, walker
from .github import *  # noqa
from .service import *  # noqa
from .walker import *  # noqa

__all__ = rollup(service, github, walker)

__canonical_children__ = [
    "service",
    "github",
    "walker",
]
