"""
HTTP endpoints for pulling and pushing notes on behalf of a client which
holds a bearer credential.
"""

from .app import *  # noqa
