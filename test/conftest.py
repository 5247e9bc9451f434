import logging
from pathlib import Path

from pytest import fixture
from remote_utils import FakeBackend, FakeTreeService, make_note

from note_mirror import LocalCache, Note, NoteStore, RepoConfig

logging.basicConfig(level=logging.WARNING)


@fixture
def config() -> RepoConfig:
    """
    Repository config matching the fake service.
    """
    return RepoConfig(owner="me", repo="notes")


@fixture
def service(config: RepoConfig) -> FakeTreeService:
    """
    Empty remote tree.
    """
    return FakeTreeService(config)


@fixture
def backend() -> FakeBackend:
    return FakeBackend()


@fixture
def cache_dir(tmp_path: Path) -> Path:
    return tmp_path / "cache"


@fixture
def store() -> NoteStore:
    """
    Store holding a small hierarchy, backed by in-memory cache.
    """
    store = NoteStore(LocalCache())
    store.set_notes(
        [
            make_note("1", "Parent Note", content="<p>Hello</p>"),
            make_note("2", "Child Note", parent_id="1", content="<p>World</p>"),
        ]
    )
    return store


@fixture
def note_pair() -> list[Note]:
    return [
        make_note("1", "Parent Note", content="<p>Hello</p>"),
        make_note("2", "Child Note", parent_id="1", content="<p>World</p>"),
    ]
