import logging

from pytest import LogCaptureFixture, mark
from remote_utils import make_note

from note_mirror import Note, build_path, sanitize_slug


@mark.parametrize(
    "title,slug",
    [
        ("Parent Note", "parent-note"),
        ("  Hello, World!! ", "hello-world"),
        ("Version 2.0", "version-2-0"),
        ("UPPER_case", "upper-case"),
        ("", "untitled"),
        ("???", "untitled"),
    ],
)
def test_sanitize_slug(title: str, slug: str):
    assert sanitize_slug(title) == slug


def test_sanitize_slug_warning(caplog: LogCaptureFixture):
    with caplog.at_level(logging.WARNING):
        assert sanitize_slug("Café") == "caf"
        assert not caplog.records

        assert sanitize_slug("日本語のノート") == "untitled"
        assert len(caplog.records) == 1

        assert sanitize_slug("a ☕☕☕☕") == "a"
        assert len(caplog.records) == 2


def build_paths(notes: list[Note]) -> list[str]:
    notes_by_id = {n.id: n for n in notes}
    used_paths: set[str] = set()
    return [build_path(n, notes_by_id, used_paths) for n in notes]


def test_hierarchy():
    paths = build_paths(
        [
            make_note("1", "Parent Note"),
            make_note("2", "Child Note", parent_id="1"),
            make_note("3", "Grandchild", parent_id="2"),
        ]
    )

    assert paths == [
        "notes/parent-note.md",
        "notes/parent-note/child-note.md",
        "notes/parent-note/child-note/grandchild.md",
    ]


def test_collision():
    """
    Notes whose slugs collide get numeric suffixes in order.
    """
    paths = build_paths(
        [
            make_note("1", "Same"),
            make_note("2", "same"),
            make_note("3", "Same!"),
            make_note("4", "Parent"),
            make_note("5", "Same", parent_id="4"),
        ]
    )

    assert paths == [
        "notes/same.md",
        "notes/same-1.md",
        "notes/same-2.md",
        "notes/parent.md",
        "notes/parent/same.md",
    ]
    assert len(set(paths)) == len(paths)


def test_broken_chain():
    """
    A missing parent or a cycle ends the walk without failing.
    """
    paths = build_paths(
        [
            make_note("1", "Orphan", parent_id="gone"),
            make_note("a", "A", parent_id="b"),
            make_note("b", "B", parent_id="a"),
        ]
    )

    assert paths == [
        "notes/orphan.md",
        "notes/b/a.md",
        "notes/a/b.md",
    ]
