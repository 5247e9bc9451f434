from pytest import raises
from remote_utils import FakeTreeService, make_note

from note_mirror import (
    Note,
    RemoteError,
    RemoteErrorKind,
    encode_note,
    pull_notes,
    push_notes,
)


def test_push_new(service: FakeTreeService, note_pair: list[Note]):
    """
    Notes are written to paths mirroring the hierarchy.
    """
    result = push_notes(service, note_pair)

    assert result.success
    assert result.written == 2
    assert result.paths == {
        "1": "notes/parent-note.md",
        "2": "notes/parent-note/child-note.md",
    }

    assert service.writes == [
        ("notes/parent-note.md", None),
        ("notes/parent-note/child-note.md", None),
    ]
    assert service.deletes == []

    write = ("write", "notes/parent-note.md", None, "Update note: Parent Note")
    assert write in service.calls

    # remote now holds the notes
    assert pull_notes(service) == note_pair


def test_delete_stale(service: FakeTreeService, note_pair: list[Note]):
    """
    Note files not matching any note are deleted using their version token.
    """
    service.add_file("notes/orphan.md", "stale", sha="sha-old")
    service.add_file("notes/image.png", b"\x89PNG")

    result = push_notes(service, note_pair)

    assert result.success
    assert result.deleted == 1
    assert service.deletes == [("notes/orphan.md", "sha-old")]
    delete = ("delete", "notes/orphan.md", "sha-old", "Delete note orphan.md")
    assert delete in service.calls

    # other files are kept
    assert "notes/image.png" in service.files

    # all writes happen before any delete
    ops = [c[0] for c in service.calls if c[0] in ("write", "delete")]
    assert ops == ["write", "write", "delete"]


def test_update_existing(service: FakeTreeService, note_pair: list[Note]):
    service.add_file("notes/parent-note.md", "old content", sha="sha-parent")

    result = push_notes(service, note_pair)

    assert result.success
    assert service.writes[0] == ("notes/parent-note.md", "sha-parent")
    assert service.deletes == []


def test_skip_unchanged(service: FakeTreeService, note_pair: list[Note]):
    push_notes(service, note_pair)
    service.calls.clear()

    edited = [
        note_pair[0],
        note_pair[1].model_copy(update={"content": "<p>!</p>"}),
    ]
    result = push_notes(service, edited)

    assert result.unchanged == 1
    assert result.written == 1
    assert [path for path, _ in service.writes] == [
        "notes/parent-note/child-note.md"
    ]


def test_rename(service: FakeTreeService, note_pair: list[Note]):
    """
    Renaming a note writes the new path and deletes the old one.
    """
    push_notes(service, note_pair)

    renamed = [
        note_pair[0].model_copy(update={"title": "Renamed"}),
        note_pair[1],
    ]
    result = push_notes(service, renamed)

    assert result.success
    assert sorted(service.files) == [
        "notes/renamed.md",
        "notes/renamed/child-note.md",
    ]


def test_partial_failure(service: FakeTreeService, note_pair: list[Note]):
    """
    A failed write is recorded while the rest of the batch proceeds.
    """
    service.add_file("notes/orphan.md", "stale")
    service.add_file("notes/locked.md", "stale")
    service.fail_paths = {"notes/parent-note.md", "notes/locked.md"}

    result = push_notes(service, note_pair)

    assert not result.success
    assert result.errors == [
        "Failed to push Parent Note: Server error",
        "Failed to delete locked.md: Server error",
    ]
    assert result.written == 1
    assert result.deleted == 1
    assert "notes/parent-note/child-note.md" in service.files
    assert "notes/orphan.md" not in service.files


def test_stale_token(service: FakeTreeService):
    """
    A rejected write is reported like any other failure.
    """
    service.add_file("notes/a.md", "x")

    # listing reports a token which the write then doesn't match
    original_list_dir = service.list_dir

    def list_dir(path: str):
        entries = original_list_dir(path)
        service.add_file("notes/a.md", "changed concurrently")
        return entries

    service.list_dir = list_dir  # type: ignore

    result = push_notes(service, [make_note("1", "A")])

    assert len(result.errors) == 1
    assert result.errors[0].startswith("Failed to push A: Conflict")


def test_access_error(service: FakeTreeService, note_pair: list[Note]):
    service.list_error = RemoteError(
        RemoteErrorKind.UNAUTHORIZED, "Bad credentials"
    )

    with raises(RemoteError):
        push_notes(service, note_pair)

    assert service.writes == []


def test_dry_run(service: FakeTreeService, note_pair: list[Note]):
    service.add_file("notes/orphan.md", "stale")

    result = push_notes(service, note_pair, dry_run=True)

    assert result.written == 2
    assert result.deleted == 1
    assert service.writes == []
    assert service.deletes == []


def test_colliding_titles(service: FakeTreeService):
    notes = [make_note("1", "Same"), make_note("2", "Same")]
    result = push_notes(service, notes)

    assert result.paths == {"1": "notes/same.md", "2": "notes/same-1.md"}
    assert sorted(pull_notes(service), key=lambda n: n.id) == notes


def test_encoded_content(service: FakeTreeService, note_pair: list[Note]):
    push_notes(service, note_pair)

    content, _ = service.files["notes/parent-note.md"]
    assert content.decode("utf-8") == encode_note(note_pair[0])
