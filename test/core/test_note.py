import datetime

from remote_utils import TIMESTAMP, make_note

from note_mirror import (
    Note,
    RepoConfig,
    fingerprint,
    is_placeholder,
    make_placeholder_note,
    now_iso,
)


def test_wire_names():
    """
    Notes are read and written with camelCase keys.
    """
    note = Note.model_validate(
        {
            "id": "2",
            "title": "Child",
            "content": "<p>x</p>",
            "createdAt": TIMESTAMP,
            "updatedAt": TIMESTAMP,
            "parentId": "1",
        }
    )

    assert note.parent_id == "1"
    assert note.created_at == TIMESTAMP

    assert note.to_json() == {
        "id": "2",
        "title": "Child",
        "content": "<p>x</p>",
        "createdAt": TIMESTAMP,
        "updatedAt": TIMESTAMP,
        "parentId": "1",
    }


def test_coercion():
    note = Note(
        id="1",
        created_at=datetime.datetime(2024, 1, 1, tzinfo=datetime.timezone.utc),
        updated_at=datetime.date(2024, 1, 2),
        parent_id="",
    )

    assert note.created_at.startswith("2024-01-01T00:00:00")
    assert note.updated_at == "2024-01-02"
    assert note.parent_id is None

    assert Note(id="1", parent_id=5).parent_id == "5"


def test_now_iso():
    timestamp = now_iso()

    assert timestamp.endswith("Z")
    assert datetime.datetime.fromisoformat(timestamp.replace("Z", "+00:00"))


def test_fingerprint():
    note1 = make_note("1", "A")
    note2 = make_note("2", "B")

    assert fingerprint([note1, note2]) == fingerprint(
        [make_note("1", "A"), make_note("2", "B")]
    )

    # order is significant
    assert fingerprint([note1, note2]) != fingerprint([note2, note1])

    # any field is significant
    edited = make_note("1", "A", content="x")
    assert fingerprint([note1]) != fingerprint([edited])

    assert fingerprint([]) != fingerprint([note1])


def test_placeholder():
    placeholder = make_placeholder_note()

    assert is_placeholder([placeholder])
    assert not is_placeholder([])
    assert not is_placeholder([placeholder, make_note("1", "A")])
    assert not is_placeholder(
        [placeholder.model_copy(update={"title": "My notes"})]
    )


def test_repo_config():
    config = RepoConfig(owner="me", repo="notes", branch="")

    assert config.branch == "main"
    assert config.is_complete
    assert str(config) == "me/notes@main"

    assert not RepoConfig(owner=" ", repo="notes").is_complete
