from pytest import raises
from remote_utils import TIMESTAMP, make_note

from note_mirror import (
    decode_note,
    encode_note,
    make_placeholder_note,
    split_front_matter,
)

NOW = "2024-06-01T12:00:00.000Z"


def test_encode():
    note = make_note("2", "Child Note", parent_id="1", content="<p>Hello</p>")
    text = encode_note(note)

    assert text.startswith("---\n")

    front_matter, body = split_front_matter(text)

    assert front_matter == {
        "id": "2",
        "title": "Child Note",
        "createdAt": TIMESTAMP,
        "updatedAt": TIMESTAMP,
        "parentId": "1",
    }
    assert body == "Hello\n"


def test_encode_formatting():
    note = make_note(
        "1",
        "Formatting",
        content=(
            "<h2>Heading</h2>"
            "<p>Some <strong>bold</strong> text</p>"
            "<ul><li>Item</li></ul>"
        ),
    )
    _, body = split_front_matter(encode_note(note))

    assert "## Heading" in body
    assert "**bold**" in body
    assert "Item" in body


def test_encode_root():
    text = encode_note(make_note("1", "Root"))

    assert "parentId: null\n" in text


def test_decode():
    text = "\n".join(
        [
            "---",
            "id: '2'",
            "title: Child Note",
            "createdAt: '2024-01-01T00:00:00.000Z'",
            "updatedAt: '2024-01-02T00:00:00.000Z'",
            "parentId: '1'",
            "---",
            "# Heading",
            "",
            "Hello",
            "",
        ]
    )

    note = decode_note(text, filename="child-note.md", now=NOW)

    assert note.id == "2"
    assert note.title == "Child Note"
    assert note.parent_id == "1"
    assert note.created_at == TIMESTAMP
    assert note.updated_at == "2024-01-02T00:00:00.000Z"
    assert note.content == "<h1>Heading</h1>\n<p>Hello</p>"


def test_decode_fallback():
    """
    Fields missing from front matter are derived from the filename.
    """
    note = decode_note("Just text\n", filename="my-note.md", now=NOW)

    assert note.id == "my-note"
    assert note.title == "my-note"
    assert note.parent_id is None
    assert note.created_at == NOW
    assert note.updated_at == NOW
    assert note.content == "<p>Just text</p>"

    note = decode_note("---\ntitle: Titled\n---\n", filename="x.md", now=NOW)

    assert note.id == "x"
    assert note.title == "Titled"
    assert note.content == ""


def test_decode_unquoted():
    """
    Scalars parsed by yaml as non-strings are coerced.
    """
    text = "---\nid: 5\ncreatedAt: 2024-01-01T00:00:00Z\nparentId: 3\n---\nx\n"
    note = decode_note(text, filename="x.md", now=NOW)

    assert note.id == "5"
    assert note.parent_id == "3"
    assert note.created_at.startswith("2024-01-01T00:00:00")


def test_decode_invalid():
    with raises(ValueError):
        decode_note("---\n- a\n- b\n---\nbody\n", filename="x.md")


def test_round_trip():
    """
    Metadata survives a round trip; content survives up to formatting.
    """
    note = make_placeholder_note()
    decoded = decode_note(encode_note(note), filename="welcome.md", now=NOW)

    assert decoded.id == note.id
    assert decoded.title == note.title
    assert decoded.created_at == note.created_at
    assert decoded.parent_id is None
    assert "<h1>Welcome!</h1>" in decoded.content
    assert "<p>Start writing your notes here...</p>" in decoded.content
