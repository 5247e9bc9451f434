from pytest import raises
from remote_utils import FakeTreeService

from note_mirror import RemoteError, RemoteErrorKind, list_all_files


def test_recursive(service: FakeTreeService):
    service.add_file("notes/a.md", "a")
    service.add_file("notes/a/b.md", "b")
    service.add_file("notes/a/b/c.md", "c")
    service.add_file("other/d.md", "d")

    files = list_all_files(service, "notes")

    assert sorted(f.path for f in files) == [
        "notes/a.md",
        "notes/a/b.md",
        "notes/a/b/c.md",
    ]
    assert all(f.type == "file" and f.sha for f in files)


def test_missing(service: FakeTreeService):
    assert list_all_files(service, "notes") == []


def test_missing_subfolder(service: FakeTreeService):
    """
    A folder which disappears during the walk yields no files.
    """
    service.add_file("notes/a.md", "a")
    service.add_file("notes/gone/b.md", "b")

    original_list_dir = service.list_dir

    def list_dir(path: str):
        entries = original_list_dir(path)
        service.files.pop("notes/gone/b.md", None)
        return entries

    service.list_dir = list_dir  # type: ignore

    assert [f.path for f in list_all_files(service, "notes")] == ["notes/a.md"]


def test_error(service: FakeTreeService):
    service.list_error = RemoteError(RemoteErrorKind.TRANSIENT, "Server error")

    with raises(RemoteError):
        list_all_files(service, "notes")
