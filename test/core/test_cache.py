from pathlib import Path

from pytest import mark, raises

from note_mirror import LocalCache


@mark.parametrize("persistent", [False, True], ids=["memory", "folder"])
def test_get_set(persistent: bool, cache_dir: Path):
    cache = LocalCache(cache_dir if persistent else None)

    assert cache.get("notes") is None
    assert cache.get("dirty", False) is False
    assert "notes" not in cache

    cache.set("notes", [{"id": "1", "title": "A"}])
    cache.set("dirty", False)

    assert cache.get("notes") == [{"id": "1", "title": "A"}]
    assert cache.get("dirty", True) is False
    assert "notes" in cache

    # setting None removes key
    cache.set("notes", None)
    assert "notes" not in cache

    cache.delete("dirty")
    cache.delete("dirty")
    assert cache.get("dirty") is None


def test_persistence(cache_dir: Path):
    cache = LocalCache(cache_dir)
    cache.set("fingerprint", "abc")
    cache.set("config", {"owner": "me", "repo": "notes", "branch": "main"})

    assert (cache_dir / "fingerprint.yaml").is_file()

    # no temp files are left behind
    assert sorted(p.name for p in cache_dir.iterdir()) == [
        "config.yaml",
        "fingerprint.yaml",
    ]

    cache2 = LocalCache(cache_dir)
    assert cache2.get("fingerprint") == "abc"
    assert cache2.get("config")["repo"] == "notes"


def test_unicode(cache_dir: Path):
    cache = LocalCache(cache_dir)
    cache.set("notes", [{"title": "Café ☕"}])

    assert LocalCache(cache_dir).get("notes") == [{"title": "Café ☕"}]


def test_unknown_key(cache_dir: Path):
    cache = LocalCache(cache_dir)

    with raises(KeyError):
        cache.get("note")

    with raises(KeyError):
        cache.set("../notes", [])

    assert list(cache_dir.iterdir()) == []
