import json
from datetime import UTC, datetime, timedelta
from pathlib import Path

import pytest

from src.adapters.fs.post_store import FileSystemPostStore
from src.domain.entities import BlogLink, BlogPost
from src.domain.errors import PostNotFoundError, StoreError

T0 = datetime(2025, 1, 1, 12, 0, 0, tzinfo=UTC)


def make_post(post_id: str, offset_minutes: int = 0, **kwargs) -> BlogPost:
    ts = T0 + timedelta(minutes=offset_minutes)
    fields = {
        "id": post_id,
        "title": f"Post {post_id}",
        "description": "<p>Body</p>",
        "created_at": ts,
        "updated_at": ts,
    }
    fields.update(kwargs)
    return BlogPost(**fields)


@pytest.fixture
def store(tmp_path):
    return FileSystemPostStore(tmp_path / "blogs")


def test_list_missing_directory_is_empty(store):
    assert store.list() == []


def test_put_then_get(store):
    post = make_post("a", links=[BlogLink(text="Code", url="https://github.com/a")])
    store.put(post)
    assert store.get("a") == post


def test_document_layout(store):
    store.put(make_post("a"))
    path = store.base_path / "a.json"
    raw = path.read_text(encoding="utf-8")

    doc = json.loads(raw)
    assert doc["id"] == "a"
    assert "thumbnail" not in doc
    assert doc["links"] == []
    assert raw.startswith('{\n  "id"')


def test_unicode_written_verbatim(store):
    store.put(make_post("u", title="Café ☕"))
    assert "Café ☕" in (store.base_path / "u.json").read_text(encoding="utf-8")


def test_list_newest_first(store):
    store.put(make_post("old", 0))
    store.put(make_post("new", 10))
    store.put(make_post("mid", 5))
    assert [p.id for p in store.list()] == ["new", "mid", "old"]


def test_put_overwrites(store):
    store.put(make_post("a"))
    store.put(make_post("a", title="Renamed"))
    assert store.get("a").title == "Renamed"
    assert len(store.list()) == 1


def test_get_missing_returns_none(store):
    assert store.get("nope") is None


@pytest.mark.parametrize("bad_id", ["", "../etc/passwd", "a/b", ".hidden"])
def test_traversal_ids_rejected(store, bad_id):
    assert store.get(bad_id) is None
    with pytest.raises(PostNotFoundError):
        store.remove(bad_id)


def test_remove(store):
    store.put(make_post("a"))
    store.remove("a")
    assert store.get("a") is None
    with pytest.raises(PostNotFoundError):
        store.remove("a")


def test_malformed_document_raises(store):
    store.base_path.mkdir(parents=True)
    (store.base_path / "broken.json").write_text("{not json", encoding="utf-8")

    with pytest.raises(StoreError):
        store.get("broken")
    with pytest.raises(StoreError):
        store.list()


def test_naive_timestamps_read_as_utc(store):
    store.base_path.mkdir(parents=True)
    doc = {
        "id": "legacy",
        "title": "Old",
        "description": "d",
        "links": [],
        "created_at": "2024-05-01T10:00:00",
        "updated_at": "2024-05-01T10:00:00",
    }
    (store.base_path / "legacy.json").write_text(json.dumps(doc), encoding="utf-8")

    post = store.get("legacy")
    assert post.created_at.tzinfo is not None


def test_no_temp_files_left_behind(store):
    store.put(make_post("a"))
    assert [p.name for p in store.base_path.iterdir()] == ["a.json"]


def test_file_deleted_after_listing_is_skipped(store, monkeypatch):
    store.put(make_post("kept"))
    glob = Path.glob

    def glob_with_ghost(self, pattern):
        # a file that vanished between the directory scan and the read
        return [*glob(self, pattern), self / "ghost.json"]

    monkeypatch.setattr(Path, "glob", glob_with_ghost)
    monkeypatch.setattr(Path, "is_file", lambda self: True)

    assert [p.id for p in store.list()] == ["kept"]


def test_file_deleted_after_exists_check_reads_as_missing(store, monkeypatch):
    store.put(make_post("kept"))
    monkeypatch.setattr(Path, "exists", lambda self: True)

    assert store.get("ghost") is None
