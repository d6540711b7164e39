# tests/test_cache_store.py
"""Cache store tests."""

import json

import pytest

from docsmith.cache import CacheStore


class FakeClock:
    """Manually advanced clock in seconds."""

    def __init__(self, now: float = 1_700_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
async def store(tmp_path, clock):
    """Initialized cache store with a one hour TTL."""
    cache = CacheStore(tmp_path / "cache", max_age_hours=1.0, version="1.0.0", clock=clock)
    assert await cache.initialize()
    return cache


async def test_get_returns_value_while_content_unchanged(store):
    """A fresh entry is served while its content is unchanged."""
    await store.set("jsdoc:a", {"status": "success"}, content="function a() {}")

    assert await store.get("jsdoc:a", content="function a() {}") == {"status": "success"}


async def test_get_misses_after_content_changes(store):
    """Changing the source content invalidates the entry."""
    await store.set("jsdoc:a", "value", content="function a() {}")

    assert await store.get("jsdoc:a", content="function a(x) {}") is None
    # The invalid entry is gone even for a caller with the old content
    assert await store.get("jsdoc:a", content="function a() {}") is None


async def test_get_misses_after_max_age(store, clock):
    """Entries older than the max age are invalid."""
    await store.set("key", "value", content="c")

    clock.advance(3599)
    assert await store.get("key", content="c") == "value"

    clock.advance(2)
    assert await store.get("key", content="c") is None


async def test_get_misses_after_version_bump(tmp_path, store):
    """An entry written by another application version is invalid."""
    await store.set("key", "value", content="c")

    upgraded = CacheStore(store.cache_dir, max_age_hours=1.0, version="1.1.0", clock=store._clock)

    assert await upgraded.get("key", content="c") is None


async def test_entry_without_hash_ignores_content(store):
    """An entry stored without content is valid for any content."""
    await store.set("embeddings:x", [[0.1, 0.2]])

    assert await store.get("embeddings:x", content="anything") == [[0.1, 0.2]]
    assert await store.has("embeddings:x")


async def test_content_bound_entry_needs_content(store):
    """An entry stored with content is a miss without content, but is kept."""
    await store.set("jsdoc:a", "value", content="function a() {}")

    assert await store.get("jsdoc:a") is None
    assert store._path_for("jsdoc:a").exists()
    assert await store.get("jsdoc:a", content="function a() {}") == "value"


async def test_corrupt_entry_is_deleted(store):
    """Unparseable entry files are treated as a miss and removed."""
    path = store._path_for("broken")
    path.write_text("{not json", encoding="utf-8")

    assert await store.get("broken") is None
    assert not path.exists()


async def test_entry_file_format(store, clock):
    """Entries persist data, epoch-ms timestamp, version and content hash."""
    await store.set("key", {"n": 1}, content="source")

    files = list(store.cache_dir.glob("*.json"))
    assert len(files) == 1
    payload = json.loads(files[0].read_text())
    assert payload["data"] == {"n": 1}
    assert payload["timestamp"] == int(clock.now * 1000)
    assert payload["version"] == "1.0.0"
    assert len(payload["hash"]) == 64


async def test_delete_and_clear(store):
    """delete removes one key; clear removes every entry."""
    await store.set("a", 1)
    await store.set("b", 2)
    await store.set("c", 3)

    await store.delete("a")
    assert await store.get("a") is None

    assert await store.clear() == 2
    assert await store.get("b") is None


async def test_initialize_fails_when_directory_cannot_be_created(tmp_path):
    """initialize reports failure instead of raising."""
    blocker = tmp_path / "blocker"
    blocker.write_text("not a directory")
    cache = CacheStore(blocker / "cache")

    assert await cache.initialize() is False


async def test_set_failure_is_not_raised(tmp_path):
    """A failed write leaves the cache empty without raising."""
    blocker = tmp_path / "blocker"
    blocker.write_text("not a directory")
    cache = CacheStore(blocker / "cache")

    await cache.set("key", "value")

    assert await cache.get("key") is None
