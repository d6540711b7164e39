# src/docsmith/cache/store.py
"""Content-addressed on-disk cache with TTL and version invalidation.

Each key is stored in its own JSON file named after the SHA-256 of the key.
An entry is valid while it is younger than the configured maximum age, was
written by the current application version, and (when it carries a content
hash) the content it was derived from is unchanged. Invalid entries are
deleted the first time they are read.
"""

import asyncio
import hashlib
import logging
import os
import time
import uuid
from pathlib import Path
from typing import Any, Callable

from pydantic import BaseModel, Field, ValidationError

from docsmith import __version__

logger = logging.getLogger(__name__)


def compute_content_hash(content: str) -> str:
    """Compute SHA-256 hash of content.

    Args:
        content: Text to hash.

    Returns:
        Hex digest.
    """
    return hashlib.sha256(content.encode("utf-8")).hexdigest()


class CacheEntry(BaseModel):
    """Persisted cache record."""

    data: Any = Field(..., description="Cached payload")
    timestamp: int = Field(..., description="Write time in epoch milliseconds")
    version: str = Field(..., description="Application version that wrote the entry")
    hash: str = Field("", description="Hash of the source content, empty if unused")


class CacheStore:
    """Generic key/value cache persisted as one JSON file per key.

    Writes go to a temporary file that is renamed into place, so a concurrent
    reader sees either the old snapshot or the new one. Concurrent writers to
    the same key race harmlessly: the last rename wins.
    """

    def __init__(
        self,
        cache_dir: Path,
        max_age_hours: float = 24.0,
        version: str = __version__,
        clock: Callable[[], float] = time.time,
    ):
        """Initialize the cache store.

        Args:
            cache_dir: Directory holding the entry files.
            max_age_hours: Entries older than this are invalid.
            version: Version tag written into and required of every entry.
            clock: Returns the current time in seconds. Injectable for tests.
        """
        self.cache_dir = Path(cache_dir)
        self.max_age_ms = int(max_age_hours * 3600 * 1000)
        self.version = version
        self._clock = clock

    async def initialize(self) -> bool:
        """Create the cache directory.

        Returns:
            True if the directory is usable, False if it could not be created.
        """
        try:
            await asyncio.to_thread(self.cache_dir.mkdir, parents=True, exist_ok=True)
        except OSError as e:
            logger.warning(f"Failed to initialize cache directory {self.cache_dir}: {e}")
            return False
        logger.debug(f"Cache initialized at {self.cache_dir}")
        return True

    def _now_ms(self) -> int:
        return int(self._clock() * 1000)

    def _path_for(self, key: str) -> Path:
        return self.cache_dir / f"{compute_content_hash(key)}.json"

    def is_valid(self, entry: CacheEntry, content: str | None = None) -> bool:
        """Check an entry against age, version and content hash.

        Args:
            entry: Entry read from disk.
            content: Current source content. An entry carrying a hash is valid
                only when content is given and hashes to the same value.

        Returns:
            True if the entry may be served.
        """
        if self._now_ms() - entry.timestamp > self.max_age_ms:
            return False
        if entry.version != self.version:
            return False
        if entry.hash:
            return content is not None and entry.hash == compute_content_hash(content)
        return True

    def _read_entry(self, path: Path) -> CacheEntry:
        return CacheEntry.model_validate_json(path.read_text(encoding="utf-8"))

    async def get(self, key: str, content: str | None = None) -> Any | None:
        """Return the cached payload for key, or None.

        Missing, corrupt or invalid entries yield None. Corrupt and invalid
        entries are removed from disk. An entry stored with content is a miss
        when read without content, but stays on disk.

        Args:
            key: Cache key.
            content: Current source content for hash validation. Required to
                read entries that were stored with content.

        Returns:
            The payload, or None on a miss.
        """
        path = self._path_for(key)
        try:
            entry = await asyncio.to_thread(self._read_entry, path)
        except FileNotFoundError:
            return None
        except (OSError, ValidationError, ValueError) as e:
            logger.warning(f"Discarding unreadable cache entry for {key}: {e}")
            await self._remove(path)
            return None

        if entry.hash and content is None:
            logger.debug(f"Cache entry for {key} is content-bound and no content was given")
            return None

        if not self.is_valid(entry, content):
            logger.debug(f"Cache entry for {key} is stale, removing")
            await self._remove(path)
            return None

        return entry.data

    async def has(self, key: str, content: str | None = None) -> bool:
        """Check whether a valid entry exists for key."""
        return await self.get(key, content) is not None

    def _write_entry(self, path: Path, payload: str) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = path.with_name(f"{path.name}.{uuid.uuid4().hex}.tmp")
        try:
            tmp_path.write_text(payload, encoding="utf-8")
            os.replace(tmp_path, path)
        finally:
            if tmp_path.exists():
                tmp_path.unlink()

    async def set(self, key: str, data: Any, content: str | None = None) -> None:
        """Store data under key.

        Write failures are logged and otherwise ignored; a cache that cannot
        be written behaves like an empty cache.

        Args:
            key: Cache key.
            data: JSON-serializable payload.
            content: Source content the payload was derived from.
        """
        entry = CacheEntry(
            data=data,
            timestamp=self._now_ms(),
            version=self.version,
            hash=compute_content_hash(content) if content is not None else "",
        )
        try:
            await asyncio.to_thread(
                self._write_entry, self._path_for(key), entry.model_dump_json()
            )
        except (OSError, TypeError, ValueError) as e:
            logger.warning(f"Failed to write cache entry for {key}: {e}")

    async def delete(self, key: str) -> None:
        """Remove the entry for key if present."""
        await self._remove(self._path_for(key))

    async def clear(self) -> int:
        """Remove every entry file.

        Returns:
            Number of entries removed.
        """

        def _clear() -> int:
            removed = 0
            if not self.cache_dir.exists():
                return 0
            for path in self.cache_dir.glob("*.json"):
                try:
                    path.unlink()
                    removed += 1
                except FileNotFoundError:
                    continue
            return removed

        removed = await asyncio.to_thread(_clear)
        logger.info(f"Cleared {removed} cache entries from {self.cache_dir}")
        return removed

    async def _remove(self, path: Path) -> None:
        try:
            await asyncio.to_thread(path.unlink)
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.warning(f"Failed to remove cache file {path}: {e}")
