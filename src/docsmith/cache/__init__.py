"""On-disk response cache."""

from docsmith.cache.store import CacheEntry, CacheStore, compute_content_hash

__all__ = ["CacheEntry", "CacheStore", "compute_content_hash"]
