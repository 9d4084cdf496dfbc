"""Cache stores for fetched payloads."""

from techtouch.cache.base import (
    CACHE_SCHEMA_VERSION,
    CacheStore,
    decode_entry,
    encode_entry,
    now_ms,
)
from techtouch.cache.file import JsonFileCacheStore
from techtouch.cache.memory import MemoryCacheStore

__all__ = [
    "CACHE_SCHEMA_VERSION",
    "CacheStore",
    "JsonFileCacheStore",
    "MemoryCacheStore",
    "decode_entry",
    "encode_entry",
    "now_ms",
]
