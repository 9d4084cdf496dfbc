"""In-process cache store."""

from collections.abc import Callable
from typing import Any

from techtouch.cache.base import (
    CACHE_SCHEMA_VERSION,
    decode_entry,
    encode_entry,
    next_timestamp,
    now_ms,
)
from techtouch.data import CacheEntry


class MemoryCacheStore:
    """Cache store kept in a dict for the lifetime of the process.

    Entries are held serialized, so callers can never mutate stored data.

    Args:
        clock: Millisecond clock (defaults to wall time).
        schema_version: Version stamped on every written entry.
    """

    def __init__(
        self,
        *,
        clock: Callable[[], int] = now_ms,
        schema_version: int = CACHE_SCHEMA_VERSION,
    ) -> None:
        self._entries: dict[str, str] = {}
        self._clock = clock
        self._schema_version = schema_version

    def read(self, key: str) -> CacheEntry | None:
        raw = self._entries.get(key)
        if raw is None:
            return None
        return decode_entry(raw)

    def write(self, key: str, data: Any) -> CacheEntry:
        entry = CacheEntry(
            data=data,
            written_at_ms=next_timestamp(self._clock(), self.read(key)),
            schema_version=self._schema_version,
        )
        self._entries[key] = encode_entry(entry)
        return entry

    def __len__(self) -> int:
        return len(self._entries)
