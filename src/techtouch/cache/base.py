"""Cache store protocol and the shared entry codec."""

import json
import time
from typing import Any, Protocol

from techtouch.data import CacheEntry

CACHE_SCHEMA_VERSION = 1


def now_ms() -> int:
    """Wall-clock time in epoch milliseconds."""
    return int(time.time() * 1000)


class CacheStore(Protocol):
    """Interface for a durable key -> entry store.

    Stores expose raw entries; freshness and schema checks are the caller's.
    """

    def read(self, key: str) -> CacheEntry | None:
        """Return the stored entry, or None if absent or unreadable. Never raises."""
        ...

    def write(self, key: str, data: Any) -> CacheEntry:
        """Overwrite the entry for ``key`` and return what was stored."""
        ...


def encode_entry(entry: CacheEntry) -> str:
    return json.dumps(
        {"data": entry.data, "timestamp": entry.written_at_ms, "version": entry.schema_version},
        ensure_ascii=False,
    )


def decode_entry(raw: str) -> CacheEntry | None:
    """Parse a serialized entry; malformed input yields None."""
    try:
        parsed = json.loads(raw)
    except json.JSONDecodeError:
        return None
    if not isinstance(parsed, dict) or "data" not in parsed:
        return None
    timestamp = parsed.get("timestamp")
    if isinstance(timestamp, bool) or not isinstance(timestamp, int):
        return None
    version = parsed.get("version", 0)
    if isinstance(version, bool) or not isinstance(version, int):
        return None
    return CacheEntry(data=parsed["data"], written_at_ms=timestamp, schema_version=version)


def next_timestamp(clock_ms: int, previous: CacheEntry | None) -> int:
    """Timestamp for a new write; never earlier than the entry it replaces."""
    if previous is not None and previous.written_at_ms > clock_ms:
        return previous.written_at_ms
    return clock_ms
