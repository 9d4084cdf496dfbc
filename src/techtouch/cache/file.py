"""JSON-file-backed cache store."""

import logging
import os
import tempfile
from collections.abc import Callable
from pathlib import Path
from typing import Any

from techtouch.cache.base import (
    CACHE_SCHEMA_VERSION,
    decode_entry,
    encode_entry,
    next_timestamp,
    now_ms,
)
from techtouch.data import CacheEntry

logger = logging.getLogger(__name__)


class JsonFileCacheStore:
    """Persist one JSON file per key under a directory.

    Writes go through a temp file that is fsynced and atomically renamed, so
    an entry is durable once ``write`` returns.

    Args:
        directory: Directory holding the ``<key>.json`` files.
        clock: Millisecond clock (defaults to wall time).
        schema_version: Version stamped on every written entry.
    """

    def __init__(
        self,
        directory: Path | str,
        *,
        clock: Callable[[], int] = now_ms,
        schema_version: int = CACHE_SCHEMA_VERSION,
    ) -> None:
        self._directory = Path(directory)
        self._clock = clock
        self._schema_version = schema_version

    @property
    def directory(self) -> Path:
        return self._directory

    def _path(self, key: str) -> Path:
        return self._directory / f"{key}.json"

    def read(self, key: str) -> CacheEntry | None:
        path = self._path(key)
        try:
            raw = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except (OSError, UnicodeDecodeError) as e:
            logger.warning(f"Could not read cache file {path}: {e}")
            return None

        entry = decode_entry(raw)
        if entry is None:
            logger.warning(f"Ignoring malformed cache entry for key {key!r}")
        return entry

    def write(self, key: str, data: Any) -> CacheEntry:
        entry = CacheEntry(
            data=data,
            written_at_ms=next_timestamp(self._clock(), self.read(key)),
            schema_version=self._schema_version,
        )
        self._directory.mkdir(parents=True, exist_ok=True)

        fd, tmp_name = tempfile.mkstemp(dir=self._directory, prefix=f".{key}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(encode_entry(entry))
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_name, self._path(key))
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

        logger.debug(f"Wrote cache entry {key!r} at {entry.written_at_ms}")
        return entry
