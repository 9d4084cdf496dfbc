"""Fetch logger for recording orchestrator operations to JSON files."""

import dataclasses
import uuid
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from pydantic import BaseModel

from techtouch.data import Usage


class FetchRecord(BaseModel):
    """Record of a single orchestrator operation."""

    operation: str
    view: str
    cache_hit: bool = False
    status: str = ""
    error: str | None = None
    discarded: bool = False
    usage: dict[str, Any] | None = None
    timestamp: str = ""
    duration_seconds: float = 0.0


class SessionRecord(BaseModel):
    """Record of every operation in one session."""

    session_id: str
    started_at: str
    completed_at: str | None = None
    fetches: list[FetchRecord] = []
    total_usage: dict[str, Any] | None = None


def _serialize_usage(usage: Usage) -> dict[str, Any]:
    return {
        "api_calls": [dataclasses.asdict(c) for c in usage.api_calls],
        "input_tokens": usage.input_tokens,
        "output_tokens": usage.output_tokens,
        "web_searches": usage.web_searches,
        "estimated_cost": usage.estimated_cost,
    }


class FetchLogger:
    """Accumulates fetch records and writes one JSON log file per session.

    When ``enabled=False``, all methods are no-ops.

    Args:
        log_dir: Directory to write JSON log files.
        enabled: If False, all methods become no-ops.
    """

    def __init__(self, log_dir: Path, *, enabled: bool = True) -> None:
        self._log_dir = log_dir
        self._enabled = enabled
        self._record: SessionRecord | None = None
        self._last_log_path: Path | None = None

    @property
    def enabled(self) -> bool:
        return self._enabled

    @property
    def last_log_path(self) -> Path | None:
        return self._last_log_path

    @property
    def records(self) -> list[FetchRecord]:
        return list(self._record.fetches) if self._record else []

    def _ensure_session(self) -> SessionRecord:
        if self._record is None:
            self._record = SessionRecord(
                session_id=str(uuid.uuid4()),
                started_at=datetime.now(tz=UTC).isoformat(),
            )
        return self._record

    def log_fetch(
        self,
        operation: str,
        view: str,
        *,
        cache_hit: bool,
        status: str,
        error: str | None,
        discarded: bool,
        usage: Usage | None,
        duration_seconds: float,
    ) -> None:
        """Append one operation to the current session, starting it if needed."""
        if not self._enabled:
            return

        self._ensure_session().fetches.append(
            FetchRecord(
                operation=operation,
                view=view,
                cache_hit=cache_hit,
                status=status,
                error=error,
                discarded=discarded,
                usage=_serialize_usage(usage) if usage is not None else None,
                timestamp=datetime.now(tz=UTC).isoformat(),
                duration_seconds=round(duration_seconds, 4),
            )
        )

    def finish_session(self, usage: Usage | None = None) -> Path | None:
        """Write the session record to ``session_<started_at>.json``.

        Returns:
            Path to the written file, or None if disabled or nothing was logged.
        """
        if not self._enabled or self._record is None:
            return None

        self._record.completed_at = datetime.now(tz=UTC).isoformat()
        self._record.total_usage = _serialize_usage(usage) if usage is not None else None

        self._log_dir.mkdir(parents=True, exist_ok=True)
        # Colons are not portable in filenames
        ts = self._record.started_at.split(".")[0].split("+")[0].replace(":", "-")
        filepath = self._log_dir / f"session_{ts}.json"

        filepath.write_text(self._record.model_dump_json(indent=2))
        self._last_log_path = filepath
        self._record = None
        return filepath
