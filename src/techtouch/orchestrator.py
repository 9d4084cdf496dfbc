"""Fetch orchestrator: cache policy, backend round-trips and view state."""

import logging
import time
from collections.abc import Callable
from datetime import date
from typing import Any

from techtouch.cache.base import CACHE_SCHEMA_VERSION, CacheStore, now_ms
from techtouch.data import (
    Category,
    DomainRecord,
    RecordKind,
    ToolView,
    Usage,
    ViewState,
    ViewStatus,
)
from techtouch.errors import (
    ConfigurationError,
    FetchError,
    MalformedResponseError,
    SchemaViolationError,
    UpstreamError,
)
from techtouch.fetch_logger import FetchLogger
from techtouch.gateway.base import CompletionGateway
from techtouch.normalizer import normalize
from techtouch.pricing import PriceCache
from techtouch.prompts import (
    TaskPrompt,
    ai_news_task,
    comparison_task,
    jobs_task,
    phone_news_task,
    phone_search_task,
    stats_task,
)

logger = logging.getLogger(__name__)

DEFAULT_TTL_MS = 6 * 60 * 60 * 1000

_CATEGORY_TASKS: dict[Category, Callable[[date], TaskPrompt]] = {
    Category.AI_NEWS: ai_news_task,
    Category.PHONE_NEWS: phone_news_task,
    Category.JOBS: jobs_task,
}

_ERROR_MESSAGES: dict[type[FetchError], str] = {
    ConfigurationError: "The AI service is not configured.",
    UpstreamError: "Could not reach the AI service. Please try again.",
    MalformedResponseError: "The AI service returned unexpected data. Please try again.",
    SchemaViolationError: "The AI service returned unexpected data. Please try again.",
}


def user_message(error: FetchError) -> str:
    """Map a fetch error to the message shown in the view."""
    for error_type, message in _ERROR_MESSAGES.items():
        if isinstance(error, error_type):
            return message
    return "Something went wrong. Please try again."


class FetchOrchestrator:
    """Serve domain records to the presentation layer.

    Cacheable categories are served from the cache store while fresh and
    written through after every successful fetch. User-parameterized
    operations (compare, search, stats) always go to the backend.

    Every operation, and every navigation via ``show``, takes a new ticket.
    Only the holder of the latest ticket may update ``state``; results of
    superseded operations are returned to their own caller but never shown.

    Args:
        gateway: Backend completion gateway.
        cache: Store for cacheable categories.
        ttl_ms: Maximum entry age still served from cache.
        key_prefix: Prefix for cache keys (``{prefix}_{category}``).
        schema_version: Entries stamped with another version are misses.
        clock: Millisecond clock used for freshness checks.
        today: Date used in prompts.
        fetch_logger: Optional per-session operation log.
        price_cache: Optional PriceCache for per-operation cost estimates.
    """

    def __init__(
        self,
        gateway: CompletionGateway,
        cache: CacheStore,
        *,
        ttl_ms: int = DEFAULT_TTL_MS,
        key_prefix: str = "techtouch",
        schema_version: int = CACHE_SCHEMA_VERSION,
        clock: Callable[[], int] = now_ms,
        today: Callable[[], date] = date.today,
        fetch_logger: FetchLogger | None = None,
        price_cache: PriceCache | None = None,
    ) -> None:
        self._gateway = gateway
        self._cache = cache
        self._ttl_ms = ttl_ms
        self._key_prefix = key_prefix
        self._schema_version = schema_version
        self._clock = clock
        self._today = today
        self._fetch_logger = fetch_logger
        self._price_cache = price_cache
        self._state = ViewState()
        self._ticket = 0

    @property
    def state(self) -> ViewState:
        """What the presentation layer should currently display."""
        return self._state

    @property
    def usage(self) -> Usage:
        return self._gateway.usage

    def cache_key(self, category: Category) -> str:
        return f"{self._key_prefix}_{category.value}"

    def show(self, view: ToolView) -> None:
        """Navigate to ``view``; any in-flight result becomes stale."""
        self._ticket += 1
        self._state = ViewState(view=ToolView(view))

    async def fetch_category(
        self, category: Category | str, force_refresh: bool = False
    ) -> DomainRecord | None:
        """Return the record for a cacheable category.

        Args:
            category: One of ``Category``.
            force_refresh: Skip the cache and always call the backend.

        Returns:
            The record, or None if the fetch failed (see ``state.error``).
        """
        category = Category(category)
        view = ToolView(category.value)
        ticket = self._take_ticket()
        task = _CATEGORY_TASKS[category](self._today())

        if not force_refresh:
            t0 = time.monotonic()
            cached = self._read_fresh(category, task.kind)
            if cached is not None:
                applied = self._apply(ticket, ViewState(view, ViewStatus.SUCCESS, cached))
                self._log(
                    f"fetch_category:{category}",
                    view,
                    cache_hit=True,
                    status=ViewStatus.SUCCESS,
                    error=None,
                    applied=applied,
                    usage=None,
                    duration=time.monotonic() - t0,
                )
                return cached

        return await self._round_trip(
            ticket,
            view,
            f"fetch_category:{category}",
            task,
            cache_key=self.cache_key(category),
        )

    async def compare(self, phone_a: str, phone_b: str) -> DomainRecord | None:
        """Compare two phones; ``better_phone`` is one of the two names or a tie."""
        phone_a, phone_b = phone_a.strip(), phone_b.strip()
        if not phone_a or not phone_b:
            raise ValueError("Both phone names are required")
        ticket = self._take_ticket()
        return await self._round_trip(
            ticket,
            ToolView.COMPARISON,
            "compare",
            comparison_task(phone_a, phone_b, self._today()),
            phone_names=(phone_a, phone_b),
        )

    async def search_phone(self, query: str) -> DomainRecord | None:
        """Look up the full spec sheet of one phone."""
        query = query.strip()
        if not query:
            raise ValueError("A phone name is required")
        ticket = self._take_ticket()
        return await self._round_trip(
            ticket,
            ToolView.PHONE_SEARCH,
            "search_phone",
            phone_search_task(query, self._today()),
        )

    async def query_stats(self, query: str) -> DomainRecord | None:
        """Fetch market statistics for a phone or manufacturer."""
        query = query.strip()
        if not query:
            raise ValueError("A query is required")
        ticket = self._take_ticket()
        return await self._round_trip(
            ticket,
            ToolView.STATS,
            "query_stats",
            stats_task(query, self._today()),
            query=query,
        )

    def _take_ticket(self) -> int:
        self._ticket += 1
        return self._ticket

    def _apply(self, ticket: int, state: ViewState) -> bool:
        if ticket != self._ticket:
            logger.warning(
                f"Discarding stale {state.status} result for {state.view}; "
                f"view is now {self._state.view}"
            )
            return False
        self._state = state
        return True

    def _read_fresh(self, category: Category, kind: RecordKind) -> DomainRecord | None:
        key = self.cache_key(category)
        entry = self._cache.read(key)
        if entry is None:
            logger.debug(f"Cache miss for {key}")
            return None
        if entry.schema_version != self._schema_version:
            logger.info(
                f"Cache entry {key} has schema version {entry.schema_version}, "
                f"expected {self._schema_version}"
            )
            return None
        if self._clock() - entry.written_at_ms >= self._ttl_ms:
            logger.debug(f"Cache entry {key} expired")
            return None
        try:
            record = normalize(kind, entry.data)
        except SchemaViolationError as e:
            logger.warning(f"Cached payload for {key} no longer normalizes: {e}")
            return None
        logger.debug(f"Cache hit for {key}")
        return record

    async def _round_trip(
        self,
        ticket: int,
        view: ToolView,
        operation: str,
        task: TaskPrompt,
        *,
        cache_key: str | None = None,
        **normalize_kwargs: Any,
    ) -> DomainRecord | None:
        previous = self._state.record if self._state.view == view else None
        self._apply(ticket, ViewState(view, ViewStatus.LOADING, previous))

        t0 = time.monotonic()
        op_usage = Usage()
        try:
            raw = await self._gateway.complete(
                task.prompt_body, task.system_instruction, task.grounded, usage=op_usage
            )
            record = normalize(task.kind, raw, **normalize_kwargs)
        except FetchError as e:
            logger.warning(f"{operation} failed: {type(e).__name__}: {e}")
            message = user_message(e)
            applied = self._apply(
                ticket, ViewState(view, ViewStatus.ERROR, previous, error=message, failure=e)
            )
            await self._finish(
                operation, view, ViewStatus.ERROR, message, applied, op_usage, t0
            )
            return None

        if cache_key is not None:
            try:
                self._cache.write(cache_key, record.to_payload())
                logger.info(f"Cached {operation} result under {cache_key}")
            except OSError as e:
                logger.warning(f"Could not cache {operation} result under {cache_key}: {e}")

        applied = self._apply(ticket, ViewState(view, ViewStatus.SUCCESS, record))
        await self._finish(operation, view, ViewStatus.SUCCESS, None, applied, op_usage, t0)
        return record

    async def _finish(
        self,
        operation: str,
        view: ToolView,
        status: ViewStatus,
        error: str | None,
        applied: bool,
        usage: Usage,
        t0: float,
    ) -> None:
        if self._price_cache and usage.api_calls:
            await self._price_cache.get()
            self._price_cache.stamp_usage(usage)
        self._log(
            operation,
            view,
            cache_hit=False,
            status=status,
            error=error,
            applied=applied,
            usage=usage,
            duration=time.monotonic() - t0,
        )

    def _log(
        self,
        operation: str,
        view: ToolView,
        *,
        cache_hit: bool,
        status: ViewStatus,
        error: str | None,
        applied: bool,
        usage: Usage | None,
        duration: float,
    ) -> None:
        if self._fetch_logger is None:
            return
        self._fetch_logger.log_fetch(
            operation,
            view.value,
            cache_hit=cache_hit,
            status=status.value,
            error=error,
            discarded=not applied,
            usage=usage,
            duration_seconds=duration,
        )
