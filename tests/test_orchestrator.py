"""Tests for FetchOrchestrator."""

import asyncio
from datetime import date
from pathlib import Path
from typing import Any

import pytest

from techtouch.cache import JsonFileCacheStore, MemoryCacheStore
from techtouch.data import (
    TIE,
    AINewsList,
    CacheEntry,
    Category,
    JobList,
    PhoneComparisonResult,
    PhoneNewsFeed,
    PhoneNewsItem,
    StatsResult,
    ToolView,
    ViewState,
    ViewStatus,
)
from techtouch.errors import (
    ConfigurationError,
    MalformedResponseError,
    SchemaViolationError,
    UpstreamError,
)
from techtouch.fetch_logger import FetchLogger
from techtouch.orchestrator import DEFAULT_TTL_MS, FetchOrchestrator, user_message

from conftest import FakeClock, FakeGateway, ai_news_payload, phone_news_payload, spec_payload

TODAY = date(2026, 10, 19)


def _orchestrator(
    gateway: FakeGateway,
    cache: MemoryCacheStore | JsonFileCacheStore,
    clock: FakeClock,
    **kwargs: object,
) -> FetchOrchestrator:
    return FetchOrchestrator(
        gateway,
        cache,
        clock=clock,
        today=lambda: TODAY,
        **kwargs,  # type: ignore[arg-type]
    )


class _UnwritableStore(MemoryCacheStore):
    def write(self, key: str, data: Any) -> CacheEntry:
        raise OSError(28, "No space left on device")


class TestCachePolicy:
    async def test_miss_fetches_and_writes_through(
        self, memory_cache: MemoryCacheStore, clock: FakeClock
    ) -> None:
        gateway = FakeGateway(ai_news_payload("A 1.0", "B 2.0"))
        orch = _orchestrator(gateway, memory_cache, clock)

        record = await orch.fetch_category(Category.AI_NEWS)

        assert isinstance(record, AINewsList)
        assert len(record.items) == 2
        assert len(gateway.calls) == 1
        assert gateway.calls[0]["grounding_enabled"] is True
        entry = memory_cache.read("techtouch_ai_news")
        assert entry is not None
        assert entry.data == record.to_payload()
        assert entry.written_at_ms == clock.now
        assert orch.state == ViewState(ToolView.AI_NEWS, ViewStatus.SUCCESS, record)

    async def test_fresh_entry_is_served_without_network(
        self, memory_cache: MemoryCacheStore, clock: FakeClock
    ) -> None:
        gateway = FakeGateway(ai_news_payload("A"))
        orch = _orchestrator(gateway, memory_cache, clock)
        first = await orch.fetch_category(Category.AI_NEWS)

        clock.advance(DEFAULT_TTL_MS - 1)
        second = await orch.fetch_category("ai_news")

        assert second == first
        assert len(gateway.calls) == 1
        assert orch.state.status == ViewStatus.SUCCESS

    async def test_expired_entry_is_a_miss(
        self, memory_cache: MemoryCacheStore, clock: FakeClock
    ) -> None:
        gateway = FakeGateway(ai_news_payload("old"), ai_news_payload("new"))
        orch = _orchestrator(gateway, memory_cache, clock)
        await orch.fetch_category(Category.AI_NEWS)

        clock.advance(DEFAULT_TTL_MS)
        record = await orch.fetch_category(Category.AI_NEWS)

        assert isinstance(record, AINewsList)
        assert record.items[0].title == "new"
        assert len(gateway.calls) == 2

    async def test_force_refresh_bypasses_fresh_entry(
        self, memory_cache: MemoryCacheStore, clock: FakeClock
    ) -> None:
        gateway = FakeGateway(ai_news_payload("old"), ai_news_payload("new"))
        orch = _orchestrator(gateway, memory_cache, clock)
        await orch.fetch_category(Category.AI_NEWS)
        before = memory_cache.read("techtouch_ai_news")

        clock.advance(1000)
        record = await orch.fetch_category(Category.AI_NEWS, True)

        assert len(gateway.calls) == 2
        assert isinstance(record, AINewsList)
        assert record.items[0].title == "new"
        after = memory_cache.read("techtouch_ai_news")
        assert before is not None and after is not None
        assert after.data == record.to_payload()
        assert after.written_at_ms >= before.written_at_ms

    async def test_schema_version_mismatch_is_a_miss(self, clock: FakeClock) -> None:
        old_cache = MemoryCacheStore(clock=clock, schema_version=0)
        old_cache.write("techtouch_ai_news", ai_news_payload("stale schema"))
        gateway = FakeGateway(ai_news_payload("fresh"))
        orch = _orchestrator(gateway, old_cache, clock)

        record = await orch.fetch_category(Category.AI_NEWS)

        assert isinstance(record, AINewsList)
        assert record.items[0].title == "fresh"

    async def test_unnormalizable_cached_payload_is_a_miss(
        self, memory_cache: MemoryCacheStore, clock: FakeClock
    ) -> None:
        memory_cache.write("techtouch_ai_news", {"something": "else"})
        gateway = FakeGateway(ai_news_payload("A"))
        orch = _orchestrator(gateway, memory_cache, clock)

        await orch.fetch_category(Category.AI_NEWS)

        assert len(gateway.calls) == 1

    async def test_categories_use_separate_keys(
        self, memory_cache: MemoryCacheStore, clock: FakeClock
    ) -> None:
        gateway = FakeGateway(
            phone_news_payload("Pixel 10"),
            {"jobs": [{"title": "t", "description": "d", "url": "u"}]},
        )
        orch = _orchestrator(gateway, memory_cache, clock, key_prefix="tt")

        phones = await orch.fetch_category(Category.PHONE_NEWS)
        jobs = await orch.fetch_category(Category.JOBS)

        assert isinstance(phones, PhoneNewsFeed)
        assert isinstance(jobs, JobList)
        assert memory_cache.read("tt_phone_news") is not None
        assert memory_cache.read("tt_jobs") is not None

    async def test_file_store_survives_restart(self, tmp_path: Path, clock: FakeClock) -> None:
        gateway = FakeGateway(phone_news_payload("Pixel 10"))
        first_run = _orchestrator(gateway, JsonFileCacheStore(tmp_path, clock=clock), clock)
        await first_run.fetch_category(Category.PHONE_NEWS)

        restarted = _orchestrator(FakeGateway(), JsonFileCacheStore(tmp_path, clock=clock), clock)
        record = await restarted.fetch_category(Category.PHONE_NEWS)

        assert isinstance(record, PhoneNewsFeed)
        assert record.phones[0].name == "Pixel 10"


class TestErrors:
    @pytest.mark.parametrize(
        "error",
        [
            ConfigurationError("no key"),
            UpstreamError("down"),
            MalformedResponseError("bad json"),
        ],
    )
    async def test_gateway_errors_become_error_state(
        self, memory_cache: MemoryCacheStore, clock: FakeClock, error: Exception
    ) -> None:
        orch = _orchestrator(FakeGateway(error), memory_cache, clock)

        record = await orch.fetch_category(Category.AI_NEWS)

        assert record is None
        assert orch.state.status == ViewStatus.ERROR
        assert orch.state.failure is error
        assert orch.state.error == user_message(error)  # type: ignore[arg-type]
        assert memory_cache.read("techtouch_ai_news") is None

    async def test_schema_violation_becomes_error_state(
        self, memory_cache: MemoryCacheStore, clock: FakeClock
    ) -> None:
        orch = _orchestrator(FakeGateway({"no": "specs"}), memory_cache, clock)

        assert await orch.compare("A", "B") is None
        assert isinstance(orch.state.failure, SchemaViolationError)
        assert "unexpected data" in (orch.state.error or "")

    def test_messages_are_distinct_per_error_class(self) -> None:
        assert user_message(ConfigurationError()) != user_message(UpstreamError())
        assert user_message(UpstreamError()) != user_message(MalformedResponseError())
        assert user_message(MalformedResponseError()) == user_message(
            SchemaViolationError("k", "f", "m")
        )

    async def test_failed_refresh_keeps_cache_and_displayed_record(
        self, memory_cache: MemoryCacheStore, clock: FakeClock
    ) -> None:
        gateway = FakeGateway(ai_news_payload("kept"), UpstreamError("down"))
        orch = _orchestrator(gateway, memory_cache, clock)
        original = await orch.fetch_category(Category.AI_NEWS)
        before = memory_cache.read("techtouch_ai_news")

        clock.advance(1000)
        assert await orch.fetch_category(Category.AI_NEWS, force_refresh=True) is None

        assert memory_cache.read("techtouch_ai_news") == before
        assert orch.state.status == ViewStatus.ERROR
        assert orch.state.record == original
        assert orch.state.error is not None

    async def test_failure_does_not_evict_stale_entry(
        self, memory_cache: MemoryCacheStore, clock: FakeClock
    ) -> None:
        gateway = FakeGateway(ai_news_payload("stale"), UpstreamError("down"))
        orch = _orchestrator(gateway, memory_cache, clock)
        await orch.fetch_category(Category.AI_NEWS)

        clock.advance(DEFAULT_TTL_MS + 1)
        await orch.fetch_category(Category.AI_NEWS)

        entry = memory_cache.read("techtouch_ai_news")
        assert entry is not None
        assert entry.data == ai_news_payload("stale")

    async def test_cache_write_failure_still_shows_record(self, clock: FakeClock) -> None:
        store = _UnwritableStore(clock=clock)
        orch = _orchestrator(FakeGateway(ai_news_payload("fresh")), store, clock)

        record = await orch.fetch_category(Category.AI_NEWS)

        assert isinstance(record, AINewsList)
        assert orch.state == ViewState(ToolView.AI_NEWS, ViewStatus.SUCCESS, record)
        assert store.read("techtouch_ai_news") is None


class TestUserOperations:
    async def test_compare_never_uses_cache(
        self, memory_cache: MemoryCacheStore, clock: FakeClock
    ) -> None:
        result = {
            "specs": [{"feature": "display", "phone1": "a", "phone2": "b"}],
            "verdict": "v",
            "betterPhone": "iPhone 16",
        }
        gateway = FakeGateway(result, {**result, "betterPhone": "Nokia 3310"})
        orch = _orchestrator(gateway, memory_cache, clock)

        first = await orch.compare(" Galaxy S25 ", "iPhone 16")
        second = await orch.compare("Galaxy S25", "Pixel 10")

        assert isinstance(first, PhoneComparisonResult)
        assert isinstance(second, PhoneComparisonResult)
        assert first.better_phone == "iPhone 16"
        assert second.better_phone == TIE
        assert len(gateway.calls) == 2
        assert "Galaxy S25" in gateway.calls[0]["prompt_body"]
        assert "Pixel 10" in gateway.calls[1]["prompt_body"]
        assert len(memory_cache) == 0
        assert orch.state.view == ToolView.COMPARISON

    async def test_search_phone(self, memory_cache: MemoryCacheStore, clock: FakeClock) -> None:
        gateway = FakeGateway(spec_payload(name="Pixel 10"))
        orch = _orchestrator(gateway, memory_cache, clock)

        record = await orch.search_phone("pixel 10")

        assert isinstance(record, PhoneNewsItem)
        assert record.name == "Pixel 10"
        assert "pixel 10" in gateway.calls[0]["prompt_body"]
        assert orch.state.view == ToolView.PHONE_SEARCH

    async def test_query_stats_keeps_query(
        self, memory_cache: MemoryCacheStore, clock: FakeClock
    ) -> None:
        gateway = FakeGateway({"units_sold": 10}, {"units_sold": 20})
        orch = _orchestrator(gateway, memory_cache, clock)

        first = await orch.query_stats("Pixel 10")
        second = await orch.query_stats("Pixel 10")

        assert isinstance(first, StatsResult)
        assert first.query == "Pixel 10"
        assert isinstance(second, StatsResult)
        assert second.fields["units_sold"] == 20
        assert len(gateway.calls) == 2

    @pytest.mark.parametrize(("a", "b"), [("", "B"), ("A", "   ")])
    async def test_compare_requires_both_names(
        self, memory_cache: MemoryCacheStore, clock: FakeClock, a: str, b: str
    ) -> None:
        gateway = FakeGateway()
        orch = _orchestrator(gateway, memory_cache, clock)
        with pytest.raises(ValueError):
            await orch.compare(a, b)
        assert gateway.calls == []
        assert orch.state == ViewState()

    async def test_empty_queries_rejected(
        self, memory_cache: MemoryCacheStore, clock: FakeClock
    ) -> None:
        orch = _orchestrator(FakeGateway(), memory_cache, clock)
        with pytest.raises(ValueError):
            await orch.search_phone(" ")
        with pytest.raises(ValueError):
            await orch.query_stats("")


class TestViewState:
    async def test_loading_state_while_in_flight(
        self, memory_cache: MemoryCacheStore, clock: FakeClock
    ) -> None:
        release = asyncio.Event()
        orch = _orchestrator(FakeGateway((release, ai_news_payload("A"))), memory_cache, clock)

        task = asyncio.create_task(orch.fetch_category(Category.AI_NEWS))
        await asyncio.sleep(0)
        assert orch.state.status == ViewStatus.LOADING
        assert orch.state.view == ToolView.AI_NEWS

        release.set()
        await task
        assert orch.state.status == ViewStatus.SUCCESS

    async def test_cache_hit_skips_loading(
        self, memory_cache: MemoryCacheStore, clock: FakeClock
    ) -> None:
        memory_cache.write("techtouch_ai_news", ai_news_payload("cached"))
        orch = _orchestrator(FakeGateway(), memory_cache, clock)
        seen: list[ViewStatus] = []
        original_apply = orch._apply

        def spy(ticket: int, state: ViewState) -> bool:
            seen.append(state.status)
            return original_apply(ticket, state)

        orch._apply = spy  # type: ignore[method-assign]
        await orch.fetch_category(Category.AI_NEWS)

        assert seen == [ViewStatus.SUCCESS]

    async def test_late_result_for_previous_view_is_discarded(
        self, memory_cache: MemoryCacheStore, clock: FakeClock
    ) -> None:
        ai_release = asyncio.Event()
        gateway = FakeGateway(
            (ai_release, ai_news_payload("late AI")), phone_news_payload("Pixel 10")
        )
        orch = _orchestrator(gateway, memory_cache, clock)

        ai_task = asyncio.create_task(orch.fetch_category(Category.AI_NEWS))
        await asyncio.sleep(0)
        phones = await orch.fetch_category(Category.PHONE_NEWS)
        assert orch.state.view == ToolView.PHONE_NEWS

        ai_release.set()
        ai_record = await ai_task

        assert isinstance(ai_record, AINewsList)
        assert orch.state.view == ToolView.PHONE_NEWS
        assert orch.state.record == phones
        assert orch.state.status == ViewStatus.SUCCESS
        # Still valid data for its own category
        assert memory_cache.read("techtouch_ai_news") is not None

    async def test_late_error_for_previous_view_is_discarded(
        self, memory_cache: MemoryCacheStore, clock: FakeClock
    ) -> None:
        release = asyncio.Event()
        gateway = FakeGateway((release, UpstreamError("down")), spec_payload())
        orch = _orchestrator(gateway, memory_cache, clock)

        slow = asyncio.create_task(orch.compare("A", "B"))
        await asyncio.sleep(0)
        await orch.search_phone("Pixel 10")

        release.set()
        assert await slow is None
        assert orch.state.view == ToolView.PHONE_SEARCH
        assert orch.state.status == ViewStatus.SUCCESS
        assert orch.state.error is None

    async def test_newer_operation_wins_even_if_it_resolves_first(
        self, memory_cache: MemoryCacheStore, clock: FakeClock
    ) -> None:
        release = asyncio.Event()
        gateway = FakeGateway((release, {"units_sold": 1}), {"units_sold": 2})
        orch = _orchestrator(gateway, memory_cache, clock)

        older = asyncio.create_task(orch.query_stats("old"))
        await asyncio.sleep(0)
        newer = await orch.query_stats("new")
        release.set()
        await older

        assert orch.state.record == newer

    async def test_navigation_discards_in_flight_result(
        self, memory_cache: MemoryCacheStore, clock: FakeClock
    ) -> None:
        release = asyncio.Event()
        orch = _orchestrator(FakeGateway((release, ai_news_payload("A"))), memory_cache, clock)

        task = asyncio.create_task(orch.fetch_category(Category.AI_NEWS))
        await asyncio.sleep(0)
        orch.show(ToolView.MAIN)
        release.set()
        await task

        assert orch.state == ViewState(ToolView.MAIN, ViewStatus.IDLE)


class TestFetchLogging:
    async def test_operations_are_logged(
        self, memory_cache: MemoryCacheStore, clock: FakeClock, tmp_path: Path
    ) -> None:
        fetch_logger = FetchLogger(log_dir=tmp_path)
        gateway = FakeGateway(ai_news_payload("A"), UpstreamError("down"))
        orch = _orchestrator(gateway, memory_cache, clock, fetch_logger=fetch_logger)

        await orch.fetch_category(Category.AI_NEWS)
        await orch.fetch_category(Category.AI_NEWS)
        await orch.compare("A", "B")

        records = fetch_logger.records
        assert [r.operation for r in records] == [
            "fetch_category:ai_news",
            "fetch_category:ai_news",
            "compare",
        ]
        assert [r.cache_hit for r in records] == [False, True, False]
        assert [r.status for r in records] == ["success", "success", "error"]
        assert records[0].usage is not None
        assert records[0].usage["input_tokens"] == 10
        assert records[1].usage is None

    async def test_overlapping_operations_log_only_their_own_usage(
        self, memory_cache: MemoryCacheStore, clock: FakeClock, tmp_path: Path
    ) -> None:
        fetch_logger = FetchLogger(log_dir=tmp_path)
        ai_release = asyncio.Event()
        gateway = FakeGateway(
            (ai_release, ai_news_payload("late AI")), phone_news_payload("Pixel 10")
        )
        orch = _orchestrator(gateway, memory_cache, clock, fetch_logger=fetch_logger)

        ai_task = asyncio.create_task(orch.fetch_category(Category.AI_NEWS))
        await asyncio.sleep(0)
        await orch.fetch_category(Category.PHONE_NEWS)
        ai_release.set()
        await ai_task

        records = fetch_logger.records
        assert [r.operation for r in records] == [
            "fetch_category:phone_news",
            "fetch_category:ai_news",
        ]
        assert [r.discarded for r in records] == [False, True]
        for record in records:
            assert record.usage is not None
            assert len(record.usage["api_calls"]) == 1
        assert len(gateway.usage.api_calls) == 2
