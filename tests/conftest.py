"""Shared fixtures: a scripted gateway and a controllable clock."""

import asyncio
from typing import Any

import pytest

from techtouch.cache import MemoryCacheStore
from techtouch.data import APICallUsage, SpecCategory, Usage


class FakeClock:
    """Millisecond clock advanced by hand."""

    def __init__(self, start_ms: int = 1_700_000_000_000) -> None:
        self.now = start_ms

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> None:
        self.now += ms


class FakeGateway:
    """Gateway returning scripted payloads or raising scripted errors.

    Each call pops the next item from ``responses``. An ``(event, item)``
    pair blocks the call until the event is set, then uses ``item``.
    """

    def __init__(self, *responses: Any) -> None:
        self.responses = list(responses)
        self.calls: list[dict[str, Any]] = []
        self._usage = Usage()

    @property
    def usage(self) -> Usage:
        return self._usage

    async def complete(
        self,
        prompt_body: str,
        system_instruction: str,
        grounding_enabled: bool,
        usage: Usage | None = None,
    ) -> Any:
        self.calls.append(
            {
                "prompt_body": prompt_body,
                "system_instruction": system_instruction,
                "grounding_enabled": grounding_enabled,
            }
        )
        item = self.responses.pop(0)
        if isinstance(item, tuple):
            event, item = item
            await event.wait()
        call_usage = APICallUsage(model="fake", input_tokens=10, output_tokens=5)
        self._usage.api_calls.append(call_usage)
        if usage is not None:
            usage.api_calls.append(call_usage)
        if isinstance(item, BaseException):
            raise item
        return item


def spec_payload(**overrides: str) -> dict[str, str]:
    """A complete spec sheet payload with every vocabulary key."""
    payload = {c.value: f"{c.value} value" for c in SpecCategory}
    payload.update(overrides)
    return payload


def ai_news_payload(*titles: str) -> dict[str, Any]:
    return {
        "ai_news": [
            {"title": t, "description": f"{t} description", "url": f"https://example.com/{i}"}
            for i, t in enumerate(titles)
        ]
    }


def phone_news_payload(*names: str) -> dict[str, Any]:
    return {
        "phones": [{"name": n, **spec_payload()} for n in names],
        "stats": [
            {"name": "Samsung", "marketShare": "20%", "topPhone": "Galaxy A15", "details": "..."}
        ],
    }


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def memory_cache(clock: FakeClock) -> MemoryCacheStore:
    return MemoryCacheStore(clock=clock)
