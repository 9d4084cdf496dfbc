"""Cost estimation for backend usage.

Model prices are scraped from the Anthropic pricing page; a hardcoded table
is used when the page cannot be fetched or parsed.
"""

import logging
import re
from dataclasses import dataclass

import httpx

from techtouch.data import APICallUsage, Usage

logger = logging.getLogger(__name__)

PRICING_URL = "https://docs.anthropic.com/en/docs/about-claude/pricing"
WEB_SEARCH_PRICE_PER_SEARCH = 10.0 / 1000  # $10 per 1,000 searches


@dataclass(frozen=True)
class ModelPricing:
    """Per-model pricing in USD per million tokens."""

    input_per_mtok: float
    output_per_mtok: float
    cache_write_per_mtok: float
    cache_read_per_mtok: float


_FALLBACK_PRICES: dict[str, ModelPricing] = {
    "claude-haiku-4-5": ModelPricing(1.0, 5.0, 1.25, 0.10),
    "claude-haiku-3-5": ModelPricing(0.80, 4.0, 1.0, 0.08),
    "claude-sonnet-4-5": ModelPricing(3.0, 15.0, 3.75, 0.30),
    "claude-sonnet-4": ModelPricing(3.0, 15.0, 3.75, 0.30),
    "claude-opus-4-1": ModelPricing(15.0, 75.0, 18.75, 1.50),
}


def _model_prefix(display_name: str) -> str:
    """'Claude Haiku 4.5 ([deprecated](...))' -> 'claude-haiku-4-5'."""
    name = re.sub(r"\s*\(.*\)", "", display_name).strip()
    return "-".join(p.replace(".", "-") for p in name.lower().split())


def _parse_price(cell: str) -> float:
    match = re.search(r"\$([0-9]+(?:\.[0-9]+)?)", cell)
    return float(match.group(1)) if match else 0.0


def parse_pricing_table(markdown: str) -> dict[str, ModelPricing]:
    """Parse the "Model pricing" markdown table.

    Columns: Model | Base Input | 5m Cache Writes | 1h Cache Writes |
    Cache Hits | Output. The 1h cache write column is ignored.
    """
    section = re.search(r"## Model pricing\s*\n(.*?)(?=\n## |\Z)", markdown, re.DOTALL)
    if not section:
        return {}

    prices: dict[str, ModelPricing] = {}
    for line in section.group(1).splitlines():
        line = line.strip()
        if not line.startswith("|") or line.startswith("| Model") or re.match(r"\|[-\s|]+\|", line):
            continue
        cells = [c.strip() for c in line.split("|") if c.strip()]
        if len(cells) < 6:
            continue

        pricing = ModelPricing(
            input_per_mtok=_parse_price(cells[1]),
            output_per_mtok=_parse_price(cells[5]),
            cache_write_per_mtok=_parse_price(cells[2]),
            cache_read_per_mtok=_parse_price(cells[4]),
        )
        if pricing.input_per_mtok > 0 or pricing.output_per_mtok > 0:
            prices[_model_prefix(cells[0])] = pricing
    return prices


async def fetch_model_prices() -> dict[str, ModelPricing]:
    """Fetch live prices, falling back to the hardcoded table."""
    try:
        async with httpx.AsyncClient(timeout=10.0) as client:
            response = await client.get(PRICING_URL)
            response.raise_for_status()
            parsed = parse_pricing_table(response.text)
            if parsed:
                logger.info("Fetched live pricing for %d models", len(parsed))
                return parsed
            logger.warning("Could not parse pricing table, using fallback prices")
    except httpx.HTTPError:
        logger.warning("Failed to fetch pricing, using fallback prices", exc_info=True)

    return dict(_FALLBACK_PRICES)


def get_model_pricing(model_id: str, prices: dict[str, ModelPricing]) -> ModelPricing:
    """Longest-prefix lookup, e.g. 'claude-haiku-4-5-20251001' -> 'claude-haiku-4-5'."""
    if model_id in prices:
        return prices[model_id]

    matches = [key for key in prices if model_id.startswith(key)]
    if matches:
        return prices[max(matches, key=len)]

    logger.warning("No pricing found for model '%s', using Haiku 4.5 fallback", model_id)
    return _FALLBACK_PRICES["claude-haiku-4-5"]


def estimate_call_cost(call: APICallUsage, prices: dict[str, ModelPricing]) -> float:
    pricing = get_model_pricing(call.model, prices)
    return (
        call.input_tokens / 1_000_000 * pricing.input_per_mtok
        + call.output_tokens / 1_000_000 * pricing.output_per_mtok
        + call.cache_creation_input_tokens / 1_000_000 * pricing.cache_write_per_mtok
        + call.cache_read_input_tokens / 1_000_000 * pricing.cache_read_per_mtok
        + call.web_searches * WEB_SEARCH_PRICE_PER_SEARCH
    )


class PriceCache:
    """Fetch model prices once per process and stamp costs onto usage."""

    def __init__(self) -> None:
        self._prices: dict[str, ModelPricing] | None = None

    async def get(self) -> dict[str, ModelPricing]:
        if self._prices is None:
            self._prices = await fetch_model_prices()
        return self._prices

    def stamp_usage(self, usage: Usage) -> None:
        """Set ``usage.estimated_cost`` from its API calls."""
        if self._prices is None:
            raise RuntimeError("Prices not yet fetched; await PriceCache.get() first")
        usage.estimated_cost = sum(estimate_call_cost(c, self._prices) for c in usage.api_calls)
