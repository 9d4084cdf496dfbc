"""Factory functions to create components from configuration."""

from pathlib import Path

from techtouch.cache.base import CacheStore
from techtouch.cache.file import JsonFileCacheStore
from techtouch.cache.memory import MemoryCacheStore
from techtouch.config.models import (
    ClaudeGatewayConfig,
    FileCacheConfig,
    MemoryCacheConfig,
    TechtouchConfig,
)
from techtouch.fetch_logger import FetchLogger
from techtouch.gateway.base import CompletionGateway
from techtouch.gateway.claude import ClaudeGateway
from techtouch.orchestrator import FetchOrchestrator
from techtouch.pricing import PriceCache


def create_gateway(config: ClaudeGatewayConfig) -> CompletionGateway:
    """Create a completion gateway from config."""
    if isinstance(config, ClaudeGatewayConfig):
        return ClaudeGateway(
            model=config.model,
            max_tokens=config.max_tokens,
            temperature=config.temperature,
            max_searches=config.max_searches,
        )
    msg = f"Unknown gateway config type: {type(config)}"
    raise ValueError(msg)


def create_cache(config: FileCacheConfig | MemoryCacheConfig) -> CacheStore:
    """Create a cache store from config."""
    if isinstance(config, FileCacheConfig):
        return JsonFileCacheStore(Path(config.directory))
    if isinstance(config, MemoryCacheConfig):
        return MemoryCacheStore()
    msg = f"Unknown cache config type: {type(config)}"
    raise ValueError(msg)


def create_from_config(
    config: TechtouchConfig,
    *,
    log_override: bool | None = None,
    log_dir_override: str | None = None,
) -> tuple[FetchOrchestrator, FetchLogger | None, PriceCache]:
    """Create a wired orchestrator from root config.

    Args:
        config: Root configuration.
        log_override: Override the config's logging.enabled setting.
        log_dir_override: Override the config's logging.log_dir setting.

    Returns:
        Tuple of (orchestrator, fetch_logger, price_cache).
        fetch_logger is None if logging is disabled.
    """
    log_enabled = log_override if log_override is not None else config.logging.enabled
    log_dir = Path(log_dir_override if log_dir_override is not None else config.logging.log_dir)

    fetch_logger: FetchLogger | None = None
    if log_enabled:
        fetch_logger = FetchLogger(log_dir=log_dir, enabled=True)

    price_cache = PriceCache()
    orchestrator = FetchOrchestrator(
        create_gateway(config.gateway),
        create_cache(config.cache),
        ttl_ms=int(config.cache.ttl_hours * 60 * 60 * 1000),
        key_prefix=config.cache.key_prefix,
        fetch_logger=fetch_logger,
        price_cache=price_cache,
    )
    return (orchestrator, fetch_logger, price_cache)
