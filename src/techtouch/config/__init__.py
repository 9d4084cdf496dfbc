"""Configuration module for Techtouch."""

from techtouch.config.factory import create_cache, create_from_config, create_gateway
from techtouch.config.loader import get_default_config_path, load_config
from techtouch.config.models import (
    CacheConfig,
    ClaudeGatewayConfig,
    FileCacheConfig,
    LoggingConfig,
    MemoryCacheConfig,
    TechtouchConfig,
)

__all__ = [
    "CacheConfig",
    "ClaudeGatewayConfig",
    "FileCacheConfig",
    "LoggingConfig",
    "MemoryCacheConfig",
    "TechtouchConfig",
    "create_cache",
    "create_from_config",
    "create_gateway",
    "get_default_config_path",
    "load_config",
]
