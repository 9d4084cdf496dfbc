"""Pydantic configuration models for Techtouch components."""

from typing import Annotated, Literal

from pydantic import BaseModel, Field

# ============================================================
# Gateway Configs
# ============================================================


class ClaudeGatewayConfig(BaseModel):
    """Configuration for ClaudeGateway.

    The API key is never read from config; it comes from the environment.
    """

    type: Literal["claude"] = "claude"
    model: str = "claude-haiku-4-5-20251001"
    max_tokens: int = Field(default=4096, gt=0)
    temperature: float = Field(default=0.1, ge=0.0, le=1.0)
    max_searches: int = Field(default=3, ge=1)

    model_config = {"frozen": True}


# ============================================================
# Cache Configs
# ============================================================


class FileCacheConfig(BaseModel):
    """JSON files on disk, one per category."""

    type: Literal["file"] = "file"
    directory: str = ".techtouch_cache"
    key_prefix: str = "techtouch"
    ttl_hours: float = Field(default=6.0, gt=0)

    model_config = {"frozen": True}


class MemoryCacheConfig(BaseModel):
    """Process-local cache; nothing survives a restart."""

    type: Literal["memory"] = "memory"
    key_prefix: str = "techtouch"
    ttl_hours: float = Field(default=6.0, gt=0)

    model_config = {"frozen": True}


CacheConfig = Annotated[
    FileCacheConfig | MemoryCacheConfig,
    Field(discriminator="type"),
]


# ============================================================
# Logging Config
# ============================================================


class LoggingConfig(BaseModel):
    """Configuration for the per-session fetch log."""

    enabled: bool = False
    log_dir: str = "logs"

    model_config = {"frozen": True}


# ============================================================
# Root Config
# ============================================================


class TechtouchConfig(BaseModel):
    """Root configuration for Techtouch."""

    gateway: ClaudeGatewayConfig = Field(default_factory=ClaudeGatewayConfig)
    cache: CacheConfig = Field(default_factory=FileCacheConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    model_config = {"frozen": True}
