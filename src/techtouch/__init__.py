"""Techtouch: AI-sourced technology news and phone specs with a bounded-freshness cache."""

from techtouch.cache import CacheStore, JsonFileCacheStore, MemoryCacheStore
from techtouch.config import TechtouchConfig, create_from_config, load_config
from techtouch.data import (
    NOT_SPECIFIED,
    TIE,
    AINewsItem,
    AINewsList,
    APICallUsage,
    CacheEntry,
    Category,
    CompanySalesStat,
    JobItem,
    JobList,
    PhoneComparisonResult,
    PhoneNewsFeed,
    PhoneNewsItem,
    PhoneSpec,
    RecordKind,
    SpecCategory,
    StatsResult,
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
from techtouch.gateway import ClaudeGateway, CompletionGateway
from techtouch.normalizer import normalize
from techtouch.orchestrator import FetchOrchestrator
from techtouch.pricing import PriceCache

__all__ = [
    # Models
    "NOT_SPECIFIED",
    "TIE",
    "AINewsItem",
    "AINewsList",
    "APICallUsage",
    "CacheEntry",
    "Category",
    "CompanySalesStat",
    "JobItem",
    "JobList",
    "PhoneComparisonResult",
    "PhoneNewsFeed",
    "PhoneNewsItem",
    "PhoneSpec",
    "RecordKind",
    "SpecCategory",
    "StatsResult",
    "ToolView",
    "Usage",
    "ViewState",
    "ViewStatus",
    # Errors
    "ConfigurationError",
    "FetchError",
    "MalformedResponseError",
    "SchemaViolationError",
    "UpstreamError",
    # Protocols
    "CacheStore",
    "CompletionGateway",
    # Components
    "ClaudeGateway",
    "FetchOrchestrator",
    "JsonFileCacheStore",
    "MemoryCacheStore",
    "PriceCache",
    "normalize",
    # Logging
    "FetchLogger",
    # Config
    "TechtouchConfig",
    "create_from_config",
    "load_config",
]
