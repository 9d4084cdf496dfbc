"""Data models for Techtouch."""

from techtouch.data.models import (
    NOT_SPECIFIED,
    TIE,
    AINewsItem,
    AINewsList,
    APICallUsage,
    CacheEntry,
    Category,
    CompanySalesStat,
    DomainRecord,
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

__all__ = [
    "NOT_SPECIFIED",
    "TIE",
    "AINewsItem",
    "AINewsList",
    "APICallUsage",
    "CacheEntry",
    "Category",
    "CompanySalesStat",
    "DomainRecord",
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
]
