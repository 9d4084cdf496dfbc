"""Core data models for Techtouch."""

from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any

from techtouch.share import build_share_text

NOT_SPECIFIED = "Not specified"
TIE = "tie"


class SpecCategory(StrEnum):
    """Closed vocabulary of phone specification categories.

    Member order is the row order used when a spec sheet is displayed.
    """

    NETWORKS = "networks"
    DIMENSIONS = "dimensions"
    WEIGHT = "weight"
    MATERIALS = "materials"
    WATER_RESISTANCE = "water_resistance"
    DISPLAY = "display"
    PROCESSOR = "processor"
    GPU = "gpu"
    MEMORY_STORAGE = "memory_storage"
    REAR_CAMERAS = "rear_cameras"
    FRONT_CAMERA = "front_camera"
    VIDEO = "video"
    BATTERY_CHARGING = "battery_charging"
    OPERATING_SYSTEM = "operating_system"
    CONNECTIVITY = "connectivity"
    SENSORS = "sensors"
    COLORS = "colors"


class Category(StrEnum):
    """Cacheable content categories."""

    AI_NEWS = "ai_news"
    PHONE_NEWS = "phone_news"
    JOBS = "jobs"


class ToolView(StrEnum):
    """Tool views the presentation layer can display."""

    MAIN = "main"
    AI_NEWS = "ai_news"
    PHONE_NEWS = "phone_news"
    JOBS = "jobs"
    COMPARISON = "comparison"
    PHONE_SEARCH = "phone_search"
    STATS = "stats"


class RecordKind(StrEnum):
    """Shapes the normalizer can coerce a raw payload into."""

    AI_NEWS_LIST = "ai_news_list"
    PHONE_SPEC_SHEET = "phone_spec_sheet"
    PHONE_SEARCH_RESULT = "phone_search_result"
    COMPARISON = "comparison"
    STATS = "stats"
    PHONE_NEWS_FEED = "phone_news_feed"
    JOB_LIST = "job_list"


class ViewStatus(StrEnum):
    IDLE = "idle"
    LOADING = "loading"
    SUCCESS = "success"
    ERROR = "error"


@dataclass(frozen=True)
class CacheEntry:
    """A stored payload with its write time and schema version."""

    data: Any
    written_at_ms: int
    schema_version: int


@dataclass(frozen=True)
class AINewsItem:
    """One verified AI news fact."""

    title: str
    description: str
    url: str

    def share_text(self) -> str:
        return build_share_text(self.title, self.description, self.url)


@dataclass(frozen=True)
class AINewsList:
    items: tuple[AINewsItem, ...] = ()

    def to_payload(self) -> dict[str, Any]:
        return {
            "ai_news": [
                {"title": i.title, "description": i.description, "url": i.url}
                for i in self.items
            ]
        }


@dataclass(frozen=True)
class PhoneNewsItem:
    """A phone specification sheet.

    ``specs`` always holds every ``SpecCategory`` value as a key; categories
    the backend did not supply are set to ``NOT_SPECIFIED``.
    """

    name: str = ""
    specs: dict[str, str] = field(default_factory=dict)

    def rows(self) -> list[tuple[SpecCategory, str]]:
        return [(c, self.specs.get(c.value, NOT_SPECIFIED)) for c in SpecCategory]

    def to_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"name": self.name} if self.name else {}
        payload.update({c.value: v for c, v in self.rows()})
        return payload


@dataclass(frozen=True)
class CompanySalesStat:
    """Market share summary for one manufacturer."""

    name: str
    market_share: str = ""
    top_phone: str = ""
    details: str = ""


@dataclass(frozen=True)
class PhoneNewsFeed:
    """Latest phones plus manufacturer sales statistics."""

    phones: tuple[PhoneNewsItem, ...] = ()
    sales: tuple[CompanySalesStat, ...] = ()

    def to_payload(self) -> dict[str, Any]:
        return {
            "phones": [p.to_payload() for p in self.phones],
            "stats": [
                {
                    "name": s.name,
                    "marketShare": s.market_share,
                    "topPhone": s.top_phone,
                    "details": s.details,
                }
                for s in self.sales
            ],
        }


@dataclass(frozen=True)
class PhoneSpec:
    """One comparison row, aligned across the two compared phones."""

    feature: str
    phone1: str
    phone2: str


@dataclass(frozen=True)
class PhoneComparisonResult:
    """Side-by-side comparison of two phones.

    ``better_phone`` is one of the two queried names verbatim, or ``TIE``.
    """

    specs: tuple[PhoneSpec, ...]
    verdict: str
    better_phone: str

    @property
    def is_tie(self) -> bool:
        return self.better_phone == TIE


@dataclass(frozen=True)
class StatsResult:
    """Open-ended market statistics for a queried phone."""

    query: str
    fields: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class JobItem:
    """A job announcement."""

    title: str
    description: str
    url: str
    ministry: str = ""
    date: str = ""

    def share_text(self) -> str:
        return build_share_text(self.title, self.description, self.url)


@dataclass(frozen=True)
class JobList:
    items: tuple[JobItem, ...] = ()

    def to_payload(self) -> dict[str, Any]:
        return {
            "jobs": [
                {
                    "title": j.title,
                    "description": j.description,
                    "url": j.url,
                    "ministry": j.ministry,
                    "date": j.date,
                }
                for j in self.items
            ]
        }


DomainRecord = (
    AINewsList | PhoneNewsItem | PhoneNewsFeed | PhoneComparisonResult | StatsResult | JobList
)


@dataclass(frozen=True)
class ViewState:
    """What the presentation layer currently displays.

    ``record`` survives an error so stale data stays visible next to the
    error message.
    """

    view: ToolView = ToolView.MAIN
    status: ViewStatus = ViewStatus.IDLE
    record: DomainRecord | None = None
    error: str | None = None
    failure: Exception | None = None


@dataclass(frozen=True)
class APICallUsage:
    """Usage from a single API call, with the model id for price lookup."""

    model: str
    input_tokens: int = 0
    output_tokens: int = 0
    cache_creation_input_tokens: int = 0
    cache_read_input_tokens: int = 0
    web_searches: int = 0


@dataclass
class Usage:
    """Accumulated backend usage across requests."""

    api_calls: list[APICallUsage] = field(default_factory=list)
    estimated_cost: float = 0.0

    @property
    def input_tokens(self) -> int:
        return sum(c.input_tokens for c in self.api_calls)

    @property
    def output_tokens(self) -> int:
        return sum(c.output_tokens for c in self.api_calls)

    @property
    def cache_creation_input_tokens(self) -> int:
        return sum(c.cache_creation_input_tokens for c in self.api_calls)

    @property
    def cache_read_input_tokens(self) -> int:
        return sum(c.cache_read_input_tokens for c in self.api_calls)

    @property
    def web_searches(self) -> int:
        return sum(c.web_searches for c in self.api_calls)

    def __add__(self, other: "Usage") -> "Usage":
        return Usage(
            api_calls=self.api_calls + other.api_calls,
            estimated_cost=self.estimated_cost + other.estimated_cost,
        )

    def __iadd__(self, other: "Usage") -> "Usage":
        self.api_calls.extend(other.api_calls)
        self.estimated_cost += other.estimated_cost
        return self
