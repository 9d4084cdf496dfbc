"""Coerce raw backend payloads into domain records.

Item-level problems (one bad news item, one incomplete comparison row) are
repaired by dropping the item. Only a payload missing its minimum shape
raises ``SchemaViolationError``.
"""

import logging
from collections.abc import Mapping
from typing import Any

from techtouch.data import (
    NOT_SPECIFIED,
    TIE,
    AINewsItem,
    AINewsList,
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
)
from techtouch.errors import SchemaViolationError

logger = logging.getLogger(__name__)

_VOCABULARY = frozenset(c.value for c in SpecCategory)


def _require_mapping(raw: Any, kind: RecordKind) -> Mapping[str, Any]:
    if not isinstance(raw, Mapping):
        raise SchemaViolationError(kind, "<root>", f"expected an object, got {type(raw).__name__}")
    return raw


def _require_list(payload: Mapping[str, Any], key: str, kind: RecordKind) -> list[Any]:
    value = payload.get(key)
    if value is None:
        raise SchemaViolationError(kind, key, "missing")
    if not isinstance(value, list):
        raise SchemaViolationError(kind, key, f"expected a list, got {type(value).__name__}")
    return value


def _text(value: Any) -> str | None:
    """Return a string field, joining a list of lines; None if unusable."""
    if isinstance(value, str):
        return value
    if isinstance(value, list) and value and all(isinstance(v, str) for v in value):
        return "\n".join(value)
    return None


def _spec_value(value: Any) -> str:
    if isinstance(value, list) and all(isinstance(v, str) for v in value):
        value = ", ".join(v.strip() for v in value if v.strip())
    if value is None or isinstance(value, (dict, list)):
        return NOT_SPECIFIED
    text = str(value).strip()
    return text or NOT_SPECIFIED


def _normalize_ai_news(raw: Any) -> AINewsList:
    kind = RecordKind.AI_NEWS_LIST
    entries = _require_list(_require_mapping(raw, kind), "ai_news", kind)

    items: list[AINewsItem] = []
    for i, entry in enumerate(entries):
        if not isinstance(entry, Mapping):
            logger.warning(f"Dropping AI news item {i}: not an object")
            continue
        title, description, url = (
            _text(entry.get("title")),
            _text(entry.get("description")),
            entry.get("url"),
        )
        if title is None or description is None or not isinstance(url, str):
            logger.warning(f"Dropping AI news item {i}: missing title, description or url")
            continue
        items.append(AINewsItem(title=title, description=description, url=url))
    return AINewsList(items=tuple(items))


def _normalize_spec_sheet(raw: Any, kind: RecordKind) -> PhoneNewsItem:
    payload = _require_mapping(raw, kind)
    name = payload.get("name")
    nested = payload.get("specs")
    if isinstance(nested, Mapping):
        payload = nested

    dropped = [k for k in payload if k not in _VOCABULARY and k != "name"]
    if dropped:
        logger.debug(f"Discarding unknown spec keys: {dropped}")

    specs = {c.value: _spec_value(payload.get(c.value)) for c in SpecCategory}
    return PhoneNewsItem(name=name.strip() if isinstance(name, str) else "", specs=specs)


def _normalize_phone_news(raw: Any) -> PhoneNewsFeed:
    kind = RecordKind.PHONE_NEWS_FEED
    payload = _require_mapping(raw, kind)
    phones = [
        _normalize_spec_sheet(p, RecordKind.PHONE_SPEC_SHEET)
        for p in _require_list(payload, "phones", kind)
        if isinstance(p, Mapping)
    ]

    sales: list[CompanySalesStat] = []
    raw_stats = payload.get("stats")
    if isinstance(raw_stats, list):
        for s in raw_stats:
            if not isinstance(s, Mapping) or not isinstance(s.get("name"), str):
                continue
            sales.append(
                CompanySalesStat(
                    name=s["name"],
                    market_share=str(s.get("marketShare") or ""),
                    top_phone=str(s.get("topPhone") or ""),
                    details=str(s.get("details") or ""),
                )
            )
    return PhoneNewsFeed(phones=tuple(phones), sales=tuple(sales))


def _match_better_phone(value: Any, phone_names: tuple[str, str] | None) -> str:
    if not isinstance(value, str) or phone_names is None:
        return TIE
    wanted = value.strip().casefold()
    for name in phone_names:
        if name.strip().casefold() == wanted:
            return name
    return TIE


def _normalize_comparison(
    raw: Any, phone_names: tuple[str, str] | None
) -> PhoneComparisonResult:
    kind = RecordKind.COMPARISON
    payload = _require_mapping(raw, kind)

    rows: list[PhoneSpec] = []
    for row in _require_list(payload, "specs", kind):
        if not isinstance(row, Mapping):
            continue
        feature, phone1, phone2 = row.get("feature"), row.get("phone1"), row.get("phone2")
        if not all(isinstance(v, str) for v in (feature, phone1, phone2)):
            continue
        rows.append(PhoneSpec(feature=feature, phone1=phone1, phone2=phone2))
    if not rows:
        raise SchemaViolationError(kind, "specs", "no valid comparison rows")

    verdict = payload.get("verdict")
    better = _match_better_phone(payload.get("betterPhone"), phone_names)
    if better == TIE and payload.get("betterPhone") != TIE:
        logger.info(f"Coercing betterPhone {payload.get('betterPhone')!r} to {TIE!r}")
    return PhoneComparisonResult(
        specs=tuple(rows),
        verdict=verdict if isinstance(verdict, str) else "",
        better_phone=better,
    )


def _normalize_stats(raw: Any, query: str | None) -> StatsResult:
    payload = _require_mapping(raw, RecordKind.STATS)
    fields = {str(k): (NOT_SPECIFIED if v is None else v) for k, v in payload.items()}
    return StatsResult(query=query or "", fields=fields)


def _normalize_jobs(raw: Any) -> JobList:
    kind = RecordKind.JOB_LIST
    payload = _require_mapping(raw, kind)
    key = "jobs" if "jobs" in payload or "data" not in payload else "data"

    items: list[JobItem] = []
    for entry in _require_list(payload, key, kind):
        if not isinstance(entry, Mapping):
            continue
        title, description, url = (
            _text(entry.get("title")),
            _text(entry.get("description")),
            entry.get("url"),
        )
        if title is None or description is None or not isinstance(url, str):
            continue
        items.append(
            JobItem(
                title=title,
                description=description,
                url=url,
                ministry=str(entry.get("ministry") or ""),
                date=str(entry.get("date") or ""),
            )
        )
    return JobList(items=tuple(items))


def normalize(
    kind: RecordKind,
    raw: Any,
    *,
    query: str | None = None,
    phone_names: tuple[str, str] | None = None,
) -> DomainRecord:
    """Coerce a raw JSON payload into the record for ``kind``.

    Args:
        kind: Target record shape.
        raw: Parsed JSON from the backend or the cache.
        query: The user query, kept on stats results.
        phone_names: The two compared phone names, used to validate
            ``betterPhone``.

    Returns:
        The normalized domain record.

    Raises:
        SchemaViolationError: The payload lacks the minimum shape for ``kind``.
    """
    if kind == RecordKind.AI_NEWS_LIST:
        return _normalize_ai_news(raw)
    if kind in (RecordKind.PHONE_SPEC_SHEET, RecordKind.PHONE_SEARCH_RESULT):
        return _normalize_spec_sheet(raw, kind)
    if kind == RecordKind.COMPARISON:
        return _normalize_comparison(raw, phone_names)
    if kind == RecordKind.STATS:
        return _normalize_stats(raw, query)
    if kind == RecordKind.PHONE_NEWS_FEED:
        return _normalize_phone_news(raw)
    if kind == RecordKind.JOB_LIST:
        return _normalize_jobs(raw)
    msg = f"Unknown record kind: {kind}"
    raise ValueError(msg)
