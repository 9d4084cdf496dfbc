"""Instruction/prompt pairs for each backend task.

Every prompt spells out the exact JSON shape the normalizer accepts for its
record kind.
"""

import json
from dataclasses import dataclass
from datetime import date

from techtouch.data import TIE, RecordKind, SpecCategory

BASE_SYSTEM_PROMPT = """\
You are a professional technology editor for the Techtouch news service. \
Today is {today}.

Strict rules:
- Only report facts you can verify from official or reputable sources.
- Everything you report must be current as of {today}.
- Never speculate, never invent products, versions, figures or links.
- If a value is unknown, write "{unknown}" instead of guessing.
- Respond with exactly one JSON document in the shape requested. No prose, \
no markdown fences, no commentary.\
"""

SPEC_VOCABULARY: tuple[str, ...] = tuple(c.value for c in SpecCategory)

_SPEC_SHAPE = json.dumps({key: "..." for key in SPEC_VOCABULARY}, indent=2)


@dataclass(frozen=True)
class TaskPrompt:
    """Everything needed to issue one backend request for a record kind."""

    kind: RecordKind
    system_instruction: str
    prompt_body: str
    grounded: bool = True


def system_instruction(today: date) -> str:
    return BASE_SYSTEM_PROMPT.format(today=today.isoformat(), unknown="Not specified")


def ai_news_task(today: date, *, count: int = 10) -> TaskPrompt:
    prompt = (
        f"List the {count} most important AI tool releases and updates from the "
        f"week ending {today.isoformat()}. Each title must be the tool name plus "
        "its officially released version number (for example \"ChatGPT 5.2\"). "
        "Each description is four short lines on what changed and its practical "
        "impact. The url must be the official product page where the tool is "
        "used, not a news article or blog post.\n\n"
        'Format: {"ai_news": [{"title": "...", "description": "...", "url": "..."}]}'
    )
    return TaskPrompt(RecordKind.AI_NEWS_LIST, system_instruction(today), prompt)


def phone_news_task(today: date, *, count: int = 8) -> TaskPrompt:
    phone_shape = json.dumps({"name": "...", **{key: "..." for key in SPEC_VOCABULARY}})
    prompt = (
        f"List the {count} newest smartphones announced in the week ending "
        f"{today.isoformat()} with their full official specifications, and the "
        f"smartphone sales statistics for {today.year}: market share per "
        "manufacturer and each manufacturer's best-selling phone.\n\n"
        "Use exactly these specification keys for every phone: "
        f"{', '.join(SPEC_VOCABULARY)}.\n\n"
        f'Format: {{"phones": [{phone_shape}], '
        '"stats": [{"name": "...", "marketShare": "...", "topPhone": "...", '
        '"details": "..."}]}'
    )
    return TaskPrompt(RecordKind.PHONE_NEWS_FEED, system_instruction(today), prompt)


def jobs_task(today: date, *, count: int = 8) -> TaskPrompt:
    prompt = (
        f"List {count} real Iraqi job announcements published on official sites "
        f"in the week ending {today.isoformat()}. The title is one line; the "
        "description is five to six precise lines; the url links directly to "
        "the announcement.\n\n"
        'Format: {"jobs": [{"title": "...", "ministry": "...", "date": "YYYY-MM-DD", '
        '"description": "...", "url": "..."}]}'
    )
    return TaskPrompt(RecordKind.JOB_LIST, system_instruction(today), prompt)


def comparison_task(phone_a: str, phone_b: str, today: date) -> TaskPrompt:
    prompt = (
        f"Compare {phone_a} and {phone_b} in full technical detail using their "
        "official specifications. Produce one row per specification category, "
        f"in this order: {', '.join(SPEC_VOCABULARY)}. In each row, phone1 is "
        f"{phone_a} and phone2 is {phone_b}.\n\n"
        f'betterPhone must be exactly "{phone_a}", exactly "{phone_b}", or '
        f'"{TIE}" when neither is clearly better.\n\n'
        'Format: {"specs": [{"feature": "...", "phone1": "...", "phone2": "..."}], '
        '"verdict": "...", "betterPhone": "..."}'
    )
    return TaskPrompt(RecordKind.COMPARISON, system_instruction(today), prompt)


def phone_search_task(query: str, today: date) -> TaskPrompt:
    prompt = (
        f"Give the full official specification sheet of the phone: {query}.\n\n"
        "Use exactly these keys and no others, plus \"name\" for the phone's "
        f"official name:\n{_SPEC_SHAPE}"
    )
    return TaskPrompt(RecordKind.PHONE_SEARCH_RESULT, system_instruction(today), prompt)


def stats_task(query: str, today: date) -> TaskPrompt:
    prompt = (
        f"Summarize current market statistics for: {query}. Include figures such "
        "as units sold, market share, price range, launch date and ranking "
        "where they are officially reported. Use one flat JSON object whose "
        "keys are short snake_case labels and whose values are numbers or short "
        "strings."
    )
    return TaskPrompt(RecordKind.STATS, system_instruction(today), prompt)
