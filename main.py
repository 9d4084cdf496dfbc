#!/usr/bin/env python
"""CLI for the Techtouch content feed."""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from pydantic import BaseModel, ValidationError, field_validator

from techtouch.config import create_from_config, get_default_config_path, load_config
from techtouch.data import (
    AINewsList,
    Category,
    DomainRecord,
    JobList,
    PhoneComparisonResult,
    PhoneNewsFeed,
    PhoneNewsItem,
    StatsResult,
)
from techtouch.orchestrator import FetchOrchestrator

logger = logging.getLogger(__name__)

_CATEGORY_COMMANDS = {
    "ai-news": Category.AI_NEWS,
    "phone-news": Category.PHONE_NEWS,
    "jobs": Category.JOBS,
}


class CLIArgs(BaseModel):
    """Validated CLI arguments."""

    command: str
    terms: list[str] = []
    refresh: bool = False
    config: Path
    log: bool = False
    log_dir: str = "logs"

    @field_validator("config")
    @classmethod
    def config_must_exist(cls, v: Path) -> Path:
        if not v.exists():
            raise ValueError(f"Config file not found: {v}")
        return v


def _print_phone(phone: PhoneNewsItem) -> None:
    if phone.name:
        print(phone.name)
    for category, value in phone.rows():
        print(f"  {category.value:<18} {value}")


def print_record(record: DomainRecord) -> None:
    """Write a record to stdout in a readable layout."""
    if isinstance(record, AINewsList | JobList):
        for i, item in enumerate(record.items, 1):
            print(f"{i}. {item.title}\n{item.description}\n{item.url}\n")
    elif isinstance(record, PhoneNewsFeed):
        for phone in record.phones:
            _print_phone(phone)
            print()
        for stat in record.sales:
            print(f"{stat.name}: {stat.market_share} (top: {stat.top_phone}) {stat.details}")
    elif isinstance(record, PhoneNewsItem):
        _print_phone(record)
    elif isinstance(record, PhoneComparisonResult):
        for row in record.specs:
            print(f"{row.feature:<18} | {row.phone1} | {row.phone2}")
        print(f"\nVerdict: {record.verdict}")
        print(f"Better phone: {record.better_phone}")
    elif isinstance(record, StatsResult):
        for key, value in record.fields.items():
            print(f"{key}: {value}")


async def dispatch(orchestrator: FetchOrchestrator, args: CLIArgs) -> DomainRecord | None:
    if args.command in _CATEGORY_COMMANDS:
        return await orchestrator.fetch_category(
            _CATEGORY_COMMANDS[args.command], force_refresh=args.refresh
        )
    if args.command == "compare":
        return await orchestrator.compare(args.terms[0], args.terms[1])
    if args.command == "search":
        return await orchestrator.search_phone(" ".join(args.terms))
    if args.command == "stats":
        return await orchestrator.query_stats(" ".join(args.terms))
    msg = f"Unknown command: {args.command}"
    raise ValueError(msg)


async def run(args: CLIArgs) -> int:
    """Execute one command with the given configuration.

    Args:
        args: Validated CLI arguments.

    Returns:
        Process exit code.
    """
    config = load_config(args.config)
    orchestrator, fetch_logger, price_cache = create_from_config(
        config,
        log_override=args.log if args.log else None,
        log_dir_override=args.log_dir if args.log_dir != "logs" else None,
    )

    logger.info(f"Running {args.command} with config {args.config}")
    record = await dispatch(orchestrator, args)

    state = orchestrator.state
    if record is None:
        logger.error(state.error)
    else:
        print_record(record)

    usage = orchestrator.usage
    if usage.api_calls:
        await price_cache.get()
        price_cache.stamp_usage(usage)
        logger.info("\n--- Usage Summary ---")
        logger.info(f"API calls: {len(usage.api_calls)}")
        logger.info(f"Input tokens: {usage.input_tokens:,}")
        logger.info(f"Output tokens: {usage.output_tokens:,}")
        if usage.web_searches:
            logger.info(f"Web searches: {usage.web_searches}")
        logger.info(f"Estimated cost: ${usage.estimated_cost:.4f}")
    else:
        logger.info("Served from cache")

    if fetch_logger and fetch_logger.finish_session(usage):
        logger.info(f"\nFetch log written to: {fetch_logger.last_log_path}")

    return 0 if record is not None else 1


def main() -> None:
    """Entry point for the CLI."""
    parser = argparse.ArgumentParser(description="Techtouch AI news and phone specs.")
    parser.add_argument(
        "--config",
        "-c",
        type=Path,
        default=None,
        help="Path to YAML config file (default: configs/default.yaml)",
    )
    parser.add_argument(
        "--log",
        action="store_true",
        default=False,
        help="Write a JSON fetch log for this session",
    )
    parser.add_argument(
        "--log-dir",
        type=str,
        default="logs",
        help="Directory for log files (default: logs/)",
    )
    sub = parser.add_subparsers(dest="command", required=True)
    for name in _CATEGORY_COMMANDS:
        p = sub.add_parser(name, help=f"Show {name.replace('-', ' ')}")
        p.add_argument("--refresh", action="store_true", help="Bypass the cache")
    compare = sub.add_parser("compare", help="Compare two phones")
    compare.add_argument("terms", nargs=2, metavar="PHONE")
    search = sub.add_parser("search", help="Show a phone's spec sheet")
    search.add_argument("terms", nargs="+", metavar="QUERY")
    stats = sub.add_parser("stats", help="Show market statistics")
    stats.add_argument("terms", nargs="+", metavar="QUERY")

    logging.basicConfig(level=logging.INFO, format="%(message)s")

    ns = parser.parse_args()
    config_path: Path = ns.config if ns.config else get_default_config_path()

    try:
        args = CLIArgs(
            command=ns.command,
            terms=getattr(ns, "terms", []),
            refresh=getattr(ns, "refresh", False),
            config=config_path,
            log=ns.log,
            log_dir=ns.log_dir,
        )
    except ValidationError as e:
        logger.error(str(e))
        sys.exit(1)

    try:
        sys.exit(asyncio.run(run(args)))
    except ValueError as e:
        logger.error(str(e))
        sys.exit(2)
    except KeyboardInterrupt:
        sys.exit(130)


if __name__ == "__main__":
    main()
