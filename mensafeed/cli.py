"""
CLI (Command Line Interface).

Quick terminal commands, e.g.:

    mensafeed search <text>
    mensafeed meals <canteen_id> [--date YYYY-MM-DD]
    mensafeed open <canteen_id> [--date YYYY-MM-DD]
    mensafeed hours <canteen_id>
    mensafeed cache stats|clear-expired|clear

Canteens configured for scraping (the Aachen ones) are scraped on demand;
everything else goes to the OpenMensa API.
"""

from __future__ import annotations

import argparse
import logging
from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.table import Table

from mensafeed.cache import PersistentCache
from mensafeed.cache_manager import MensaCacheManager
from mensafeed.canteen import BaseCanteen
from mensafeed.config import Settings
from mensafeed.errors import MensaError
from mensafeed.model import WEEKDAYS, day_key
from mensafeed.registry import CanteenRegistry

console = Console()


def _format_hour(value: float) -> str:
    """8.5 -> '08:30'"""
    minutes = int(round(value * 60))
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def _format_price(value: Optional[float]) -> str:
    return "-" if value is None else f"{value:.2f} €".replace(".", ",")


def _build_registry(args: argparse.Namespace) -> CanteenRegistry:
    settings = Settings.from_env()
    cache_dir = args.cache_dir if args.cache_dir is not None else settings.cache_dir
    cache = MensaCacheManager(PersistentCache(cache_dir))
    return CanteenRegistry(settings=settings, cache_manager=cache)


def _resolve_canteen(registry: CanteenRegistry, canteen_id: int) -> Optional[BaseCanteen]:
    """
    Scrape the canteen if it is configured for scraping, otherwise ask the API.
    Prints the reason and returns None if neither works.
    """
    if canteen_id in registry.scraped_canteens:
        # register the API record first so the scraped canteen inherits its identity
        api_canteen = registry.get(canteen_id)
        if api_canteen is not None:
            registry.add(api_canteen)
        menu_slug, hours_slug = registry.scraped_canteens[canteen_id]
        try:
            return registry.add_scraped(canteen_id, menu_slug, hours_slug)
        except MensaError as e:
            print(f"Could not scrape canteen {canteen_id}: {e}")
            return None

    canteen = registry.get(canteen_id)
    if canteen is None:
        print(f"Unknown canteen: {canteen_id}")
        return None
    registry.add(canteen)
    return canteen


def _parse_date(text: Optional[str]) -> Optional[str]:
    try:
        return day_key(text)
    except ValueError:
        print(f"Invalid date (expected YYYY-MM-DD): {text}")
        return None


def _cmd_search(args: argparse.Namespace) -> int:
    query = (args.text or "").strip()
    if not query:
        print("Please provide a search text.")
        return 1

    registry = _build_registry(args)
    registry.load()
    matches = registry.search(query)
    if not matches:
        print("No results.")
        return 0

    # show max 20
    for c in matches[:20]:
        print(f"{c.id} | {c.name} | {c.city}")
    if len(matches) > 20:
        print(f"... and {len(matches) - 20} more results")
    return 0


def _cmd_meals(args: argparse.Namespace) -> int:
    key = _parse_date(args.date)
    if key is None:
        return 1

    registry = _build_registry(args)
    canteen = _resolve_canteen(registry, args.canteen_id)
    if canteen is None:
        return 1

    meals = registry.meals(canteen.id, key, bypass_cache=args.no_cache)
    if not meals:
        print(f"No meals for {canteen.name} on {key}.")
        return 0

    table = Table(title=f"{canteen.name} – {key}")
    table.add_column("Category")
    table.add_column("Meal")
    table.add_column("Price", justify="right")
    table.add_column("Tags")
    for meal in meals:
        table.add_row(meal.category, meal.name, _format_price(meal.prices.students), ", ".join(sorted(meal.tags)))
    console.print(table)
    return 0


def _cmd_open(args: argparse.Namespace) -> int:
    key = _parse_date(args.date)
    if key is None:
        return 1

    registry = _build_registry(args)
    canteen = _resolve_canteen(registry, args.canteen_id)
    if canteen is None:
        return 1

    state = "open" if registry.is_open(canteen.id, key) else "closed"
    print(f"{canteen.name} is {state} on {key}.")
    return 0


def _cmd_hours(args: argparse.Namespace) -> int:
    registry = _build_registry(args)
    canteen = _resolve_canteen(registry, args.canteen_id)
    if canteen is None:
        return 1

    if not canteen.has_opening_hours:
        print(f"No opening hours published for {canteen.name}.")
        return 0

    table = Table(title=f"Opening hours – {canteen.name}")
    table.add_column("Day")
    table.add_column("Open")
    table.add_column("Close")
    opening_times = canteen.opening_times
    for weekday, label in enumerate(WEEKDAYS):
        times = opening_times.get(weekday)
        if times is None or times.is_closed:
            table.add_row(label, "closed", "")
        else:
            table.add_row(label, _format_hour(times.start), _format_hour(times.end))
    console.print(table)
    return 0


def _cmd_cache(args: argparse.Namespace) -> int:
    settings = Settings.from_env()
    cache = PersistentCache(args.cache_dir if args.cache_dir is not None else settings.cache_dir)

    if args.action == "stats":
        disk = str(cache.cache_dir) if cache.disk_enabled else "disabled (memory only)"
        print(f"Entries: {cache.size()}")
        print(f"Directory: {disk}")
        return 0
    if args.action == "clear-expired":
        print(f"Removed {cache.clear_expired()} expired entries.")
        return 0
    if args.action == "clear":
        n = cache.size()
        cache.clear_all()
        print(f"Removed {n} entries.")
        return 0
    return 2


def build_parser() -> argparse.ArgumentParser:
    """
    Build the argparse CLI parser with sub-commands.
    """
    parser = argparse.ArgumentParser(prog="mensafeed", description="Canteen meal plans and opening hours")
    parser.add_argument("--cache-dir", type=Path, default=None, help="Cache directory (default ~/.mensa4j/cache)")
    parser.add_argument("--verbose", "-v", action="store_true", help="Log debug output to stderr")
    sub = parser.add_subparsers(dest="command", required=True)

    p_search = sub.add_parser("search", help="Search canteens by name")
    p_search.add_argument("text", type=str, help="Search text")

    p_meals = sub.add_parser("meals", help="Show the meals of one day")
    p_meals.add_argument("canteen_id", type=int, help="Canteen ID (e.g. 187)")
    p_meals.add_argument("--date", "-d", type=str, default=None, help="Date as YYYY-MM-DD (default today)")
    p_meals.add_argument("--no-cache", action="store_true", help="Ignore cached meals")

    p_open = sub.add_parser("open", help="Is the canteen open on a day?")
    p_open.add_argument("canteen_id", type=int, help="Canteen ID (e.g. 187)")
    p_open.add_argument("--date", "-d", type=str, default=None, help="Date as YYYY-MM-DD (default today)")

    p_hours = sub.add_parser("hours", help="Show the weekly opening hours")
    p_hours.add_argument("canteen_id", type=int, help="Canteen ID (e.g. 187)")

    p_cache = sub.add_parser("cache", help="Inspect or clear the persistent cache")
    p_cache.add_argument("action", choices=["stats", "clear-expired", "clear"])

    return parser


def main(argv: list[str] | None = None) -> None:
    """
    CLI entry point. Parses args, dispatches to command handlers,
    and exits via SystemExit with a return code.
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")

    if args.command == "search":
        raise SystemExit(_cmd_search(args))
    if args.command == "meals":
        raise SystemExit(_cmd_meals(args))
    if args.command == "open":
        raise SystemExit(_cmd_open(args))
    if args.command == "hours":
        raise SystemExit(_cmd_hours(args))
    if args.command == "cache":
        raise SystemExit(_cmd_cache(args))

    raise SystemExit(2)
