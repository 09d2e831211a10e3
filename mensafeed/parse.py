"""
Parsing (HTML -> structured records).

- Reads one weekly menu page and returns {day key: [Meal, ...]}
- Reads one opening-hours page and returns {weekday: OpeningTimes}

Rules for the menu page:
- The i-th date heading belongs to the i-th day panel (no explicit link in
  the markup). Different counts mean the page cannot be trusted at all.
- A broken row is skipped, the rest of the day survives.
- A day without a menu table is dropped completely; the extras table of
  that day is not worth anything on its own.

Rules for the opening-hours page:
- Only the first non-blank schedule block is read. Later blocks (e.g. the
  semester-break schedule) are ignored on purpose.
"""

from __future__ import annotations

import logging
import re
from datetime import datetime
from typing import Dict, List, Optional

from bs4 import BeautifulSoup, Comment, NavigableString, Tag

from mensafeed.errors import MenuParseError, OpeningHoursParseError
from mensafeed.model import OpeningTimes, Meal, Prices

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Markup constants
# ---------------------------------------------------------------------------

HEADING_SELECTOR = "h3.default-headline, h3.active-headline"
PANEL_SELECTOR = "div.default-panel, div.active-panel"

# css classes every menu row carries; everything else on a row is a tag
COSMETIC_CLASSES = frozenset({"bg-color", "even", "odd"})

SCHEDULE_BLOCK_SELECTOR = "div.opening-hours"

DATE_RE = re.compile(r"\d{1,2}\.\d{1,2}\.\d{4}")

# Mo Di Mi Do Fr Sa So -> Mon=0 .. Sun=6 (same numbering as date.weekday())
DAY_ABBREVIATIONS: Dict[str, int] = {
    "Mo": 0,
    "Di": 1,
    "Mi": 2,
    "Do": 3,
    "Fr": 4,
    "Sa": 5,
    "So": 6,
}

_DAY = "(?:" + "|".join(DAY_ABBREVIATIONS) + ")"
_DASH = "[-–—]"

# "Mo.", "Mo.–Fr.", "Mo. - Fr.:" followed by "08:00–18:00" (optionally "Uhr")
SCHEDULE_RE = re.compile(
    rf"\b(?P<first>{_DAY})\.?"
    rf"(?:\s*{_DASH}\s*(?P<last>{_DAY})\.?)?"
    rf":?\s*(?P<open>\d{{1,2}}:\d{{2}})\s*(?:Uhr\s*)?{_DASH}\s*(?P<close>\d{{1,2}}:\d{{2}})"
)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _clean(text: str) -> str:
    # collapse runs of whitespace (the pages are full of line breaks and nbsp)
    return re.sub(r"\s+", " ", text).strip()


def _own_text_nodes(tag: Tag) -> List[str]:
    """
    Return the non-blank text nodes that are direct children of `tag`.

    Allergen markers and separators live in child elements and are skipped.
    """
    out: List[str] = []
    for child in tag.children:
        if isinstance(child, NavigableString) and not isinstance(child, Comment):
            text = _clean(str(child))
            if text:
                out.append(text)
    return out


def parse_price(text: Optional[str]) -> Optional[float]:
    """
    Convert a price label like '3,50 €' into 3.5.

    Returns None if the text holds no number.
    """
    if text is None:
        return None
    parts = _clean(text).split(" ")
    if not parts or not parts[0]:
        return None
    try:
        return float(parts[0].replace(",", "."))
    except ValueError:
        return None


def _heading_day_key(heading: Tag) -> str:
    """
    Extract the date of a day heading ('Montag, 19.02.2026') as day key.

    Raises ValueError if the heading has no valid date.
    """
    text = _clean(heading.get_text(" "))
    m = DATE_RE.search(text)
    if not m:
        raise ValueError(f"no date in heading {text!r}")
    return datetime.strptime(m.group(0), "%d.%m.%Y").date().isoformat()


# ---------------------------------------------------------------------------
# Menu parsing (one row, one panel, one page)
# ---------------------------------------------------------------------------


def parse_meal_row(row: Tag) -> Optional[Meal]:
    """
    Parse one row of the main menu table into a Meal.

    Returns None if the row lacks the category or description element.
    """
    tags = [c for c in row.get("class", []) if c not in COSMETIC_CLASSES]

    wrapper = row.select_one("td.menue-wrapper")
    if wrapper is None:
        return None

    category_el = wrapper.select_one("span.menue-category")
    desc_el = wrapper.select_one("span.menue-desc span.expand-nutr")
    if category_el is None or desc_el is None:
        return None

    category = _clean(category_el.get_text(" "))
    name = " ".join(_own_text_nodes(desc_el))
    if not category or not name:
        return None

    price_el = wrapper.select_one("span.menue-price")
    # no price element means the dish is free (e.g. a salad bar add-on)
    price = 0.0 if price_el is None else parse_price(price_el.get_text(" "))

    return Meal(name=name, category=category, tags=frozenset(tags), prices=Prices(students=price))


def parse_extras(table: Tag) -> List[Meal]:
    """
    Parse the side-dish table of one day.

    Every description line of a category block becomes one Meal. Side dishes
    have no price and no tags.
    """
    meals: List[Meal] = []
    no_price = Prices()
    for block in table.select("td.menue-wrapper"):
        category_el = block.select_one("span.menue-category")
        desc_el = block.select_one("span.menue-desc")
        if category_el is None or desc_el is None:
            logger.warning("Skipping extras block without category/description")
            continue
        category = _clean(category_el.get_text(" "))
        if not category:
            continue
        for line in _own_text_nodes(desc_el):
            meals.append(Meal(name=line, category=category, tags=frozenset(), prices=no_price))
    return meals


def parse_day_panel(panel: Tag) -> List[Meal]:
    """
    Parse one day panel: priced dishes first, then side dishes.

    Raises MenuParseError if the panel has no menu table.
    """
    table = panel.select_one("table.menues")
    if table is None:
        raise MenuParseError("day panel has no menu table")

    body = table.find("tbody") or table
    meals: List[Meal] = []
    for row in body.find_all("tr", recursive=False):
        meal = parse_meal_row(row)
        if meal is None:
            logger.warning("Skipping malformed menu row: %s", _clean(row.get_text(" "))[:80])
            continue
        meals.append(meal)

    extras = panel.select_one("table.extras")
    if extras is not None:
        meals.extend(parse_extras(extras))

    return meals


def parse_menu_html(html: str) -> Dict[str, List[Meal]]:
    """
    Parse a weekly menu page and return {day key: meals}.

    Raises MenuParseError if headings and panels cannot be paired.
    """
    soup = BeautifulSoup(html, "html.parser")

    headings = soup.select(HEADING_SELECTOR)
    panels = soup.select(PANEL_SELECTOR)
    if len(headings) != len(panels):
        raise MenuParseError(
            f"found {len(headings)} date headings but {len(panels)} day panels"
        )

    days: Dict[str, List[Meal]] = {}
    for heading, panel in zip(headings, panels):
        try:
            key = _heading_day_key(heading)
        except ValueError as e:
            logger.warning("Skipping day panel: %s", e)
            continue

        try:
            days[key] = parse_day_panel(panel)
        except MenuParseError as e:
            logger.warning("Dropping day %s: %s", key, e)

    logger.debug("Parsed %d days from menu page", len(days))
    return days


# ---------------------------------------------------------------------------
# Opening hours parsing
# ---------------------------------------------------------------------------


def _time_to_hours(hhmm: str) -> float:
    """
    Convert 'HH:MM' to fractional hours ('09:30' -> 9.5).
    Raises ValueError for invalid values.
    """
    parts = hhmm.strip().split(":")
    if len(parts) != 2:
        raise ValueError(f"Invalid time format: {hhmm!r}")
    h = int(parts[0])
    m = int(parts[1])
    if not (0 <= h <= 23 and 0 <= m <= 59):
        raise ValueError(f"Invalid time value: {hhmm!r}")
    return h + m / 60


def _day_range(first: int, last: int) -> List[int]:
    # walk forward through the week, wrapping Sunday -> Monday; at most 7 steps
    days = [first]
    day = first
    while day != last:
        day = (day + 1) % 7
        days.append(day)
    return days


def parse_schedule_text(text: str) -> Dict[int, OpeningTimes]:
    """
    Parse a free-text schedule such as 'Mo.–Fr. 11:30–14:30 Sa. 11:30–14:00'.

    Returns {weekday: OpeningTimes}; weekdays that are never mentioned are
    absent (closed). A later match for the same weekday wins.
    """
    table: Dict[int, OpeningTimes] = {}
    for m in SCHEDULE_RE.finditer(text):
        try:
            times = OpeningTimes(_time_to_hours(m.group("open")), _time_to_hours(m.group("close")))
        except ValueError as e:
            logger.warning("Ignoring schedule entry %r: %s", m.group(0), e)
            continue

        first = DAY_ABBREVIATIONS[m.group("first")]
        last_abbr = m.group("last")
        last = DAY_ABBREVIATIONS[last_abbr] if last_abbr else first

        for day in _day_range(first, last):
            table[day] = times
    return table


def parse_opening_hours_html(html: str) -> Dict[int, OpeningTimes]:
    """
    Parse an opening-hours page into a weekly table.

    Only the first non-blank schedule block counts. Raises
    OpeningHoursParseError if the page has no schedule block at all.
    """
    soup = BeautifulSoup(html, "html.parser")

    blocks = soup.select(SCHEDULE_BLOCK_SELECTOR)
    if not blocks:
        raise OpeningHoursParseError("page has no opening-hours block")

    for block in blocks:
        text = _clean(block.get_text(" "))
        if not text:
            continue
        table = parse_schedule_text(text)
        logger.debug("Parsed opening hours for %d weekdays", len(table))
        return table

    return {}
