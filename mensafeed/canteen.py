"""
Canteens.

Two kinds of canteen answer the same questions (meals of a day, open or
not, opening hours):

- ApiCanteen      reads the OpenMensa JSON API on every query
- ScrapedCanteen  scrapes the Studierendenwerk Aachen pages and keeps the
                  whole week in memory; it may wrap the ApiCanteen record of
                  the same id to borrow its name and address

Per-date queries never raise. Failures show up as FetchResult.error and an
empty meal list.
"""

from __future__ import annotations

import abc
import logging
from typing import Callable, Dict, List, Optional, Tuple

import requests

from mensafeed.config import DEFAULT_BASE_URL
from mensafeed.errors import FetchError, MensaError
from mensafeed.model import (
    CLOSED,
    Canteen,
    DateLike,
    FetchResult,
    Meal,
    OpeningTimes,
    day_key,
    meals_from_payload,
    weekday_of,
)
from mensafeed.parse import parse_menu_html, parse_opening_hours_html
from mensafeed.scrape import fetch_html, fetch_json, menu_url, opening_hours_url

logger = logging.getLogger(__name__)

# identity of a scraped canteen that is not known to the API
FALLBACK_NAME = "Unknown canteen"
FALLBACK_CITY = "Unknown city"
FALLBACK_ADDRESS = "Unknown address"
FALLBACK_COORDINATES: Tuple[float, float] = (0.0, 0.0)


class BaseCanteen(abc.ABC):
    """The questions every canteen can answer."""

    has_opening_hours = False

    @property
    @abc.abstractmethod
    def id(self) -> int: ...

    @property
    @abc.abstractmethod
    def name(self) -> str: ...

    @property
    @abc.abstractmethod
    def city(self) -> str: ...

    @property
    @abc.abstractmethod
    def address(self) -> str: ...

    @property
    @abc.abstractmethod
    def coordinates(self) -> Optional[Tuple[float, float]]: ...

    @abc.abstractmethod
    def fetch_meals(self, date: DateLike = None) -> FetchResult:
        """Meals of one day together with the error that emptied them, if any."""

    @abc.abstractmethod
    def is_open(self, date: DateLike = None) -> bool: ...

    @abc.abstractmethod
    def opening_times_for(self, date: DateLike = None) -> OpeningTimes: ...

    def get_meals(self, date: DateLike = None) -> List[Meal]:
        return list(self.fetch_meals(date).meals)

    @property
    def opening_times(self) -> Dict[int, OpeningTimes]:
        """Weekly table {weekday: OpeningTimes}; empty if none is published."""
        return {}

    def opening_time(self, date: DateLike = None) -> float:
        return self.opening_times_for(date).start

    def closing_time(self, date: DateLike = None) -> float:
        return self.opening_times_for(date).end

    def __repr__(self) -> str:
        return f"{type(self).__name__}(id={self.id}, name={self.name!r})"


# ---------------------------------------------------------------------------
# JSON API canteen
# ---------------------------------------------------------------------------


class ApiCanteen(BaseCanteen):
    def __init__(
        self,
        record: Canteen,
        base_url: str = DEFAULT_BASE_URL,
        session: Optional[requests.Session] = None,
        timeout: Optional[float] = None,
    ) -> None:
        self.record = record
        self._base_url = base_url.rstrip("/")
        self._session = session
        self._timeout = timeout

    @property
    def id(self) -> int:
        return self.record.id

    @property
    def name(self) -> str:
        return self.record.name

    @property
    def city(self) -> str:
        return self.record.city

    @property
    def address(self) -> str:
        return self.record.address

    @property
    def coordinates(self) -> Optional[Tuple[float, float]]:
        return self.record.coordinates

    def _day_url(self, key: str) -> str:
        return f"{self._base_url}/canteens/{self.id}/days/{key}/"

    def fetch_meals(self, date: DateLike = None) -> FetchResult:
        url = self._day_url(day_key(date)) + "meals/"
        try:
            payload = fetch_json(url, session=self._session, timeout=self._timeout)
            return FetchResult(meals=meals_from_payload(payload))
        except (FetchError, KeyError, TypeError, ValueError) as e:
            logger.warning("No meals for canteen %s: %s", self.id, e)
            return FetchResult(error=e)

    def fetch_open_status(self, date: DateLike = None) -> Optional[bool]:
        """True/False from the API, None if the API could not be asked."""
        url = self._day_url(day_key(date))
        try:
            data = fetch_json(url, session=self._session, timeout=self._timeout)
            return not bool(data["closed"])
        except (FetchError, KeyError, TypeError) as e:
            logger.warning("No opening status for canteen %s: %s", self.id, e)
            return None

    def is_open(self, date: DateLike = None) -> bool:
        return bool(self.fetch_open_status(date))

    def opening_times_for(self, date: DateLike = None) -> OpeningTimes:
        # the API publishes no opening hours
        return CLOSED


# ---------------------------------------------------------------------------
# Scraped canteen
# ---------------------------------------------------------------------------


class ScrapedCanteen(BaseCanteen):
    """
    Canteen whose data comes from HTML pages instead of the API.

    The constructor scrapes the opening hours and the menu once; if either
    fails the error propagates, there is no usable canteen without them.
    Afterwards a query for a day that is not in memory triggers one full
    re-scrape of the menu page.

    `is_open` means "has meals that day". The opening-hours table only
    answers opening_time / closing_time.
    """

    has_opening_hours = True

    def __init__(
        self,
        canteen_id: int,
        menu_slug: str,
        opening_hours_slug: str,
        original: Optional[Canteen] = None,
        session: Optional[requests.Session] = None,
        timeout: Optional[float] = None,
        fetch: Callable[..., str] = fetch_html,
    ) -> None:
        self._id = canteen_id
        self.menu_slug = menu_slug
        self.opening_hours_slug = opening_hours_slug
        self.original = original
        self._session = session
        self._timeout = timeout
        self._fetch = fetch

        self._opening_times: Dict[int, OpeningTimes] = self._scrape_opening_times()
        self._meals: Dict[str, List[Meal]] = self._scrape_menu()

    # -- identity -----------------------------------------------------------

    @property
    def id(self) -> int:
        return self._id

    @property
    def name(self) -> str:
        return self.original.name if self.original else FALLBACK_NAME

    @property
    def city(self) -> str:
        return self.original.city if self.original else FALLBACK_CITY

    @property
    def address(self) -> str:
        return self.original.address if self.original else FALLBACK_ADDRESS

    @property
    def coordinates(self) -> Optional[Tuple[float, float]]:
        return self.original.coordinates if self.original else FALLBACK_COORDINATES

    # -- scraping -----------------------------------------------------------

    def _download(self, url: str) -> str:
        return self._fetch(url, session=self._session, timeout=self._timeout)

    def _scrape_opening_times(self) -> Dict[int, OpeningTimes]:
        return parse_opening_hours_html(self._download(opening_hours_url(self.opening_hours_slug)))

    def _scrape_menu(self) -> Dict[str, List[Meal]]:
        days = parse_menu_html(self._download(menu_url(self.menu_slug)))
        logger.debug("Scraped %d days for canteen %s (%s)", len(days), self.id, self.menu_slug)
        return days

    def refresh_meals(self) -> None:
        """Re-scrape the menu page and replace every day held so far."""
        self._meals = self._scrape_menu()

    def refresh(self) -> None:
        """Re-scrape both pages. Raises FetchError/ParseError."""
        opening_times = self._scrape_opening_times()
        meals = self._scrape_menu()
        self._opening_times = opening_times
        self._meals = meals

    @property
    def opening_times(self) -> Dict[int, OpeningTimes]:
        return dict(self._opening_times)

    def days(self) -> List[str]:
        return sorted(self._meals)

    # -- queries ------------------------------------------------------------

    def fetch_meals(self, date: DateLike = None) -> FetchResult:
        key = day_key(date)
        if key in self._meals:
            return FetchResult(meals=list(self._meals[key]))

        try:
            self.refresh_meals()
        except MensaError as e:
            logger.warning("Re-scrape of canteen %s failed: %s", self.id, e)
            return FetchResult(error=e)

        # still missing: nothing served that day (weekend, holiday)
        return FetchResult(meals=list(self._meals.get(key, [])))

    def is_open(self, date: DateLike = None) -> bool:
        return bool(self.get_meals(date))

    def opening_times_for(self, date: DateLike = None) -> OpeningTimes:
        return self._opening_times.get(weekday_of(date), CLOSED)
