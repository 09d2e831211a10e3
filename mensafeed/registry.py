"""
Canteen registry.

Holds the canteens known to the application and answers meal / opening
queries through the persistent cache:

    cache hit  -> cached value
    cache miss -> canteen (API or scrape) -> written back to the cache

The registry is created by the application and filled explicitly with
load() / add(); lookups never populate it behind the caller's back.
"""

from __future__ import annotations

import logging
from typing import Dict, List, Mapping, Optional, Tuple

import requests

from mensafeed.cache import PersistentCache
from mensafeed.cache_manager import MensaCacheManager
from mensafeed.canteen import ApiCanteen, BaseCanteen, ScrapedCanteen
from mensafeed.config import SCRAPED_CANTEENS, Settings
from mensafeed.errors import FetchError, MensaError
from mensafeed.model import Canteen, DateLike, Meal
from mensafeed.scrape import fetch_json

logger = logging.getLogger(__name__)


class CanteenRegistry:
    def __init__(
        self,
        settings: Optional[Settings] = None,
        cache_manager: Optional[MensaCacheManager] = None,
        session: Optional[requests.Session] = None,
        scraped_canteens: Optional[Mapping[int, Tuple[str, str]]] = None,
    ) -> None:
        self.settings = settings if settings is not None else Settings.from_env()
        if cache_manager is None:
            cache_manager = MensaCacheManager(PersistentCache(self.settings.cache_dir))
        self.cache_manager = cache_manager
        self.session = session if session is not None else requests.Session()
        self.scraped_canteens: Dict[int, Tuple[str, str]] = dict(
            SCRAPED_CANTEENS if scraped_canteens is None else scraped_canteens
        )
        self._canteens: Dict[int, BaseCanteen] = {}

    # -- loading ------------------------------------------------------------

    def _api_canteen(self, record: Canteen) -> ApiCanteen:
        return ApiCanteen(
            record,
            base_url=self.settings.base_url,
            session=self.session,
            timeout=self.settings.timeout,
        )

    def _fetch_page(self, page: int) -> List[Canteen]:
        data = fetch_json(
            f"{self.settings.base_url}/canteens/",
            session=self.session,
            timeout=self.settings.timeout,
            params={"page": page},
        )
        if not isinstance(data, list):
            raise FetchError(f"{self.settings.base_url}/canteens/", "expected a list of canteens")
        return [Canteen.from_dict(item) for item in data]

    def load(self) -> int:
        """
        (Re)load every canteen of the API, then install the scraped ones.

        Pages are read until an empty page. A failing page stops the walk
        and keeps what was read so far. Returns the number of canteens.
        """
        self._canteens.clear()
        page = 1
        while True:
            try:
                records = self._fetch_page(page)
            except (MensaError, KeyError, TypeError, ValueError) as e:
                logger.warning("Stopped loading canteens at page %d: %s", page, e)
                break
            if not records:
                break
            for record in records:
                self._canteens[record.id] = self._api_canteen(record)
            page += 1

        logger.info("Loaded %d canteens from %s", len(self._canteens), self.settings.base_url)
        self.install_scraped()
        return len(self._canteens)

    def install_scraped(self) -> None:
        """Put every configured scraped canteen over its API counterpart."""
        for canteen_id, (menu_slug, hours_slug) in self.scraped_canteens.items():
            try:
                self.add_scraped(canteen_id, menu_slug, hours_slug)
            except MensaError as e:
                # the API version (if any) stays in place
                logger.error("Could not scrape canteen %s (%s): %s", canteen_id, menu_slug, e)

    def add_scraped(self, canteen_id: int, menu_slug: str, opening_hours_slug: str) -> ScrapedCanteen:
        """Scrape one canteen and register it. Raises FetchError/ParseError."""
        current = self._canteens.get(canteen_id)
        original: Optional[Canteen] = None
        if isinstance(current, ApiCanteen):
            original = current.record
        elif isinstance(current, ScrapedCanteen):
            original = current.original

        canteen = ScrapedCanteen(
            canteen_id,
            menu_slug,
            opening_hours_slug,
            original=original,
            session=self.session,
            timeout=self.settings.timeout,
        )
        self._canteens[canteen_id] = canteen
        return canteen

    def add(self, canteen: BaseCanteen) -> None:
        self._canteens[canteen.id] = canteen

    # -- lookup -------------------------------------------------------------

    def get(self, canteen_id: int) -> Optional[BaseCanteen]:
        """
        Return a registered canteen, or ask the API for an unknown id.

        Canteens fetched this way are not registered.
        """
        if canteen_id in self._canteens:
            return self._canteens[canteen_id]
        try:
            data = fetch_json(
                f"{self.settings.base_url}/canteens/{canteen_id}",
                session=self.session,
                timeout=self.settings.timeout,
            )
            return self._api_canteen(Canteen.from_dict(data))
        except (FetchError, KeyError, TypeError, ValueError) as e:
            logger.warning("Unknown canteen %s: %s", canteen_id, e)
            return None

    def all(self) -> List[BaseCanteen]:
        return list(self._canteens.values())

    def search(self, text: str) -> List[BaseCanteen]:
        """Case-insensitive substring search on canteen names."""
        query = (text or "").strip().lower()
        if not query:
            return []
        return [c for c in self._canteens.values() if query in c.name.lower()]

    def __len__(self) -> int:
        return len(self._canteens)

    def __contains__(self, canteen_id: object) -> bool:
        return canteen_id in self._canteens

    # -- cached queries -----------------------------------------------------

    def meals(self, canteen_id: int, date: DateLike = None, bypass_cache: bool = False) -> List[Meal]:
        """
        Meals of one canteen on one day, empty if there are none or the
        source failed. Only non-empty successful answers are cached so a
        plan published later is still picked up.
        """
        if not bypass_cache:
            cached = self.cache_manager.get_cached_meals(canteen_id, date)
            if cached is not None:
                return cached

        canteen = self.get(canteen_id)
        if canteen is None:
            return []

        result = canteen.fetch_meals(date)
        if result.ok and result.meals:
            self.cache_manager.cache_meals(canteen_id, date, result.meals)
        return list(result.meals)

    def is_open(self, canteen_id: int, date: DateLike = None) -> bool:
        canteen = self.get(canteen_id)
        if canteen is None:
            return False

        if not isinstance(canteen, ApiCanteen):
            # scraped canteens are open exactly when they serve meals
            return bool(self.meals(canteen_id, date))

        cached = self.cache_manager.get_cached_opening_times(canteen_id, date)
        if cached is not None:
            return cached

        status = canteen.fetch_open_status(date)
        if status is None:
            return False
        self.cache_manager.cache_opening_times(canteen_id, date, status)
        return status
