"""mensafeed – canteen meal plans and opening hours from the OpenMensa API and scraped pages."""

__version__ = "0.1.0"

from mensafeed.cache import PersistentCache
from mensafeed.cache_manager import MensaCacheManager
from mensafeed.canteen import ApiCanteen, BaseCanteen, ScrapedCanteen
from mensafeed.model import Canteen, FetchResult, Meal, OpeningTimes, Prices, day_key
from mensafeed.registry import CanteenRegistry

__all__ = [
    "ApiCanteen",
    "BaseCanteen",
    "Canteen",
    "CanteenRegistry",
    "FetchResult",
    "Meal",
    "MensaCacheManager",
    "OpeningTimes",
    "PersistentCache",
    "Prices",
    "ScrapedCanteen",
    "day_key",
]
