"""
Central data model definitions used across the project.

This module defines the canonical structure of canteens, meals and opening
times so that:
- the JSON API client, the HTML scraper and the cache share the same objects
- every date is turned into the same "day key" (YYYY-MM-DD)
- cached payloads and API payloads decode through one code path
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Dict, List, Optional, Tuple, Union

DateLike = Union[date, datetime, str, None]

WEEKDAYS = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")


def day_key(value: DateLike = None) -> str:
    """
    Convert a date representation into the canonical 'YYYY-MM-DD' key.

    None means today. Strings must already be ISO dates; they are
    re-formatted so that e.g. '2026-2-3' is rejected instead of silently
    producing a second key for the same day.
    """
    if value is None:
        return date.today().isoformat()
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, str):
        return datetime.strptime(value.strip(), "%Y-%m-%d").date().isoformat()
    raise TypeError(f"Unsupported date value: {value!r}")


def weekday_of(value: DateLike = None) -> int:
    """Return the weekday index (Mon=0 .. Sun=6) of a date-like value."""
    return date.fromisoformat(day_key(value)).weekday()


def _optional_price(value: Any) -> Optional[float]:
    if value is None or value == "":
        return None
    return float(value)


@dataclass(frozen=True)
class Prices:
    """
    Up to four price tiers of one meal.

    Tiers the source does not publish stay None.
    """

    students: Optional[float] = None
    employees: Optional[float] = None
    pupils: Optional[float] = None
    others: Optional[float] = None

    def to_dict(self) -> Dict[str, Optional[float]]:
        return {
            "students": self.students,
            "employees": self.employees,
            "pupils": self.pupils,
            "others": self.others,
        }

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "Prices":
        if not data:
            return cls()
        if not isinstance(data, dict):
            raise TypeError(f"prices must be an object, got {type(data).__name__}")
        return cls(
            students=_optional_price(data.get("students")),
            employees=_optional_price(data.get("employees")),
            pupils=_optional_price(data.get("pupils")),
            others=_optional_price(data.get("others")),
        )


@dataclass(frozen=True)
class Meal:
    """
    Represents one dish on one day.

    `tags` holds free-form markers (allergens, "vegan", css classes of the
    scraped row, OpenMensa "notes"); order is irrelevant.
    """

    name: str
    category: str
    tags: frozenset = field(default_factory=frozenset)
    prices: Prices = field(default_factory=Prices)

    def __post_init__(self) -> None:
        # accept any iterable of tags but always store a frozenset
        if not isinstance(self.tags, frozenset):
            object.__setattr__(self, "tags", frozenset(self.tags))

    def to_dict(self) -> Dict[str, Any]:
        """Serialize in the OpenMensa v2 meal shape."""
        return {
            "name": self.name,
            "category": self.category,
            "notes": sorted(self.tags),
            "prices": self.prices.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Meal":
        """Raises KeyError/TypeError/ValueError if `data` is not a meal object."""
        if not isinstance(data, dict):
            raise TypeError(f"meal must be an object, got {type(data).__name__}")
        notes = data.get("notes") or []
        if not isinstance(notes, list):
            raise TypeError(f"notes must be a list, got {type(notes).__name__}")
        return cls(
            name=str(data["name"]),
            category=str(data.get("category") or ""),
            tags=frozenset(str(t) for t in notes),
            prices=Prices.from_dict(data.get("prices")),
        )


def meals_to_payload(meals: List[Meal]) -> List[Dict[str, Any]]:
    return [m.to_dict() for m in meals]


def meals_from_payload(payload: Any) -> List[Meal]:
    """Decode a JSON list of meals; raises TypeError/KeyError/ValueError on bad data."""
    if not isinstance(payload, list):
        raise TypeError(f"Expected a list of meals, got {type(payload).__name__}")
    return [Meal.from_dict(item) for item in payload]


@dataclass(frozen=True)
class OpeningTimes:
    """Open and close time of one weekday as fractional hours (8:30 -> 8.5)."""

    start: float
    end: float

    @property
    def is_closed(self) -> bool:
        return self.start == 0 and self.end == 0

    def as_tuple(self) -> Tuple[float, float]:
        return (self.start, self.end)


CLOSED = OpeningTimes(0.0, 0.0)


@dataclass(frozen=True)
class Canteen:
    """
    Identity and location of one physical canteen as published by the API.
    """

    id: int
    name: str
    city: str
    address: str
    coordinates: Optional[Tuple[float, float]] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Canteen":
        coords = data.get("coordinates")
        coordinates: Optional[Tuple[float, float]] = None
        if isinstance(coords, (list, tuple)) and len(coords) == 2:
            coordinates = (float(coords[0]), float(coords[1]))
        return cls(
            id=int(data["id"]),
            name=str(data.get("name") or ""),
            city=str(data.get("city") or ""),
            address=str(data.get("address") or ""),
            coordinates=coordinates,
        )


@dataclass
class FetchResult:
    """
    Outcome of one per-date meal query.

    `meals` is empty both when the canteen serves nothing that day and when
    the source failed; `error` tells the two apart.
    """

    meals: List[Meal] = field(default_factory=list)
    error: Optional[Exception] = None

    @property
    def ok(self) -> bool:
        return self.error is None
