"""
Configuration.

Defaults live in module constants; `Settings.from_env()` lets the embedding
application or a shell override them:

    MENSAFEED_BASE_URL   OpenMensa API root
    MENSAFEED_CACHE_DIR  directory of the persistent cache
    MENSAFEED_TIMEOUT    HTTP timeout in seconds
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Mapping, Optional, Tuple

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Defaults
# ---------------------------------------------------------------------------

DEFAULT_BASE_URL = "https://openmensa.org/api/v2"
# no timeout unless the embedding application sets one
DEFAULT_TIMEOUT: Optional[float] = None
USER_AGENT = "mensafeed/0.1 (python-requests)"

MENU_URL_TEMPLATE = "https://www.studierendenwerk-aachen.de/speiseplaene/{slug}-w.html"
OPENING_HOURS_URL_TEMPLATE = "https://www.studierendenwerk-aachen.de/de/Gastronomie/{slug}.html"

# canteen id -> (menu slug, opening-hours slug)
SCRAPED_CANTEENS: Dict[int, Tuple[str, str]] = {
    187: ("academica", "mensa-academica-wochenplan"),
    96: ("vita", "mensa-vita-wochenplan"),
    97: ("bayernallee", "mensa-bayernallee-wochenplan"),
    95: ("ahornstrasse", "mensa-ahornstrasse-wochenplan"),
    94: ("templergraben", "bistro-templergraben-wochenplan"),
}


def default_cache_dir() -> Path:
    """
    Return the default cache directory (~/.mensa4j/cache).

    A function instead of a constant so tests can patch it and so the home
    directory is resolved lazily.
    """
    try:
        home = Path.home()
    except RuntimeError:
        # no resolvable home directory (some containers)
        home = Path.cwd()
    return home / ".mensa4j" / "cache"


def _env_float(env: Mapping[str, str], name: str, default: Optional[float]) -> Optional[float]:
    raw = env.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError:
        logger.warning("Ignoring invalid %s=%r, using %s", name, raw, default)
        return default


@dataclass(frozen=True)
class Settings:
    base_url: str = DEFAULT_BASE_URL
    cache_dir: Path = field(default_factory=default_cache_dir)
    timeout: Optional[float] = DEFAULT_TIMEOUT

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "Settings":
        env = os.environ if env is None else env
        cache_dir = env.get("MENSAFEED_CACHE_DIR")
        return cls(
            base_url=(env.get("MENSAFEED_BASE_URL") or DEFAULT_BASE_URL).rstrip("/"),
            cache_dir=Path(cache_dir).expanduser() if cache_dir else default_cache_dir(),
            timeout=_env_float(env, "MENSAFEED_TIMEOUT", DEFAULT_TIMEOUT),
        )
