"""
HTTP acquisition.

- Fetches the HTML menu / opening-hours pages of scraped canteens
- Fetches JSON documents from the OpenMensa API
- Wraps every transport problem into FetchError so callers handle one type
"""

from __future__ import annotations

import logging
from typing import Any, Optional

import requests

from mensafeed.config import (
    MENU_URL_TEMPLATE,
    OPENING_HOURS_URL_TEMPLATE,
    USER_AGENT,
)
from mensafeed.errors import FetchError

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# URLs
# ---------------------------------------------------------------------------


def menu_url(slug: str) -> str:
    """
    Build the weekly menu URL of one canteen.

    Example: 'academica' -> https://www.studierendenwerk-aachen.de/speiseplaene/academica-w.html
    """
    return MENU_URL_TEMPLATE.format(slug=slug)


def opening_hours_url(slug: str) -> str:
    return OPENING_HOURS_URL_TEMPLATE.format(slug=slug)


# ---------------------------------------------------------------------------
# Core logic
# ---------------------------------------------------------------------------


def _get(
    url: str,
    session: Optional[requests.Session] = None,
    timeout: Optional[float] = None,
    params: Optional[dict] = None,
) -> requests.Response:
    http = session if session is not None else requests
    try:
        resp = http.get(url, params=params, timeout=timeout, headers={"User-Agent": USER_AGENT})
        resp.raise_for_status()
    except requests.RequestException as e:
        raise FetchError(url, str(e)) from e
    return resp


def fetch_html(
    url: str,
    session: Optional[requests.Session] = None,
    timeout: Optional[float] = None,
) -> str:
    """
    Download one HTML document and return its text.

    Raises FetchError on connection problems and non-2xx responses.
    """
    logger.debug("FETCH %s", url)
    resp = _get(url, session=session, timeout=timeout)
    return resp.text


def fetch_json(
    url: str,
    session: Optional[requests.Session] = None,
    timeout: Optional[float] = None,
    params: Optional[dict] = None,
) -> Any:
    """
    Download and decode one JSON document.

    A body that is not valid JSON is reported as FetchError as well; for the
    caller it is just another broken response.
    """
    logger.debug("FETCH %s params=%s", url, params)
    resp = _get(url, session=session, timeout=timeout, params=params)
    try:
        return resp.json()
    except ValueError as e:
        raise FetchError(url, f"invalid JSON: {e}") from e
