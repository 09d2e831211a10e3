"""
Unit tests for the scraped canteen adapter and the API canteen.

No network: the scraped canteen gets a fake fetch function, the API
canteen gets a patched fetch_json.
"""

import unittest
from unittest import mock

from mensafeed.canteen import FALLBACK_COORDINATES, FALLBACK_NAME, ApiCanteen, ScrapedCanteen
from mensafeed.errors import FetchError, MenuParseError
from mensafeed.model import CLOSED, Canteen, OpeningTimes
from mensafeed.scrape import menu_url, opening_hours_url
from tests.fixtures import MENU_HTML, MENU_HTML_NEXT, OPENING_HOURS_HTML

RECORD = Canteen(187, "Mensa Academica", "Aachen", "Pontwall 3, 52062 Aachen", (50.78, 6.08))


class FakeSite:
    """Serves the fixture pages and counts menu downloads."""

    def __init__(self, menus=None) -> None:
        self.menus = list(menus or [MENU_HTML])
        self.menu_fetches = 0
        self.fail = False

    def __call__(self, url, session=None, timeout=None) -> str:
        if self.fail:
            raise FetchError(url, "connection refused")
        if url == opening_hours_url("academica-hours"):
            return OPENING_HOURS_HTML
        if url == menu_url("academica"):
            page = self.menus[min(self.menu_fetches, len(self.menus) - 1)]
            self.menu_fetches += 1
            return page
        raise FetchError(url, "404 Not Found")


def make_canteen(site: FakeSite, original=None) -> ScrapedCanteen:
    return ScrapedCanteen(187, "academica", "academica-hours", original=original, fetch=site)


class TestScrapedCanteen(unittest.TestCase):
    def test_meals_of_scraped_day(self) -> None:
        site = FakeSite()
        canteen = make_canteen(site)
        meals = canteen.get_meals("2026-02-16")
        self.assertEqual(len(meals), 3)
        self.assertTrue(canteen.is_open("2026-02-16"))
        self.assertEqual(site.menu_fetches, 1)
        self.assertEqual(canteen.days(), ["2026-02-16", "2026-02-17"])

    def test_unknown_day_rescrapes_once_then_is_empty(self) -> None:
        site = FakeSite()
        canteen = make_canteen(site)
        result = canteen.fetch_meals("2026-02-21")
        self.assertTrue(result.ok)
        self.assertEqual(result.meals, [])
        self.assertEqual(site.menu_fetches, 2)
        self.assertFalse(canteen.is_open("2026-02-21"))

    def test_rescrape_replaces_all_days(self) -> None:
        site = FakeSite([MENU_HTML, MENU_HTML_NEXT])
        canteen = make_canteen(site)
        self.assertEqual(len(canteen.get_meals("2026-02-18")), 1)
        # the new page no longer has Monday
        self.assertEqual(canteen.days(), ["2026-02-18"])

    def test_failed_rescrape_is_an_empty_result_with_error(self) -> None:
        site = FakeSite()
        canteen = make_canteen(site)
        site.fail = True
        result = canteen.fetch_meals("2026-02-21")
        self.assertFalse(result.ok)
        self.assertIsInstance(result.error, FetchError)
        self.assertEqual(canteen.get_meals("2026-02-21"), [])
        # data already held is still served
        self.assertEqual(len(canteen.get_meals("2026-02-16")), 3)

    def test_returned_list_is_a_copy(self) -> None:
        canteen = make_canteen(FakeSite())
        canteen.get_meals("2026-02-16").clear()
        self.assertEqual(len(canteen.get_meals("2026-02-16")), 3)

    def test_opening_hours(self) -> None:
        canteen = make_canteen(FakeSite())
        # 2026-02-16 is a Monday, 2026-02-22 a Sunday
        self.assertEqual(canteen.opening_time("2026-02-16"), 11.5)
        self.assertEqual(canteen.closing_time("2026-02-16"), 14.5)
        self.assertEqual(canteen.opening_times_for("2026-02-21"), OpeningTimes(11.5, 14.0))
        self.assertEqual(canteen.opening_times_for("2026-02-22"), CLOSED)
        self.assertEqual(canteen.closing_time("2026-02-22"), 0.0)
        self.assertTrue(canteen.has_opening_hours)

    def test_standalone_identity(self) -> None:
        canteen = make_canteen(FakeSite())
        self.assertEqual(canteen.id, 187)
        self.assertEqual(canteen.name, FALLBACK_NAME)
        self.assertEqual(canteen.coordinates, FALLBACK_COORDINATES)

    def test_identity_of_wrapped_record(self) -> None:
        canteen = make_canteen(FakeSite(), original=RECORD)
        self.assertEqual(canteen.name, "Mensa Academica")
        self.assertEqual(canteen.city, "Aachen")
        self.assertEqual(canteen.address, RECORD.address)
        self.assertEqual(canteen.coordinates, (50.78, 6.08))

    def test_construction_failure_propagates(self) -> None:
        site = FakeSite()
        site.fail = True
        with self.assertRaises(FetchError):
            make_canteen(site)

    def test_construction_parse_failure_propagates(self) -> None:
        broken = MENU_HTML.replace('<h3 class="active-headline"><a href="#">Dienstag, 17.02.2026</a></h3>', "")
        with self.assertRaises(MenuParseError):
            make_canteen(FakeSite([broken]))

    def test_refresh_replaces_opening_times(self) -> None:
        canteen = make_canteen(FakeSite())
        canteen._opening_times = {}
        canteen.refresh()
        self.assertIn(0, canteen.opening_times)


class TestApiCanteen(unittest.TestCase):
    def setUp(self) -> None:
        self.canteen = ApiCanteen(RECORD, base_url="https://api.example/v2/")

    def test_meals(self) -> None:
        payload = [{"name": "Pasta", "category": "Vegetarisch", "notes": ["vegan"], "prices": {"students": 2.5}}]
        with mock.patch("mensafeed.canteen.fetch_json", return_value=payload) as fetch:
            meals = self.canteen.get_meals("2026-02-16")
        fetch.assert_called_once()
        self.assertEqual(fetch.call_args[0][0], "https://api.example/v2/canteens/187/days/2026-02-16/meals/")
        self.assertEqual(meals[0].name, "Pasta")
        self.assertEqual(meals[0].prices.students, 2.5)

    def test_fetch_error_is_empty_result(self) -> None:
        with mock.patch("mensafeed.canteen.fetch_json", side_effect=FetchError("u", "boom")):
            result = self.canteen.fetch_meals("2026-02-16")
        self.assertFalse(result.ok)
        self.assertEqual(result.meals, [])

    def test_malformed_payload_is_empty_result(self) -> None:
        with mock.patch("mensafeed.canteen.fetch_json", return_value={"error": "x"}):
            result = self.canteen.fetch_meals("2026-02-16")
        self.assertFalse(result.ok)

    def test_meal_with_malformed_prices_is_empty_result(self) -> None:
        for payload in ([{"name": "x", "prices": [2.5]}], [{"name": "x", "prices": "3,50"}], ["Pasta"]):
            with mock.patch("mensafeed.canteen.fetch_json", return_value=payload):
                result = self.canteen.fetch_meals("2026-02-16")
            self.assertFalse(result.ok)
            self.assertIsInstance(result.error, TypeError)
            self.assertEqual(result.meals, [])

    def test_is_open(self) -> None:
        with mock.patch("mensafeed.canteen.fetch_json", return_value={"date": "2026-02-16", "closed": False}):
            self.assertTrue(self.canteen.is_open("2026-02-16"))
        with mock.patch("mensafeed.canteen.fetch_json", return_value={"date": "2026-02-21", "closed": True}):
            self.assertFalse(self.canteen.is_open("2026-02-21"))
        with mock.patch("mensafeed.canteen.fetch_json", side_effect=FetchError("u", "404")):
            self.assertFalse(self.canteen.is_open("2026-02-22"))
            self.assertIsNone(self.canteen.fetch_open_status("2026-02-22"))

    def test_no_opening_hours(self) -> None:
        self.assertFalse(self.canteen.has_opening_hours)
        self.assertEqual(self.canteen.opening_times_for("2026-02-16"), CLOSED)
        self.assertEqual(self.canteen.opening_times, {})


if __name__ == "__main__":
    unittest.main()
