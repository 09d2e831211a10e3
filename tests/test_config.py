import unittest
from pathlib import Path
from unittest import mock

from mensafeed.config import DEFAULT_BASE_URL, SCRAPED_CANTEENS, USER_AGENT, Settings, default_cache_dir
from mensafeed.scrape import fetch_html


class TestSettings(unittest.TestCase):
    def test_defaults(self) -> None:
        s = Settings.from_env({})
        self.assertEqual(s.base_url, DEFAULT_BASE_URL)
        self.assertIsNone(s.timeout)
        self.assertEqual(s.cache_dir.parts[-2:], (".mensa4j", "cache"))

    def test_environment_overrides(self) -> None:
        s = Settings.from_env(
            {
                "MENSAFEED_BASE_URL": "https://api.example/v2/",
                "MENSAFEED_CACHE_DIR": "/tmp/mensa-cache",
                "MENSAFEED_TIMEOUT": "12.5",
            }
        )
        self.assertEqual(s.base_url, "https://api.example/v2")
        self.assertEqual(s.cache_dir, Path("/tmp/mensa-cache"))
        self.assertEqual(s.timeout, 12.5)

    def test_invalid_timeout_falls_back(self) -> None:
        self.assertIsNone(Settings.from_env({"MENSAFEED_TIMEOUT": "soon"}).timeout)

    def test_every_scraped_canteen_has_two_slugs(self) -> None:
        self.assertIn(187, SCRAPED_CANTEENS)
        for menu_slug, hours_slug in SCRAPED_CANTEENS.values():
            self.assertTrue(menu_slug)
            self.assertTrue(hours_slug)
            self.assertNotEqual(menu_slug, hours_slug)


class TestDefaults(unittest.TestCase):
    def test_default_cache_dir_is_under_home(self) -> None:
        self.assertEqual(default_cache_dir(), Path.home() / ".mensa4j" / "cache")

    def test_requests_carry_user_agent(self) -> None:
        session = mock.Mock()
        session.get.return_value.text = "<html></html>"
        fetch_html("https://example.org/menu.html", session=session)
        _, kwargs = session.get.call_args
        self.assertEqual(kwargs["headers"], {"User-Agent": USER_AGENT})


if __name__ == "__main__":
    unittest.main()
