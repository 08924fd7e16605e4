"""Tests for Settings."""

import unittest
from unittest.mock import patch

import feed_fixtures  # noqa: F401  (puts src on sys.path)

from subwaytrack.config import Settings
from subwaytrack.exceptions import ConfigError
from subwaytrack.station_reference import MTA_STATIONS_URL


class TestSettings(unittest.TestCase):
    """Test reading settings from the environment."""

    def test_defaults(self):
        settings = Settings.from_env({})

        self.assertIsNone(settings.api_key)
        self.assertEqual(settings.feed_timeout, 10)
        self.assertEqual(settings.cache_ttl, 30)
        self.assertEqual(settings.stations_csv, MTA_STATIONS_URL)
        self.assertEqual(settings.log_level, "INFO")

    def test_overrides(self):
        settings = Settings.from_env({
            "MTA_API_KEY": "secret",
            "SUBWAYTRACK_FEED_TIMEOUT": "5",
            "SUBWAYTRACK_CACHE_TTL": "0",
            "SUBWAYTRACK_STATIONS_CSV": "/data/Stations.csv",
            "SUBWAYTRACK_LOG_LEVEL": "debug",
        })

        self.assertEqual(settings.api_key, "secret")
        self.assertEqual(settings.feed_timeout, 5.0)
        self.assertEqual(settings.cache_ttl, 0.0)
        self.assertEqual(settings.stations_csv, "/data/Stations.csv")
        self.assertEqual(settings.log_level, "DEBUG")

    def test_blank_api_key_is_unset(self):
        self.assertIsNone(Settings.from_env({"MTA_API_KEY": ""}).api_key)

    def test_invalid_numbers(self):
        for env in (
            {"SUBWAYTRACK_FEED_TIMEOUT": "soon"},
            {"SUBWAYTRACK_FEED_TIMEOUT": "0"},
            {"SUBWAYTRACK_CACHE_TTL": "-1"},
        ):
            with self.assertRaises(ConfigError):
                Settings.from_env(env)

    def test_invalid_log_level(self):
        with self.assertRaises(ValueError):
            Settings.from_env({"SUBWAYTRACK_LOG_LEVEL": "chatty"})

    @patch("subwaytrack.config.load_dotenv")
    def test_reads_os_environ(self, mock_load_dotenv):
        with patch.dict("os.environ", {"MTA_API_KEY": "from-env"}):
            settings = Settings.from_env()

        mock_load_dotenv.assert_called_once()
        self.assertEqual(settings.api_key, "from-env")


if __name__ == "__main__":
    unittest.main()
