import json
import logging
import tempfile
import unittest
from pathlib import Path

from s3_gallery.settings import AppSettings, SettingsStorage, resolve_log_level


class SettingsStorageTests(unittest.TestCase):
    def test_load_returns_defaults_when_missing(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "settings.json"
            storage = SettingsStorage(path)

            settings = storage.load()

            self.assertEqual(AppSettings(), settings)
            self.assertEqual(20, settings.page_size)
            self.assertFalse(settings.deduplicate_keys)

    def test_load_sanitizes_invalid_values(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "settings.json"
            payload = {
                "page_size": "nope",
                "deduplicate_keys": "yes",
                "confirm_delete": 0,
                "remember_last_connection": None,
                "last_connection": 123,
            }
            path.write_text(json.dumps(payload), encoding="utf-8")
            storage = SettingsStorage(path)

            settings = storage.load()

            self.assertEqual(AppSettings(), settings)

    def test_load_rejects_non_positive_page_size(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "settings.json"
            path.write_text(json.dumps({"page_size": -3}), encoding="utf-8")

            settings = SettingsStorage(path).load()

            self.assertEqual(AppSettings.page_size, settings.page_size)

    def test_load_returns_defaults_for_non_object_payload(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "settings.json"
            path.write_text("[1, 2]", encoding="utf-8")

            self.assertEqual(AppSettings(), SettingsStorage(path).load())

    def test_save_and_load_roundtrip(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "settings.json"
            storage = SettingsStorage(path)
            settings = AppSettings(
                page_size=50,
                deduplicate_keys=True,
                confirm_delete=False,
                remember_last_connection=False,
                last_connection="alpha",
            )

            storage.save(settings)

            self.assertEqual(settings, storage.load())

    def test_save_sanitizes_minimum_values(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "settings.json"
            storage = SettingsStorage(path)

            storage.save(AppSettings(page_size=0, last_connection="conn"))

            saved = json.loads(path.read_text(encoding="utf-8"))
            self.assertEqual(1, saved["page_size"])
            self.assertEqual("conn", saved["last_connection"])


class ResolveLogLevelTests(unittest.TestCase):
    def test_known_names_are_case_insensitive(self):
        self.assertEqual(logging.DEBUG, resolve_log_level("debug"))
        self.assertEqual(logging.ERROR, resolve_log_level(" ERROR "))

    def test_unknown_or_missing_names_fall_back(self):
        self.assertEqual(logging.WARNING, resolve_log_level("VERBOSE"))
        self.assertEqual(logging.WARNING, resolve_log_level(None))
        self.assertEqual(logging.WARNING, resolve_log_level(""))
        self.assertEqual(logging.WARNING, resolve_log_level("raiseExceptions"))
        self.assertEqual(logging.INFO, resolve_log_level("basic_format", default=logging.INFO))


if __name__ == "__main__":
    unittest.main()
