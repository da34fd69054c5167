from __future__ import annotations

import os
import tempfile
import unittest
from pathlib import Path
from unittest import mock

from lifereplay.config import (
    AI_API_KEY_SETTING_KEY,
    AI_MODEL_SETTING_KEY,
    AI_TIMEOUT_SETTING_KEY,
    DEFAULT_AI_MODEL,
    DEFAULT_AI_TIMEOUT,
    load_ai_settings,
)
from lifereplay.database import LifeReplayDatabase
from lifereplay.paths import DATA_DIR_ENV, data_directory, database_path


class ConfigTests(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.db = LifeReplayDatabase(Path(self._tmp.name) / "lifereplay.sqlite3")
        env = {k: v for k, v in os.environ.items() if k not in ("LIFEREPLAY_GEMINI_API_KEY", "GEMINI_API_KEY")}
        patcher = mock.patch.dict(os.environ, env, clear=True)
        patcher.start()
        self.addCleanup(patcher.stop)

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def test_defaults(self) -> None:
        settings = load_ai_settings(self.db)
        self.assertEqual(settings.api_key, "")
        self.assertEqual(settings.model, DEFAULT_AI_MODEL)
        self.assertEqual(settings.timeout, DEFAULT_AI_TIMEOUT)

    def test_stored_settings(self) -> None:
        self.db.set_setting(AI_API_KEY_SETTING_KEY, " stored-key ")
        self.db.set_setting(AI_MODEL_SETTING_KEY, "gemini-2.0-flash")
        self.db.set_setting(AI_TIMEOUT_SETTING_KEY, "15")
        settings = load_ai_settings(self.db)
        self.assertEqual(settings.api_key, "stored-key")
        self.assertEqual(settings.model, "gemini-2.0-flash")
        self.assertEqual(settings.timeout, 15.0)

    def test_environment_key_wins(self) -> None:
        self.db.set_setting(AI_API_KEY_SETTING_KEY, "stored-key")
        os.environ["GEMINI_API_KEY"] = "env-key"
        self.assertEqual(load_ai_settings(self.db).api_key, "env-key")
        os.environ["LIFEREPLAY_GEMINI_API_KEY"] = "app-key"
        self.assertEqual(load_ai_settings(self.db).api_key, "app-key")

    def test_bad_timeout_falls_back(self) -> None:
        for raw in ("soon", "0", "-3"):
            self.db.set_setting(AI_TIMEOUT_SETTING_KEY, raw)
            self.assertEqual(load_ai_settings(self.db).timeout, DEFAULT_AI_TIMEOUT)

    def test_data_directory_override(self) -> None:
        os.environ[DATA_DIR_ENV] = self._tmp.name
        self.assertEqual(data_directory(), Path(self._tmp.name))
        self.assertEqual(database_path().parent, Path(self._tmp.name))


if __name__ == "__main__":
    unittest.main()
