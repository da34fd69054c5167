from __future__ import annotations

import os
from dataclasses import dataclass

from .database import LifeReplayDatabase

AI_API_KEY_SETTING_KEY = "ai_api_key"
AI_MODEL_SETTING_KEY = "ai_model"
AI_TIMEOUT_SETTING_KEY = "ai_timeout_seconds"
GRAPH_MODE_SETTING_KEY = "graph_mode"
DASHBOARD_RANGE_SETTING_KEY = "dashboard_range"
DASHBOARD_COMPARE_SETTING_KEY = "dashboard_compare"

API_KEY_ENV_VARS = ("LIFEREPLAY_GEMINI_API_KEY", "GEMINI_API_KEY")

DEFAULT_AI_MODEL = "gemini-1.5-flash"
DEFAULT_AI_TIMEOUT = 60.0
DEFAULT_GRAPH_MODE = "hierarchy"
DEFAULT_DASHBOARD_RANGE = "7d"


@dataclass(frozen=True)
class AISettings:
    api_key: str
    model: str
    timeout: float


def load_ai_settings(db: LifeReplayDatabase) -> AISettings:
    api_key = ""
    for name in API_KEY_ENV_VARS:
        api_key = os.environ.get(name, "").strip()
        if api_key:
            break
    if not api_key:
        api_key = (db.get_setting(AI_API_KEY_SETTING_KEY, "") or "").strip()

    model = (db.get_setting(AI_MODEL_SETTING_KEY, DEFAULT_AI_MODEL) or DEFAULT_AI_MODEL).strip()
    raw_timeout = db.get_setting(AI_TIMEOUT_SETTING_KEY)
    try:
        timeout = float(raw_timeout) if raw_timeout is not None else DEFAULT_AI_TIMEOUT
    except ValueError:
        timeout = DEFAULT_AI_TIMEOUT
    if timeout <= 0:
        timeout = DEFAULT_AI_TIMEOUT
    return AISettings(api_key=api_key, model=model or DEFAULT_AI_MODEL, timeout=timeout)
