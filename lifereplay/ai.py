from __future__ import annotations

import json
from typing import Any, Protocol

import requests

from .models import NormalizedMoment
from .vocabulary import (
    ENTRY_TYPES,
    EXAMPLE_EMOTIONS,
    GROWTH_AREAS,
    MAX_PEOPLE,
    MAX_TOPICS,
    clamp_intensity,
)

GEMINI_ENDPOINT = "https://generativelanguage.googleapis.com/v1beta/models/{model}:generateContent"


class AIServiceError(RuntimeError):
    """Base class for failures of the moment normalizer."""


class MissingAPIKeyError(AIServiceError):
    def __init__(self) -> None:
        super().__init__("Missing Gemini API key")


class BadResponseError(AIServiceError):
    pass


class EmptyModelOutputError(AIServiceError):
    def __init__(self) -> None:
        super().__init__("Gemini returned empty text")


class InvalidModelOutputError(AIServiceError):
    pass


class MomentNormalizer(Protocol):
    def normalize(self, text: str) -> NormalizedMoment: ...


class GeminiMomentNormalizer:
    def __init__(
        self,
        api_key: str,
        model: str,
        timeout: float = 60.0,
        session: requests.Session | None = None,
    ):
        self.api_key = api_key.strip()
        self.model = model.strip()
        self.timeout = timeout
        self._session = session or requests.Session()

    def normalize(self, text: str) -> NormalizedMoment:
        if not self.api_key:
            raise MissingAPIKeyError()
        if not text.strip():
            raise ValueError("Moment text cannot be empty.")

        payload = {
            "contents": [
                {
                    "role": "user",
                    "parts": [
                        {"text": build_normalize_prompt()},
                        {"text": f"USER_INPUT:\n{text.strip()}"},
                    ],
                }
            ],
            "generationConfig": {"responseMimeType": "application/json", "temperature": 0.35},
        }
        data = self._post(payload)
        raw = _extract_gemini_text(data)
        return normalize_result(_parse_ai_json(raw), raw)

    def _post(self, payload: dict[str, Any]) -> dict[str, Any]:
        url = GEMINI_ENDPOINT.format(model=self.model)
        try:
            response = self._session.post(
                url,
                params={"key": self.api_key},
                json=payload,
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            raise BadResponseError(f"AI request failed: {exc}") from exc

        if not 200 <= response.status_code < 300:
            raise BadResponseError(f"HTTP {response.status_code}: {response.text or 'no body'}")
        try:
            data = response.json()
        except ValueError as exc:
            raise BadResponseError("AI provider returned non-JSON response.") from exc
        if not isinstance(data, dict):
            raise BadResponseError("AI provider returned an unexpected response shape.")

        error = data.get("error")
        if isinstance(error, dict):
            code = error.get("code", -1)
            message = error.get("message") or "unknown"
            raise BadResponseError(f"Gemini error {code}: {message}")
        return data


def build_normalize_prompt() -> str:
    return (
        "You are NOT a narrator. You are a memory cleaner + pattern spotter.\n"
        "Rewrite the user's message into a clean, short FIRST-PERSON memory entry.\n"
        "\n"
        "Rules:\n"
        "- Always use \"I\", \"my\", \"me\". Never say \"the user\".\n"
        "- Keep it real and human. No dramatic storytelling.\n"
        "- Fix grammar, keep meaning. Don't add facts.\n"
        "- title: 3-7 words, punchy.\n"
        "- summary: 1-2 sentences, first person.\n"
        f"- primaryEmotion: one lowercase word (examples: {', '.join(EXAMPLE_EMOTIONS)}).\n"
        "- emotionIntensity: integer 1..5.\n"
        f"- growthArea: one of [{', '.join(GROWTH_AREAS)}].\n"
        f"- entryType: one of [{', '.join(ENTRY_TYPES)}].\n"
        f"- topics: 1..{MAX_TOPICS} short lowercase tags (no hashtags).\n"
        f"- people: up to {MAX_PEOPLE} names ONLY if mentioned explicitly; else empty [].\n"
        "- loopKey: stable snake_case string for repeated patterns "
        "(example: friend_conflict_boundaries). If unsure, make a simple one from topics + emotion.\n"
        "- insight: one sentence, first person.\n"
        "- suggestedAction: 1-2 sentences, casual supportive best-friend tone, not medical.\n"
        "\n"
        "Return ONLY valid JSON with exactly these keys:\n"
        "title, summary, primaryEmotion, emotionIntensity, growthArea, entryType, topics, people, "
        "loopKey, insight, suggestedAction"
    )


def _extract_gemini_text(data: dict[str, Any]) -> str:
    candidates = data.get("candidates")
    if not isinstance(candidates, list) or not candidates:
        raise EmptyModelOutputError()
    first = candidates[0]
    if not isinstance(first, dict):
        raise BadResponseError("AI provider returned an unexpected candidate shape.")
    content = first.get("content") or {}
    if not isinstance(content, dict):
        raise BadResponseError("AI provider returned an unexpected content shape.")
    parts = content.get("parts") or []
    if not isinstance(parts, list):
        raise BadResponseError("AI provider returned an unexpected parts shape.")
    text = "".join(
        part["text"] for part in parts if isinstance(part, dict) and isinstance(part.get("text"), str)
    )
    if not text.strip():
        raise EmptyModelOutputError()
    return text


def _parse_ai_json(text: str) -> dict[str, Any]:
    trimmed = text.strip()
    try:
        parsed = json.loads(trimmed)
    except json.JSONDecodeError:
        start = trimmed.find("{")
        end = trimmed.rfind("}")
        if start == -1 or end == -1 or start >= end:
            raise InvalidModelOutputError(f"Model output was not valid JSON:\n{text}")
        try:
            parsed = json.loads(trimmed[start : end + 1])
        except json.JSONDecodeError as exc:
            raise InvalidModelOutputError(f"Model output was not valid JSON:\n{text}") from exc

    if isinstance(parsed, list) and parsed and isinstance(parsed[0], dict):
        return parsed[0]
    if isinstance(parsed, dict):
        return parsed
    raise InvalidModelOutputError("JSON shape mismatch")


def normalize_result(raw: dict[str, Any], source_text: str = "") -> NormalizedMoment:
    title = _text(raw, "title")
    if not title:
        raise InvalidModelOutputError(f"JSON shape mismatch: missing title\n{source_text}".rstrip())
    try:
        intensity = int(raw.get("emotionIntensity", 3))
    except (TypeError, ValueError) as exc:
        raise InvalidModelOutputError(
            f"JSON shape mismatch: emotionIntensity {raw.get('emotionIntensity')!r}"
        ) from exc

    return NormalizedMoment(
        title=title,
        summary=_text(raw, "summary"),
        primary_emotion=_text(raw, "primaryEmotion").lower(),
        emotion_intensity=clamp_intensity(intensity),
        growth_area=_text(raw, "growthArea").lower(),
        entry_type=_text(raw, "entryType").lower(),
        topics=tuple(t.strip().lower() for t in _as_list(raw.get("topics")))[:MAX_TOPICS],
        people=tuple(p.strip() for p in _as_list(raw.get("people")))[:MAX_PEOPLE],
        loop_key=_text(raw, "loopKey").lower(),
        insight=_text(raw, "insight"),
        suggested_action=_text(raw, "suggestedAction"),
    )


def _text(raw: dict[str, Any], key: str) -> str:
    # null or non-string values count as missing
    value = raw.get(key)
    return value.strip() if isinstance(value, str) else ""


def _as_list(value: Any) -> list[str]:
    if isinstance(value, list):
        return [item for item in value if isinstance(item, str) and item.strip()]
    return []
