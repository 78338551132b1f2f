from __future__ import annotations

import json
import logging
import os
from typing import Any
from urllib.error import URLError
from urllib.parse import quote
from urllib.request import Request, urlopen

from routine_tracking.services.errors import NarrativeUnavailableError

LOGGER = logging.getLogger(__name__)

GEMINI_ENDPOINT = "https://generativelanguage.googleapis.com/v1beta/models/{model}:generateContent"
DEFAULT_MODEL = "gemini-2.5-flash"


def _load_gemini_config() -> tuple[dict[str, Any] | None, list[str]]:
    api_key = os.getenv("ROUTINE_TRACKING_GEMINI_API_KEY")
    model = os.getenv("ROUTINE_TRACKING_GEMINI_MODEL") or DEFAULT_MODEL
    try:
        timeout_s = int(os.getenv("ROUTINE_TRACKING_GEMINI_TIMEOUT", "30"))
    except ValueError:
        timeout_s = 30

    if not api_key:
        return None, ["ROUTINE_TRACKING_GEMINI_API_KEY"]

    return {
        "api_key": api_key,
        "model": model,
        "timeout_s": timeout_s,
    }, []


def gemini_config_status() -> dict[str, Any]:
    config, missing = _load_gemini_config()
    return {
        "configured": config is not None,
        "missing": missing,
        "model": (config or {}).get("model") or DEFAULT_MODEL,
    }


def _extract_text(data: dict[str, Any]) -> str:
    candidates = data.get("candidates") or []
    if not isinstance(candidates, list):
        return ""
    for candidate in candidates:
        content = candidate.get("content") if isinstance(candidate, dict) else None
        parts = content.get("parts") if isinstance(content, dict) else None
        if not isinstance(parts, list):
            continue
        text = "".join(
            part["text"] for part in parts if isinstance(part, dict) and isinstance(part.get("text"), str)
        )
        if text.strip():
            return text
    return ""


def generate_action_plan(prompt: str) -> str:
    config, missing = _load_gemini_config()
    if not config:
        LOGGER.error("Gemini config missing: %s", ", ".join(missing))
        raise NarrativeUnavailableError(f"Missing configuration: {', '.join(missing)}")

    payload = {"contents": [{"parts": [{"text": prompt}]}]}
    req = Request(
        GEMINI_ENDPOINT.format(model=quote(config["model"], safe="")),
        data=json.dumps(payload).encode("utf-8"),
        headers={
            "Content-Type": "application/json",
            "x-goog-api-key": config["api_key"],
        },
        method="POST",
    )
    try:
        with urlopen(req, timeout=config["timeout_s"]) as response:
            data = json.loads(response.read().decode("utf-8"))
    except (URLError, OSError) as exc:
        LOGGER.error("Gemini request failed: %s", exc)
        raise NarrativeUnavailableError("Error connecting to the AI service.") from exc
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        LOGGER.error("Gemini returned invalid JSON: %s", exc)
        raise NarrativeUnavailableError("The AI service returned an unreadable answer.") from exc

    if not isinstance(data, dict):
        LOGGER.error("Gemini returned %s instead of a JSON object.", type(data).__name__)
        raise NarrativeUnavailableError("The AI service returned an unreadable answer.")

    text = _extract_text(data)
    if not text:
        LOGGER.warning("Gemini returned no text (model=%s).", config["model"])
        return "No response generated."
    return text
