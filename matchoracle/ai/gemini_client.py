from __future__ import annotations

import json
import logging
import os
import time
from dataclasses import dataclass, field
from typing import Any, Iterable, Union

import requests

from matchoracle.schemas import GroundingCitation
from matchoracle.settings import SettingsSnapshot, resolve_api_key

logger = logging.getLogger(__name__)

GEMINI_BASE_URL = os.getenv("GEMINI_BASE_URL", "https://generativelanguage.googleapis.com").rstrip("/")
MAX_ERROR_SNIPPET = 2000
GEMINI_CONNECT_TIMEOUT_SECONDS = 15
GEMINI_READ_TIMEOUT_SECONDS = 120
GEMINI_MAX_ATTEMPTS = 3
RATE_LIMIT_STATUSES = {"RESOURCE_EXHAUSTED"}


@dataclass(frozen=True)
class CompletionSuccess:
    text: str
    citations: list[GroundingCitation] = field(default_factory=list)
    raw_json: str = ""


@dataclass(frozen=True)
class CompletionFailure:
    message: str
    rate_limited: bool = False
    status_code: int | None = None


CompletionResult = Union[CompletionSuccess, CompletionFailure]


def _truncate(value: str, limit: int = MAX_ERROR_SNIPPET) -> str:
    if len(value) <= limit:
        return value
    return value[:limit] + "...<truncated>"


def _response_debug_summary(response_json: dict[str, Any]) -> str:
    parts: list[str] = []

    prompt_feedback = response_json.get("promptFeedback")
    if isinstance(prompt_feedback, dict) and prompt_feedback.get("blockReason"):
        parts.append(f"block_reason={prompt_feedback['blockReason']}")

    candidates = response_json.get("candidates")
    if isinstance(candidates, list) and candidates and isinstance(candidates[0], dict):
        finish_reason = candidates[0].get("finishReason")
        if finish_reason:
            parts.append(f"finish_reason={finish_reason}")

    error = response_json.get("error")
    if isinstance(error, dict) and error:
        if error.get("message"):
            parts.append(f"error_message={error['message']}")
        if error.get("status"):
            parts.append(f"error_status={error['status']}")

    if not parts:
        parts.append("no_debug_fields")

    parts.append("response_json=" + _truncate(json.dumps(response_json, ensure_ascii=False)))
    return "; ".join(parts)


def _build_request_body(
    prompt: str,
    *,
    use_search: bool,
    history: Iterable[dict[str, str]] | None = None,
    system_instruction: str | None = None,
) -> dict[str, Any]:
    contents = [
        {"role": turn["role"], "parts": [{"text": turn["text"]}]}
        for turn in (history or ())
    ]
    contents.append({"role": "user", "parts": [{"text": prompt}]})
    body: dict[str, Any] = {
        "contents": contents,
        "generationConfig": {"temperature": 0.4},
    }
    if use_search:
        body["tools"] = [{"google_search": {}}]
    if system_instruction:
        body["systemInstruction"] = {"parts": [{"text": system_instruction}]}
    return body


def _extract_text(response_json: dict[str, Any]) -> str:
    candidates = response_json.get("candidates") or []
    if not candidates or not isinstance(candidates[0], dict):
        return ""
    parts = (candidates[0].get("content") or {}).get("parts") or []
    # grounded answers are often split over several text parts
    return "".join(part.get("text", "") for part in parts if isinstance(part, dict))


def _extract_citations(response_json: dict[str, Any]) -> list[GroundingCitation]:
    candidates = response_json.get("candidates") or []
    if not candidates or not isinstance(candidates[0], dict):
        return []
    metadata = candidates[0].get("groundingMetadata") or {}
    citations: list[GroundingCitation] = []
    for chunk in metadata.get("groundingChunks") or []:
        web = chunk.get("web") if isinstance(chunk, dict) else None
        if isinstance(web, dict) and web.get("uri"):
            citations.append(GroundingCitation(uri=web["uri"], title=web.get("title") or ""))
    return citations


def _is_rate_limited(status_code: int, response_json: dict[str, Any] | None) -> bool:
    if status_code == 429:
        return True
    error = (response_json or {}).get("error")
    return isinstance(error, dict) and error.get("status") in RATE_LIMIT_STATUSES


def request_completion(
    prompt: str,
    settings: SettingsSnapshot,
    *,
    use_search: bool = True,
    history: Iterable[dict[str, str]] | None = None,
    system_instruction: str | None = None,
) -> CompletionResult:
    """Send one prompt to Gemini. Failures come back as ``CompletionFailure``, never raised."""
    api_key = resolve_api_key(settings)
    if not api_key:
        return CompletionFailure("Missing Gemini API key")

    url = f"{GEMINI_BASE_URL}/v1beta/models/{settings.gemini_model}:generateContent"
    body = _build_request_body(
        prompt,
        use_search=use_search and settings.search_grounding_enabled,
        history=history,
        system_instruction=system_instruction,
    )
    headers = {
        "x-goog-api-key": api_key,
        "Content-Type": "application/json",
    }
    response = None
    last_exception: requests.RequestException | None = None
    for attempt in range(1, GEMINI_MAX_ATTEMPTS + 1):
        try:
            response = requests.post(
                url,
                headers=headers,
                json=body,
                timeout=(GEMINI_CONNECT_TIMEOUT_SECONDS, GEMINI_READ_TIMEOUT_SECONDS),
            )
            break
        except requests.Timeout as exc:
            last_exception = exc
            logger.warning("Gemini request timed out (attempt %d/%d)", attempt, GEMINI_MAX_ATTEMPTS)
            if attempt == GEMINI_MAX_ATTEMPTS:
                break
            time.sleep(attempt)
        except requests.RequestException as exc:
            logger.error("Gemini request failed: %s", exc)
            return CompletionFailure(f"Gemini request failed: {exc}")

    if response is None:
        return CompletionFailure(
            f"Gemini request failed after retries due to timeout. Last error: {last_exception}"
        )

    raw_response_text = response.text
    try:
        response_json = response.json()
    except ValueError:
        if response.status_code >= 400:
            return CompletionFailure(
                f"Gemini API error {response.status_code}: non-JSON response={_truncate(raw_response_text)}",
                rate_limited=_is_rate_limited(response.status_code, None),
                status_code=response.status_code,
            )
        return CompletionFailure(
            "Gemini API returned non-JSON response: " + _truncate(raw_response_text),
            status_code=response.status_code,
        )
    if not isinstance(response_json, dict):
        return CompletionFailure(
            "Gemini API returned unexpected payload: " + _truncate(raw_response_text),
            status_code=response.status_code,
        )

    if response.status_code >= 400:
        rate_limited = _is_rate_limited(response.status_code, response_json)
        message = f"Gemini API error {response.status_code}: {_response_debug_summary(response_json)}"
        if rate_limited:
            logger.warning("Gemini rate limited: %s", _truncate(message, 300))
        else:
            logger.error("%s", _truncate(message, 300))
        return CompletionFailure(message, rate_limited=rate_limited, status_code=response.status_code)

    if not response_json.get("candidates"):
        return CompletionFailure(
            "Gemini response has no candidates: " + _response_debug_summary(response_json),
            status_code=response.status_code,
        )

    return CompletionSuccess(
        text=_extract_text(response_json),
        citations=_extract_citations(response_json),
        raw_json=json.dumps(response_json, ensure_ascii=False),
    )
