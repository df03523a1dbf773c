"""Turns a free-text model completion into an ``AnalysisResponse``.

The completion interleaves markdown-ish section headers, prose and (usually)
one fenced JSON block with numeric stats. Nothing in here raises on malformed
model output: the worst case is a response with empty sections and no stats.
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any, Iterable

from matchoracle.analysis.sections import empty_sections, match_header
from matchoracle.schemas import AnalysisResponse, GroundingCitation

logger = logging.getLogger(__name__)

_FENCED_JSON_RE = re.compile(r"```json\s*([\s\S]*?)\s*```", re.IGNORECASE)
_FENCED_OBJECT_RE = re.compile(r"```[a-z]*\s*(\{[\s\S]*?\})\s*```", re.IGNORECASE)
_JSON_ARRAY_RE = re.compile(r"\[[\s\S]*\]")
_HASH_HEADER_RE = re.compile(r"^\s*#{1,6}\s*(?P<body>.*)$")
_BOLD_LABEL_RE = re.compile(r"^\s*\*\*(?P<label>.+?)\*\*(?P<rest>.*)$")
_LEADING_SEPARATOR_RE = re.compile(r"^\s*(?::|[-–—](?=\s|$))\s*")
_SCORE_RE = re.compile(r"\b\d+\s*-\s*\d+\b")


def _locate_json(text: str) -> tuple[str, int, int, bool] | None:
    """Return (json source, span start, span end, fenced) of the stats block, if any."""
    for pattern in (_FENCED_JSON_RE, _FENCED_OBJECT_RE):
        match = pattern.search(text)
        if match:
            return match.group(1), match.start(), match.end(), True
    start = text.find("{")
    end = text.rfind("}")
    if start != -1 and end > start:
        return text[start:end + 1], start, end + 1, False
    return None


def _loads(source: str) -> Any:
    try:
        return json.loads(source)
    except (ValueError, RecursionError):
        return None


def extract_json_object(text: str | None) -> dict[str, Any] | None:
    if not text:
        return None
    located = _locate_json(text)
    if located is None:
        return None
    parsed = _loads(located[0])
    return parsed if isinstance(parsed, dict) else None


def extract_json_array(text: str | None) -> list[Any] | None:
    if not text:
        return None
    match = _JSON_ARRAY_RE.search(text)
    if not match:
        return None
    parsed = _loads(match.group(0))
    return parsed if isinstance(parsed, list) else None


def _strip_markup(value: str) -> str:
    return value.replace("*", "").replace("__", "").strip()


def _inline_content(remainder: str) -> str:
    """Text after a header label, minus one leading ":" or "-" separator."""
    return _strip_markup(_LEADING_SEPARATOR_RE.sub("", remainder, count=1))


def _classify(line: str) -> tuple[str, str | None, str]:
    """Classify a line as ("known", key, inline), ("unknown", None, "") or ("text", None, "")."""
    hashed = _HASH_HEADER_RE.match(line)
    body = hashed.group("body") if hashed else line.strip()

    bold = _BOLD_LABEL_RE.match(body)
    if bold:
        label = bold.group("label").strip()
        matched = match_header(label.rstrip(":").strip())
        rest = bold.group("rest")
        if matched:
            key, remainder = matched
            return "known", key, _inline_content(remainder) or _inline_content(rest)
        # a line that is nothing but a bold label is a header, known or not
        if not _strip_markup(rest).strip(":"):
            return "unknown", None, ""
    else:
        matched = match_header(_strip_markup(body))
        if matched:
            key, remainder = matched
            remainder = remainder.strip()
            if hashed or not remainder:
                return "known", key, _inline_content(remainder)
            if remainder.startswith(":"):
                return "known", key, _strip_markup(remainder[1:])

    if hashed and _strip_markup(body):
        return "unknown", None, ""
    return "text", None, ""


def _collect_citations(citations: Iterable[Any] | None) -> list[GroundingCitation]:
    collected: list[GroundingCitation] = []
    for item in citations or ():
        if isinstance(item, GroundingCitation):
            collected.append(item)
        elif isinstance(item, dict) and item.get("uri"):
            collected.append(GroundingCitation(uri=str(item["uri"]), title=str(item.get("title") or "")))
    return collected


def parse_response(text: str | None, citations: Iterable[Any] | None = None) -> AnalysisResponse:
    raw_text = text if isinstance(text, str) else ""
    sections = empty_sections()
    lines_by_section: dict[str, list[str]] = {key: [] for key in sections}

    stats: dict[str, Any] | None = None
    body = raw_text
    located = _locate_json(raw_text)
    if located is not None:
        source, start, end, fenced = located
        parsed = _loads(source)
        if isinstance(parsed, dict):
            stats = parsed
        else:
            logger.debug("Stats block present but not a JSON object; ignoring it.")
        # an unfenced brace span is only cut out when it really was the stats object
        if fenced or stats is not None:
            body = raw_text[:start] + "\n" + raw_text[end:]

    current: str | None = None
    previous: tuple[str, str] | None = None
    for line in body.splitlines():
        stripped = line.strip()
        if not stripped or stripped.startswith("```"):
            continue
        kind, key, inline = _classify(line)
        if kind == "known":
            current = key
            previous = None
            stripped = inline
            if not stripped:
                continue
        elif kind == "unknown":
            current = None
            previous = None
            continue
        if current is None:
            previous = None
            continue
        if previous == (current, stripped):
            continue
        lines_by_section[current].append(stripped)
        previous = (current, stripped)

    for key, bucket in lines_by_section.items():
        sections[key] = "\n".join(bucket).strip()

    if not sections["score_prediction"]:
        score = _SCORE_RE.search(raw_text)
        if score:
            sections["score_prediction"] = score.group(0)

    return AnalysisResponse(
        raw_text=raw_text,
        grounding_citations=_collect_citations(citations),
        sections=sections,
        stats=stats,
    )
