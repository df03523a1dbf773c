"""Canonical section keys and the header synonym table used by the parser."""

from __future__ import annotations

import re

SECTION_KEYS: tuple[str, ...] = (
    "score_prediction",
    "score_probability",
    "total_goals",
    "corners",
    "cards",
    "weather",
    "referee",
    "red_flags",
    "confidence",
    "summary",
    "recent_form",
    "head_to_head",
    "key_factors",
    "prediction_logic",
    "live_analysis",
    "next_goal",
    "live_tip",
)

SECTION_TITLES: dict[str, str] = {
    "score_prediction": "Score Prediction",
    "score_probability": "Score Probability",
    "total_goals": "Total Goals",
    "corners": "Corners",
    "cards": "Cards",
    "weather": "Weather",
    "referee": "Referee",
    "red_flags": "Red Flags",
    "confidence": "Confidence",
    "summary": "Summary",
    "recent_form": "Recent Form",
    "head_to_head": "Head-to-Head",
    "key_factors": "Key Factors",
    "prediction_logic": "Prediction Logic",
    "live_analysis": "Live Analysis",
    "next_goal": "Next Goal",
    "live_tip": "Live Tip",
}

# (label pattern, canonical key), evaluated top to bottom; first match wins.
# Patterns match the start of a header label with its markup stripped, ignoring case.
HEADER_SYNONYMS: tuple[tuple[str, str], ...] = (
    (r"score\s*prediction|predicted\s*score|correct\s*score", "score_prediction"),
    (r"score\s*probability", "score_probability"),
    # soccer / hockey / handball
    (r"total\s*goals", "total_goals"),
    # basketball
    (r"total\s*points", "total_goals"),
    # "Key Stat 2" must outrank "Key Stat"
    (r"key\s*stat\s*(?:2|#2|two)", "cards"),
    (r"key\s*stat(?:\s*(?:1|#1|one))?", "corners"),
    (r"corners", "corners"),
    (r"shots\s*on\s*goal|sog", "corners"),
    (r"rebounds", "corners"),
    (r"7\s*m(?:\s*throws)?|seven\s*meters?", "corners"),
    (r"cards|bookings", "cards"),
    (r"weather|conditions", "weather"),
    (r"referee|officials?", "referee"),
    (r"red\s*flags?|warnings?", "red_flags"),
    (r"confidence", "confidence"),
    (r"summary|verdict", "summary"),
    (r"recent\s*form|form\s*guide", "recent_form"),
    (r"head[\s-]*to[\s-]*head|h2h", "head_to_head"),
    (r"key\s*factors", "key_factors"),
    (r"prediction\s*logic|reasoning", "prediction_logic"),
    (r"live\s*analysis|in[\s-]*play\s*analysis", "live_analysis"),
    (r"next\s*(?:goal|score)", "next_goal"),
    (r"live\s*tip|in[\s-]*play\s*tip", "live_tip"),
)

HEADER_RULES: tuple[tuple[re.Pattern[str], str], ...] = tuple(
    (re.compile(rf"^(?:{pattern})(?![a-z0-9])", re.IGNORECASE), key) for pattern, key in HEADER_SYNONYMS
)


def empty_sections() -> dict[str, str]:
    return {key: "" for key in SECTION_KEYS}


def match_header(label: str) -> tuple[str, str] | None:
    """Return (canonical key, text after the matched label) or None."""
    for pattern, key in HEADER_RULES:
        match = pattern.match(label)
        if match:
            return key, label[match.end():]
    return None
