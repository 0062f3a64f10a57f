"""Shared utilities for parsing LLM responses.

Model output is free text. Two conventions are recognised, best effort:
a JSON object (optionally fenced), or ``Summary:`` / ``Root Cause:`` /
``Confidence:`` marker lines.
"""

from __future__ import annotations

import json
import re
from typing import Dict, Optional

CONFIDENCE_LEVELS = ("High", "Medium", "Low")

_MARKER_NAMES = r"(?:summary|root\s+cause|confidence)"


def _marker(label: str) -> str:
    # Tolerates markdown bold around the label: **Summary**: / **Summary:**
    return r"\**\s*" + label + r"\s*\**\s*:\s*\**\s*"


_SUMMARY_RE = re.compile(
    _marker("summary") + r"(.+?)(?=\s*" + _marker(_MARKER_NAMES) + r"|\n|$)",
    re.IGNORECASE,
)
_ROOT_CAUSE_RE = re.compile(
    _marker(r"root\s+cause") + r"(.+?)(?=\s*" + _marker(_MARKER_NAMES) + r"|\n|$)",
    re.IGNORECASE,
)
_CONFIDENCE_RE = re.compile(_marker("confidence") + r"(\w+)", re.IGNORECASE)
_ANY_MARKER_RE = re.compile(_marker(_MARKER_NAMES), re.IGNORECASE)


def strip_code_fences(raw: str) -> str:
    """Drop markdown ``` fence lines from a response."""
    if not raw.lstrip().startswith("```"):
        return raw
    lines = [line for line in raw.split("\n") if not line.strip().startswith("```")]
    return "\n".join(lines)


def parse_llm_json(raw: str) -> dict:
    """Parse JSON from an LLM response, handling code fences and preamble text.

    Tries in order:
    1. Strip markdown code fences, then json.loads
    2. Extract substring between first '{' and last '}', then json.loads
    3. Return empty dict
    """
    if not raw:
        return {}

    try:
        data = json.loads(strip_code_fences(raw))
        return data if isinstance(data, dict) else {}
    except json.JSONDecodeError:
        pass

    start = raw.find("{")
    end = raw.rfind("}") + 1
    if start >= 0 and end > start:
        try:
            data = json.loads(raw[start:end])
            return data if isinstance(data, dict) else {}
        except json.JSONDecodeError:
            pass

    return {}


def normalize_confidence(value: Optional[str], default: str = "Medium") -> str:
    """Map free-form confidence words onto High/Medium/Low."""
    if not value:
        return default
    word = str(value).strip().capitalize()
    return word if word in CONFIDENCE_LEVELS else default


def parse_analysis_markers(raw: str) -> Dict[str, str]:
    """
    Extract summary, root cause and confidence from an analysis response.

    Returns an empty dict when the response follows neither convention.
    Keys that the response does not mention are left out so the caller can
    choose its own defaults.
    """
    if not raw or not raw.strip():
        return {}

    data = parse_llm_json(raw)
    if data and any(k in data for k in ("summary", "root_cause", "confidence")):
        parsed = {}
        if data.get("summary"):
            parsed["summary"] = str(data["summary"]).strip()
        if data.get("root_cause"):
            parsed["root_cause"] = str(data["root_cause"]).strip()
        if data.get("confidence"):
            parsed["confidence"] = normalize_confidence(str(data["confidence"]))
        return parsed

    text = strip_code_fences(raw)
    if not _ANY_MARKER_RE.search(text):
        return {}

    parsed = {}
    match = _SUMMARY_RE.search(text)
    if match and match.group(1).strip():
        parsed["summary"] = match.group(1).strip()
    else:
        # Lead-in text before the first marker, up to the first full stop
        lead = _ANY_MARKER_RE.split(text, maxsplit=1)[0].strip()
        if lead:
            parsed["summary"] = re.split(r"(?<=\.)\s|\n", lead, maxsplit=1)[0].strip()

    match = _ROOT_CAUSE_RE.search(text)
    if match and match.group(1).strip():
        parsed["root_cause"] = match.group(1).strip()

    match = _CONFIDENCE_RE.search(text)
    if match:
        parsed["confidence"] = normalize_confidence(match.group(1))

    return parsed
