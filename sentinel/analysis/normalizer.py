"""
Turns whatever the analysis service sent back into an AnalysisResult.

The service is a generative model that is asked (not forced) to answer
with a fixed JSON shape. So this module never raises: every field is coerced
on its own, and anything missing or oddly typed falls back to a default.

    summary        str, non-empty      → "Unable to analyze."
    bad_event      True or "Yes"       → False otherwise
    reason         str, non-empty      → ""
    confidence     int/float, [0, 1]   → 0.5
    anomaly_start  number >= 0         → None
    anomaly_end    number >= 0         → None
    event_type     str, non-empty      → "none"
    severity_score number              → None
"""

import json
import math
import re
from typing import Any, Mapping, Optional

from sentinel.analysis.models import AnalysisResult
from sentinel.core.logging import get_logger

logger = get_logger()

DEFAULT_SUMMARY = "Unable to analyze."
DEFAULT_REASON = ""
DEFAULT_CONFIDENCE = 0.5
DEFAULT_EVENT_TYPE = "none"

EXPECTED_KEYS = (
    "summary",
    "bad_event",
    "reason",
    "confidence",
    "anomaly_start",
    "anomaly_end",
    "event_type",
)


# ── Field coercions ────────────────────────────────────────────────────────────

def _text(value: Any, default: str) -> str:
    if isinstance(value, str) and value:
        return value
    return default


def _flag(value: Any) -> bool:
    return value is True or (isinstance(value, str) and value == "Yes")


def _number(value: Any) -> Optional[float]:
    # bool is an int subclass; "confidence": true is not a number
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        try:
            number = float(value)
        except OverflowError:
            # JSON integers are unbounded
            return None
    elif isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            return None
    else:
        return None
    if not math.isfinite(number):
        return None
    return number


def _confidence(value: Any) -> float:
    # Strings are not accepted here, unlike the offsets
    if not isinstance(value, (int, float)):
        return DEFAULT_CONFIDENCE
    number = _number(value)
    if number is None:
        return DEFAULT_CONFIDENCE
    return min(1.0, max(0.0, number))


def _offset(value: Any) -> Optional[float]:
    number = _number(value)
    if number is None or number < 0:
        return None
    return number


# ── Public API ─────────────────────────────────────────────────────────────────

def normalize_reply(reply: Any, duration_seconds: float) -> AnalysisResult:
    """Total: any input (including {} or a non-dict) yields a full result."""
    data: Mapping[str, Any] = reply if isinstance(reply, Mapping) else {}

    missing = [k for k in EXPECTED_KEYS if k not in data]
    if missing:
        logger.warning(
            "analysis_reply_malformed",
            missing_keys=missing,
            reply_type=type(reply).__name__,
        )

    return AnalysisResult(
        summary=_text(data.get("summary"), DEFAULT_SUMMARY),
        bad_event=_flag(data.get("bad_event")),
        reason=_text(data.get("reason"), DEFAULT_REASON),
        confidence=_confidence(data.get("confidence")),
        anomaly_start=_offset(data.get("anomaly_start")),
        anomaly_end=_offset(data.get("anomaly_end")),
        event_type=_text(data.get("event_type"), DEFAULT_EVENT_TYPE),
        severity_score=_number(data.get("severity_score")),
        duration_seconds=float(duration_seconds),
    )


def extract_json_object(text: str) -> Optional[dict]:
    """
    Recover the first JSON object from free model text.
    Tries: the whole string, a ```json fenced block, then the first {...}.
    Returns None if nothing parses to an object.
    """
    if not text:
        return None

    candidates = [text.strip()]

    match = re.search(r"```(?:json)?\s*(\{.*?\})\s*```", text, re.DOTALL)
    if match:
        candidates.append(match.group(1))

    start, end = text.find("{"), text.rfind("}")
    if start != -1 and end > start:
        candidates.append(text[start:end + 1])

    match = re.search(r"\{[^{}]+\}", text, re.DOTALL)
    if match:
        candidates.append(match.group(0))

    for candidate in candidates:
        try:
            parsed = json.loads(candidate)
        except json.JSONDecodeError:
            continue
        if isinstance(parsed, dict):
            return parsed

    logger.warning("analysis_json_parse_failed", raw_response=text[:200])
    return None
