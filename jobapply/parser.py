"""Turn raw model text into answers and job-fit scores.

Fit scores are read with a three-tier grammar, first tier that matches wins:

    1. percentage      "85%"
    2. fraction        "72/100", "72 out of 100"
    3. bare number     first standalone number

The rubric phrase "0-100" is removed first so the scale itself is never read
as a score. Numbers of any length are clamped to [0, 100]; text without any
number degrades to a neutral 50.
"""
from __future__ import annotations

import json
import re
from typing import Any

from jobapply.log import get_logger
from jobapply.models import JobFitResult

log = get_logger(__name__)

NEUTRAL_SCORE = 50
MAX_REASON_LEN = 250
MIN_REASON_LEN = 10
NO_SCORE_REASON = "Could not read a score from the AI response; showing a neutral estimate."

_SCALE_PHRASE_RE = re.compile(r"0\s*-\s*100")
_PERCENT_RE = re.compile(r"(?<!\d)(\d+)\s*%")
_FRACTION_RE = re.compile(r"(?<!\d)(\d+)\s*(?:/\s*100|out\s+of\s+100)", re.IGNORECASE)
_NUMBER_RE = re.compile(r"(?<!\d)(\d+)(?!\d)")

_SCORE_TIERS: tuple[tuple[str, re.Pattern[str]], ...] = (
    ("percent", _PERCENT_RE),
    ("fraction", _FRACTION_RE),
    ("number", _NUMBER_RE),
)

# Optional "SCORE:"-style label, the number, its unit, then a separator.
_LEADING_SCORE_RE = re.compile(
    r"^[\s*#>]*(?:[a-z][a-z ]{0,30}:\**\s*)?\d+\s*(?:%|/\s*100|out\s+of\s+100)?\**\s*[-–—:.]?\s*",
    re.IGNORECASE,
)


def parse_answer(text: str | None) -> str | None:
    """Model output as a field value: trimmed, ``None`` when empty."""
    if text is None:
        return None
    answer = text.strip()
    return answer or None


def extract_score(text: str) -> tuple[int, str] | None:
    """Return ``(score, tier)`` or ``None`` when no tier matches."""
    cleaned = _SCALE_PHRASE_RE.sub("", text or "")
    for tier, pattern in _SCORE_TIERS:
        m = pattern.search(cleaned)
        if m:
            value = int(m.group(1))
            return min(100, max(0, value)), tier
    return None


def extract_reason(text: str) -> str:
    raw = text or ""
    reason = _LEADING_SCORE_RE.sub("", raw.strip(), count=1).strip()
    if len(reason) < MIN_REASON_LEN:
        reason = raw[:MAX_REASON_LEN]
    return reason[:MAX_REASON_LEN]


def parse_fit_score(text: str | None) -> JobFitResult:
    raw = text or ""
    found = extract_score(raw)
    if found is None:
        log.warning("No score found in model response (%d chars); using %d", len(raw), NEUTRAL_SCORE)
        return JobFitResult(score=NEUTRAL_SCORE, reason=NO_SCORE_REASON)
    score, tier = found
    log.debug("Fit score %d read via %s tier", score, tier)
    return JobFitResult(score=score, reason=extract_reason(raw))


def parse_json_object(text: str | None) -> dict[str, Any] | None:
    """First ``{...}`` span of *text* decoded as a JSON object, else ``None``."""
    if not text:
        return None
    cleaned = text.replace("```json", "").replace("```", "")
    start = cleaned.find("{")
    end = cleaned.rfind("}") + 1
    if start == -1 or end == 0 or end <= start:
        return None
    try:
        data = json.loads(cleaned[start:end])
    except ValueError:
        log.debug("Model returned invalid JSON: %s", cleaned[start:end][:200])
        return None
    return data if isinstance(data, dict) else None
