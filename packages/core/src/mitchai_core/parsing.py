"""Turn free-form model output into a ReviewResult.

Three stages, each usable on its own:
    parse_strict()      → the whole text is a JSON object
    extract_braced()    → the text between the first "{" and the last "}"
    fallback_result()   → fixed-score placeholder carrying the raw text
"""

from __future__ import annotations

import json
import logging

from mitchai_core.results import ReviewIssue, ReviewResult

logger = logging.getLogger(__name__)

NON_JSON_SCORE = 6
UNPARSEABLE_SCORE = 5


def parse_strict(text: str) -> dict | None:
    try:
        data = json.loads(text)
    except (json.JSONDecodeError, TypeError):
        return None
    return data if isinstance(data, dict) else None


def extract_braced(text: str) -> dict | None:
    start = text.find("{")
    end = text.rfind("}")
    if start == -1 or end < start:
        return None
    return parse_strict(text[start : end + 1])


def fallback_result(text: str) -> ReviewResult:
    stripped = (text or "").strip()
    if "{" not in stripped:
        # The model answered in prose: keep it as the summary.
        return ReviewResult(
            score=NON_JSON_SCORE,
            summary=stripped or "Review completed",
            raw_response=text,
        )
    return ReviewResult(
        score=UNPARSEABLE_SCORE,
        issues=[ReviewIssue(description="Could not parse AI response")],
        summary=stripped,
        raw_response=text,
    )


def parse_review_response(text: str | None) -> ReviewResult:
    """Parse a model response; never raises."""
    text = text or ""
    data = parse_strict(text.strip())
    if data is None:
        data = extract_braced(text)
    if data is None:
        logger.debug("Falling back to placeholder review for response: %s", text[:200])
        return fallback_result(text)
    return ReviewResult.from_dict(data)
