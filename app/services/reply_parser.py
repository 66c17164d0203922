from __future__ import annotations

import json
import logging
import re

from app.schemas.validation import ValidationResult

logger = logging.getLogger(__name__)

# First bracket pair, shortest match, allowed to span lines.
EMBEDDED_ARRAY = re.compile(r"\[.*?\]", re.DOTALL)


def extract_validation_results(reply: str) -> tuple[str, list[ValidationResult]]:
    """Split an assistant reply into prose and its embedded validation findings.

    Only the first ``[...]`` span is considered. When it parses as a JSON array
    of ``{"status", "text"}`` objects the span is removed from the prose;
    otherwise the reply is returned untouched with no results.
    """
    match = EMBEDDED_ARRAY.search(reply)
    if match is None:
        return reply, []

    results = _parse_results(match.group(0))
    if results is None:
        logger.warning("Could not parse validation results from assistant reply")
        return reply, []

    prose = (reply[: match.start()] + reply[match.end() :]).strip()
    return prose, results


def _parse_results(candidate: str) -> list[ValidationResult] | None:
    try:
        payload = json.loads(candidate)
    except json.JSONDecodeError:
        return None
    if not isinstance(payload, list):
        return None

    results: list[ValidationResult] = []
    for item in payload:
        if not isinstance(item, dict):
            return None
        status = item.get("status")
        text = item.get("text")
        if not isinstance(status, str) or not isinstance(text, str):
            return None
        results.append(ValidationResult(status=status, text=text))
    return results
