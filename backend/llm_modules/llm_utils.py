import re
import json
import logging
from typing import Any

from errors import ExtractionError

logger = logging.getLogger(__name__)

_FENCE_JSON = re.compile(r"```json\n?")
_FENCE = re.compile(r"```\n?")
_ARRAY_SPAN = re.compile(r"\[[\s\S]*\]")
_OBJECT_SPAN = re.compile(r"\{[\s\S]*\}")
_TRAILING_COMMA = re.compile(r",\s*([}\]])")
# Only word keys directly after "{" or "," count as bare keys, so "https://..." values stay intact
_BARE_KEY = re.compile(r"([{,]\s*)([A-Za-z_]\w*)(\s*):")


def strip_code_fences(text: str) -> str:
    return _FENCE.sub("", _FENCE_JSON.sub("", text)).strip()


def repair_json(text: str) -> str:
    """Fix the two malformations models produce most: trailing commas and unquoted keys."""
    cleaned = _TRAILING_COMMA.sub(r"\1", text)
    return _BARE_KEY.sub(r'\1"\2"\3:', cleaned)


def extract_json(text: str) -> Any:
    """
    Recover a single top-level JSON array or object from raw LLM output.

    Order: strip markdown fences, take the greedy array span (preferred) or
    object span, parse it strictly and finally after repair_json().
    Raises ExtractionError when nothing usable is left.
    """
    clean_text = strip_code_fences(text)

    # Prefer array match, every suggestion contract is an array
    match = _ARRAY_SPAN.search(clean_text) or _OBJECT_SPAN.search(clean_text)
    if match:
        span = match.group(0)
        try:
            return json.loads(span)
        except json.JSONDecodeError as e:
            logger.warning("[Extract] Failed to parse JSON from LLM response: %s; attempting repair", e)

        try:
            return json.loads(repair_json(span))
        except json.JSONDecodeError as e:
            logger.error("[Extract] Failed to parse repaired JSON: %s", e)

    raise ExtractionError("No valid JSON found in LLM response")
