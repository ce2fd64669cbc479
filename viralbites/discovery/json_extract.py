"""
Helpers for pulling JSON out of model replies.

Gemini is asked for JSON, but grounded replies often wrap it in prose or a
markdown fence, so decoding goes through a few increasingly lenient attempts.
"""

import json
import re
from typing import Any

import structlog

from viralbites.discovery.errors import MalformedResponseError

logger = structlog.get_logger()

_JSON_PATTERN = re.compile(r"(\{[\s\S]*\}|\[[\s\S]*\])")


def extract_json(text: str) -> str:
    """
    Return the first {...} or [...] looking substring of text, or "{}".

    This is a heuristic match, not a parser: bracket balance is not checked.
    """
    match = _JSON_PATTERN.search(text or "")
    return match.group(0) if match else "{}"


def parse_model_json(text: str | None) -> Any:
    """
    Decode the JSON payload of a model reply.

    Raises:
        MalformedResponseError: If no attempt yields valid JSON
    """
    if not text or not text.strip():
        raise MalformedResponseError("Model returned an empty response")

    stripped = text.strip()
    try:
        return json.loads(stripped)
    except json.JSONDecodeError:
        pass

    if _JSON_PATTERN.search(stripped) is None:
        logger.warning("No JSON payload found in model response", response=stripped[:500])
        raise MalformedResponseError("The search service returned a malformed response")

    try:
        return json.loads(extract_json(stripped))
    except json.JSONDecodeError:
        pass

    # The greedy match can run past the payload into trailing prose
    decoder = json.JSONDecoder()
    for match in re.finditer(r"[\[{]", stripped):
        try:
            value, _ = decoder.raw_decode(stripped, match.start())
            return value
        except json.JSONDecodeError:
            continue

    logger.warning("Failed to decode JSON from model response", response=stripped[:500])
    raise MalformedResponseError("The search service returned a malformed response")


def as_text(value: Any) -> str | None:
    """
    Coerce a loosely typed reply field to a non-empty string.

    Lists of strings are joined with ", "; objects are discarded.
    """
    if value is None or isinstance(value, dict):
        return None
    if isinstance(value, (list, tuple)):
        text = ", ".join(part for part in (as_text(v) for v in value) if part)
    else:
        text = str(value).strip()
    return text or None


def as_text_list(value: Any) -> list[str]:
    """Coerce a reply field to a list of strings; a lone string becomes one item."""
    if isinstance(value, str):
        value = [value]
    if not isinstance(value, (list, tuple)):
        return []
    return [text for text in (as_text(v) for v in value) if text]
