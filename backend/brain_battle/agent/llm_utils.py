"""Helpers for turning model output into JSON objects."""

import json
import re
from typing import Any

from brain_battle.core.logging import get_logger

logger = get_logger(__name__)

_TRAILING_COMMA = re.compile(r",(\s*[}\]])")
_CODE_FENCE = re.compile(r"```(?:json|javascript|js|text)?\s*\n(.*?)\n\s*```", re.DOTALL | re.IGNORECASE)

_decoder = json.JSONDecoder()


def _strip_trailing_commas(text: str) -> str:
    """Remove commas that directly precede a closing bracket."""
    return _TRAILING_COMMA.sub(r"\1", text)


def _loads(text: str) -> Any:
    try:
        return json.loads(_strip_trailing_commas(text.strip()))
    except ValueError:
        return None


def _first_embedded_object(text: str) -> Any:
    """Decode the first JSON object that starts somewhere inside ``text``.

    Models in JSON mode occasionally prepend a sentence or a reasoning
    trace. ``raw_decode`` stops at the end of the first complete value, so
    trailing chatter after the object is ignored as well.
    """
    cleaned = _strip_trailing_commas(text)
    for match in re.finditer(r"\{", cleaned):
        try:
            value, _ = _decoder.raw_decode(cleaned, match.start())
        except ValueError:
            continue
        if isinstance(value, dict):
            return value
    return None


def parse_llm_json_object(content: str | None) -> dict[str, Any]:
    """Parse a model completion that is expected to hold one JSON object.

    Strategies, in order: the whole text, the first fenced code block, the
    first decodable object embedded in surrounding prose. Trailing commas
    are tolerated by all three.

    Raises:
        ValueError: If the content is empty, holds no JSON object, or holds
            JSON whose top level is not an object.
    """
    if not content or not content.strip():
        raise ValueError("Empty LLM response")

    result = _loads(content)
    if result is None:
        fenced = _CODE_FENCE.search(content)
        if fenced:
            result = _loads(fenced.group(1))
            if result is not None:
                logger.debug("Parsed JSON from code block")
    if result is None:
        result = _first_embedded_object(content)
        if result is not None:
            logger.debug("Parsed JSON embedded in text")

    if result is None:
        logger.error("Failed to parse LLM JSON response", content_preview=content[:200])
        raise ValueError("Failed to parse LLM JSON response: no valid JSON found")
    if not isinstance(result, dict):
        raise ValueError(f"Expected a JSON object, got {type(result).__name__}")
    return result
