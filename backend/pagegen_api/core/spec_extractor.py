"""Parse free-text model output into a JSON object"""

import json
import re
import logging
from typing import Any, Callable, Dict, List, Optional

logger = logging.getLogger(__name__)

_JSON_FENCE = re.compile(r"```json\s*([\s\S]*?)```", re.IGNORECASE)
_ANY_FENCE = re.compile(r"```\s*([\s\S]*?)```")


class SpecParseError(ValueError):
    """No framing of the model output yielded a JSON object"""


def _json_fence(text: str) -> Optional[str]:
    match = _JSON_FENCE.search(text)
    return match.group(1) if match else None


def _any_fence(text: str) -> Optional[str]:
    match = _ANY_FENCE.search(text)
    return match.group(1) if match else None


def _outer_braces(text: str) -> Optional[str]:
    first = text.find("{")
    last = text.rfind("}")
    if first == -1 or last <= first:
        return None
    return text[first:last + 1]


def _whole_text(text: str) -> Optional[str]:
    return text


# Most specific framing first; the whole text is the last resort.
STRATEGIES: List[Callable[[str], Optional[str]]] = [
    _json_fence,
    _any_fence,
    _outer_braces,
    _whole_text,
]


def extract_json_object(text: str) -> Dict[str, Any]:
    """
    Extract the first parseable JSON object from model output.

    Tries a ```json fence, any fence, the first-{ to last-} slice and finally
    the whole text. A framing that is absent is skipped; one that is present
    but does not hold a JSON object falls through to the next.

    Raises:
        SpecParseError: chained from the last framing's failure
    """
    last_error: Optional[Exception] = None

    for strategy in STRATEGIES:
        candidate = strategy(text)
        if candidate is None:
            continue
        try:
            parsed = json.loads(candidate)
        except ValueError as e:
            logger.debug(f"[EXTRACTOR] {strategy.__name__} failed: {e}")
            last_error = e
            continue
        if not isinstance(parsed, dict):
            last_error = ValueError(f"expected a JSON object, got {type(parsed).__name__}")
            logger.debug(f"[EXTRACTOR] {strategy.__name__} failed: {last_error}")
            continue
        logger.debug(f"[EXTRACTOR] Parsed object via {strategy.__name__} ({len(parsed)} keys)")
        return parsed

    raise SpecParseError(f"Model output is not valid JSON: {last_error}") from last_error
