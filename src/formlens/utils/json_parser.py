"""Recover a JSON object from free-form LLM response text.

Strategies run in order and the first one that yields valid JSON wins:

1. a fenced ```` ```json ```` code block
2. the first balanced ``{...}`` span
3. the raw text as is

Malformed JSON is never patched up; when every strategy fails the caller gets
a ``ResponseFormatError`` carrying the original text.
"""

import json
import logging
import re
from typing import Any, Callable, List, Optional

from ..errors import ResponseFormatError

logger = logging.getLogger(__name__)

_FENCED_JSON = re.compile(r"```json\s*\n(.*?)\n\s*```", re.DOTALL | re.IGNORECASE)


def extract_fenced_block(text: str) -> Optional[str]:
    """Return the body of the first ```` ```json ```` fenced block, if any."""
    match = _FENCED_JSON.search(text)
    return match.group(1) if match else None


def extract_json_object(text: str) -> Optional[str]:
    """
    Extract the first balanced JSON object from mixed content.

    Braces inside string literals are ignored.

    Args:
        text: Text that may contain JSON mixed with other content

    Returns:
        Extracted JSON string or None
    """
    start_idx = text.find("{")
    if start_idx == -1:
        return None

    brace_count = 0
    in_string = False
    escape_next = False

    for i in range(start_idx, len(text)):
        char = text[i]

        if escape_next:
            escape_next = False
            continue

        if char == "\\":
            escape_next = True
            continue

        if char == '"':
            in_string = not in_string
            continue

        if not in_string:
            if char == "{":
                brace_count += 1
            elif char == "}":
                brace_count -= 1
                if brace_count == 0:
                    return text[start_idx:i + 1]

    return None


def _raw_text(text: str) -> Optional[str]:
    return text


STRATEGIES: List[Callable[[str], Optional[str]]] = [
    extract_fenced_block,
    extract_json_object,
    _raw_text,
]


def parse_json_response(text: str) -> Any:
    """
    Parse JSON from LLM response text.

    Args:
        text: Raw text response from the model

    Returns:
        The decoded JSON value

    Raises:
        ResponseFormatError: If no strategy yields valid JSON
    """
    if not text or not text.strip():
        raise ResponseFormatError("Empty response from extraction model", raw_text=text or "")

    last_error: Optional[Exception] = None
    for strategy in STRATEGIES:
        candidate = strategy(text)
        if candidate is None:
            continue
        try:
            return json.loads(candidate)
        except json.JSONDecodeError as e:
            logger.debug(f"{strategy.__name__} candidate failed to parse: {e}")
            last_error = e

    raise ResponseFormatError(
        f"Failed to parse JSON from model response: {last_error}",
        raw_text=text,
    )
