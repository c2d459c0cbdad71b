"""Utilities for locating a JSON payload inside free-form model output."""

import json
import re
from typing import Any, Dict, Iterator, Optional

_FENCE_PATTERN = re.compile(r'```(?:json)?\s*\n?(.*?)\n?```', re.DOTALL)


def clean_json_fence(text: str) -> str:
    """Remove markdown JSON fence from text.

    Args:
        text: Text that may contain ```json ... ```

    Returns:
        Fence content if a fence is present, otherwise stripped text
    """
    match = _FENCE_PATTERN.search(text)
    if match:
        return match.group(1).strip()
    return text.strip()


def _balanced_objects(text: str) -> Iterator[str]:
    """Yield every balanced {...} span, scanning from each opening brace.

    Braces inside JSON string literals are ignored.
    """
    start = text.find("{")
    while start != -1:
        depth = 0
        in_string = False
        escaped = False
        end: Optional[int] = None

        for pos in range(start, len(text)):
            ch = text[pos]
            if in_string:
                if escaped:
                    escaped = False
                elif ch == "\\":
                    escaped = True
                elif ch == '"':
                    in_string = False
                continue

            if ch == '"':
                in_string = True
            elif ch == "{":
                depth += 1
            elif ch == "}":
                depth -= 1
                if depth == 0:
                    end = pos
                    break

        if end is not None:
            yield text[start:end + 1]
        start = text.find("{", start + 1)


def extract_json_object(text: Optional[str]) -> Dict[str, Any]:
    """Extract the first JSON object embedded in model output.

    Tries, in order: the whole (fence-stripped) text, then each balanced
    brace span from left to right.

    Args:
        text: Raw model response text

    Returns:
        Parsed JSON object

    Raises:
        ValueError: If no JSON object can be found

    Examples:
        >>> extract_json_object('Sure! {"order": ["a.png"]} Hope it helps.')
        {'order': ['a.png']}
    """
    if not isinstance(text, str) or not text.strip():
        raise ValueError("Empty response text")

    cleaned = clean_json_fence(text)

    try:
        parsed = json.loads(cleaned)
        if isinstance(parsed, dict):
            return parsed
    except json.JSONDecodeError:
        pass

    for candidate in _balanced_objects(cleaned):
        try:
            parsed = json.loads(candidate)
        except json.JSONDecodeError:
            continue
        if isinstance(parsed, dict):
            return parsed

    raise ValueError(f"No JSON object found in response: {text[:200]!r}")
