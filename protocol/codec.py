"""Tolerant JSON decoding of free-text model output.

Generated text often wraps JSON in commentary or markdown code fences. The
decoder strips fences, then parses the first balanced ``[...]`` or ``{...}``
span that is valid JSON. "No JSON present" and "JSON present but
invalid" fail with distinct errors.
"""

import json
import re
from typing import Any, Optional

from utils.exceptions import NoJsonFound, ParseFailure

_FENCE_OPEN_RE = re.compile(r"^```[A-Za-z0-9_-]*[ \t]*\n?")
_FENCE_CLOSE_RE = re.compile(r"\n?```\s*$")
_CLOSERS = {"[": "]", "{": "}"}


def strip_code_fences(text: str) -> str:
    """Remove a leading ```lang fence and a trailing ``` fence if present."""
    content = text.strip()
    if content.startswith("```"):
        content = _FENCE_OPEN_RE.sub("", content, count=1)
        content = _FENCE_CLOSE_RE.sub("", content, count=1)
    return content.strip()


def find_json_span(text: str, start: int = 0) -> Optional[str]:
    """
    Return the first balanced ``[...]`` or ``{...}`` span at or after ``start``.

    Brackets inside JSON string literals are ignored. Returns None if no
    opening bracket has a matching close.
    """
    for open_pos in range(start, len(text)):
        if text[open_pos] not in _CLOSERS:
            continue
        end = _match_brackets(text, open_pos)
        if end is not None:
            return text[open_pos:end + 1]
    return None


def _match_brackets(text: str, open_pos: int) -> Optional[int]:
    stack = []
    in_string = False
    escaped = False
    for pos in range(open_pos, len(text)):
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
        elif ch in _CLOSERS:
            stack.append(_CLOSERS[ch])
        elif ch in ("]", "}"):
            if not stack or stack.pop() != ch:
                return None
            if not stack:
                return pos
    return None


def tolerant_loads(text: str) -> Any:
    """
    Decode JSON embedded in model output.

    Raises:
        NoJsonFound: If the text holds no balanced JSON span
        ParseFailure: If a span was found but is not valid JSON
    """
    if text is None:
        raise NoJsonFound("No JSON found in empty response")

    content = strip_code_fences(text)
    try:
        return json.loads(content)
    except ValueError:
        pass

    # Prose may contain bracketed asides before the payload; try spans in order
    last_error = None
    pos = 0
    while True:
        span = find_json_span(content, pos)
        if span is None:
            break
        try:
            return json.loads(span)
        except ValueError as e:
            last_error = e
            pos = content.index(span, pos) + 1

    if last_error is None:
        raise NoJsonFound("No JSON found in response", details=content[:200])
    raise ParseFailure("Response JSON could not be parsed", details=str(last_error))
