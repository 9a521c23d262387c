"""
Recovering a JSON object from free-form model output.

Model text is untrusted: it may wrap the object in prose or markdown
fences, leave trailing commas, or use single quotes. Nothing here raises;
unusable text yields None.
"""

import json
import re
from typing import Any

_TRAILING_COMMA = re.compile(r',\s*([}\]])')


def extract_json_object(text: str | None) -> str | None:
    """
    Return the first balanced ``{...}`` substring of ``text``.

    Braces inside double-quoted strings (including escaped quotes) do not
    count towards nesting; quoting is tracked from the first opening brace.
    If an opening brace never closes, the earliest-starting object that did
    close is returned. The text is scanned once.

    Args:
        text: Raw model output

    Returns:
        The object substring, or None if there is no balanced object
    """
    if not text:
        return None

    start = text.find('{')
    if start == -1:
        return None

    open_at: list[int] = []
    best: tuple[int, int] | None = None
    in_string = False
    escaped = False
    for i in range(start, len(text)):
        ch = text[i]
        if in_string:
            if escaped:
                escaped = False
            elif ch == '\\':
                escaped = True
            elif ch == '"':
                in_string = False
            continue
        if ch == '"':
            in_string = True
        elif ch == '{':
            open_at.append(i)
        elif ch == '}' and open_at:
            begin = open_at.pop()
            if not open_at:
                return text[begin:i + 1]
            if best is None or begin < best[0]:
                best = (begin, i + 1)
    if best is None:
        return None
    return text[best[0]:best[1]]


def repair_json(text: str) -> str:
    """
    Apply cheap textual fixes for near-JSON.

    Trims to the outermost braces, drops trailing commas before a closing
    bracket, and turns single quotes into double quotes.
    """
    repaired = text.strip()
    first = repaired.find('{')
    if first > 0:
        repaired = repaired[first:]
    last = repaired.rfind('}')
    if last != -1:
        repaired = repaired[:last + 1]
    repaired = _TRAILING_COMMA.sub(r'\1', repaired)
    return repaired.replace("'", '"')


def _loads_object(text: str) -> dict[str, Any] | None:
    try:
        value = json.loads(text)
    except (ValueError, RecursionError):
        return None
    return value if isinstance(value, dict) else None


def parse_model_content(content: str | None) -> dict[str, Any] | None:
    """
    Decode the JSON object carried by a model response.

    Tries the first balanced object as-is, then the repaired object, then
    the repaired full text.

    Returns:
        The decoded object, or None when the content has no usable object
    """
    if not content or not content.strip():
        return None

    candidate = extract_json_object(content)
    if candidate is not None:
        parsed = _loads_object(candidate)
        if parsed is not None:
            return parsed
        parsed = _loads_object(repair_json(candidate))
        if parsed is not None:
            return parsed

    return _loads_object(repair_json(content))
