"""Key normalization for matching folder names against record field values.

Field values come from the host table in whatever shape the field type
produces: plain strings and numbers, lists of rich-text segments, option
objects with a ``name``, user objects with a ``display`` label, and so on.
Everything is reduced to a single comparable string key.
"""
from __future__ import annotations

import json
import re
from typing import Any, Mapping

MAX_DEPTH = 3
LIST_SEPARATOR = ","
# Checked in order on mappings and objects; "text_arr" holds rich-text fragments.
TEXT_ATTRIBUTES = ("name", "display", "value")

WHITESPACE_RE = re.compile(r"\s+")
COPY_NUMBER_SUFFIX_RE = re.compile(r"\s*\(\d+\)\s*$")
COPY_MARKER_SUFFIX_RE = re.compile(r"\s*-\s*副本$")


def normalize_whitespace(text: str) -> str:
    """Collapse ASCII and ideographic whitespace runs to one space and trim."""
    return WHITESPACE_RE.sub(" ", text.replace("　", " ")).strip()


def normalize(value: Any, depth: int = 0) -> str:
    """Return the match key for an arbitrary field value.

    Args:
        value: Raw field value (``None``, scalar, sequence, or mapping).
        depth: Current nesting level; values nested deeper than
            ``MAX_DEPTH`` normalize to an empty string.

    Returns:
        The normalized key, possibly empty.

    Examples:
        >>> normalize("  Alice　 Smith ")
        'Alice Smith'
        >>> normalize([{"text": "A"}, None, 3])
        'A,3'
        >>> normalize({"name": "Option B"})
        'Option B'
    """
    if depth > MAX_DEPTH:
        return ""
    if value is None:
        return ""
    if isinstance(value, str):
        return normalize_whitespace(value)
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return _number_text(value)
    if isinstance(value, (list, tuple)):
        return _join(value, depth)
    text = _member(value, "text")
    if isinstance(text, str):
        return normalize_whitespace(text)
    fragments = _member(value, "text_arr")
    if isinstance(fragments, list):
        return _join(fragments, depth)
    for attribute in TEXT_ATTRIBUTES:
        candidate = _member(value, attribute)
        if isinstance(candidate, str):
            return normalize_whitespace(candidate)
    return normalize_whitespace(str(value))


def normalize_folder_name(folder: str) -> str:
    """Normalize a folder name, dropping OS copy suffixes first.

    Examples:
        >>> normalize_folder_name("Alice (2)")
        'Alice'
        >>> normalize_folder_name("Bob - 副本")
        'Bob'
    """
    base = normalize_whitespace(folder)
    cleaned = COPY_NUMBER_SUFFIX_RE.sub("", base)
    cleaned = COPY_MARKER_SUFFIX_RE.sub("", cleaned)
    return normalize(cleaned)


def describe_value(value: Any) -> str:
    """Render a raw field value for trace output."""
    if value is None:
        return ""
    if isinstance(value, (str, int, float, bool)):
        return str(value)
    try:
        return json.dumps(value, ensure_ascii=False, separators=(",", ":"))
    except (TypeError, ValueError):
        return str(value)


def quote_key(key: str) -> str:
    """Render a key as a JSON string literal so blank keys stay visible."""
    return json.dumps(key, ensure_ascii=False)


def _member(value: Any, name: str) -> Any:
    """Read ``name`` as a mapping key or, on other objects, an attribute."""
    if isinstance(value, Mapping):
        return value.get(name)
    return getattr(value, name, None)


def _join(items: Any, depth: int) -> str:
    parts = (normalize(item, depth + 1) for item in items)
    return LIST_SEPARATOR.join(part for part in parts if part)


def _number_text(value: float) -> str:
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)
