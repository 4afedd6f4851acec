# src/extraction/json_cleaner.py — v1
"""Recover a JSON document from free-form model output.

Extractors backed by language models tend to wrap JSON in markdown
fences or surround it with prose.
"""

from __future__ import annotations

import re

_FENCE_OPEN = re.compile(r"^```[\w-]*\s*\n?")
_FENCE_CLOSE = re.compile(r"\n?```\s*$")


def clean_json_response(raw: str | None, expect: str = "object") -> str:
    """Strip fences and prose around the outermost JSON value.

    Args:
        raw: Raw response text.
        expect: "object" keeps the outermost ``{...}``, "array" the
            outermost ``[...]``.

    Returns:
        Cleaned text. Empty string if input is empty.
    """
    if not raw:
        return ""
    text = raw.strip()
    text = _FENCE_OPEN.sub("", text)
    text = _FENCE_CLOSE.sub("", text)

    open_char, close_char = ("[", "]") if expect == "array" else ("{", "}")
    start = text.find(open_char)
    end = text.rfind(close_char)
    if start >= 0 and end > start:
        text = text[start : end + 1]
    return text.strip()
