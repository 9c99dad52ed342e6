from __future__ import annotations

import re

_WHITESPACE = re.compile(r"\s+")
_DISALLOWED_CHARS = re.compile(r"[^\w\s가-힣\d.,:\-]")
_ISOLATED_CAPS = re.compile(r"\b[A-Z]{1,2}\b")
# 1-2 digit numbers on their own; digits joined to other digits through a
# separator ("1,234,500", "2024-03-15") are part of a larger number.
_ISOLATED_DIGITS = re.compile(r"(?<!\d[,./\-])\b\d{1,2}\b(?![,./\-]?\d)")


def normalize_text(raw: str | None) -> str:
    """Clean raw OCR output into a single line suitable for pattern matching.

    Collapses whitespace, drops characters outside word/Hangul/basic
    punctuation, and removes short uppercase and numeric tokens that OCR
    tends to hallucinate from table borders and stamps.
    """
    if not raw:
        return ""
    text = _WHITESPACE.sub(" ", raw)
    text = _DISALLOWED_CHARS.sub(" ", text)
    text = _ISOLATED_CAPS.sub(" ", text)
    text = _ISOLATED_DIGITS.sub(" ", text)
    return _WHITESPACE.sub(" ", text).strip()
