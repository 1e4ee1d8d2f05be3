"""Text normalization for names and free-form reasons."""

from __future__ import annotations

import re

_WORD = re.compile(r"\S+")


def title_case(value: str) -> str:
    """Capitalize the first letter of every word and lowercase the rest.

    Whitespace between words is kept as-is.
    """
    return _WORD.sub(lambda m: m.group(0)[:1].upper() + m.group(0)[1:].lower(), value)


def clean_text(value: str | None) -> str | None:
    """Strip whitespace and return None for empty strings."""
    if value is None:
        return None
    value = value.strip()
    return value if value else None
