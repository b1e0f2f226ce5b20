from __future__ import annotations

from typing import Any

import pandas as pd

from SPECMAP.server.utils.constants import MIN_TOKEN_LENGTH
from SPECMAP.server.utils.patterns import SPECIALTY_SEPARATOR_RE, WHITESPACE_RE


# -----------------------------------------------------------------------------
def coerce_text(value: Any) -> str | None:
    if value is None:
        return None
    if isinstance(value, str):
        text = value.strip()
        return text or None
    try:
        if pd.isna(value):
            return None
    except (TypeError, ValueError):
        pass
    text = str(value).strip()
    return text or None


# -----------------------------------------------------------------------------
def normalize_whitespace(value: str) -> str:
    if not value:
        return ""
    return WHITESPACE_RE.sub(" ", value).strip()


# -----------------------------------------------------------------------------
def normalize_specialty_name(value: Any) -> str:
    """Lowercase a raw specialty label, turn `, : ; - _` into spaces and
    collapse whitespace. Applying it twice gives the same result as once.
    """
    text = coerce_text(value)
    if text is None:
        return ""
    lowered = text.lower().strip()
    separated = SPECIALTY_SEPARATOR_RE.sub(" ", lowered)
    return normalize_whitespace(separated)


# -----------------------------------------------------------------------------
def tokenize_specialty(normalized: str, min_length: int = MIN_TOKEN_LENGTH) -> list[str]:
    if not normalized:
        return []
    return [token for token in normalized.split(" ") if len(token) >= min_length]


__all__ = [
    "coerce_text",
    "normalize_specialty_name",
    "normalize_whitespace",
    "tokenize_specialty",
]
