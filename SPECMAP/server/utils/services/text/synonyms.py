from __future__ import annotations

import json
from typing import Any

from SPECMAP.server.utils.patterns import SYNONYM_SPLIT_RE
from SPECMAP.server.utils.services.text.normalization import (
    coerce_text,
    normalize_specialty_name,
)


# -----------------------------------------------------------------------------
def try_parse_json(value: str) -> Any:
    if not value:
        return None
    try:
        return json.loads(value)
    except (TypeError, ValueError):
        return None


# -----------------------------------------------------------------------------
def extract_synonym_strings(
    value: Any, seen_refs: set[int] | None = None
) -> list[str]:
    if seen_refs is None:
        seen_refs = set()
    if value is None:
        return []
    if isinstance(value, dict):
        marker = id(value)
        if marker in seen_refs:
            return []
        seen_refs.add(marker)
        collected: list[str] = []
        for entry in value.values():
            collected.extend(extract_synonym_strings(entry, seen_refs))
        return collected
    if isinstance(value, (list, tuple, set, frozenset)):
        marker = id(value)
        if marker in seen_refs:
            return []
        seen_refs.add(marker)
        collected = []
        for entry in value:
            collected.extend(extract_synonym_strings(entry, seen_refs))
        return collected
    if isinstance(value, str):
        stripped = value.strip()
        if stripped.startswith(("{", "[")) and stripped.endswith(("}", "]")):
            parsed = try_parse_json(stripped)
            if isinstance(parsed, (dict, list)):
                return extract_synonym_strings(parsed, seen_refs)
        return [value]
    text = coerce_text(value)
    if text is None:
        return []
    return [text]


# -----------------------------------------------------------------------------
def split_synonym_variants(value: str) -> list[str]:
    if not value:
        return []
    variants: list[str] = []
    for segment in SYNONYM_SPLIT_RE.split(value):
        stripped = segment.strip()
        if stripped:
            variants.append(stripped)
    return variants


# -----------------------------------------------------------------------------
def parse_synonym_list(value: Any) -> tuple[str, ...]:
    """Flatten a synonym payload into normalized, de-duplicated terms.

    Terms go through the same normalizer as raw specialty names so that
    substring tests compare like with like. First occurrence wins the slot.
    """
    synonyms: list[str] = []
    seen: set[str] = set()
    for raw in extract_synonym_strings(value):
        for variant in split_synonym_variants(raw):
            normalized = normalize_specialty_name(variant)
            if normalized and normalized not in seen:
                seen.add(normalized)
                synonyms.append(normalized)
    return tuple(synonyms)


# -----------------------------------------------------------------------------
def parse_synonym_mapping(value: Any) -> dict[str, tuple[str, ...]]:
    # keys keep their configured order; it decides parent resolution ties
    if value is None:
        return {}
    if isinstance(value, str):
        value = try_parse_json(value.strip())
    if not isinstance(value, dict):
        raise ValueError("Synonym mapping must be a JSON object of lists")
    mapping: dict[str, tuple[str, ...]] = {}
    for key, entries in value.items():
        label = coerce_text(key)
        if label is None:
            continue
        mapping[label] = parse_synonym_list(entries)
    return mapping


__all__ = [
    "extract_synonym_strings",
    "parse_synonym_list",
    "parse_synonym_mapping",
    "split_synonym_variants",
    "try_parse_json",
]
