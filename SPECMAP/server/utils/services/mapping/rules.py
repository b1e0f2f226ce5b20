from __future__ import annotations

import re
from collections.abc import Iterable, Mapping, Sequence
from typing import Any

from SPECMAP.server.schemas.mapping import (
    CanonicalSpecialty,
    DomainHints,
    HardMapRule,
    OverrideMapping,
    RulesConfig,
    SynonymsConfig,
)
from SPECMAP.server.utils.constants import (
    ADULT_DOMAIN,
    PEDIATRIC_DOMAIN,
    PEDIATRIC_RULE_MARKER,
)
from SPECMAP.server.utils.types import coerce_bool


# -----------------------------------------------------------------------------
def pattern_matches(pattern: str, text: str) -> bool:
    # re.error from a malformed pattern propagates to the engine
    return re.search(pattern, text, re.IGNORECASE) is not None


# -----------------------------------------------------------------------------
def first_substring_hit(text: str, terms: Iterable[str]) -> str | None:
    for term in terms:
        if term and term.lower() in text:
            return term
    return None


# [OVERRIDES]
###############################################################################
def match_override(
    normalized: str, source: str, overrides: Sequence[OverrideMapping]
) -> OverrideMapping | None:
    for override in overrides:
        if override.source and override.source != source:
            continue
        if pattern_matches(override.pattern, normalized):
            return override
    return None


# [DOMAIN]
###############################################################################
def infer_domain(
    normalized: str, meta: Mapping[str, Any] | None, hints: DomainHints
) -> str:
    """Metadata flag first, then pediatric hints, then adult hints, then ADULT."""
    if meta and coerce_bool(meta.get("pediatric"), False):
        return PEDIATRIC_DOMAIN
    if first_substring_hit(normalized, hints.pediatric) is not None:
        return PEDIATRIC_DOMAIN
    if first_substring_hit(normalized, hints.adult) is not None:
        return ADULT_DOMAIN
    return ADULT_DOMAIN


# [HARD MAPS]
###############################################################################
def order_rule_sets(rule_sets: Sequence[RulesConfig], source: str) -> list[RulesConfig]:
    """Pediatric-tagged sets, then vendor-tagged sets, then the rest.

    Three explicit passes; every rule set is visited once, at its first group.
    """
    vendor_marker = source.upper()
    remaining = list(rule_sets)

    pediatric: list[RulesConfig] = []
    leftover: list[RulesConfig] = []
    for rule_set in remaining:
        if rule_set_references(rule_set, PEDIATRIC_RULE_MARKER):
            pediatric.append(rule_set)
        else:
            leftover.append(rule_set)
    remaining = leftover

    vendor: list[RulesConfig] = []
    leftover = []
    for rule_set in remaining:
        if vendor_marker and rule_set_references(rule_set, vendor_marker):
            vendor.append(rule_set)
        else:
            leftover.append(rule_set)
    remaining = leftover

    return [*pediatric, *vendor, *remaining]


# -----------------------------------------------------------------------------
def rule_set_references(rule_set: RulesConfig, marker: str) -> bool:
    return any(marker in rule.id for rule in rule_set.hard_maps)


# -----------------------------------------------------------------------------
def match_hard_map(
    normalized: str,
    domain: str,
    source: str,
    rule_sets: Sequence[RulesConfig],
    taxonomy_index: Mapping[str, CanonicalSpecialty],
) -> HardMapRule | None:
    for rule_set in order_rule_sets(rule_sets, source):
        for rule in rule_set.hard_maps:
            if not pattern_matches(rule.pattern, normalized):
                continue
            canonical = taxonomy_index.get(rule.canonical_id)
            if canonical is not None and canonical.domain == domain:
                return rule
    return None


# [PARENT BUCKETS]
###############################################################################
def resolve_parent_bucket(
    normalized: str, synonyms: SynonymsConfig, rule_sets: Sequence[RulesConfig]
) -> str | None:
    for parent, terms in synonyms.parent_synonyms.items():
        if first_substring_hit(normalized, terms) is not None:
            return parent
    for rule_set in rule_sets:
        for hint in rule_set.bucketing_hints:
            if pattern_matches(hint.pattern, normalized):
                return hint.parent
    return None


# -----------------------------------------------------------------------------
def find_negative_token(
    normalized: str, parent: str, negative_tokens: Mapping[str, Sequence[str]]
) -> str | None:
    return first_substring_hit(normalized, negative_tokens.get(parent, ()))


# [CANDIDATES]
###############################################################################
def select_candidates(
    taxonomy: Iterable[CanonicalSpecialty], domain: str, parent: str
) -> list[CanonicalSpecialty]:
    return [
        specialty
        for specialty in taxonomy
        if specialty.domain == domain and specialty.parent == parent
    ]


__all__ = [
    "find_negative_token",
    "first_substring_hit",
    "infer_domain",
    "match_hard_map",
    "match_override",
    "order_rule_sets",
    "pattern_matches",
    "resolve_parent_bucket",
    "rule_set_references",
    "select_candidates",
]
