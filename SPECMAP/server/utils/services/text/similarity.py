from __future__ import annotations

from abc import ABC, abstractmethod

from rapidfuzz.distance import Levenshtein

from SPECMAP.server.utils.configurations import MappingFeatureFlags
from SPECMAP.server.utils.types import clamp_unit


###############################################################################
class SimilarityMetric(ABC):
    """Character-level similarity between two normalized strings, in [0, 1]."""

    name: str = "similarity"

    # -------------------------------------------------------------------------
    @abstractmethod
    def similarity(self, left: str, right: str) -> float: ...

    # -------------------------------------------------------------------------
    def __call__(self, left: str, right: str) -> float:
        return clamp_unit(self.similarity(left or "", right or ""))

    # -------------------------------------------------------------------------
    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r})"


# -----------------------------------------------------------------------------
def jaro_similarity(left: str, right: str) -> float:
    """Jaro similarity; transpositions are half the mismatched pairs, kept
    fractional (rapidfuzz `Jaro` floors the halving).
    """
    if left == right:
        return 1.0
    if not left or not right:
        return 0.0
    window = max(len(left), len(right)) // 2 - 1
    left_flags = [False] * len(left)
    right_flags = [False] * len(right)
    matches = 0
    for i, char in enumerate(left):
        start = max(0, i - window)
        end = min(i + window + 1, len(right))
        for j in range(start, end):
            if right_flags[j] or right[j] != char:
                continue
            left_flags[i] = right_flags[j] = True
            matches += 1
            break
    if matches == 0:
        return 0.0

    right_matched = [char for char, flag in zip(right, right_flags) if flag]
    left_matched = [char for char, flag in zip(left, left_flags) if flag]
    mismatches = sum(1 for a, b in zip(left_matched, right_matched) if a != b)
    return (
        matches / len(left)
        + matches / len(right)
        + (matches - mismatches / 2) / matches
    ) / 3


###############################################################################
class JaroWinklerSimilarity(SimilarityMetric):
    """
    Jaro similarity boosted by the shared prefix (at most 4 characters).
    The prefix boost applies at every Jaro level, with no 0.7 cut-off.

    """

    name = "jaro_winkler"
    max_prefix = 4

    def __init__(self, prefix_weight: float = 0.1) -> None:
        self.prefix_weight = prefix_weight

    # -------------------------------------------------------------------------
    def common_prefix(self, left: str, right: str) -> int:
        prefix = 0
        for left_char, right_char in zip(left[: self.max_prefix], right):
            if left_char != right_char:
                break
            prefix += 1
        return prefix

    # -------------------------------------------------------------------------
    def similarity(self, left: str, right: str) -> float:
        if left == right:
            return 1.0
        jaro = jaro_similarity(left, right)
        prefix = self.common_prefix(left, right)
        return jaro + self.prefix_weight * prefix * (1.0 - jaro)


###############################################################################
class TokenSetSimilarity(SimilarityMetric):
    # Jaccard index over whitespace-separated token sets
    name = "token_set_ratio"

    def similarity(self, left: str, right: str) -> float:
        left_tokens = set(left.split())
        right_tokens = set(right.split())
        union = left_tokens | right_tokens
        if not union:
            return 1.0
        return len(left_tokens & right_tokens) / len(union)


###############################################################################
class LevenshteinSimilarity(SimilarityMetric):
    # 1 - distance / max(len(left), len(right))
    name = "levenshtein"

    def similarity(self, left: str, right: str) -> float:
        if not left and not right:
            return 1.0
        return Levenshtein.normalized_similarity(left, right)


SIMILARITY_METRICS: dict[str, type[SimilarityMetric]] = {
    JaroWinklerSimilarity.name: JaroWinklerSimilarity,
    TokenSetSimilarity.name: TokenSetSimilarity,
    LevenshteinSimilarity.name: LevenshteinSimilarity,
}


# -----------------------------------------------------------------------------
def select_similarity_metric(flags: MappingFeatureFlags) -> SimilarityMetric:
    if flags.use_jaro_winkler:
        return JaroWinklerSimilarity()
    if flags.use_token_set_ratio:
        return TokenSetSimilarity()
    return LevenshteinSimilarity()


__all__ = [
    "JaroWinklerSimilarity",
    "LevenshteinSimilarity",
    "SIMILARITY_METRICS",
    "SimilarityMetric",
    "TokenSetSimilarity",
    "jaro_similarity",
    "select_similarity_metric",
]
