from __future__ import annotations

from collections.abc import Sequence

from SPECMAP.server.schemas.mapping import CanonicalSpecialty, SynonymsConfig
from SPECMAP.server.utils.configurations import MappingWeights
from SPECMAP.server.utils.services.mapping.records import MatchCandidate
from SPECMAP.server.utils.services.mapping.rules import find_negative_token
from SPECMAP.server.utils.services.text.normalization import tokenize_specialty
from SPECMAP.server.utils.services.text.similarity import SimilarityMetric
from SPECMAP.server.utils.types import clamp_unit


###############################################################################
class CandidateScorer:
    """
    Weighted multi-factor scoring of taxonomy candidates against one
    normalized specialty label.
    - token: share of label tokens (3+ chars) found in the candidate tags
    - synonym: subspecialty synonyms present in the label, capped at 1.0
    - char_sim: pluggable character similarity against the candidate name
    - negative: weights.negative when the candidate parent has a negative hit
    - source_hint: vendor specific hook, currently 0.0

    """

    def __init__(
        self,
        weights: MappingWeights,
        synonyms: SynonymsConfig,
        metric: SimilarityMetric,
    ) -> None:
        self.weights = weights
        self.synonyms = synonyms
        self.metric = metric

    # -------------------------------------------------------------------------
    def token_score(self, normalized: str, candidate: CanonicalSpecialty) -> float:
        tokens = tokenize_specialty(normalized)
        if not tokens:
            return 0.0
        tags = [tag.lower() for tag in candidate.tags]
        matches = sum(
            1 for token in tokens if any(token in tag or tag in token for tag in tags)
        )
        return matches / len(tokens)

    # -------------------------------------------------------------------------
    def synonym_score(self, normalized: str, candidate: CanonicalSpecialty) -> float:
        score = 0.0
        for tag, terms in self.synonyms.subspecialty_tokens.items():
            if tag not in candidate.tags or not terms:
                continue
            for term in terms:
                if term in normalized:
                    score += 1.0 / len(terms)
        return min(1.0, score)

    # -------------------------------------------------------------------------
    def char_sim_score(self, normalized: str, candidate: CanonicalSpecialty) -> float:
        return self.metric(normalized, candidate.name.lower())

    # -------------------------------------------------------------------------
    def has_negative_tokens(self, normalized: str, candidate: CanonicalSpecialty) -> bool:
        # same dictionary as the parent-level guard, which runs first
        return (
            find_negative_token(normalized, candidate.parent, self.synonyms.negative_tokens)
            is not None
        )

    # -------------------------------------------------------------------------
    def source_hint_score(
        self, normalized: str, candidate: CanonicalSpecialty, source: str
    ) -> float:
        return 0.0

    # -------------------------------------------------------------------------
    def score_candidate(
        self, normalized: str, candidate: CanonicalSpecialty, source: str
    ) -> MatchCandidate:
        token = self.token_score(normalized, candidate)
        synonym = self.synonym_score(normalized, candidate)
        char_sim = self.char_sim_score(normalized, candidate)
        source_hint = self.source_hint_score(normalized, candidate, source)

        score = (
            token * self.weights.token
            + synonym * self.weights.synonym
            + char_sim * self.weights.char_sim
            + source_hint * self.weights.source_hint
        )
        reasons = [
            f"token:{token:.2f}",
            f"synonym:{synonym:.2f}",
            f"charsim:{char_sim:.2f}",
            f"sourcehint:{source_hint:.2f}",
        ]
        if self.has_negative_tokens(normalized, candidate):
            score += self.weights.negative
            reasons.append("negative:penalty")

        return MatchCandidate(
            canonical_id=candidate.id,
            score=clamp_unit(score),
            reasons=reasons,
        )

    # -------------------------------------------------------------------------
    def score_candidates(
        self,
        normalized: str,
        candidates: Sequence[CanonicalSpecialty],
        source: str,
    ) -> list[MatchCandidate]:
        scored = [
            self.score_candidate(normalized, candidate, source) for candidate in candidates
        ]
        # sorted() is stable: ties keep taxonomy order
        return sorted(scored, key=lambda item: item.score, reverse=True)


__all__ = ["CandidateScorer"]
