from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from SPECMAP.server.schemas.mapping import RawInput
from SPECMAP.server.utils.types import clamp_unit


###############################################################################
@dataclass(slots=True)
class MatchCandidate:
    canonical_id: str
    score: float
    reasons: list[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        self.score = clamp_unit(self.score)

    # -------------------------------------------------------------------------
    def to_dict(self) -> dict[str, Any]:
        return {
            "canonical_id": self.canonical_id,
            "score": self.score,
            "reasons": list(self.reasons),
        }


###############################################################################
@dataclass(slots=True)
class MappingDecision:
    input: RawInput
    decided_canonical_id: str | None
    confidence: float
    applied_rule_ids: list[str] = field(default_factory=list)
    candidates: list[MatchCandidate] = field(default_factory=list)
    notes: str = ""
    domain: str | None = None
    parent: str | None = None

    def __post_init__(self) -> None:
        self.confidence = clamp_unit(self.confidence)

    # -------------------------------------------------------------------------
    @property
    def is_decided(self) -> bool:
        return self.decided_canonical_id is not None

    # -------------------------------------------------------------------------
    @property
    def top_candidate(self) -> MatchCandidate | None:
        return self.candidates[0] if self.candidates else None

    # -------------------------------------------------------------------------
    def to_dict(self) -> dict[str, Any]:
        return {
            "input": self.input.model_dump(),
            "decided_canonical_id": self.decided_canonical_id,
            "confidence": self.confidence,
            "applied_rule_ids": list(self.applied_rule_ids),
            "candidates": [candidate.to_dict() for candidate in self.candidates],
            "notes": self.notes,
            "domain": self.domain,
            "parent": self.parent,
        }


###############################################################################
@dataclass(slots=True)
class MappingSuggestion:
    canonical_id: str
    name: str
    confidence: float
    reasons: list[str] = field(default_factory=list)


__all__ = ["MappingDecision", "MappingSuggestion", "MatchCandidate"]
