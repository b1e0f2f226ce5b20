from __future__ import annotations

from collections.abc import Sequence
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import TYPE_CHECKING

from SPECMAP.server.schemas.mapping import (
    CanonicalSpecialty,
    HardMapRule,
    OverrideMapping,
    RawInput,
    RulesConfig,
    SynonymsConfig,
)
from SPECMAP.server.utils.configurations import (
    DEFAULT_MAPPING_SETTINGS,
    MappingSettings,
)
from SPECMAP.server.utils.constants import OVERRIDE_RULE_PREFIX, SCORING_RULE_ID
from SPECMAP.server.utils.logger import logger
from SPECMAP.server.utils.services.mapping.records import (
    MappingDecision,
    MappingSuggestion,
    MatchCandidate,
)
from SPECMAP.server.utils.services.mapping.rules import (
    find_negative_token,
    infer_domain,
    match_hard_map,
    match_override,
    resolve_parent_bucket,
    select_candidates,
)
from SPECMAP.server.utils.services.mapping.scoring import CandidateScorer
from SPECMAP.server.utils.services.text.normalization import normalize_specialty_name
from SPECMAP.server.utils.services.text.similarity import (
    SimilarityMetric,
    select_similarity_metric,
)
from SPECMAP.server.utils.types import clamp_unit

if TYPE_CHECKING:
    from SPECMAP.server.utils.repository.resources import MappingResources


###############################################################################
class SpecialtyMappingEngine:
    """
    Deterministic specialty auto-mapper.
    - Configuration is injected once and never mutated afterwards.
    - Overrides and hard maps short-circuit scoring.
    - Adult and pediatric candidates are never mixed.

    """

    def __init__(
        self,
        config: MappingSettings = DEFAULT_MAPPING_SETTINGS,
        taxonomy: Sequence[CanonicalSpecialty] = (),
        synonyms: SynonymsConfig | None = None,
        rules: Sequence[RulesConfig] = (),
        overrides: Sequence[OverrideMapping] = (),
    ) -> None:
        self.config = config
        self.taxonomy: tuple[CanonicalSpecialty, ...] = tuple(taxonomy)
        self.synonyms = synonyms if synonyms is not None else SynonymsConfig()
        self.rules: tuple[RulesConfig, ...] = tuple(rules)
        self.overrides: tuple[OverrideMapping, ...] = tuple(overrides)
        self.taxonomy_index: dict[str, CanonicalSpecialty] = {}
        for specialty in self.taxonomy:
            self.taxonomy_index.setdefault(specialty.id, specialty)
        self.similarity_metric: SimilarityMetric = select_similarity_metric(
            config.feature_flags
        )
        self.scorer = CandidateScorer(config.weights, self.synonyms, self.similarity_metric)

    # -------------------------------------------------------------------------
    @classmethod
    def from_resources(
        cls, resources: MappingResources, config: MappingSettings | None = None
    ) -> SpecialtyMappingEngine:
        return cls(
            config=config or DEFAULT_MAPPING_SETTINGS,
            taxonomy=resources.taxonomy,
            synonyms=resources.synonyms,
            rules=resources.rules,
            overrides=resources.overrides,
        )

    # -------------------------------------------------------------------------
    def map_specialty(self, input: RawInput) -> MappingDecision:
        try:
            decision = self.run_pipeline(input)
        except Exception as exc:  # noqa: BLE001
            logger.warning(
                "Mapping failed for '%s' (%s): %s",
                getattr(input, "raw_name", input),
                getattr(input, "source", None),
                exc,
            )
            return self.create_undecided_decision(input, f"Error: {exc}")
        logger.debug(
            "Mapped '%s' (%s) to %s (confidence=%.3f): %s",
            input.raw_name,
            input.source,
            decision.decided_canonical_id,
            decision.confidence,
            decision.notes,
        )
        return decision

    # -------------------------------------------------------------------------
    def map_batch(
        self, inputs: Sequence[RawInput], max_workers: int | None = None
    ) -> list[MappingDecision]:
        total = len(inputs)
        workers = max_workers if max_workers is not None else self.config.batch_workers
        workers = min(max(1, workers), max(1, total))
        results: list[MappingDecision | None] = [None] * total
        if workers == 1:
            for idx, item in enumerate(inputs):
                results[idx] = self.map_specialty(item)
        else:
            with ThreadPoolExecutor(max_workers=workers) as executor:
                futures = {
                    executor.submit(self.map_specialty, item): idx
                    for idx, item in enumerate(inputs)
                }
                for future in as_completed(futures):
                    results[futures[future]] = future.result()

        decisions = [decision for decision in results if decision is not None]
        decided = sum(1 for decision in decisions if decision.is_decided)
        logger.info(
            "Mapped batch of %d specialties: %d decided, %d undecided",
            total,
            decided,
            total - decided,
        )
        return decisions

    # -------------------------------------------------------------------------
    def run_pipeline(self, input: RawInput) -> MappingDecision:
        normalized = normalize_specialty_name(input.raw_name)

        override = match_override(normalized, input.source, self.overrides)
        if override is not None:
            return self.create_override_decision(input, override)

        domain = infer_domain(normalized, input.meta, self.synonyms.domain_hints)

        rule = match_hard_map(
            normalized, domain, input.source, self.rules, self.taxonomy_index
        )
        if rule is not None:
            return self.create_hard_map_decision(input, rule, domain)

        parent = resolve_parent_bucket(normalized, self.synonyms, self.rules)
        if parent is None:
            return self.create_undecided_decision(
                input, "No parent bucket determined", domain=domain
            )

        negative = find_negative_token(normalized, parent, self.synonyms.negative_tokens)
        if negative is not None:
            return self.create_undecided_decision(
                input,
                f"Negative tokens found for parent: {parent} ('{negative}')",
                domain=domain,
                parent=parent,
            )

        candidates = select_candidates(self.taxonomy, domain, parent)
        if not candidates:
            return self.create_undecided_decision(
                input,
                f"No candidates found for domain: {domain}, parent: {parent}",
                domain=domain,
                parent=parent,
            )

        scored = self.scorer.score_candidates(normalized, candidates, input.source)
        return self.make_decision(input, scored, domain, parent)

    # -------------------------------------------------------------------------
    def make_decision(
        self,
        input: RawInput,
        candidates: list[MatchCandidate],
        domain: str,
        parent: str,
    ) -> MappingDecision:
        if not candidates:
            return self.create_undecided_decision(
                input, "No candidates found", domain=domain, parent=parent
            )
        top = candidates[0]
        threshold = self.config.min_decision_threshold
        if top.score >= threshold:
            return MappingDecision(
                input=input,
                decided_canonical_id=top.canonical_id,
                confidence=top.score,
                applied_rule_ids=[SCORING_RULE_ID],
                candidates=candidates,
                notes=f"Auto-decided with confidence {top.score:.3f}",
                domain=domain,
                parent=parent,
            )
        return MappingDecision(
            input=input,
            decided_canonical_id=None,
            confidence=top.score,
            applied_rule_ids=[SCORING_RULE_ID],
            candidates=candidates,
            notes=f"Below threshold ({threshold}), top candidate: {top.canonical_id}",
            domain=domain,
            parent=parent,
        )

    # -------------------------------------------------------------------------
    def create_override_decision(
        self, input: RawInput, override: OverrideMapping
    ) -> MappingDecision:
        confidence = clamp_unit(self.config.hard_map_confidence)
        return MappingDecision(
            input=input,
            decided_canonical_id=override.canonical_id,
            confidence=confidence,
            applied_rule_ids=[f"{OVERRIDE_RULE_PREFIX}{override.id}"],
            candidates=[
                MatchCandidate(
                    canonical_id=override.canonical_id,
                    score=confidence,
                    reasons=[f"override:{override.id}"],
                )
            ],
            notes=f"Override mapping: {override.reason or 'No reason provided'}",
        )

    # -------------------------------------------------------------------------
    def create_hard_map_decision(
        self, input: RawInput, rule: HardMapRule, domain: str
    ) -> MappingDecision:
        raw_confidence = (
            rule.confidence if rule.confidence is not None else self.config.hard_map_confidence
        )
        confidence = clamp_unit(raw_confidence)
        canonical = self.taxonomy_index.get(rule.canonical_id)
        return MappingDecision(
            input=input,
            decided_canonical_id=rule.canonical_id,
            confidence=confidence,
            applied_rule_ids=[rule.id],
            candidates=[
                MatchCandidate(
                    canonical_id=rule.canonical_id,
                    score=confidence,
                    reasons=[f"hardmap:{rule.id}"],
                )
            ],
            notes=f"Hard mapped by rule: {rule.id}",
            domain=domain,
            parent=canonical.parent if canonical is not None else None,
        )

    # -------------------------------------------------------------------------
    def create_undecided_decision(
        self,
        input: RawInput,
        reason: str,
        domain: str | None = None,
        parent: str | None = None,
    ) -> MappingDecision:
        return MappingDecision(
            input=input,
            decided_canonical_id=None,
            confidence=0.0,
            applied_rule_ids=[],
            candidates=[],
            notes=reason,
            domain=domain,
            parent=parent,
        )

    # -------------------------------------------------------------------------
    def find_canonical(self, canonical_id: str) -> CanonicalSpecialty | None:
        return self.taxonomy_index.get(canonical_id)

    # -------------------------------------------------------------------------
    def get_mapping_suggestions(self, input: RawInput) -> list[MappingSuggestion]:
        decision = self.map_specialty(input)
        suggestions: list[MappingSuggestion] = []
        for candidate in decision.candidates:
            canonical = self.find_canonical(candidate.canonical_id)
            suggestions.append(
                MappingSuggestion(
                    canonical_id=candidate.canonical_id,
                    name=canonical.name if canonical is not None else candidate.canonical_id,
                    confidence=candidate.score,
                    reasons=list(candidate.reasons),
                )
            )
        return suggestions


__all__ = ["MappingSuggestion", "SpecialtyMappingEngine"]
