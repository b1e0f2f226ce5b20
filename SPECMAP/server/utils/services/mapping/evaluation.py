from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

import pandas as pd

from SPECMAP.server.schemas.mapping import MappingTestCase, RawInput
from SPECMAP.server.utils.constants import KNOWN_SOURCES
from SPECMAP.server.utils.logger import logger
from SPECMAP.server.utils.services.mapping.records import MappingDecision

if TYPE_CHECKING:
    from SPECMAP.server.utils.services.mapping.engine import SpecialtyMappingEngine


DECISION_FRAME_COLUMNS = [
    "source",
    "raw_name",
    "decided_canonical_id",
    "confidence",
    "applied_rule_ids",
    "domain",
    "parent",
    "top_candidate_id",
    "top_candidate_score",
    "notes",
]


###############################################################################
@dataclass(slots=True)
class ConfusionEntry:
    input: RawInput
    decision: MappingDecision
    domain: str | None
    parent: str | None


# -----------------------------------------------------------------------------
@dataclass(slots=True)
class MappingSummary:
    total_processed: int
    auto_decided: int
    undecided: int
    auto_decide_rate: float
    average_confidence: float
    source_breakdown: dict[str, int] = field(default_factory=dict)
    confusion_report: list[ConfusionEntry] = field(default_factory=list)


# -----------------------------------------------------------------------------
@dataclass(slots=True)
class EvaluationFailure:
    case_id: str
    expected_canonical_id: str | None
    actual_canonical_id: str | None
    confidence: float
    notes: str


# -----------------------------------------------------------------------------
@dataclass(slots=True)
class EvaluationReport:
    total: int
    correct: int
    accuracy: float
    failures: list[EvaluationFailure] = field(default_factory=list)


# -----------------------------------------------------------------------------
def summarize_decisions(decisions: Sequence[MappingDecision]) -> MappingSummary:
    """
    Aggregate batch statistics for the review queue.

    Undecided decisions land in the confusion report together with the domain
    and parent bucket the engine reached before giving up. Known vendors are
    always present in the source breakdown, other sources are appended as seen.

    """
    total = len(decisions)
    decided = [decision for decision in decisions if decision.is_decided]
    source_breakdown = {source: 0 for source in KNOWN_SOURCES}
    confusion: list[ConfusionEntry] = []
    for decision in decisions:
        source = decision.input.source
        source_breakdown[source] = source_breakdown.get(source, 0) + 1
        if not decision.is_decided:
            confusion.append(
                ConfusionEntry(
                    input=decision.input,
                    decision=decision,
                    domain=decision.domain,
                    parent=decision.parent,
                )
            )

    average = (
        sum(decision.confidence for decision in decisions) / total if total else 0.0
    )
    return MappingSummary(
        total_processed=total,
        auto_decided=len(decided),
        undecided=total - len(decided),
        auto_decide_rate=len(decided) / total if total else 0.0,
        average_confidence=average,
        source_breakdown=source_breakdown,
        confusion_report=confusion,
    )


# -----------------------------------------------------------------------------
def evaluate_cases(
    engine: SpecialtyMappingEngine, cases: Iterable[MappingTestCase]
) -> EvaluationReport:
    case_list = list(cases)
    decisions = engine.map_batch([case.input for case in case_list])
    failures: list[EvaluationFailure] = []
    for case, decision in zip(case_list, decisions):
        if decision.decided_canonical_id == case.expected_canonical_id:
            continue
        failures.append(
            EvaluationFailure(
                case_id=case.id,
                expected_canonical_id=case.expected_canonical_id,
                actual_canonical_id=decision.decided_canonical_id,
                confidence=decision.confidence,
                notes=decision.notes,
            )
        )

    total = len(case_list)
    correct = total - len(failures)
    report = EvaluationReport(
        total=total,
        correct=correct,
        accuracy=correct / total if total else 0.0,
        failures=failures,
    )
    logger.info(
        "Evaluated %d mapping cases: %d correct (accuracy=%.3f)",
        report.total,
        report.correct,
        report.accuracy,
    )
    for failure in failures:
        logger.debug(
            "Case %s expected %s but got %s: %s",
            failure.case_id,
            failure.expected_canonical_id,
            failure.actual_canonical_id,
            failure.notes,
        )
    return report


# -----------------------------------------------------------------------------
def decisions_to_frame(decisions: Sequence[MappingDecision]) -> pd.DataFrame:
    rows: list[dict[str, Any]] = []
    for decision in decisions:
        payload = decision.to_dict()
        candidates = payload["candidates"]
        top = candidates[0] if candidates else {}
        rows.append(
            {
                "source": payload["input"]["source"],
                "raw_name": payload["input"]["raw_name"],
                "decided_canonical_id": payload["decided_canonical_id"],
                "confidence": payload["confidence"],
                "applied_rule_ids": ";".join(payload["applied_rule_ids"]),
                "domain": payload["domain"],
                "parent": payload["parent"],
                "top_candidate_id": top.get("canonical_id"),
                "top_candidate_score": top.get("score"),
                "notes": payload["notes"],
            }
        )
    return pd.DataFrame(rows, columns=DECISION_FRAME_COLUMNS)


__all__ = [
    "ConfusionEntry",
    "EvaluationFailure",
    "EvaluationReport",
    "MappingSummary",
    "decisions_to_frame",
    "evaluate_cases",
    "summarize_decisions",
]
