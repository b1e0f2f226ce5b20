from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from SPECMAP.server.utils.services.text.synonyms import (
    extract_synonym_strings,
    parse_synonym_list,
    parse_synonym_mapping,
    split_synonym_variants,
)

Domain = Literal["ADULT", "PEDIATRIC"]


###############################################################################
class MappingDocument(BaseModel):
    """
    Base for the read-only documents the mapping engine consumes.
    - Instances are frozen once validated.
    - Fields accept both snake_case and camelCase keys.

    """

    model_config = ConfigDict(
        frozen=True,
        populate_by_name=True,
        alias_generator=to_camel,
    )


###############################################################################
class RawInput(MappingDocument):
    source: str = Field(
        ...,
        min_length=1,
        description="Survey vendor the specialty label comes from.",
        examples=["MGMA", "SullivanCotter", "Gallagher"],
    )
    raw_name: str = Field(
        "",
        description="Specialty label exactly as it appears in the vendor file.",
        examples=["Peds Cardiology", "Cardiology: Interventional"],
    )
    meta: dict[str, Any] = Field(
        default_factory=dict,
        description="Optional vendor metadata, e.g. a `pediatric` flag.",
    )

    @field_validator("source", mode="before")
    @classmethod
    def strip_source(cls, value: Any) -> str:
        return "" if value is None else str(value).strip()

    @field_validator("raw_name", mode="before")
    @classmethod
    def coerce_raw_name(cls, value: Any) -> str:
        return "" if value is None else str(value)

    @field_validator("meta", mode="before")
    @classmethod
    def coerce_meta(cls, value: Any) -> dict[str, Any]:
        return dict(value) if isinstance(value, dict) else {}


###############################################################################
class CanonicalSpecialty(MappingDocument):
    id: str = Field(..., min_length=1, examples=["CARD-INTERVENTIONAL"])
    name: str = Field(..., min_length=1, examples=["Interventional Cardiology"])
    domain: Domain
    parent: str = Field(..., min_length=1, examples=["Cardiology"])
    tags: tuple[str, ...] = Field(default_factory=tuple)

    @field_validator("id", "name", "parent", mode="before")
    @classmethod
    def strip_text(cls, value: Any) -> Any:
        return value.strip() if isinstance(value, str) else value

    @field_validator("domain", mode="before")
    @classmethod
    def upper_domain(cls, value: Any) -> Any:
        return value.strip().upper() if isinstance(value, str) else value

    @field_validator("tags", mode="before")
    @classmethod
    def clean_tags(cls, value: Any) -> tuple[str, ...]:
        tags: list[str] = []
        for raw in extract_synonym_strings(value):
            for variant in split_synonym_variants(raw):
                tag = variant.lower()
                if tag not in tags:
                    tags.append(tag)
        return tuple(tags)


###############################################################################
class DomainHints(MappingDocument):
    pediatric: tuple[str, ...] = Field(default_factory=tuple)
    adult: tuple[str, ...] = Field(default_factory=tuple)

    @field_validator("pediatric", "adult", mode="before")
    @classmethod
    def parse_hints(cls, value: Any) -> tuple[str, ...]:
        return parse_synonym_list(value)


###############################################################################
class SynonymsConfig(MappingDocument):
    domain_hints: DomainHints = Field(default_factory=DomainHints)
    parent_synonyms: dict[str, tuple[str, ...]] = Field(default_factory=dict)
    negative_tokens: dict[str, tuple[str, ...]] = Field(default_factory=dict)
    subspecialty_tokens: dict[str, tuple[str, ...]] = Field(default_factory=dict)

    @field_validator("parent_synonyms", "negative_tokens", mode="before")
    @classmethod
    def parse_parent_mapping(cls, value: Any) -> dict[str, tuple[str, ...]]:
        return parse_synonym_mapping(value)

    @field_validator("subspecialty_tokens", mode="before")
    @classmethod
    def parse_subspecialty_mapping(cls, value: Any) -> dict[str, tuple[str, ...]]:
        # keys are compared against lowercased taxonomy tags
        mapping = parse_synonym_mapping(value)
        return {tag.lower(): synonyms for tag, synonyms in mapping.items()}


###############################################################################
class HardMapRule(MappingDocument):
    id: str = Field(..., min_length=1, examples=["PEDS_CARDIOLOGY_EXACT"])
    pattern: str = Field(..., min_length=1, description="Case-insensitive regex.")
    canonical_id: str = Field(..., min_length=1)
    confidence: float | None = None


###############################################################################
class BucketingHint(MappingDocument):
    id: str | None = None
    pattern: str = Field(..., min_length=1, description="Case-insensitive regex.")
    parent: str = Field(..., min_length=1)
    confidence: float | None = None


###############################################################################
class RulesConfig(MappingDocument):
    version: str = "1.0.0"
    hard_maps: tuple[HardMapRule, ...] = Field(default_factory=tuple)
    bucketing_hints: tuple[BucketingHint, ...] = Field(default_factory=tuple)


###############################################################################
class OverrideMapping(MappingDocument):
    id: str = Field(..., min_length=1)
    pattern: str = Field(..., min_length=1, description="Case-insensitive regex.")
    canonical_id: str = Field(..., min_length=1)
    source: str | None = Field(
        None, description="Restricts the override to one vendor when set."
    )
    reason: str | None = None
    added_by: str | None = None
    added_at: str | None = None

    @field_validator("source", "reason", "added_by", "added_at", mode="before")
    @classmethod
    def strip_optional(cls, value: Any) -> str | None:
        if value is None:
            return None
        stripped = str(value).strip()
        return stripped or None


###############################################################################
class MappingTestCase(MappingDocument):
    id: str = Field(..., min_length=1)
    input: RawInput
    expected_canonical_id: str | None = None
    description: str = ""
    tags: tuple[str, ...] = Field(default_factory=tuple)


__all__ = [
    "BucketingHint",
    "CanonicalSpecialty",
    "Domain",
    "DomainHints",
    "HardMapRule",
    "MappingDocument",
    "MappingTestCase",
    "OverrideMapping",
    "RawInput",
    "RulesConfig",
    "SynonymsConfig",
]
