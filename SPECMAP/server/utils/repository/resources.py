from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Any

from SPECMAP.server.schemas.mapping import (
    CanonicalSpecialty,
    OverrideMapping,
    RulesConfig,
    SynonymsConfig,
)
from SPECMAP.server.utils.configurations import (
    get_server_settings,
    load_configuration_data,
    load_json_document,
    server_settings,
)
from SPECMAP.server.utils.constants import (
    OVERRIDES_FILENAME,
    RULES_DIRNAME,
    SYNONYMS_FILENAME,
    TAXONOMY_FILENAME,
)
from SPECMAP.server.utils.logger import logger
from SPECMAP.server.utils.services.mapping.engine import SpecialtyMappingEngine


###############################################################################
@dataclass(frozen=True)
class MappingResources:
    taxonomy: tuple[CanonicalSpecialty, ...]
    synonyms: SynonymsConfig
    rules: tuple[RulesConfig, ...] = field(default_factory=tuple)
    overrides: tuple[OverrideMapping, ...] = field(default_factory=tuple)


# -----------------------------------------------------------------------------
def extract_entries(payload: Any, key: str, path: str) -> list[Any]:
    # documents may be a bare list or an object wrapping the list under `key`
    if isinstance(payload, dict):
        payload = payload.get(key, [])
    if not isinstance(payload, list):
        raise RuntimeError(f"Expected a list of {key} in {path}")
    return payload


# -----------------------------------------------------------------------------
def load_taxonomy(path: str) -> tuple[CanonicalSpecialty, ...]:
    entries = extract_entries(load_json_document(path), "specialties", path)
    return tuple(CanonicalSpecialty.model_validate(entry) for entry in entries)


# -----------------------------------------------------------------------------
def load_synonyms(path: str) -> SynonymsConfig:
    return SynonymsConfig.model_validate(load_configuration_data(path))


# -----------------------------------------------------------------------------
def load_rule_sets(directory: str) -> tuple[RulesConfig, ...]:
    if not os.path.isdir(directory):
        return ()
    filenames = sorted(
        name for name in os.listdir(directory) if name.lower().endswith(".json")
    )
    return tuple(
        RulesConfig.model_validate(load_configuration_data(os.path.join(directory, name)))
        for name in filenames
    )


# -----------------------------------------------------------------------------
def load_overrides(path: str) -> tuple[OverrideMapping, ...]:
    if not os.path.exists(path):
        return ()
    entries = extract_entries(load_json_document(path), "overrides", path)
    return tuple(OverrideMapping.model_validate(entry) for entry in entries)


# -----------------------------------------------------------------------------
def load_mapping_resources(directory: str | None = None) -> MappingResources:
    root = directory or server_settings.resources.mappings_path
    resources = MappingResources(
        taxonomy=load_taxonomy(os.path.join(root, TAXONOMY_FILENAME)),
        synonyms=load_synonyms(os.path.join(root, SYNONYMS_FILENAME)),
        rules=load_rule_sets(os.path.join(root, RULES_DIRNAME)),
        overrides=load_overrides(os.path.join(root, OVERRIDES_FILENAME)),
    )
    logger.info(
        "Loaded mapping resources from %s: %d specialties, %d rule sets, %d overrides",
        root,
        len(resources.taxonomy),
        len(resources.rules),
        len(resources.overrides),
    )
    return resources


# -----------------------------------------------------------------------------
def create_mapping_engine(
    config_path: str | None = None, resources_path: str | None = None
) -> SpecialtyMappingEngine:
    settings = get_server_settings(config_path) if config_path else server_settings
    resources = load_mapping_resources(resources_path or settings.resources.mappings_path)
    return SpecialtyMappingEngine.from_resources(resources, settings.mapping)


__all__ = [
    "MappingResources",
    "create_mapping_engine",
    "load_mapping_resources",
    "load_overrides",
    "load_rule_sets",
    "load_synonyms",
    "load_taxonomy",
]
