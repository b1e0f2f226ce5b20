from __future__ import annotations

from dataclasses import dataclass, fields, replace
from typing import Any

from SPECMAP.server.utils.configurations.base import (
    ensure_mapping,
    load_configuration_data,
)
from SPECMAP.server.utils.constants import MAPPINGS_PATH, SERVER_CONFIGURATION_FILE
from SPECMAP.server.utils.logger import logger
from SPECMAP.server.utils.types import (
    coerce_bool,
    coerce_float,
    coerce_positive_int,
    coerce_str,
)

WEIGHT_SUM_TOLERANCE = 1e-6


# [MAPPING SETTINGS]
###############################################################################
@dataclass(frozen=True)
class MappingWeights:
    token: float
    synonym: float
    char_sim: float
    negative: float
    source_hint: float

# -----------------------------------------------------------------------------
@dataclass(frozen=True)
class MappingFeatureFlags:
    use_jaro_winkler: bool
    use_token_set_ratio: bool

# -----------------------------------------------------------------------------
@dataclass(frozen=True)
class MappingSettings:
    weights: MappingWeights
    hard_map_confidence: float
    min_decision_threshold: float
    feature_flags: MappingFeatureFlags
    batch_workers: int = 1

# -----------------------------------------------------------------------------
@dataclass(frozen=True)
class ResourceSettings:
    mappings_path: str

# -----------------------------------------------------------------------------
@dataclass(frozen=True)
class ServerSettings:
    mapping: MappingSettings
    resources: ResourceSettings


# [PRESETS]
###############################################################################
def _preset(
    threshold: float,
    token: float,
    synonym: float,
    char_sim: float,
    negative: float,
    source_hint: float,
) -> MappingSettings:
    return MappingSettings(
        weights=MappingWeights(
            token=token,
            synonym=synonym,
            char_sim=char_sim,
            negative=negative,
            source_hint=source_hint,
        ),
        hard_map_confidence=0.95,
        min_decision_threshold=threshold,
        feature_flags=MappingFeatureFlags(use_jaro_winkler=True, use_token_set_ratio=False),
    )


MAPPING_PRESETS: dict[str, MappingSettings] = {
    "default": _preset(0.68, 0.40, 0.20, 0.15, -0.30, 0.05),
    "conservative": _preset(0.80, 0.50, 0.25, 0.10, -0.40, 0.05),
    "aggressive": _preset(0.55, 0.35, 0.20, 0.20, -0.25, 0.10),
    "pediatric": _preset(0.70, 0.45, 0.20, 0.15, -0.35, 0.05),
    "adult": _preset(0.65, 0.40, 0.20, 0.15, -0.30, 0.05),
}
DEFAULT_MAPPING_SETTINGS = MAPPING_PRESETS["default"]


# -----------------------------------------------------------------------------
def get_mapping_preset(name: str) -> MappingSettings:
    key = name.strip().lower()
    if key not in MAPPING_PRESETS:
        raise KeyError(f"Unknown mapping preset: {name}")
    return MAPPING_PRESETS[key]


# [VALIDATION]
###############################################################################
def validate_mapping_settings(settings: MappingSettings) -> list[str]:
    errors: list[str] = []
    if not 0.0 <= settings.min_decision_threshold <= 1.0:
        errors.append("min_decision_threshold must be between 0 and 1")
    if not 0.0 <= settings.hard_map_confidence <= 1.0:
        errors.append("hard_map_confidence must be between 0 and 1")
    weights = settings.weights
    for name in ("token", "synonym", "char_sim", "source_hint"):
        value = getattr(weights, name)
        if not 0.0 <= value <= 1.0:
            errors.append(f"weights.{name} must be between 0 and 1")
    if weights.negative > 0.0:
        errors.append("weights.negative must be zero or negative (penalty)")
    total = weights.token + weights.synonym + weights.char_sim + weights.source_hint
    if total > 1.0 + WEIGHT_SUM_TOLERANCE:
        errors.append(f"positive weights must sum to at most 1.0, got {total:.2f}")
    if settings.batch_workers < 1:
        errors.append("batch_workers must be a positive integer")
    return errors


# -----------------------------------------------------------------------------
def create_custom_settings(
    base: MappingSettings | None = None,
    *,
    weights: MappingWeights | dict[str, Any] | None = None,
    feature_flags: MappingFeatureFlags | dict[str, Any] | None = None,
    **overrides: Any,
) -> MappingSettings:
    settings = base or DEFAULT_MAPPING_SETTINGS
    known = {item.name for item in fields(MappingSettings)}
    unknown = sorted(set(overrides) - known)
    if unknown:
        raise ValueError(f"Unknown mapping settings: {', '.join(unknown)}")
    if isinstance(weights, dict):
        weights = replace(settings.weights, **weights)
    if isinstance(feature_flags, dict):
        feature_flags = replace(settings.feature_flags, **feature_flags)
    if weights is not None:
        overrides["weights"] = weights
    if feature_flags is not None:
        overrides["feature_flags"] = feature_flags
    custom = replace(settings, **overrides)
    errors = validate_mapping_settings(custom)
    if errors:
        raise ValueError(f"Invalid mapping settings: {', '.join(errors)}")
    return custom


# [BUILDER FUNCTIONS]
###############################################################################
def build_mapping_weights(data: dict[str, Any], defaults: MappingWeights) -> MappingWeights:
    return MappingWeights(
        token=coerce_float(data.get("token"), defaults.token, 0.0, 1.0),
        synonym=coerce_float(data.get("synonym"), defaults.synonym, 0.0, 1.0),
        char_sim=coerce_float(data.get("char_sim"), defaults.char_sim, 0.0, 1.0),
        negative=coerce_float(data.get("negative"), defaults.negative, -1.0, 0.0),
        source_hint=coerce_float(data.get("source_hint"), defaults.source_hint, 0.0, 1.0),
    )

# -----------------------------------------------------------------------------
def build_feature_flags(
    data: dict[str, Any], defaults: MappingFeatureFlags
) -> MappingFeatureFlags:
    return MappingFeatureFlags(
        use_jaro_winkler=coerce_bool(data.get("use_jaro_winkler"), defaults.use_jaro_winkler),
        use_token_set_ratio=coerce_bool(
            data.get("use_token_set_ratio"), defaults.use_token_set_ratio
        ),
    )

# -----------------------------------------------------------------------------
def build_mapping_settings(data: dict[str, Any]) -> MappingSettings:
    payload = ensure_mapping(data)
    preset_name = coerce_str(payload.get("preset"), "default").lower()
    if preset_name not in MAPPING_PRESETS:
        logger.warning("Unknown mapping preset '%s', falling back to default", preset_name)
        preset_name = "default"
    preset = MAPPING_PRESETS[preset_name]
    settings = MappingSettings(
        weights=build_mapping_weights(ensure_mapping(payload.get("weights")), preset.weights),
        hard_map_confidence=coerce_float(
            payload.get("hard_map_confidence"), preset.hard_map_confidence, 0.0, 1.0
        ),
        min_decision_threshold=coerce_float(
            payload.get("min_decision_threshold"), preset.min_decision_threshold, 0.0, 1.0
        ),
        feature_flags=build_feature_flags(
            ensure_mapping(payload.get("feature_flags")), preset.feature_flags
        ),
        batch_workers=coerce_positive_int(payload.get("batch_workers"), preset.batch_workers),
    )
    for error in validate_mapping_settings(settings):
        logger.warning("Mapping settings issue: %s", error)
    return settings

# -----------------------------------------------------------------------------
def build_resource_settings(data: dict[str, Any]) -> ResourceSettings:
    return ResourceSettings(
        mappings_path=coerce_str(data.get("mappings_path"), MAPPINGS_PATH),
    )

# -----------------------------------------------------------------------------
def build_server_settings(data: dict[str, Any] | Any) -> ServerSettings:
    payload = ensure_mapping(data)
    return ServerSettings(
        mapping=build_mapping_settings(ensure_mapping(payload.get("mapping"))),
        resources=build_resource_settings(ensure_mapping(payload.get("resources"))),
    )


# [SERVER CONFIGURATION LOADER]
###############################################################################
def get_server_settings(config_path: str | None = None) -> ServerSettings:
    path = config_path or SERVER_CONFIGURATION_FILE
    payload = load_configuration_data(path)
    return build_server_settings(payload)


server_settings = get_server_settings()
