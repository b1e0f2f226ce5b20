from __future__ import annotations

from SPECMAP.server.utils.configurations.base import (
    ensure_mapping,
    load_configuration_data,
    load_json_document,
)

from SPECMAP.server.utils.configurations.server import (
    DEFAULT_MAPPING_SETTINGS,
    MAPPING_PRESETS,
    MappingFeatureFlags,
    MappingSettings,
    MappingWeights,
    ResourceSettings,
    ServerSettings,
    build_mapping_settings,
    build_server_settings,
    create_custom_settings,
    get_mapping_preset,
    get_server_settings,
    server_settings,
    validate_mapping_settings,
)

__all__ = [
    "ensure_mapping",
    "load_configuration_data",
    "load_json_document",
    "DEFAULT_MAPPING_SETTINGS",
    "MAPPING_PRESETS",
    "MappingFeatureFlags",
    "MappingSettings",
    "MappingWeights",
    "ResourceSettings",
    "ServerSettings",
    "build_mapping_settings",
    "build_server_settings",
    "create_custom_settings",
    "get_mapping_preset",
    "get_server_settings",
    "server_settings",
    "validate_mapping_settings",
]
