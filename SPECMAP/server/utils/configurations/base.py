from __future__ import annotations

import json
import os
from typing import Any


###############################################################################
def ensure_mapping(value: Any) -> dict[str, Any]:
    if isinstance(value, dict):
        return value
    return {}


# -----------------------------------------------------------------------------
def load_json_document(path: str) -> Any:
    if not os.path.exists(path):
        raise RuntimeError(f"Configuration file not found: {path}")
    try:
        with open(path, "r", encoding="utf-8") as handle:
            return json.load(handle)
    except (OSError, json.JSONDecodeError) as exc:
        raise RuntimeError(f"Unable to load configuration from {path}") from exc


# -----------------------------------------------------------------------------
def load_configuration_data(path: str) -> dict[str, Any]:
    data = load_json_document(path)
    if not isinstance(data, dict):
        raise RuntimeError(f"Configuration root must be a JSON object: {path}")
    return data


__all__ = ["ensure_mapping", "load_configuration_data", "load_json_document"]
