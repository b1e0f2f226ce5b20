from __future__ import annotations

import re

# -----------------------------------------------------------------------------
# Specialty name normalization
# -----------------------------------------------------------------------------
SPECIALTY_SEPARATOR_RE = re.compile(r"[,:;\-_]")
WHITESPACE_RE = re.compile(r"\s+")

# -----------------------------------------------------------------------------
# Synonym payloads
# -----------------------------------------------------------------------------
SYNONYM_SPLIT_RE = re.compile(r"[;|\n]+")
