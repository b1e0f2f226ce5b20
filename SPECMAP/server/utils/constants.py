from __future__ import annotations

from os.path import abspath, join

# [PATHS]
###############################################################################
ROOT_DIR = abspath(join(__file__, "../../../.."))
PROJECT_DIR = join(ROOT_DIR, "SPECMAP")
SETTING_PATH = join(PROJECT_DIR, "setup", "settings")
RSC_PATH = join(PROJECT_DIR, "resources")
MAPPINGS_PATH = join(RSC_PATH, "mappings")

###############################################################################
SERVER_CONFIGURATION_FILE = join(SETTING_PATH, "server_configurations.json")

# [MAPPING RESOURCES]
###############################################################################
TAXONOMY_FILENAME = "taxonomy.json"
SYNONYMS_FILENAME = "synonyms.json"
OVERRIDES_FILENAME = "overrides.json"
RULES_DIRNAME = "rules"

# [DOMAINS AND SOURCES]
###############################################################################
ADULT_DOMAIN = "ADULT"
PEDIATRIC_DOMAIN = "PEDIATRIC"
KNOWN_SOURCES = ("MGMA", "SullivanCotter", "Gallagher")

# hard-map rule ids carrying this marker are applied before any other rule set
PEDIATRIC_RULE_MARKER = "PEDS"

# [DECISION LABELS]
###############################################################################
OVERRIDE_RULE_PREFIX = "OVERRIDE:"
SCORING_RULE_ID = "SCORING"
MIN_TOKEN_LENGTH = 3
