import os
from pathlib import Path

# Project root (…/climate-securitization)
ROOT = Path(__file__).resolve().parent.parent.parent

# Output folder
RESULTS_DIR = ROOT / "results"

# Globals for processing/modeling
MAX_LAG     = 5
CONF_LEVEL  = 0.95
MAX_WORKERS = None
LOG_LEVEL   = os.environ.get("CLIMSEC_LOG_LEVEL", "INFO")

# Panel convention: one row per entity and calendar year
INDEX_VARS = ["entity_code", "year"]

SPEECH_COLS   = ["doc_id", "entity_code", "year", "topic_flag"]
DISASTER_COLS = ["entity_code", "start_year", "end_year", "type", "subtype",
                 "group", "deaths", "affected", "damage_adjusted"]
IMPACT_COLS   = ["deaths", "affected", "damage_adjusted"]

# Control covariates, joined on doc_id
CONTROL_VARS = ["gdp_per_capita", "log_population", "regime_type", "milex_share",
                "warming", "agreement_pct", "concern_score"]

TYPE_DELIMITER = "; "
OUTCOME        = "sum_security"
PREDICTOR      = "disaster_count"
