"""
Central Configuration Module for OpsIntel.

=== PURPOSE ===
Single source of truth for every tunable constant used across the
dashboard: which generative backend to talk to, the model names, request
timeouts, the three fixed dataset slots, the cosmetic analysis steps and the
presentation thresholds.  Every other module imports from here rather than
defining its own magic numbers.

=== CONFIGURATION SOURCES ===
Values are plain module constants.  The few that differ between machines
(the service credential, the backend, the model name and the local server
URL) can be overridden through environment variables so that the same code
runs on a laptop against a local Ollama server and in a hosted deployment
against Gemini.

  GEMINI_API_KEY / API_KEY   -- credential for the Gemini backend
  OPSINTEL_BACKEND           -- "gemini" (default) or "ollama"
  OPSINTEL_MODEL             -- Gemini model id
  OLLAMA_BASE_URL            -- local Ollama REST endpoint
  OLLAMA_MODEL               -- Ollama model tag
  OPSINTEL_REQUEST_TIMEOUT   -- seconds to wait for the Ollama backend
"""

import os
import logging

logger = logging.getLogger(__name__)

# ==========================================
# GENERATIVE BACKEND
# ==========================================
BACKEND_GEMINI = "gemini"
BACKEND_OLLAMA = "ollama"
SUPPORTED_BACKENDS = (BACKEND_GEMINI, BACKEND_OLLAMA)

BACKEND = os.environ.get("OPSINTEL_BACKEND", BACKEND_GEMINI).strip().lower()
if BACKEND not in SUPPORTED_BACKENDS:
    logger.warning(f"Unknown OPSINTEL_BACKEND '{BACKEND}', falling back to '{BACKEND_GEMINI}'")
    BACKEND = BACKEND_GEMINI

# Gemini (hosted).  API_KEY is honoured for deployments that already export it.
GEMINI_API_KEY = os.environ.get("GEMINI_API_KEY") or os.environ.get("API_KEY", "")
GEN_MODEL = os.environ.get("OPSINTEL_MODEL", "gemini-3-flash-preview")

# Ollama (local).  Allow override via environment variable for containerised deployments.
OLLAMA_BASE_URL = os.environ.get("OLLAMA_BASE_URL", "http://localhost:11434")
OLLAMA_MODEL = os.environ.get("OLLAMA_MODEL", "qwen3:14b")

# The hosted SDK manages its own transport timeout; this ceiling applies to
# the local backend, where the model may need to be loaded into VRAM first.
REQUEST_TIMEOUT = int(os.environ.get("OPSINTEL_REQUEST_TIMEOUT", "600"))

# Low temperature keeps the structured metrics reproducible between runs.
GEN_TEMPERATURE = 0.2

# ==========================================
# DATASET SLOTS
# ==========================================
# Three fixed slots are created when a session starts.  They are never
# deleted; only their content and status are reset.
DEFAULT_DATASETS = [
    {"id": "curr", "name": "Current Week", "timestamp": "2023-11-01 09:00"},
    {"id": "prev", "name": "Previous Week", "timestamp": "2023-10-25 18:00"},
    {"id": "hist", "name": "Earlier Hist.", "timestamp": "2023-10-18 18:00"},
]

# Pseudo-dataset id of the cross-period synthesis view.
GLOBAL_ID = "global"

# Synthesis needs at least this many completed per-dataset analyses.
MIN_SYNTHESIS_DATASETS = 2

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M"

# ==========================================
# FILE INGESTION
# ==========================================
SPREADSHEET_EXTENSIONS = (".xlsx", ".xls")
CSV_EXTENSIONS = (".csv",)
JSON_EXTENSIONS = (".json",)
SUPPORTED_EXTENSIONS = SPREADSHEET_EXTENSIONS + CSV_EXTENSIONS + JSON_EXTENSIONS

# ==========================================
# ANALYSIS PROGRESS (cosmetic)
# ==========================================
ANALYSIS_STEPS = [
    ("Data Ingestion & Normalization", "Parsing raw workflow logs and validating event timelines..."),
    ("Process Mining & Bottlenecks", "Identifying execution loops and invisible idle time..."),
    ("SLA Risk Profiling", "Calculating breach probabilities and workload efficiency..."),
    ("Financial Impact Modeling", "Quantifying revenue leakage from operational friction..."),
    ("Strategic Insight Synthesis", "Generating corrective actions and executive summaries..."),
]
PROGRESS_INTERVAL_SECONDS = 1.2

# ==========================================
# PRESENTATION
# ==========================================
HEATMAP_DAYS = ["Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun"]
HEATMAP_TIME_BLOCKS = ["00-04", "04-08", "08-12", "12-16", "16-20", "20-24"]

# KPI card turns red above this SLA breach rate (percent).
BREACH_ALERT_THRESHOLD = 15

COLORS = {
    "primary": "#3B82F6",
    "indigo": "#6366F1",
    "success": "#10B981",
    "warning": "#F59E0B",
    "danger": "#F43F5E",
    "muted": "#64748B",
}

IMPACT_LEVELS = ("High", "Medium", "Low")
