"""
Service configuration — single source of truth for environment settings,
column aliasing, Pareto thresholds, and the insight / VE policy tables.

Import from here in all services and routes rather than hardcoding values.
"""
from __future__ import annotations

import os

# Load .env file automatically in dev (no-op if python-dotenv not installed or file missing)
try:
    from dotenv import load_dotenv
    load_dotenv()
except ImportError:
    pass


APP_NAME = "BoQ Pareto Analyzer API"
APP_VERSION = "1.0.0"

# ── Environment ───────────────────────────────────────────────────────────────
DATABASE_URL: str = os.getenv("DATABASE_URL", "")
UPLOAD_DIR: str = os.getenv("UPLOAD_DIR", "uploads")
LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
LOG_FORMAT: str = os.getenv("LOG_FORMAT", "json").lower()
CORS_ORIGINS: list[str] = [
    o.strip()
    for o in os.getenv("CORS_ORIGINS", "http://localhost:3000,http://localhost:8000").split(",")
    if o.strip()
]
MAX_UPLOAD_MB: int = int(os.getenv("MAX_UPLOAD_MB", "25"))
DB_RESET_ON_STARTUP: bool = os.getenv("DB_RESET_ON_STARTUP", "").lower() in ("1", "true", "yes")

LLM_PRIMARY_MODEL: str = os.getenv("LLM_PRIMARY_MODEL", "groq/llama-3.3-70b-versatile")
LLM_FALLBACK_MODEL: str = os.getenv("LLM_FALLBACK_MODEL", "gemini/gemini-1.5-flash")

# ── Upload intake ─────────────────────────────────────────────────────────────
ALLOWED_UPLOAD_EXTENSIONS: tuple[str, ...] = (".xlsx", ".xls", ".csv")

# ── Project lifecycle ─────────────────────────────────────────────────────────
STATUS_UPLOADED = "uploaded"
STATUS_PROCESSED = "processed"

# ── Column aliasing ───────────────────────────────────────────────────────────
# Ordered candidate headers per canonical field; first present non-empty value
# wins. Changing this table changes which spreadsheets ingest correctly, so
# bump COLUMN_ALIASES_VERSION alongside any edit.
COLUMN_ALIASES_VERSION = 1
COLUMN_ALIASES: dict[str, tuple[str, ...]] = {
    "item_code":   ("Item Code", "itemCode", "Code", "code"),
    "description": ("Description", "description", "Item", "item"),
    "quantity":    ("Quantity", "quantity", "Qty", "qty"),
    "unit":        ("Unit", "unit"),
    "unit_rate":   ("Unit Rate", "unitRate", "Rate", "rate"),
    "total_cost":  ("Total Cost", "totalCost", "Total", "total"),
}

# ── Pareto analysis ───────────────────────────────────────────────────────────
# Cumulative-percentage cut-off (inclusive) for the critical classification.
# Applied both project-wide and per WBS drill-down level.
PARETO_CRITICAL_THRESHOLD_PCT: float = 80.0

WBS_SEPARATOR = "."

# ── Insight policy table ──────────────────────────────────────────────────────
# rate: share of the affected cost claimed as saving; cap: hard ceiling share.
INSIGHT_POLICY: dict[str, dict] = {
    "cost_concentration": {
        "min_share": 0.15, "rate": 0.10, "cap": 0.12, "confidence": 0.85,
    },
    "material_substitution": {
        "keywords": ("steel", "concrete", "cement", "material", "beton"),
        "rate": 0.09, "cap": 0.12, "confidence": 0.75,
    },
    "quantity_optimization": {
        "min_quantity": 100.0, "rate": 0.05, "cap": 0.07, "confidence": 0.70,
    },
    "rate_variance": {
        "min_variance": 0.20, "recoverable_share": 0.40, "cap": 0.12, "confidence": 0.65,
    },
    "design_optimization": {
        "keywords": ("formwork", "reinforcement", "connection", "struktur", "bekisting"),
        "rate": 0.10, "cap": 0.10, "confidence": 0.80,
    },
    "wbs_concentration": {
        "min_share": 0.30, "min_items": 3, "rate": 0.06, "cap": 0.07, "confidence": 0.72,
    },
}
INSIGHT_MAX_LISTED_CODES = 6

# ── Value engineering bounds ──────────────────────────────────────────────────
# min_unit_factor: floor on the proposed unit rate as a share of the base rate.
# suggested_range_pct: saving band the LLM is steered to and clamped into.
VE_CATEGORY_BOUNDS: dict[str, dict] = {
    "structure": {"min_unit_factor": 0.88, "suggested_range_pct": (4.0, 10.0)},
    "finishing": {"min_unit_factor": 0.70, "suggested_range_pct": (10.0, 25.0)},
    "mep":       {"min_unit_factor": 0.75, "suggested_range_pct": (8.0, 20.0)},
    "other":     {"min_unit_factor": 0.80, "suggested_range_pct": (5.0, 18.0)},
}
VE_RATE_TOLERANCE = 0.05
VE_FALLBACK_SAVING_PCT = 6.5
VE_SECOND_OPTION_FACTOR = 0.98
VE_MAX_ALTERNATIVES = 2
