"""
Main data import - Centralised configuration.

All tunables live here.  Every other module imports from config
instead of reading os.environ directly.
"""

from __future__ import annotations
import os
from pathlib import Path

import dotenv


def _env_flag(name: str, default: bool) -> bool:
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


# ── Paths ──────────────────────────────────────────────────────────────
BASE_DIR = Path(__file__).resolve().parent

# Load .env from the project root; real environment variables win.
dotenv.load_dotenv(BASE_DIR / ".env")

# ── Database ───────────────────────────────────────────────────────────
# IMPORT_DB_URL wins; DATABASE_URL is honoured for deployments that
# already export it for the main application.
DB_URL = os.environ.get(
    "IMPORT_DB_URL",
    os.environ.get("DATABASE_URL", f"sqlite:///{BASE_DIR / 'maindata.sqlite'}"),
)
SQL_ECHO = _env_flag("IMPORT_SQL_ECHO", False)

# ── Logging ────────────────────────────────────────────────────────────
LOG_LEVEL = os.environ.get("IMPORT_LOG_LEVEL", "WARNING").upper()

# ── Import behaviour ───────────────────────────────────────────────────
CREATED_BY            = os.environ.get("IMPORT_CREATED_BY", "csv_import")
CLEAR_BEFORE_IMPORT   = _env_flag("IMPORT_CLEAR_BEFORE_IMPORT", True)
DEFAULT_DIRECTION     = "incoming"
DEFAULT_CURRENCY      = "USD"
DEFAULT_INCOTERMS     = "FOB"
DEFAULT_PAYMENT_METHOD = "swift"

# ── CSV layout ─────────────────────────────────────────────────────────
CSV_DELIMITER         = ";"
HEADER_MIN_SEMICOLONS = 27      # 28 columns
HEADER_MIN_LABELS     = 20      # recognised header cells before label mapping kicks in
TITLE_SCAN_LINES      = 3

# ── Dry-run preview ────────────────────────────────────────────────────
PREVIEW_CONTRACTS = int(os.environ.get("IMPORT_PREVIEW_CONTRACTS", "10"))
PREVIEW_SHIPMENTS = int(os.environ.get("IMPORT_PREVIEW_SHIPMENTS", "15"))
