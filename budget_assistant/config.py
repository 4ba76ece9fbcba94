"""Configuration management for the Budget Assistant.

This module centralizes all configuration values including paths,
budget defaults, the optional Supabase project and environment variable
overrides.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Optional

# Base project root - assumes this file is in budget_assistant/
_PROJECT_ROOT = Path(__file__).parent.parent.resolve()

# Data directories
DATA_DIR = Path(os.getenv("BUDGET_ASSISTANT_DATA_DIR", _PROJECT_ROOT / "data"))
EXPORTS_DIR = DATA_DIR / "exports"

# Database
DB_PATH = Path(
    os.getenv("BUDGET_ASSISTANT_DB_PATH", DATA_DIR / "budget.db")
).resolve()

# UI preference cache
CACHE_PATH = Path(
    os.getenv("BUDGET_ASSISTANT_CACHE_PATH", DATA_DIR / "preferences.json")
).resolve()

# Hosted backend (Supabase).  Both values must be set for cloud mode.
SUPABASE_URL: Optional[str] = os.getenv("SUPABASE_URL") or None
SUPABASE_ANON_KEY: Optional[str] = os.getenv("SUPABASE_ANON_KEY") or None

LOG_LEVEL = os.getenv("BUDGET_ASSISTANT_LOG_LEVEL", "INFO").upper()
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

# Budget defaults
PAY_CYCLE_DAYS = 14
DEFAULT_FIRE_PCT = 20
DEFAULT_SMILE_PCT = 10
DEFAULT_BILL_MODE = "due"
UPCOMING_BILL_PREVIEW = 3


def cloud_enabled() -> bool:
    """True when a Supabase project has been configured."""
    return bool(SUPABASE_URL and SUPABASE_ANON_KEY)


def configure_logging(level: Optional[str] = None) -> None:
    """Configure root logging once for the app process."""
    logging.basicConfig(level=(level or LOG_LEVEL), format=LOG_FORMAT)


def ensure_data_directories() -> None:
    """Create all required data directories if they don't exist."""
    for directory in [DATA_DIR, EXPORTS_DIR, DB_PATH.parent, CACHE_PATH.parent]:
        directory.mkdir(parents=True, exist_ok=True)