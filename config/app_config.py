"""Centralised application settings (dotenv + env overrides)."""
from __future__ import annotations
import os
from pathlib import Path
from dotenv import load_dotenv

ROOT = Path(__file__).parents[1]
load_dotenv(ROOT / ".env", override=False)

class settings:                            # pylint: disable=too-few-public-methods
    CONFIG_FILE      = os.getenv("TAGLOGGER_CONFIG", "config.json")
    LOG_LEVEL        = os.getenv("LOG_LEVEL", "INFO").upper()
    TICK_SECONDS     = float(os.getenv("TICK_SECONDS", 1.0))
    RETRY_SECONDS    = float(os.getenv("RETRY_SECONDS", 30.0))
    REQUEST_TIMEOUT  = float(os.getenv("REQUEST_TIMEOUT", 10.0))
