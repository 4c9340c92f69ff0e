"""Centralized path constants for the fast-connect saved state."""

from __future__ import annotations

import os
from pathlib import Path

# User-specific state (allows running from read-only project directories)
_USER_STATE_ENV = os.environ.get("FASTCONNECT_STATE_DIR")
USER_STATE_DIR = Path(_USER_STATE_ENV).expanduser() if _USER_STATE_ENV else (Path.home() / ".fastconnect")

# Configuration
CONFIG_PATH = USER_STATE_DIR / "fastconnect.conf"

# Saved connection state
DEFAULT_SAVE_STATE_FILE = USER_STATE_DIR / "avdecc_save.ini"


__all__ = [
    'USER_STATE_DIR',
    'CONFIG_PATH',
    'DEFAULT_SAVE_STATE_FILE',
]
