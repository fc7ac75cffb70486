"""
This module contains the configuration settings for watchrun.
It defines the polling and backoff timings, logging options and the optional
log shipping target. Values that may be tuned per machine are read from the
environment (a `.env` file in the working directory is honoured).
"""

import os
import pathlib
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv(override=False)


def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() in ('true', '1', 't', 'yes', 'y')


#* --- Core Paths ---
BASE_DIR = pathlib.Path.cwd()
OVERRIDES_JSON_PATH = pathlib.Path(os.getenv("WATCHRUN_OVERRIDES", str(BASE_DIR / ".watchrun.json")))

#* --- Watcher Settings ---
POLL_INTERVAL = 1.0  # seconds between identity checks, intentionally fixed

#* --- Supervisor Settings ---
BACKOFF_MIN = 1.0         # seconds
BACKOFF_MAX = 10.0        # seconds
BACKOFF_MULTIPLIER = 2.0
RUN_ON_START = _env_flag("WATCHRUN_RUN_ON_START", "True")
PROC_TITLE_PREFIX = "watchrun"

#* --- Logging ---
LOG_LEVEL = os.getenv("WATCHRUN_LOG_LEVEL", "INFO").upper()
LOG_BUFFER_FLUSH_INTERVAL = 5

# Grafana Loki (for observability)
LOKI_ENABLED = _env_flag("LOKI_ENABLED", "False")
LOKI_URL = os.getenv("LOKI_URL", "http://localhost:3100")
LOKI_ORG_ID = os.getenv("LOKI_ORG_ID", "")

#* --- MODIFIABLE SETTINGS (Changeable through the overrides file) ---
MODIFIABLE_SETTINGS = {
    "BACKOFF_MIN", "BACKOFF_MAX", "BACKOFF_MULTIPLIER",
    "RUN_ON_START", "LOG_LEVEL",
}
