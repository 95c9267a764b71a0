"""
FleetLoad - Centralised configuration.

All tunables live here.  Every other module imports from config
instead of reading os.environ directly.
"""

from __future__ import annotations
import os
from pathlib import Path


# ── Paths ──────────────────────────────────────────────────────────────
BASE_DIR   = Path(__file__).resolve().parent
STORE_DIR  = Path(os.environ.get("FLEETLOAD_STORE_DIR", BASE_DIR / "store"))
INBOX_DIR  = Path(os.environ.get("FLEETLOAD_INBOX_DIR", BASE_DIR / "inbox"))

# ── Database ───────────────────────────────────────────────────────────
# Mandatory, see check_required()
DB_URL       = os.environ.get("FLEETLOAD_DB")
DB_SCHEMA    = os.environ.get("FLEETLOAD_DB_SCHEMA") or None
DB_POOL_SIZE = int(os.environ.get("FLEETLOAD_DB_POOL_SIZE", "5"))

# ── Ingest ─────────────────────────────────────────────────────────────
BUCKET           = os.environ.get("FLEETLOAD_BUCKET", "fleet-ingest")
WATCH_PREFIX     = os.environ.get("FLEETLOAD_WATCH_PREFIX", "ingesta_drive/")
INBOX_NEW        = "nuevos"
INBOX_PROCESSED  = "procesados"
CSV_DELIMITER    = os.environ.get("FLEETLOAD_DELIMITER", ";")

# ── Server ─────────────────────────────────────────────────────────────
HOST   = os.environ.get("FLEETLOAD_HOST", "0.0.0.0")
PORT   = int(os.environ.get("FLEETLOAD_PORT", "5000"))
DEBUG  = os.environ.get("FLEETLOAD_DEBUG", "0") == "1"

# ── Logging ────────────────────────────────────────────────────────────
LOG_LEVEL  = os.environ.get("FLEETLOAD_LOG_LEVEL", "INFO").upper()
LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"

# ── Reporting ──────────────────────────────────────────────────────────
REPORT_ERROR_PREVIEW = 10


def check_required(*names: str) -> None:
    """
    Raise ConfigurationError listing every named setting that is unset.

    Called once at startup, before any file is opened.
    """
    from import_engine.errors import ConfigurationError

    missing = [n for n in names if not globals().get(n)]
    if missing:
        raise ConfigurationError(
            "Missing mandatory settings: " + ", ".join(missing),
            details={"missing": missing},
        )
