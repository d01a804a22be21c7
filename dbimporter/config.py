# ==========================================================
# ⚙️  config.py — Shared defaults for the DB importer
# ==========================================================
# All values can be overridden via environment variables,
# and again via CLI flags (see dbimporter/cli.py).
# ==========================================================

import os
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Optional


def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


def _read_env() -> dict:
    """Current environment, keyed by ImporterConfig field name."""
    return {
        # --- AWS / S3 ---
        "endpoint": os.getenv("DBIMPORTER_S3_ENDPOINT", "https://fsn1.your-objectstorage.com"),
        "bucket": os.getenv("DBIMPORTER_S3_BUCKET", "db-backups"),
        "region": os.getenv("DBIMPORTER_S3_REGION", "fsn1"),
        "profile": os.getenv("AWS_PROFILE") or None,
        # --- Backup selection ---
        "prefix": os.getenv("DBIMPORTER_S3_PREFIX", ""),
        "zip_full_path": os.getenv("DBIMPORTER_ZIP_FULL_PATH") or None,
        # --- Local side ---
        "db_path": Path(os.getenv("DBIMPORTER_DB_PATH", "db.sqlite")),
        "scratch_dir": Path(os.getenv("DBIMPORTER_SCRATCH_DIR", tempfile.gettempdir())),
        "verify_checksum": _env_flag("DBIMPORTER_VERIFY_CHECKSUM", "1"),
        "atomic": _env_flag("DBIMPORTER_ATOMIC", "0"),
    }


# Snapshot taken at import time.
_ENV = _read_env()

DEFAULT_ENDPOINT = _ENV["endpoint"]
DEFAULT_BUCKET = _ENV["bucket"]
DEFAULT_REGION = _ENV["region"]
DEFAULT_PROFILE = _ENV["profile"]
DEFAULT_PREFIX = _ENV["prefix"]
DEFAULT_ZIP_FULL_PATH = _ENV["zip_full_path"]
DEFAULT_DB_PATH = _ENV["db_path"]
DEFAULT_SCRATCH_DIR = _ENV["scratch_dir"]
DEFAULT_VERIFY_CHECKSUM = _ENV["verify_checksum"]
DEFAULT_ATOMIC = _ENV["atomic"]


@dataclass
class ImporterConfig:
    bucket: str = DEFAULT_BUCKET
    endpoint: str = DEFAULT_ENDPOINT
    region: str = DEFAULT_REGION
    profile: Optional[str] = DEFAULT_PROFILE
    prefix: str = DEFAULT_PREFIX
    # Path of the SQL file inside an extracted (zip) archive.
    zip_full_path: Optional[str] = DEFAULT_ZIP_FULL_PATH
    db_path: Path = DEFAULT_DB_PATH
    scratch_dir: Path = DEFAULT_SCRATCH_DIR
    verify_checksum: bool = DEFAULT_VERIFY_CHECKSUM
    atomic: bool = DEFAULT_ATOMIC
    progress: bool = True

    @classmethod
    def from_env(cls) -> "ImporterConfig":
        """Re-read the environment (the module defaults are frozen at import time)."""
        return cls(**_read_env())
