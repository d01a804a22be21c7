# ==========================================================
# 🗄️  dbimporter — Restore a database from the latest S3 backup
# ==========================================================
# Finds the newest backup object under a prefix, downloads it,
# unpacks .gz / .zip archives into a scratch workspace, runs the
# SQL against the target database and cleans up afterwards.
# ==========================================================
from dbimporter.config import ImporterConfig
from dbimporter.errors import (
    ChecksumMismatch,
    CleanupWarning,
    CorruptArchive,
    DbImportError,
    EmptyInput,
    NoBackupsFound,
    PayloadNotFound,
    RestoreFailed,
    UnsupportedArchiveFormat,
)
from dbimporter.importer import ImportPipeline, ImportResult, PipelineState

__version__ = "0.1.0"

__all__ = [
    "ImporterConfig",
    "ImportPipeline",
    "ImportResult",
    "PipelineState",
    "DbImportError",
    "NoBackupsFound",
    "EmptyInput",
    "UnsupportedArchiveFormat",
    "CorruptArchive",
    "PayloadNotFound",
    "RestoreFailed",
    "ChecksumMismatch",
    "CleanupWarning",
]
