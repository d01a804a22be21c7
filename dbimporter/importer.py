# ==========================================================
# 🗄️  importer.py — Restore the latest S3 backup into a DB
# ==========================================================
# What it does:
#   1. Lists backups under the configured prefix
#   2. Picks the newest one (first listed wins on equal timestamps)
#   3. Downloads it (+ verifies the .sha256 companion if present)
#   4. Detects gzip / zip from the reported Content-Type
#   5. Unpacks it into a fresh scratch workspace
#   6. Runs the SQL against the target database
#   7. Removes the scratch workspace, also when 5. or 6. failed
#
# Nothing is retried. Run it again if you want another attempt.
# ==========================================================
import enum
from dataclasses import dataclass, field, replace
from typing import List, Optional

from botocore.exceptions import ClientError

from dbimporter.archive_utils import ArchiveFormat, detect_format, extract
from dbimporter.config import ImporterConfig
from dbimporter.console import fail, log, warn
from dbimporter.db_utils import restore
from dbimporter.errors import (
    ChecksumMismatch,
    CleanupWarning,
    DbImportError,
    UnsupportedArchiveFormat,
)
from dbimporter.s3_utils import (
    BackupObject,
    calculate_sha256,
    is_missing_key_error,
    list_backups,
    parse_checksum_file,
)
from dbimporter.scratch import ScratchWorkspace
from dbimporter.selector import select_latest


class PipelineState(enum.Enum):
    IDLE = "idle"
    LISTING = "listing"
    SELECTING = "selecting"
    DOWNLOADING = "downloading"
    DETECTING = "detecting"
    EXTRACTING = "extracting"
    RESTORING = "restoring"
    CLEANING_UP = "cleaning_up"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


_PROGRESS = {
    PipelineState.LISTING: "☁️ Looking for backups ...",
    PipelineState.SELECTING: "🔎 Selecting latest backup ...",
    PipelineState.DOWNLOADING: "⬇️ Downloading latest backup ...",
    PipelineState.DETECTING: "🕵️ Detecting archive format ...",
    PipelineState.EXTRACTING: "📦 Unpacking backup ...",
    PipelineState.RESTORING: "💽 Restoring database ...",
    PipelineState.CLEANING_UP: "🧹 Cleaning up scratch files ...",
    PipelineState.SUCCEEDED: "🎉 Finished.",
    PipelineState.FAILED: "❌ Import failed.",
}


@dataclass
class ImportResult:
    state: PipelineState = PipelineState.IDLE
    key: Optional[str] = None
    artifact: Optional[BackupObject] = None
    archive_format: Optional[ArchiveFormat] = None
    error: Optional[DbImportError] = None
    warnings: List[CleanupWarning] = field(default_factory=list)
    states: List[PipelineState] = field(default_factory=lambda: [PipelineState.IDLE])

    @property
    def ok(self) -> bool:
        return self.state is PipelineState.SUCCEEDED


class ImportPipeline:
    """Restore the newest backup from ``store`` into ``database``.

    Args:
        store: remote store with ``list(prefix)``, ``content_type(key)``
            and ``get(key)``.
        storage: local scratch storage (see ``LocalScratchStorage``).
        database: target with ``execute_raw(sql)``. Its contents are
            overwritten by whatever the backup's SQL does.
        config: ``ImporterConfig``; only prefix, zip_full_path,
            scratch_dir and verify_checksum are used here.

    ``ImportResult.states`` records the states actually visited.
    CLEANING_UP only appears once a scratch workspace exists, i.e. after
    DETECTING accepted the format. Earlier failures (NoBackupsFound,
    ChecksumMismatch, UnsupportedArchiveFormat) have nothing to clean up
    and go straight to FAILED.
    """

    def __init__(self, store, storage, database, config: Optional[ImporterConfig] = None):
        self.store = store
        self.storage = storage
        self.database = database
        self.config = config or ImporterConfig()
        self.result = ImportResult()

    def run(self) -> ImportResult:
        self.result = ImportResult()
        try:
            self._run()
        except DbImportError as e:
            self.result.error = e
            self._enter(PipelineState.FAILED)
            fail(str(e))
        except Exception:
            self._enter(PipelineState.FAILED)
            raise
        else:
            self._enter(PipelineState.SUCCEEDED)
        return self.result

    def _enter(self, state: PipelineState) -> None:
        self.result.state = state
        self.result.states.append(state)
        log(_PROGRESS[state])

    def _run(self) -> None:
        config = self.config

        self._enter(PipelineState.LISTING)
        candidates, companions = list_backups(self.store, config.prefix)
        log(f"☁️ {len(candidates)} backup(s) found.")

        self._enter(PipelineState.SELECTING)
        key, _ = select_latest((c.key, c.last_modified) for c in candidates)
        selected = next(c for c in candidates if c.key == key)
        self.result.key = key
        log(f"☁️ Found latest backup: {key}")

        self._enter(PipelineState.DOWNLOADING)
        content_type = self.store.content_type(key)
        self.result.artifact = replace(selected, content_type=content_type)
        data = self.store.get(key)
        self._verify_checksum(key, data, companions.get(key))

        self._enter(PipelineState.DETECTING)
        archive_format = detect_format(content_type)
        self.result.archive_format = archive_format
        if archive_format is ArchiveFormat.UNSUPPORTED:
            raise UnsupportedArchiveFormat(key, content_type)
        log(f"🕵️ {archive_format.name.capitalize()} file detected")

        with ScratchWorkspace(self.storage, config.scratch_dir, archive_format.suffix) as workspace:
            try:
                self._enter(PipelineState.EXTRACTING)
                destination = extract(archive_format, data, workspace)

                self._enter(PipelineState.RESTORING)
                restore(self.database, self.storage, destination, config.zip_full_path)
            finally:
                self._enter(PipelineState.CLEANING_UP)
                self.result.warnings.extend(workspace.release())

    def _verify_checksum(self, key: str, data: bytes, checksum_key: Optional[str]) -> None:
        if not self.config.verify_checksum:
            return
        if checksum_key is None:
            warn("No checksum file found, skipping verification.")
            return

        try:
            expected = parse_checksum_file(self.store.get(checksum_key))
        except ClientError as e:
            if not is_missing_key_error(e):
                raise
            warn("Checksum file disappeared, skipping verification.")
            return

        log("🔢 Verifying checksum ...")
        actual = calculate_sha256(data)
        if actual != expected:
            raise ChecksumMismatch(key, expected, actual)
        log("✅ Checksum OK.")
