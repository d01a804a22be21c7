# ==========================================================
# 🧹  scratch.py — Per-run scratch workspace + cleanup
# ==========================================================
# Each run gets its own directory  <scratch_dir>/backup_<random>/
# holding:
#   - the downloaded archive   backup_<random>.gz | .zip
#   - the extraction output    backup.sql  (file for gzip, dir for zip)
#
# The workspace is a context manager: leaving the `with` block
# removes everything exactly once, whether the restore worked or not.
# ==========================================================
import secrets
import shutil
import string
from pathlib import Path
from typing import List

from dbimporter.console import log, warn
from dbimporter.errors import CleanupWarning

WORKSPACE_PREFIX = "backup_"
EXTRACTION_NAME = "backup.sql"
_ALPHABET = string.ascii_letters + string.digits


def random_suffix(length: int = 10) -> str:
    return "".join(secrets.choice(_ALPHABET) for _ in range(length))


class LocalScratchStorage:
    """Local filesystem operations used on scratch paths."""

    def write(self, path, data: bytes) -> None:
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)

    def read_all(self, path) -> bytes:
        return Path(path).read_bytes()

    def delete_file(self, path) -> None:
        Path(path).unlink()

    def delete_directory(self, path) -> None:
        shutil.rmtree(path)

    def exists(self, path) -> bool:
        return Path(path).exists()

    def is_dir(self, path) -> bool:
        return Path(path).is_dir()


class ScratchWorkspace:
    def __init__(self, storage, root, archive_suffix: str):
        self.storage = storage
        self.name = WORKSPACE_PREFIX + random_suffix()
        self.path = Path(root) / self.name
        self.archive_path = self.path / (self.name + archive_suffix)
        self.destination = self.path / EXTRACTION_NAME
        self.warnings: List[CleanupWarning] = []
        self._released = False

    def __enter__(self) -> "ScratchWorkspace":
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        self.release()
        return False

    def release(self) -> List[CleanupWarning]:
        if not self._released:
            self._released = True
            self.warnings = cleanup(self.storage, self)
        return self.warnings


def _remove(storage, path, remover, warnings: List[CleanupWarning]) -> None:
    try:
        if storage.exists(path):
            remover(path)
    except FileNotFoundError:
        pass
    except OSError as e:
        warning = CleanupWarning(path, e)
        warn(str(warning))
        warnings.append(warning)


def cleanup(storage, workspace: ScratchWorkspace) -> List[CleanupWarning]:
    """Remove extraction output, downloaded archive and the workspace dir.

    Never raises for filesystem problems; they come back as warnings.
    """
    warnings: List[CleanupWarning] = []

    dest = workspace.destination
    if storage.is_dir(dest):
        _remove(storage, dest, storage.delete_directory, warnings)
    else:
        _remove(storage, dest, storage.delete_file, warnings)
    _remove(storage, workspace.archive_path, storage.delete_file, warnings)
    _remove(storage, workspace.path, storage.delete_directory, warnings)

    if not warnings:
        log("✅ Scratch files removed.")
    return warnings
