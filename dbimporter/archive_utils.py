# ==========================================================
# 📦  archive_utils.py — Format detection + extraction
# ==========================================================
# Supported backup archives (by the Content-Type S3 reports):
#   application/x-gzip  → single gzip'ed SQL file
#   application/zip     → zip with one or many files
# Everything else is rejected.
# ==========================================================
import enum
import gzip
import zipfile
import zlib
from pathlib import Path

from dbimporter.console import log
from dbimporter.errors import CorruptArchive

GZIP_CHUNK_SIZE = 4096


class ArchiveFormat(enum.Enum):
    GZIP = "application/x-gzip"
    ZIP = "application/zip"
    UNSUPPORTED = None

    @property
    def suffix(self) -> str:
        if self is ArchiveFormat.GZIP:
            return ".gz"
        if self is ArchiveFormat.ZIP:
            return ".zip"
        raise ValueError(f"{self.name} archives have no local suffix")


def detect_format(content_type) -> ArchiveFormat:
    # Exact match only: no parameters, no case folding.
    if content_type == ArchiveFormat.GZIP.value:
        return ArchiveFormat.GZIP
    elif content_type == ArchiveFormat.ZIP.value:
        return ArchiveFormat.ZIP
    else:
        return ArchiveFormat.UNSUPPORTED


def extract_gzip(archive_path: Path, dest_path: Path) -> None:
    """Stream-decompress a gzip file into a single destination file."""
    try:
        with gzip.open(archive_path, "rb") as gz, open(dest_path, "wb") as dest:
            for chunk in iter(lambda: gz.read(GZIP_CHUNK_SIZE), b""):
                dest.write(chunk)
    except (OSError, EOFError, zlib.error) as e:
        raise CorruptArchive(f"Could not open gzip file {archive_path.name}: {e}") from e


def extract_zip(archive_path: Path, dest_dir: Path) -> None:
    """Extract every member of a zip archive below dest_dir."""
    # Encrypted members raise RuntimeError, unknown compression methods
    # NotImplementedError.
    try:
        with zipfile.ZipFile(archive_path) as zf:
            zf.extractall(dest_dir)
    except (zipfile.BadZipFile, zlib.error, EOFError, OSError, RuntimeError, NotImplementedError) as e:
        raise CorruptArchive(f"Could not extract zip file {archive_path.name}: {e}") from e


def extract(archive_format: ArchiveFormat, data: bytes, workspace) -> Path:
    """Write the downloaded bytes into the workspace and unpack them.

    Returns the extraction destination (always ``workspace.destination``).
    """
    workspace.storage.write(workspace.archive_path, data)

    if archive_format is ArchiveFormat.GZIP:
        log("📦 Decompressing gzip archive ...")
        extract_gzip(workspace.archive_path, workspace.destination)
    elif archive_format is ArchiveFormat.ZIP:
        log("📦 Extracting zip archive ...")
        extract_zip(workspace.archive_path, workspace.destination)
    else:
        raise ValueError(f"Cannot extract {archive_format.name} archive")

    return workspace.destination
