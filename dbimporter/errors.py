"""Failure kinds reported by the import pipeline.

Every ``DbImportError`` aborts the run. ``CleanupWarning`` never does; it is
attached to the result next to whatever outcome the run already had.
"""


class DbImportError(Exception):
    """Base class for all pipeline-fatal errors."""


class NoBackupsFound(DbImportError):
    def __init__(self, prefix: str):
        self.prefix = prefix
        where = f"prefix '{prefix}'" if prefix else "the bucket root"
        super().__init__(f"No backups detected under {where}. Did you set the correct prefix?")


class EmptyInput(DbImportError):
    def __init__(self):
        super().__init__("Cannot select the latest backup from an empty listing")


class UnsupportedArchiveFormat(DbImportError):
    def __init__(self, key: str, content_type):
        self.key = key
        self.content_type = content_type
        super().__init__(
            f"Forbidden file type '{content_type}' for {key}. Only .zip and .gz are allowed"
        )


class CorruptArchive(DbImportError):
    pass


class PayloadNotFound(DbImportError):
    pass


class RestoreFailed(DbImportError):
    pass


class ChecksumMismatch(DbImportError):
    def __init__(self, key: str, expected: str, actual: str):
        self.key = key
        self.expected = expected
        self.actual = actual
        super().__init__(f"Checksum mismatch for {key}: expected {expected}, got {actual}")


class CleanupWarning(UserWarning):
    def __init__(self, path, reason):
        self.path = path
        self.reason = reason
        super().__init__(f"Could not remove {path}: {reason}")
