# ==========================================================
# 💽  db_utils.py — Load the extracted SQL into the database
# ==========================================================
# ⚠️  Destructive: the SQL runs exactly as found in the backup.
#     A typical dump drops/recreates tables and overwrites data.
# ==========================================================
import sqlite3
from pathlib import Path
from typing import Optional

from dbimporter.console import log
from dbimporter.errors import PayloadNotFound, RestoreFailed


class SqliteDatabase:
    """Target database reached through the stdlib sqlite3 driver.

    ``atomic`` wraps the script in BEGIN/COMMIT and rolls back on error.
    Leave it off for `sqlite3 .dump` output, which opens its own transaction.
    """

    def __init__(self, db_path, atomic: bool = False):
        self.db_path = Path(db_path)
        self.atomic = atomic

    def execute_raw(self, sql: str) -> None:
        db = sqlite3.connect(self.db_path)
        try:
            if self.atomic:
                try:
                    # the lone ";" closes a last statement without one
                    db.executescript("BEGIN;\n" + sql + "\n;\nCOMMIT;")
                except sqlite3.Error:
                    if db.in_transaction:
                        db.rollback()
                    raise
            else:
                db.executescript(sql)
        finally:
            db.close()


def resolve_payload(destination: Path, subpath: Optional[str] = None) -> Path:
    if not subpath:
        return destination

    base = destination.resolve()
    target = (destination / subpath).resolve()
    if target != base and base not in target.parents:
        raise PayloadNotFound(f"Sub-path '{subpath}' points outside the extracted backup")
    return destination / subpath


def read_payload(storage, path: Path) -> str:
    if not storage.exists(path):
        raise PayloadNotFound(f"SQL payload not found: {path}")
    if storage.is_dir(path):
        raise PayloadNotFound(
            f"SQL payload {path} is a directory; set zip_full_path to the .sql file inside the archive"
        )
    try:
        return storage.read_all(path).decode("utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise PayloadNotFound(f"SQL payload {path} is not readable: {e}") from e


def restore(database, storage, destination: Path, subpath: Optional[str] = None) -> Path:
    """Run the extracted SQL against ``database`` as one raw batch.

    Overwrites whatever the SQL touches in the target database.
    Returns the path of the file that was executed.
    """
    payload = resolve_payload(destination, subpath)
    sql = read_payload(storage, payload)

    log(f"💽 Importing {payload.name} ...")
    try:
        database.execute_raw(sql)
    except Exception as e:
        raise RestoreFailed(f"Database rejected {payload.name}: {e}") from e
    log("✅ Import done.")
    return payload
