from __future__ import annotations

import sqlite3

import pytest

from conftest import RecordingDatabase
from dbimporter.db_utils import SqliteDatabase, read_payload, resolve_payload, restore
from dbimporter.errors import PayloadNotFound, RestoreFailed

DUMP = """
CREATE TABLE users (id INTEGER PRIMARY KEY, name TEXT);
INSERT INTO users VALUES (1, 'alice');
INSERT INTO users VALUES (2, 'bob');
"""


def _rows(db_path, sql):
    db = sqlite3.connect(db_path)
    try:
        return db.execute(sql).fetchall()
    finally:
        db.close()


def test_resolve_without_subpath(tmp_path) -> None:
    assert resolve_payload(tmp_path / "backup.sql") == tmp_path / "backup.sql"
    assert resolve_payload(tmp_path / "backup.sql", "") == tmp_path / "backup.sql"


def test_resolve_with_subpath(tmp_path) -> None:
    dest = tmp_path / "backup.sql"
    assert resolve_payload(dest, "dump/full.sql") == dest / "dump" / "full.sql"


def test_resolve_rejects_escape(tmp_path) -> None:
    with pytest.raises(PayloadNotFound):
        resolve_payload(tmp_path / "backup.sql", "../../etc/passwd")


def test_read_payload_missing(storage, tmp_path) -> None:
    with pytest.raises(PayloadNotFound):
        read_payload(storage, tmp_path / "nope.sql")


def test_read_payload_directory(storage, tmp_path) -> None:
    (tmp_path / "backup.sql").mkdir()
    with pytest.raises(PayloadNotFound, match="zip_full_path"):
        read_payload(storage, tmp_path / "backup.sql")


def test_read_payload_not_utf8(storage, tmp_path) -> None:
    path = tmp_path / "backup.sql"
    path.write_bytes(b"\xff\xfe\x00garbage")
    with pytest.raises(PayloadNotFound):
        read_payload(storage, path)


def test_restore_executes_whole_file_once(storage, tmp_path) -> None:
    path = tmp_path / "backup.sql"
    path.write_text(DUMP, encoding="utf-8")
    database = RecordingDatabase()

    assert restore(database, storage, path) == path
    assert database.executed == [DUMP]


def test_restore_wraps_driver_errors(storage, tmp_path) -> None:
    path = tmp_path / "backup.sql"
    path.write_text(DUMP, encoding="utf-8")
    cause = sqlite3.OperationalError("no such table: users")
    database = RecordingDatabase(fail_with=cause)

    with pytest.raises(RestoreFailed) as excinfo:
        restore(database, storage, path)
    assert excinfo.value.__cause__ is cause


def test_restore_missing_payload_never_touches_db(storage, tmp_path) -> None:
    database = RecordingDatabase()
    with pytest.raises(PayloadNotFound):
        restore(database, storage, tmp_path / "backup.sql", "dump/full.sql")
    assert database.executed == []


def test_sqlite_executes_multi_statement_script(tmp_path) -> None:
    db_path = tmp_path / "db.sqlite"
    SqliteDatabase(db_path).execute_raw(DUMP)
    assert _rows(db_path, "SELECT name FROM users ORDER BY id") == [("alice",), ("bob",)]


def test_sqlite_non_atomic_keeps_partial_work(tmp_path) -> None:
    db_path = tmp_path / "db.sqlite"
    with pytest.raises(sqlite3.Error):
        SqliteDatabase(db_path).execute_raw(DUMP + "INSERT INTO missing VALUES (1);")
    assert _rows(db_path, "SELECT COUNT(*) FROM users") == [(2,)]


def test_sqlite_atomic_rolls_back(tmp_path) -> None:
    db_path = tmp_path / "db.sqlite"
    with pytest.raises(sqlite3.Error):
        SqliteDatabase(db_path, atomic=True).execute_raw(DUMP + "INSERT INTO missing VALUES (1);")
    tables = _rows(db_path, "SELECT name FROM sqlite_master WHERE type='table'")
    assert tables == []


def test_sqlite_atomic_commits(tmp_path) -> None:
    db_path = tmp_path / "db.sqlite"
    SqliteDatabase(db_path, atomic=True).execute_raw(DUMP)
    assert _rows(db_path, "SELECT COUNT(*) FROM users") == [(2,)]


@pytest.mark.parametrize("atomic", [False, True])
def test_sqlite_script_without_trailing_semicolon(tmp_path, atomic) -> None:
    db_path = tmp_path / "db.sqlite"
    SqliteDatabase(db_path, atomic=atomic).execute_raw("CREATE TABLE t (x INTEGER);\nINSERT INTO t VALUES (1)")
    assert _rows(db_path, "SELECT x FROM t") == [(1,)]


def test_sqlite_atomic_script_ending_in_comment(tmp_path) -> None:
    db_path = tmp_path / "db.sqlite"
    SqliteDatabase(db_path, atomic=True).execute_raw("CREATE TABLE t (x INTEGER);\n-- end of dump")
    assert _rows(db_path, "SELECT COUNT(*) FROM t") == [(0,)]
