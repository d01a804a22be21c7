#!/usr/bin/env python3
# ==========================================================
# 🗄️  dbimporter-restore — Restore a DB from the latest S3 backup
# ==========================================================
# 🪄 USAGE:
#   export AWS_PROFILE="hetzner"            # or AWS_ACCESS_KEY_ID / _SECRET_
#   dbimporter-restore --bucket my-backups --prefix db/ --db ./db.sqlite
#
#   # zip backups holding several files:
#   dbimporter-restore --zip-full-path dump/full.sql
#
# ⚠️  The backup's SQL is executed as-is against the target
#     database and will overwrite its schema and data.
#
# Exit status: 0 on success, 1 on failure.
# ==========================================================
import argparse
import sys
from pathlib import Path

from botocore.exceptions import BotoCoreError, ClientError

from dbimporter.config import ImporterConfig
from dbimporter.console import fail, log, warn
from dbimporter.db_utils import SqliteDatabase
from dbimporter.importer import ImportPipeline
from dbimporter.s3_utils import S3BackupStore, get_s3_client
from dbimporter.scratch import LocalScratchStorage


def build_parser(defaults: ImporterConfig) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Restore a database from the latest S3 backup (.gz or .zip). "
                    "WARNING: overwrites the target database."
    )
    parser.add_argument("--bucket", default=defaults.bucket, help="S3 bucket name")
    parser.add_argument("--endpoint", default=defaults.endpoint, help="S3 endpoint URL")
    parser.add_argument("--region", default=defaults.region, help="S3 region")
    parser.add_argument("--profile", default=defaults.profile, help="AWS profile name")
    parser.add_argument("--prefix", default=defaults.prefix, help="Key prefix holding the backups")
    parser.add_argument("--zip-full-path", default=defaults.zip_full_path,
                        help="Path of the .sql file inside a zip backup")
    parser.add_argument("--db", dest="db_path", type=Path, default=defaults.db_path,
                        help="SQLite database to restore into")
    parser.add_argument("--scratch-dir", type=Path, default=defaults.scratch_dir,
                        help="Where temporary files are unpacked")
    parser.add_argument("--no-verify", dest="verify_checksum", action="store_false",
                        default=defaults.verify_checksum, help="Skip .sha256 verification")
    parser.add_argument("--atomic", action="store_true", default=defaults.atomic,
                        help="Run the SQL inside a single transaction")
    parser.add_argument("--no-progress", dest="progress", action="store_false",
                        help="Disable download progress bars")
    return parser


def main(argv=None, store=None) -> int:
    """CLI entry point. ``store`` replaces the S3 store (used by tests)."""
    args = build_parser(ImporterConfig.from_env()).parse_args(argv)
    config = ImporterConfig(**vars(args))

    try:
        if store is None:
            s3 = get_s3_client(config.profile, config.endpoint, config.region)
            store = S3BackupStore(s3, config.bucket, progress=config.progress)

        log(f"🗄️ Restoring {config.db_path} from s3://{config.bucket}/{config.prefix}")
        pipeline = ImportPipeline(
            store,
            LocalScratchStorage(),
            SqliteDatabase(config.db_path, atomic=config.atomic),
            config,
        )
        result = pipeline.run()
    except (BotoCoreError, ClientError) as e:
        fail(f"S3 error: {e}")
        return 1

    if result.warnings:
        warn(f"{len(result.warnings)} scratch path(s) could not be removed, see above.")
    return 0 if result.ok else 1


if __name__ == "__main__":
    sys.exit(main())
