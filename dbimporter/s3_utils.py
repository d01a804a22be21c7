#!/usr/bin/env python3
# ==========================================================
# 🔧  Shared S3 + Checksum Utilities for DB Backups
# ==========================================================
# Provides:
#   - S3 client setup for S3-compatible object storage (boto3 Session profile)
#   - S3BackupStore: list / content type / download-into-memory with tqdm
#   - Backup listing that skips folders and .sha256 companions
#   - SHA256 checksum generation & verification
#
# Defaults come from dbimporter/config.py (env overridable).
# ==========================================================
import hashlib
import io
import os
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

import boto3
from botocore.exceptions import ClientError
from tqdm import tqdm

from dbimporter.config import DEFAULT_ENDPOINT, DEFAULT_PROFILE, DEFAULT_REGION
from dbimporter.console import is_tty, log
from dbimporter.errors import NoBackupsFound

CHECKSUM_SUFFIX = ".sha256"
CHUNK_SIZE = 1024 * 1024


@dataclass(frozen=True)
class BackupObject:
    key: str
    last_modified: int
    content_type: Optional[str] = None


# ---------- Checksum helpers ----------
def calculate_sha256(data: bytes) -> str:
    h = hashlib.sha256()
    view = memoryview(data)
    for start in range(0, len(view), CHUNK_SIZE):
        h.update(view[start:start + CHUNK_SIZE])
    return h.hexdigest()


def parse_checksum_file(content: bytes) -> str:
    # "<hex>  <filename>" as written by sha256sum
    parts = content.decode("utf-8", errors="replace").split()
    return parts[0].lower() if parts else ""


# ---------- AWS / S3 helpers ----------
def normalize_prefix(prefix: str) -> str:
    # "db" and "db/" both mean the folder db/, "" is the bucket root
    if prefix and not prefix.endswith("/"):
        return prefix + "/"
    return prefix


def get_s3_client(profile: Optional[str] = DEFAULT_PROFILE,
                  endpoint: str = DEFAULT_ENDPOINT,
                  region: str = DEFAULT_REGION):
    # Return a boto3 S3 client using the given profile, endpoint, and region.
    session = boto3.Session(profile_name=profile)
    # An empty endpoint means plain AWS S3.
    return session.client("s3", endpoint_url=endpoint or None, region_name=region or None)


class S3BackupStore:
    """Remote store backed by a single S3 bucket.

    Credentials are whatever the boto3 client was built with; this class
    never touches them.
    """

    def __init__(self, s3, bucket: str, progress: bool = True):
        self.s3 = s3
        self.bucket = bucket
        self.progress = progress

    def list(self, prefix: str = "") -> List[Tuple[str, int]]:
        """Return ``(key, last_modified)`` pairs in the order S3 reports them.

        Only objects directly inside the prefix folder are listed, not those
        in sub-folders.
        """
        paginator = self.s3.get_paginator("list_objects_v2")
        entries = []
        pages = paginator.paginate(Bucket=self.bucket, Prefix=normalize_prefix(prefix), Delimiter="/")
        for page in pages:
            for obj in page.get("Contents", []):
                entries.append((obj["Key"], int(obj["LastModified"].timestamp())))
        return entries

    def content_type(self, key: str) -> str:
        meta = self.s3.head_object(Bucket=self.bucket, Key=key)
        return meta.get("ContentType", "")

    def get(self, key: str) -> bytes:
        resp = self.s3.get_object(Bucket=self.bucket, Key=key)
        body = resp["Body"]
        buf = io.BytesIO()
        with tqdm(
            total=resp.get("ContentLength"), unit="B", unit_scale=True,
            disable=not self.progress or not is_tty(),
            desc=f"Downloading {os.path.basename(key)}"
        ) as bar:
            for chunk in iter(lambda: body.read(CHUNK_SIZE), b""):
                buf.write(chunk)
                bar.update(len(chunk))
        log(f"✅ Downloaded s3://{self.bucket}/{key}")
        return buf.getvalue()


def list_backups(store, prefix: str = "") -> Tuple[List[BackupObject], Dict[str, str]]:
    """List backup candidates directly inside the prefix folder.

    Returns the candidates in listing order plus a map from candidate key to
    its ``.sha256`` companion key. Raises NoBackupsFound when nothing is left.
    """
    directory = normalize_prefix(prefix)
    listed = store.list(directory)
    keys = {key for key, _ in listed}
    candidates = []
    companions = {}
    for key, last_modified in listed:
        if not key.startswith(directory) or "/" in key[len(directory):]:
            continue
        if key.endswith("/") or key.endswith(CHECKSUM_SUFFIX):
            continue
        candidates.append(BackupObject(key=key, last_modified=last_modified))
        if key + CHECKSUM_SUFFIX in keys:
            companions[key] = key + CHECKSUM_SUFFIX

    if not candidates:
        raise NoBackupsFound(prefix)
    return candidates, companions


def is_missing_key_error(exc: ClientError) -> bool:
    code = exc.response.get("Error", {}).get("Code", "")
    return code in ("404", "NoSuchKey", "NotFound")
