from __future__ import annotations

import gzip
import io
import struct
import zipfile

import pytest

from dbimporter.config import ImporterConfig
from dbimporter.scratch import LocalScratchStorage


class FakeStore:
    """In-memory remote store: key -> (timestamp, content type, bytes)."""

    def __init__(self, objects=None):
        self.objects = dict(objects or {})
        self.gets: list[str] = []
        self.listed_prefixes: list[str] = []

    def list(self, prefix=""):
        self.listed_prefixes.append(prefix)
        return [
            (key, ts) for key, (ts, _, _) in self.objects.items() if key.startswith(prefix)
        ]

    def content_type(self, key):
        return self.objects[key][1]

    def get(self, key):
        self.gets.append(key)
        return self.objects[key][2]


class RecordingDatabase:
    def __init__(self, fail_with: Exception | None = None):
        self.executed: list[str] = []
        self.fail_with = fail_with

    def execute_raw(self, sql):
        self.executed.append(sql)
        if self.fail_with is not None:
            raise self.fail_with


def gzip_bytes(text: str) -> bytes:
    return gzip.compress(text.encode("utf-8"))


def zip_bytes(files: dict[str, str]) -> bytes:
    buf = io.BytesIO()
    with zipfile.ZipFile(buf, "w", compression=zipfile.ZIP_DEFLATED) as zf:
        for name, content in files.items():
            zf.writestr(name, content)
    return buf.getvalue()


def patch_zip_member(data: bytes, flag_bits: int | None = None, compress_type: int | None = None) -> bytes:
    """Rewrite the central directory entry of a single-member zip."""
    patched = bytearray(data)
    entry = patched.find(b"PK\x01\x02")
    assert entry != -1
    if flag_bits is not None:
        struct.pack_into("<H", patched, entry + 8, flag_bits)
    if compress_type is not None:
        struct.pack_into("<H", patched, entry + 10, compress_type)
    return bytes(patched)


@pytest.fixture
def storage() -> LocalScratchStorage:
    return LocalScratchStorage()


@pytest.fixture
def scratch_dir(tmp_path):
    path = tmp_path / "scratch"
    path.mkdir()
    return path


@pytest.fixture
def config(scratch_dir) -> ImporterConfig:
    return ImporterConfig(prefix="", zip_full_path=None, scratch_dir=scratch_dir, progress=False)
