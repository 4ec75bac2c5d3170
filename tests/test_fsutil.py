"""
Tests for filesystem primitives -- atomic writes, no-clobber publish, store lock
"""

import errno

import pytest

from rationale.core import fsutil
from rationale.core.fsutil import (
    atomic_write_bytes, encode_json, publish_new_file, store_lock,
)
from rationale.errors import RepositoryBusyError, StorageIOError


def leftover_temp_files(directory):
    return [p.name for p in directory.iterdir() if p.name.endswith(".tmp")]


class TestEncodeJson:

    def test_deterministic(self):
        assert encode_json({"b": 1, "a": [1]}) == b'{\n  "a": [\n    1\n  ],\n  "b": 1\n}\n'


class TestAtomicWrite:

    def test_replaces_existing(self, tmp_path):
        target = tmp_path / "index.json"
        target.write_bytes(b"old")
        atomic_write_bytes(target, b"new")
        assert target.read_bytes() == b"new"
        assert leftover_temp_files(tmp_path) == []


class TestPublishNewFile:

    def test_publishes(self, tmp_path):
        target = tmp_path / "entries" / "e1.json"
        publish_new_file(target, b"{}\n")
        assert target.read_bytes() == b"{}\n"
        assert leftover_temp_files(target.parent) == []

    def test_never_clobbers(self, tmp_path):
        target = tmp_path / "e1.json"
        target.write_bytes(b"original")
        with pytest.raises(FileExistsError):
            publish_new_file(target, b"replacement")
        assert target.read_bytes() == b"original"
        assert leftover_temp_files(tmp_path) == []

    @pytest.fixture
    def no_hard_links(self, monkeypatch):
        def refuse(src, dst):
            raise OSError(errno.EPERM, "Operation not permitted", str(dst))
        monkeypatch.setattr(fsutil.os, "link", refuse)

    def test_without_hard_links(self, tmp_path, no_hard_links):
        target = tmp_path / "e1.json"
        publish_new_file(target, b"{}\n")
        assert target.read_bytes() == b"{}\n"
        assert leftover_temp_files(tmp_path) == []

    def test_without_hard_links_never_clobbers(self, tmp_path, no_hard_links):
        target = tmp_path / "e1.json"
        target.write_bytes(b"original")
        with pytest.raises(FileExistsError):
            publish_new_file(target, b"replacement")
        assert target.read_bytes() == b"original"
        assert leftover_temp_files(tmp_path) == []

    def test_other_link_failures_are_storage_errors(self, tmp_path, monkeypatch):
        def broken(src, dst):
            raise OSError(errno.EIO, "I/O error", str(dst))
        monkeypatch.setattr(fsutil.os, "link", broken)

        with pytest.raises(StorageIOError):
            publish_new_file(tmp_path / "e1.json", b"{}\n")
        assert not (tmp_path / "e1.json").exists()
        assert leftover_temp_files(tmp_path) == []


class TestStoreLock:

    def test_reentry_after_release(self, tmp_path):
        lock = tmp_path / "index.lock"
        with store_lock(lock, timeout=0.1):
            pass
        with store_lock(lock, timeout=0.1):
            pass

    def test_busy(self, tmp_path):
        lock = tmp_path / "index.lock"
        with store_lock(lock, timeout=1.0):
            with pytest.raises(RepositoryBusyError):
                with store_lock(lock, timeout=0.1):
                    pass
