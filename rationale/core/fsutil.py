"""
Filesystem primitives -- atomic publication and the store lock

Two guarantees everything else builds on:
- Readers only ever see complete files (write to a temp file in the same
  directory, then rename over the target).
- At most one local writer mutates the index at a time (exclusive lock
  file, bounded wait, fail fast).

Persisted JSON always goes through encode_json so identical logical
state serializes to identical bytes.
"""

import errno
import logging
import os
import sys
import tempfile
import time
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Iterator

import orjson

from ..errors import RepositoryBusyError, StorageIOError

if sys.platform == "win32":
    import msvcrt
else:
    import fcntl


logger = logging.getLogger(__name__)

LOCK_POLL_INTERVAL = 0.05

JSON_OPTIONS = orjson.OPT_INDENT_2 | orjson.OPT_SORT_KEYS


def encode_json(data: Any) -> bytes:
    """Deterministic document bytes: sorted keys, 2-space indent, trailing newline."""
    return orjson.dumps(data, option=JSON_OPTIONS) + b"\n"


def _write_temp(path: Path, data: bytes) -> Path:
    """Write data to a fresh temp file beside path and fsync it."""
    path.parent.mkdir(parents=True, exist_ok=True)
    with tempfile.NamedTemporaryFile(
        "wb", delete=False, dir=path.parent, prefix=f".{path.name}.", suffix=".tmp"
    ) as handle:
        handle.write(data)
        handle.flush()
        os.fsync(handle.fileno())
        return Path(handle.name)


def atomic_write_bytes(path: Path, data: bytes) -> None:
    """
    Replace path with data atomically.

    Raises:
        StorageIOError: on any filesystem failure (temp file is removed)
    """
    path = Path(path)
    tmp = None
    try:
        tmp = _write_temp(path, data)
        os.replace(tmp, path)
    except OSError as e:
        if tmp is not None and tmp.exists():
            tmp.unlink()
        raise StorageIOError(path, e) from e


# errnos for filesystems that cannot hard link (FAT/exFAT, some network mounts)
NO_HARDLINK_ERRNOS = frozenset(
    code for code in (
        errno.EPERM, errno.EOPNOTSUPP, getattr(errno, "ENOTSUP", None),
        errno.ENOSYS, errno.EXDEV, errno.EINVAL,
    ) if code is not None
)


def _claim_and_replace(tmp: Path, path: Path) -> None:
    """Create path exclusively, then move the finished temp file over it."""
    fd = os.open(path, os.O_CREAT | os.O_EXCL | os.O_WRONLY, 0o644)
    os.close(fd)
    os.replace(tmp, path)


def publish_new_file(path: Path, data: bytes) -> None:
    """
    Publish data at path only if nothing exists there yet.

    The content is fully written before it becomes visible, and an existing
    file is never replaced: a hard link from the temp file either creates
    the name or fails. Where hard links are unsupported the name is claimed
    with O_EXCL and the temp file renamed over it, so readers may briefly
    see an empty file, which they skip as corrupt.

    Raises:
        FileExistsError: path already exists
        StorageIOError: on any other filesystem failure
    """
    path = Path(path)
    tmp = None
    try:
        tmp = _write_temp(path, data)
        try:
            os.link(tmp, path)
        except FileExistsError:
            raise
        except OSError as e:
            if e.errno not in NO_HARDLINK_ERRNOS:
                raise
            logger.debug("Hard links unsupported for %s (%s), using exclusive create", path, e)
            _claim_and_replace(tmp, path)
    except FileExistsError:
        raise
    except OSError as e:
        raise StorageIOError(path, e) from e
    finally:
        if tmp is not None and tmp.exists():
            tmp.unlink()


def read_bytes(path: Path) -> bytes:
    """Read a whole file, mapping OS failures to StorageIOError."""
    try:
        return Path(path).read_bytes()
    except FileNotFoundError:
        raise
    except OSError as e:
        raise StorageIOError(path, e) from e


def _try_lock(handle) -> bool:
    try:
        if sys.platform == "win32":
            handle.seek(0)
            msvcrt.locking(handle.fileno(), msvcrt.LK_NBLCK, 1)
        else:
            fcntl.flock(handle.fileno(), fcntl.LOCK_EX | fcntl.LOCK_NB)
        return True
    except OSError:
        return False


def _unlock(handle) -> None:
    if sys.platform == "win32":
        handle.seek(0)
        msvcrt.locking(handle.fileno(), msvcrt.LK_UNLCK, 1)
    else:
        fcntl.flock(handle.fileno(), fcntl.LOCK_UN)


@contextmanager
def store_lock(lock_path: Path, timeout: float = 5.0) -> Iterator[None]:
    """
    Hold the exclusive store lock for the duration of the block.

    Polls until the lock is free or timeout seconds pass.

    Raises:
        RepositoryBusyError: lock not acquired in time
        StorageIOError: the lock file cannot be opened
    """
    lock_path = Path(lock_path)
    try:
        handle = open(lock_path, "a+b")
    except OSError as e:
        raise StorageIOError(lock_path, e) from e

    try:
        deadline = time.monotonic() + max(0.0, timeout)
        while not _try_lock(handle):
            if time.monotonic() >= deadline:
                raise RepositoryBusyError(lock_path, timeout)
            time.sleep(LOCK_POLL_INTERVAL)

        logger.debug("Acquired store lock %s", lock_path)
        try:
            yield
        finally:
            _unlock(handle)
            logger.debug("Released store lock %s", lock_path)
    finally:
        handle.close()
