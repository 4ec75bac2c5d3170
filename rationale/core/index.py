"""
Index -- Grow-only map from file path to entry identifiers

The index answers "which entries talk about this file" without scanning
every record. Buckets only grow: nothing removes an id, even when the
entry's file is later renamed or deleted.

Serialization is canonical (sorted paths, sorted ids, sorted keys, fixed
indent) so the same logical state always produces the same bytes. The
stored entry_count is informational and recomputed on every write.
"""

from pathlib import Path
from typing import Dict, FrozenSet, Iterable, List, Set

import orjson

from ..errors import CorruptRecordError
from .entry import normalize_path
from .fsutil import atomic_write_bytes, encode_json, read_bytes


class Index:
    """In-memory path index. Mutations only ever add."""

    def __init__(self, buckets: Dict[str, Iterable[str]] = None):
        self._buckets: Dict[str, Set[str]] = {}
        for path, ids in (buckets or {}).items():
            for entry_id in ids:
                self.append(path, entry_id)

    def append(self, path: str, entry_id: str) -> bool:
        """Add entry_id to path's bucket. Returns False if it was already there."""
        bucket = self._buckets.setdefault(normalize_path(path), set())
        if entry_id in bucket:
            return False
        bucket.add(entry_id)
        return True

    def extend(self, paths: Iterable[str], entry_id: str) -> int:
        """Add one id to several buckets. Returns the number of new memberships."""
        return sum(1 for path in paths if self.append(path, entry_id))

    def lookup(self, path: str) -> FrozenSet[str]:
        return frozenset(self._buckets.get(normalize_path(path), ()))

    def paths(self) -> List[str]:
        """Tracked paths (non-empty buckets), sorted."""
        return sorted(p for p, ids in self._buckets.items() if ids)

    def __contains__(self, path: str) -> bool:
        return bool(self._buckets.get(normalize_path(path)))

    def __len__(self) -> int:
        return len(self.paths())

    def __eq__(self, other) -> bool:
        if not isinstance(other, Index):
            return NotImplemented
        return self.as_dict() == other.as_dict()

    def items(self):
        """(path, frozenset of ids) pairs in path order."""
        return [(p, frozenset(self._buckets[p])) for p in self.paths()]

    @property
    def entry_count(self) -> int:
        """Total memberships (sum of bucket sizes), not distinct entries."""
        return sum(len(ids) for ids in self._buckets.values())

    def distinct_ids(self) -> Set[str]:
        ids: Set[str] = set()
        for bucket in self._buckets.values():
            ids |= bucket
        return ids

    def as_dict(self) -> Dict[str, List[str]]:
        return {p: sorted(self._buckets[p]) for p in self.paths()}

    def copy(self) -> 'Index':
        return Index(self.as_dict())

    # -------------------------------------------------------------------------
    # Serialization
    # -------------------------------------------------------------------------

    def to_bytes(self) -> bytes:
        return encode_json({"entry_count": self.entry_count, "files": self.as_dict()})

    @classmethod
    def from_bytes(cls, data: bytes, source: str = "index") -> 'Index':
        """
        Parse serialized index bytes.

        Raises:
            CorruptRecordError: not JSON, or not {"files": {path: [id, ...]}}
        """
        try:
            doc = orjson.loads(data)
        except orjson.JSONDecodeError as e:
            raise CorruptRecordError(source, f"invalid JSON ({e})") from e

        if not isinstance(doc, dict):
            raise CorruptRecordError(source, "index is not an object")
        files = doc.get("files")
        if not isinstance(files, dict):
            raise CorruptRecordError(source, "'files' must be an object")

        index = cls()
        for path, ids in files.items():
            if not isinstance(ids, list) or not all(isinstance(i, str) for i in ids):
                raise CorruptRecordError(source, f"bucket for {path!r} must be a list of strings")
            for entry_id in ids:
                index.append(path, entry_id)
        return index

    @classmethod
    def load(cls, path: Path) -> 'Index':
        """
        Load from disk. A missing file is an empty index.

        Raises:
            CorruptRecordError, StorageIOError
        """
        try:
            data = read_bytes(path)
        except FileNotFoundError:
            return cls()
        return cls.from_bytes(data, source=str(path))

    def save(self, path: Path) -> None:
        """Atomically replace the index file."""
        atomic_write_bytes(path, self.to_bytes())

    def __repr__(self) -> str:
        return f"Index(paths={len(self)}, entry_count={self.entry_count})"


def stored_entry_count(path: Path) -> int:
    """The entry_count value as written on disk, or -1 when absent or unreadable."""
    try:
        doc = orjson.loads(read_bytes(path))
    except (FileNotFoundError, orjson.JSONDecodeError):
        return -1
    value = doc.get("entry_count") if isinstance(doc, dict) else None
    return value if isinstance(value, int) else -1
