"""
Merge Reconciler -- Union merge for index snapshots

Two branches that both recorded reasoning produce two index files that a
line-based merge would conflict on. Since buckets only grow, the correct
merge is the per-path set union:

    merged[path] = left[path] | right[path]

which is commutative, associative, idempotent and monotonic, so the order
in which branches meet never matters and nothing recorded is ever lost.

The common ancestor is optional. It only feeds statistics.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Set

from ..errors import CorruptRecordError, MergeFailedError, StorageIOError
from .fsutil import read_bytes
from .index import Index


logger = logging.getLogger(__name__)


@dataclass
class MergeResult:
    """Reconciled index plus what each side contributed."""
    index: Index
    left_count: int = 0
    right_count: int = 0
    left_unreadable: bool = False
    right_unreadable: bool = False
    base_unreadable: bool = False
    # Relative to the base; empty when no base was given
    added_left: Set[str] = field(default_factory=set)
    added_right: Set[str] = field(default_factory=set)
    contested_paths: List[str] = field(default_factory=list)

    @property
    def merged_count(self) -> int:
        return self.index.entry_count

    @property
    def lossy(self) -> bool:
        """True when a side could not be read and was treated as empty."""
        return self.left_unreadable or self.right_unreadable

    def summary(self) -> str:
        parts = [
            f"merged {self.merged_count} memberships across {len(self.index)} paths",
            f"(ours {self.left_count}, theirs {self.right_count})",
        ]
        if self.added_left or self.added_right:
            parts.append(f"new since base: ours +{len(self.added_left)}, theirs +{len(self.added_right)}")
        if self.left_unreadable:
            parts.append("WARNING: ours was unreadable")
        if self.right_unreadable:
            parts.append("WARNING: theirs was unreadable")
        return " ".join(parts)

    def to_dict(self):
        return {
            "entry_count": self.merged_count,
            "paths": len(self.index),
            "left_count": self.left_count,
            "right_count": self.right_count,
            "left_unreadable": self.left_unreadable,
            "right_unreadable": self.right_unreadable,
            "base_unreadable": self.base_unreadable,
            "added_left": sorted(self.added_left),
            "added_right": sorted(self.added_right),
            "contested_paths": self.contested_paths,
        }


def _memberships(index: Index) -> Set[tuple]:
    return {(path, entry_id) for path, ids in index.items() for entry_id in ids}


def reconcile(left: Optional[Index], right: Optional[Index], base: Optional[Index] = None) -> MergeResult:
    """
    Union two index snapshots.

    A None snapshot stands for one that could not be read: it is merged as
    empty and flagged on the result. Neither input is modified.
    """
    left_unreadable = left is None
    right_unreadable = right is None
    if left_unreadable:
        logger.warning("Left index snapshot unreadable; merging as empty")
        left = Index()
    if right_unreadable:
        logger.warning("Right index snapshot unreadable; merging as empty")
        right = Index()

    merged = left.copy()
    for path, ids in right.items():
        for entry_id in ids:
            merged.append(path, entry_id)

    result = MergeResult(
        index=merged,
        left_count=left.entry_count,
        right_count=right.entry_count,
        left_unreadable=left_unreadable,
        right_unreadable=right_unreadable,
    )

    if base is not None:
        base_members = _memberships(base)
        new_left = _memberships(left) - base_members
        new_right = _memberships(right) - base_members
        result.added_left = {entry_id for _, entry_id in new_left}
        result.added_right = {entry_id for _, entry_id in new_right}
        result.contested_paths = sorted(
            {p for p, _ in new_left} & {p for p, _ in new_right}
        )

    return result


def read_snapshot(path: Optional[Path], label: str) -> Optional[Index]:
    """
    Read an index file for merging, never raising.

    Returns None when the file is missing or unparseable (after logging a
    warning). An empty file is an empty index.
    """
    if path is None:
        return None
    try:
        data = read_bytes(path)
    except FileNotFoundError:
        logger.warning("%s index %s is missing", label, path)
        return None
    except StorageIOError as e:
        logger.warning("%s index %s could not be read: %s", label, path, e)
        return None

    if not data.strip():
        return Index()
    try:
        return Index.from_bytes(data, source=str(path))
    except CorruptRecordError as e:
        logger.warning("%s index unparseable: %s", label, e)
        return None


def merge_index_files(base_path: Optional[Path], ours_path: Path, theirs_path: Path) -> MergeResult:
    """
    Git merge-driver entry point: reconcile three index files into ours.

    Overwrites ours_path atomically with the canonical serialization of the
    union. Running it again on its own output changes nothing.

    Raises:
        MergeFailedError: neither ours nor theirs could be read
        StorageIOError: ours could not be written
    """
    ours_path = Path(ours_path)
    theirs_path = Path(theirs_path)

    base = read_snapshot(Path(base_path), "Base") if base_path else None
    ours = read_snapshot(ours_path, "Ours")
    theirs = read_snapshot(theirs_path, "Theirs")

    if ours is None and theirs is None:
        raise MergeFailedError(
            f"Cannot merge: neither {ours_path} nor {theirs_path} is a readable index"
        )

    result = reconcile(ours, theirs, base)
    result.base_unreadable = bool(base_path) and base is None

    result.index.save(ours_path)
    logger.debug("Merge driver wrote %s: %s", ours_path, result.summary())
    return result
