"""
Repository -- The .rationale/ store on disk

Owns the layout, finds the store from any subdirectory, and runs the only
write path (record) under the store lock:

    lock -> load index -> create entry -> extend index -> save index -> unlock

The entry is durable before the index mentions it. A crash in between
leaves an entry the index does not know about, which check reports and
repair restores. Nothing here ever edits or removes a record.
"""

import logging
import re
from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath
from typing import Iterable, List, Optional, Sequence, Set, Tuple

from ..config import Config, ConfigManager
from ..errors import (
    CorruptRecordError, InvalidInputError, NotFoundError,
    RationaleError, RepositoryUninitializedError,
)
from .entry import (
    Entry, LineRange, RejectedAlternative, hash_file, make_entry, normalize_path,
)
from .fsutil import atomic_write_bytes, store_lock
from .index import Index, stored_entry_count
from .merge import MergeResult, read_snapshot, reconcile
from .query import QueryEngine
from .store import EntryStore, SkippedRecord


logger = logging.getLogger(__name__)

STORE_DIR = ".rationale"
ENTRIES_DIR = "entries"
INDEX_FILE = "index.json"
LOCK_FILE = "index.lock"
GITIGNORE_CONTENT = "# Rationale scratch files\n*.tmp\n*.lock\n"


def find_root(start: Optional[Path] = None) -> Path:
    """
    Walk upward from start to the first directory holding an initialized store.

    Raises:
        RepositoryUninitializedError: no store at or above start
    """
    start = Path(start or Path.cwd()).resolve()
    for candidate in [start, *start.parents]:
        if (candidate / STORE_DIR / INDEX_FILE).is_file():
            return candidate
    raise RepositoryUninitializedError(start)


def escapes_root(path: str) -> bool:
    """True for a normalized path that is absolute or climbs above the root."""
    parts = PurePosixPath(path).parts
    if not parts:
        return False
    return parts[0] == "/" or ".." in parts or bool(re.match(r"[A-Za-z]:", parts[0]))


@dataclass
class RecordResult:
    """Outcome of a record call."""
    entry: Entry
    skipped_targets: List[str] = field(default_factory=list)
    new_memberships: int = 0


@dataclass
class CheckReport:
    """Integrity of the store. Produced by Repository.check()."""
    entries: int
    paths: int
    entry_count: int
    stored_entry_count: int
    corrupt: List[SkippedRecord] = field(default_factory=list)
    # (path, id) memberships an entry claims but the index lacks
    missing_memberships: List[Tuple[str, str]] = field(default_factory=list)
    # ids the index lists with no record file
    dangling: List[str] = field(default_factory=list)
    index_error: Optional[str] = None

    @property
    def orphaned(self) -> List[str]:
        return sorted({entry_id for _, entry_id in self.missing_memberships})

    @property
    def count_drift(self) -> bool:
        return self.stored_entry_count != self.entry_count

    @property
    def ok(self) -> bool:
        return not (
            self.corrupt or self.missing_memberships or self.dangling
            or self.index_error or self.count_drift
        )

    @property
    def repairable(self) -> bool:
        return bool(self.missing_memberships or self.index_error or self.count_drift)

    def to_dict(self):
        return {
            "ok": self.ok,
            "entries": self.entries,
            "paths": self.paths,
            "entry_count": self.entry_count,
            "stored_entry_count": self.stored_entry_count,
            "corrupt": [s.to_dict() for s in self.corrupt],
            "orphaned": self.orphaned,
            "missing_memberships": [{"path": p, "id": i} for p, i in self.missing_memberships],
            "dangling": self.dangling,
            "index_error": self.index_error,
        }


class Repository:
    """An initialized store rooted at `root`."""

    def __init__(self, root: Path, config: Optional[Config] = None):
        self.root = Path(root)
        self.config = config or ConfigManager(self.root).load()
        self.store = EntryStore(self.entries_dir)
        self.query = QueryEngine(self.store, self.index_path)

    # -------------------------------------------------------------------------
    # Layout
    # -------------------------------------------------------------------------

    @property
    def store_dir(self) -> Path:
        return self.root / STORE_DIR

    @property
    def entries_dir(self) -> Path:
        return self.store_dir / ENTRIES_DIR

    @property
    def index_path(self) -> Path:
        return self.store_dir / INDEX_FILE

    @property
    def lock_path(self) -> Path:
        return self.store_dir / LOCK_FILE

    @classmethod
    def discover(cls, start: Optional[Path] = None, config: Optional[Config] = None) -> 'Repository':
        """Open the store at or above start (default: cwd)."""
        return cls(find_root(start), config)

    @classmethod
    def init(cls, root: Path, agent: Optional[str] = None) -> 'Repository':
        """
        Create a new store under root.

        Raises:
            RationaleError: a store already exists at root
        """
        root = Path(root)
        store_dir = root / STORE_DIR
        if (store_dir / INDEX_FILE).exists():
            raise RationaleError(f"Rationale store already initialized at {store_dir}")

        (store_dir / ENTRIES_DIR).mkdir(parents=True, exist_ok=True)

        manager = ConfigManager(root)
        config = manager.load()
        if agent:
            config.store.default_agent = agent
        manager.save_project(config)

        atomic_write_bytes(store_dir / ".gitignore", GITIGNORE_CONTENT.encode())
        Index().save(store_dir / INDEX_FILE)

        logger.info("Initialized rationale store at %s", store_dir)
        return cls(root, config)

    def relative_path(self, path: str, cwd: Optional[Path] = None) -> str:
        """
        Express a user-supplied path relative to the repository root.

        Absolute paths and paths relative to cwd are both accepted.

        Raises:
            InvalidInputError: the path resolves outside the root
        """
        candidate = Path(path)
        if not candidate.is_absolute():
            candidate = Path(cwd or Path.cwd()) / candidate
        try:
            rel = candidate.resolve().relative_to(self.root.resolve())
        except ValueError:
            raise InvalidInputError(f"{path} is outside the repository at {self.root}")
        return normalize_path(rel.as_posix())

    # -------------------------------------------------------------------------
    # Write path
    # -------------------------------------------------------------------------

    def record(
        self,
        targets: Sequence[str],
        intent: str,
        reasoning: str = "",
        agent: Optional[str] = None,
        line_range: Optional[LineRange] = None,
        rejected_alternatives: Sequence[RejectedAlternative] = (),
        tags: Iterable[str] = (),
        commit: Optional[str] = None,
    ) -> RecordResult:
        """
        Record reasoning for one or more repository-relative paths.

        Targets that do not exist in the working tree are skipped. All
        remaining targets gain the new entry in a single index write.

        Raises:
            InvalidInputError: empty intent, no targets, a target outside the root
            NotFoundError: none of the targets exist
            RepositoryBusyError: lock not acquired within lock.timeout
            DuplicateIdentifierError, StorageIOError, CorruptRecordError
        """
        if not intent or not intent.strip():
            raise InvalidInputError("Intent is required")

        requested = []
        for target in targets:
            normalized = normalize_path(target)
            if escapes_root(normalized):
                raise InvalidInputError(f"Target must be relative to the repository root: {target}")
            if normalized and normalized not in requested:
                requested.append(normalized)
        if not requested:
            raise InvalidInputError("No target files given")

        present, skipped = [], []
        for target in requested:
            if (self.root / target).is_file():
                present.append(target)
            else:
                logger.warning("Skipping %s: file not found", target)
                skipped.append(target)
        if not present:
            raise NotFoundError(f"None of the target files exist: {', '.join(requested)}")

        digests = {target: hash_file(self.root / target) for target in present}

        entry = make_entry(
            targets=present,
            agent=agent or self.config.store.default_agent,
            intent=intent,
            reasoning=reasoning,
            content_digests=digests,
            line_range=line_range,
            commit=commit,
            rejected_alternatives=rejected_alternatives,
            tags=tags,
        )

        with store_lock(self.lock_path, self.config.lock.timeout):
            index = Index.load(self.index_path)
            self.store.create(entry)
            added = index.extend(entry.targets, entry.id)
            index.save(self.index_path)

        logger.info("Recorded %s for %s", entry.id, ", ".join(entry.targets))
        return RecordResult(entry=entry, skipped_targets=skipped, new_memberships=added)

    # -------------------------------------------------------------------------
    # Integrity
    # -------------------------------------------------------------------------

    def rebuild_index(self) -> Tuple[Index, List[SkippedRecord]]:
        """Index derived purely from the records on disk."""
        rebuilt = Index()
        listing = self.store.list_all()
        for entry in listing:
            rebuilt.extend(entry.targets, entry.id)
        return rebuilt, listing.skipped

    def check(self) -> CheckReport:
        """Compare the index with the records. Never writes."""
        index_error = None
        try:
            index = Index.load(self.index_path)
        except CorruptRecordError as e:
            index_error = e.reason
            index = Index()

        rebuilt, corrupt = self.rebuild_index()
        on_disk: Set[str] = set(self.store.ids())

        missing = [
            (path, entry_id)
            for path, ids in rebuilt.items()
            for entry_id in sorted(ids)
            if entry_id not in index.lookup(path)
        ]
        dangling = sorted(index.distinct_ids() - on_disk)

        return CheckReport(
            entries=len(on_disk),
            paths=len(index),
            entry_count=index.entry_count,
            stored_entry_count=stored_entry_count(self.index_path) if index_error is None else -1,
            corrupt=corrupt,
            missing_memberships=missing,
            dangling=dangling,
            index_error=index_error,
        )

    def repair(self) -> MergeResult:
        """
        Restore memberships the index lost, e.g. to a crash mid-record.

        Unions the on-disk index with one rebuilt from the records. An
        unreadable index is treated as empty. Only ever adds.
        """
        with store_lock(self.lock_path, self.config.lock.timeout):
            current = read_snapshot(self.index_path, "Current")
            rebuilt, _ = self.rebuild_index()
            result = reconcile(current, rebuilt)
            result.index.save(self.index_path)

        logger.info(
            "Repaired index: %d memberships (was %d)",
            result.merged_count, result.left_count,
        )
        return result
