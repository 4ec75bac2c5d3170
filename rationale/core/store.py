"""
Entry Store -- Immutable per-record persistence

One JSON file per entry under .rationale/entries/<id>.json. Records are
published once with no-clobber semantics and never rewritten, so two
branches that each add entries never touch the same file.

Single-record reads fail hard. Aggregate listing skips corrupt records
and reports them on the listing instead.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, List

import orjson

from ..errors import (
    CorruptRecordError, DuplicateIdentifierError, NotFoundError,
    RationaleError, StorageIOError,
)
from .entry import Entry, ID_PATTERN
from .fsutil import encode_json, publish_new_file, read_bytes


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SkippedRecord:
    """A record left out of an aggregate read."""
    id: str
    reason: str

    def to_dict(self):
        return {"id": self.id, "reason": self.reason}


class EntryListing:
    """
    Lazy, restartable iteration over every stored entry.

    Each pass re-scans the entries directory. Records that fail to load
    are collected in `skipped` for the most recent pass.
    """

    def __init__(self, store: 'EntryStore'):
        self._store = store
        self.skipped: List[SkippedRecord] = []

    def __iter__(self) -> Iterator[Entry]:
        self.skipped = []
        for entry_id in self._store.ids():
            entries = read_many(self._store, [entry_id], self.skipped)
            if entries:
                yield entries[0]


class EntryStore:
    """Directory of immutable entry records."""

    SUFFIX = ".json"

    def __init__(self, entries_dir: Path):
        self.entries_dir = Path(entries_dir)

    def path_for(self, entry_id: str) -> Path:
        return self.entries_dir / f"{entry_id}{self.SUFFIX}"

    def create(self, entry: Entry) -> Entry:
        """
        Persist a new entry.

        Raises:
            DuplicateIdentifierError: a record with this id already exists
            StorageIOError: the record could not be written
        """
        path = self.path_for(entry.id)
        try:
            publish_new_file(path, encode_json(entry.to_dict()))
        except FileExistsError:
            raise DuplicateIdentifierError(entry.id)
        logger.debug("Created entry %s at %s", entry.id, path)
        return entry

    def read(self, entry_id: str) -> Entry:
        """
        Load one entry by identifier.

        Raises:
            NotFoundError: no record with this id
            CorruptRecordError: the record fails validation
            StorageIOError: the record could not be read
        """
        if not ID_PATTERN.match(entry_id or ""):
            raise NotFoundError(f"No entry with id {entry_id!r}")

        path = self.path_for(entry_id)
        try:
            raw = read_bytes(path)
        except FileNotFoundError:
            raise NotFoundError(f"No entry with id {entry_id}")

        try:
            data = orjson.loads(raw)
        except orjson.JSONDecodeError as e:
            raise CorruptRecordError(path, f"invalid JSON ({e})") from e

        entry = Entry.from_dict(data, source=str(path))
        if entry.id != entry_id:
            raise CorruptRecordError(path, f"record id {entry.id!r} does not match file name")
        return entry

    def exists(self, entry_id: str) -> bool:
        return bool(ID_PATTERN.match(entry_id or "")) and self.path_for(entry_id).is_file()

    def ids(self) -> List[str]:
        """Identifiers of every record file present, sorted."""
        if not self.entries_dir.is_dir():
            return []
        try:
            names = [
                p.name[:-len(self.SUFFIX)]
                for p in self.entries_dir.iterdir()
                if p.name.endswith(self.SUFFIX) and not p.name.startswith(".")
            ]
        except OSError as e:
            raise StorageIOError(self.entries_dir, e) from e
        return sorted(n for n in names if ID_PATTERN.match(n))

    def list_all(self) -> EntryListing:
        """All entries, unspecified order. See EntryListing.skipped."""
        return EntryListing(self)

    def count(self) -> int:
        return len(self.ids())


def read_many(store: EntryStore, entry_ids, skipped: List[SkippedRecord]) -> List[Entry]:
    """
    Read a set of ids, appending failures to skipped instead of raising.

    Used by aggregate queries where one bad record must not hide the rest.
    """
    entries = []
    for entry_id in sorted(entry_ids):
        try:
            entries.append(store.read(entry_id))
        except NotFoundError:
            skipped.append(SkippedRecord(entry_id, "missing"))
        except CorruptRecordError as e:
            logger.warning("Skipping corrupt entry %s: %s", entry_id, e.reason)
            skipped.append(SkippedRecord(entry_id, e.reason))
        except RationaleError as e:
            logger.warning("Skipping unreadable entry %s: %s", entry_id, e)
            skipped.append(SkippedRecord(entry_id, str(e)))
    return entries
