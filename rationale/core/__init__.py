"""
Core -- Data layer

- Entry: Immutable reasoning record and its schema
- Store: One file per entry, no-clobber publish
- Index: Grow-only path -> ids map, canonical serialization
- Merge: Set-union reconciliation of index snapshots
- Query: Read-only explain / search / list / status
- Repository: Layout, discovery, the locked write path, check/repair
"""

from .entry import Entry, RejectedAlternative, LineRange, make_entry, normalize_path
from .store import EntryStore, EntryListing, SkippedRecord
from .index import Index
from .merge import MergeResult, reconcile, merge_index_files
from .query import QueryEngine, QueryResult, StatusReport
from .repository import Repository, RecordResult, CheckReport, find_root

__all__ = [
    "Entry", "RejectedAlternative", "LineRange", "make_entry", "normalize_path",
    "EntryStore", "EntryListing", "SkippedRecord",
    "Index",
    "MergeResult", "reconcile", "merge_index_files",
    "QueryEngine", "QueryResult", "StatusReport",
    "Repository", "RecordResult", "CheckReport", "find_root",
]
