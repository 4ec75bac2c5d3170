"""
Query Engine -- Read-only questions over the store

explain: why does this file look like this (latest, or full history)
search:  which entries mention a keyword, optionally filtered
list:    everything, newest first
status:  what is documented, what changed without reasoning

Every call is a pure read: it loads the index fresh, reads the records it
needs and never writes or locks. Aggregate answers skip unreadable
records and report them in `skipped`.
"""

import logging
import posixpath
from collections import Counter
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Protocol, Tuple

from rapidfuzz import fuzz

from ..errors import NotFoundError
from .entry import Entry, newest_first, normalize_path
from .index import Index
from .store import EntryStore, SkippedRecord, read_many


logger = logging.getLogger(__name__)

SUGGEST_THRESHOLD = 60  # rapidfuzz score, 0-100
TOP_FILES = 5


class VcsCollaborator(Protocol):
    """What status needs from version control."""

    @property
    def is_available(self) -> bool: ...

    def head_commit(self) -> Optional[str]: ...

    def changed_files(self, include_deleted: bool = False) -> List[str]: ...


@dataclass
class QueryResult:
    """Entries answering a query, newest first."""
    entries: List[Entry]
    total: int
    skipped: List[SkippedRecord] = field(default_factory=list)

    @property
    def latest(self) -> Optional[Entry]:
        return self.entries[0] if self.entries else None


@dataclass
class StatusReport:
    """Documentation coverage against the working tree."""
    tracked: List[str]
    gaps: List[str]
    entry_count: int
    distinct_entries: int
    head_commit: Optional[str] = None
    vcs_available: bool = False
    top_files: List[Tuple[str, int]] = field(default_factory=list)
    contributors: List[Tuple[str, int]] = field(default_factory=list)
    skipped: List[SkippedRecord] = field(default_factory=list)

    def to_dict(self):
        return {
            "tracked": self.tracked,
            "gaps": self.gaps,
            "entry_count": self.entry_count,
            "distinct_entries": self.distinct_entries,
            "head_commit": self.head_commit,
            "vcs_available": self.vcs_available,
            "top_files": [{"path": p, "entries": n} for p, n in self.top_files],
            "contributors": [{"agent": a, "entries": n} for a, n in self.contributors],
            "skipped": [s.to_dict() for s in self.skipped],
        }


def _truncate(entries: List[Entry], limit: Optional[int]) -> List[Entry]:
    if limit is None:
        return entries
    return entries[:max(0, limit)]


def matches(entry: Entry, query: str) -> bool:
    """Case-insensitive substring match across the entry's searchable text."""
    needle = query.lower()
    haystacks = [entry.intent, entry.reasoning, entry.agent]
    haystacks.extend(entry.tags)
    haystacks.extend(alt.name for alt in entry.rejected_alternatives)
    return any(needle in text.lower() for text in haystacks)


class QueryEngine:
    """Stateless read side over an index file and an entry store."""

    def __init__(self, store: EntryStore, index_path: Path):
        self.store = store
        self.index_path = Path(index_path)

    def load_index(self) -> Index:
        return Index.load(self.index_path)

    def explain(self, path: str, all: bool = False, limit: Optional[int] = None) -> QueryResult:
        """
        Reasoning recorded for a path.

        Latest-only returns the single newest entry (ties go to the larger
        id). With all=True every readable entry is returned newest first.

        Raises:
            NotFoundError: nothing recorded for the path, or nothing readable
        """
        path = normalize_path(path)
        bucket = self.load_index().lookup(path)
        if not bucket:
            raise NotFoundError(f"No reasoning recorded for {path}")

        skipped: List[SkippedRecord] = []
        entries = newest_first(read_many(self.store, bucket, skipped))
        if not entries:
            raise NotFoundError(
                f"No readable reasoning for {path} ({len(skipped)} record(s) skipped)"
            )

        if not all:
            return QueryResult(entries=entries[:1], total=len(entries), skipped=skipped)
        return QueryResult(entries=_truncate(entries, limit), total=len(entries), skipped=skipped)

    def search(
        self,
        query: str,
        file: Optional[str] = None,
        agent: Optional[str] = None,
        tag: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> QueryResult:
        """
        Keyword search with conjunctive filters.

        Args:
            query: Substring matched case-insensitively against intent,
                reasoning, tags, agent and rejected alternative names
            file: Only entries in this path's bucket
            agent: Case-insensitive substring of the entry's agent
            tag: Exact tag membership
            limit: Maximum entries returned
        """
        skipped: List[SkippedRecord] = []
        if file is not None:
            bucket = self.load_index().lookup(file)
            candidates = read_many(self.store, bucket, skipped)
        else:
            listing = self.store.list_all()
            candidates = list(listing)
            skipped = listing.skipped

        agent_needle = agent.lower() if agent else None
        found = [
            e for e in candidates
            if matches(e, query)
            and (agent_needle is None or agent_needle in e.agent.lower())
            and (tag is None or tag in e.tags)
        ]
        found = newest_first(found)
        logger.debug("search %r: %d of %d candidates", query, len(found), len(candidates))
        return QueryResult(entries=_truncate(found, limit), total=len(found), skipped=skipped)

    def list(self, limit: Optional[int] = None, offset: int = 0) -> QueryResult:
        """All entries, newest first, windowed by offset/limit."""
        listing = self.store.list_all()
        entries = newest_first(listing)
        window = entries[max(0, offset):]
        return QueryResult(entries=_truncate(window, limit), total=len(entries), skipped=listing.skipped)

    def status(self, vcs: Optional[VcsCollaborator] = None) -> StatusReport:
        """
        Coverage report: tracked paths, and changed files (deleted ones
        included) with no reasoning.

        Without a usable VCS the gap set is empty and head_commit is None.
        """
        index = self.load_index()
        tracked = index.paths()

        vcs_available = vcs is not None and vcs.is_available
        head = None
        gaps: List[str] = []
        if vcs_available:
            head = vcs.head_commit()
            changed = {normalize_path(p) for p in vcs.changed_files(include_deleted=True)}
            gaps = sorted(changed - set(tracked))

        top_files = sorted(
            ((path, len(ids)) for path, ids in index.items()),
            key=lambda item: (-item[1], item[0]),
        )[:TOP_FILES]

        listing = self.store.list_all()
        agents = Counter(entry.agent for entry in listing)
        contributors = sorted(agents.items(), key=lambda item: (-item[1], item[0]))

        return StatusReport(
            tracked=tracked,
            gaps=gaps,
            entry_count=index.entry_count,
            distinct_entries=len(index.distinct_ids()),
            head_commit=head,
            vcs_available=vcs_available,
            top_files=top_files,
            contributors=contributors,
            skipped=listing.skipped,
        )

    def suggest_paths(self, path: str, limit: int = 3) -> List[str]:
        """Tracked paths that look like a mistyped or moved version of path."""
        path = normalize_path(path)
        name = posixpath.basename(path)
        scored = []
        for candidate in self.load_index().paths():
            score = max(
                fuzz.ratio(path, candidate),
                fuzz.ratio(name, posixpath.basename(candidate)),
            )
            if score >= SUGGEST_THRESHOLD:
                scored.append((score, candidate))
        scored.sort(key=lambda item: (-item[0], item[1]))
        return [candidate for _, candidate in scored[:limit]]
