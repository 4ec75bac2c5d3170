"""
Test Data Factory -- Isolated rationale stores for tests

Builds a real .rationale/ store under pytest's tmp_path. Entries can be
written through the normal record path, or planted directly with fixed
ids and timestamps when a test needs a deterministic order.

Usage:
    @pytest.fixture
    def rationale_env(tmp_path):
        factory = RationaleTestFactory(tmp_path)
        factory.write_file("src/parse.py")
        factory.add_entry(["src/parse.py"], "Stream instead of buffering")
        return factory

    def test_something(rationale_env):
        result = rationale_env.repo.query.explain("src/parse.py")
"""

from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import List, Optional, Sequence

from rationale.core.entry import Entry, RejectedAlternative, make_entry
from rationale.core.index import Index
from rationale.core.repository import Repository


BASE_TIME = datetime(2025, 3, 1, 12, 0, 0, tzinfo=timezone.utc)


class RationaleTestFactory:
    """
    Factory for isolated rationale stores.

    Every factory owns a freshly initialized store at tmp_path. Nothing
    is mocked: the store, index and lock are the real ones.
    """

    def __init__(self, tmp_path: Path, agent: str = "tester"):
        self.root = Path(tmp_path)
        self.repo = Repository.init(self.root, agent=agent)
        self._clock = 0

    # =========================================================================
    # Working tree
    # =========================================================================

    def write_file(self, rel_path: str, content: str = "print('hello')\n") -> Path:
        """Create a file in the working tree (parents included)."""
        path = self.root / rel_path
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content)
        return path

    # =========================================================================
    # Entries
    # =========================================================================

    def next_time(self) -> datetime:
        """Strictly increasing timestamps, one minute apart."""
        self._clock += 1
        return BASE_TIME + timedelta(minutes=self._clock)

    def record(self, targets: Sequence[str], intent: str, **kwargs):
        """Record through the public write path. Creates missing target files."""
        for target in targets:
            if not (self.root / target).exists():
                self.write_file(target)
        return self.repo.record(targets=targets, intent=intent, **kwargs)

    def add_entry(
        self,
        targets: Sequence[str],
        intent: str,
        reasoning: str = "Because it was the simplest thing that works",
        agent: str = "tester",
        tags: Sequence[str] = (),
        rejected: Sequence[str] = (),
        timestamp: Optional[datetime] = None,
        entry_id: Optional[str] = None,
        index: bool = True,
    ) -> Entry:
        """
        Plant an entry with a controlled timestamp and id.

        Args:
            index: When False the record is written but the index is not
                updated, as after a crash between the two writes.
        """
        entry = make_entry(
            targets=targets,
            agent=agent,
            intent=intent,
            reasoning=reasoning,
            rejected_alternatives=[RejectedAlternative.parse(r) for r in rejected],
            tags=tags,
            timestamp=timestamp or self.next_time(),
            entry_id=entry_id,
        )
        self.repo.store.create(entry)
        if index:
            current = Index.load(self.repo.index_path)
            current.extend(entry.targets, entry.id)
            current.save(self.repo.index_path)
        return entry

    def corrupt_entry(self, entry_id: str, content: bytes = b"{not json") -> Path:
        """Overwrite a record file with garbage."""
        path = self.repo.store.path_for(entry_id)
        path.write_bytes(content)
        return path

    def index_ids(self, path: str) -> List[str]:
        return sorted(Index.load(self.repo.index_path).lookup(path))

    # =========================================================================
    # Sample data
    # =========================================================================

    def create_sample_store(self) -> List[Entry]:
        """
        Three entries across two files, two agents, one shared tag.

        Returns the entries oldest first.
        """
        self.write_file("src/parse.py")
        self.write_file("src/io.py")
        return [
            self.add_entry(["src/parse.py"], "Parse line by line",
                           reasoning="Files can exceed memory; stream them.",
                           agent="claude", tags=["perf"]),
            self.add_entry(["src/parse.py", "src/io.py"], "Share the reader between parse and io",
                           reasoning="Both modules opened the file twice.",
                           agent="alice", rejected=["mmap: breaks on pipes"]),
            self.add_entry(["src/io.py"], "Buffer writes in 64k chunks",
                           reasoning="Syscall overhead dominated small writes.",
                           agent="claude", tags=["perf", "io"]),
        ]
