"""
Errors -- Failure taxonomy with distinct process exit codes

Every failure the store can surface has its own exception class and its
own exit code, so scripts and agents can branch on the failure class
instead of parsing messages.

    RationaleError                  1   generic failure
    (argparse usage error)          2
    NotFoundError                   3   path or identifier absent
    DuplicateIdentifierError        4   identifier collision on create
    StorageIOError                  5   storage read/write failure
    CorruptRecordError              6   record or index fails validation
    RepositoryUninitializedError    7   no store at the expected root
    RepositoryBusyError             8   lock not acquired within timeout
    MergeFailedError                9   both merge inputs unrecoverable
    InvalidInputError              10   caller supplied malformed values
    (check found issues)           11   integrity report not clean

Messages always name the offending path or identifier.
"""

from pathlib import Path
from typing import Optional, Union


EXIT_OK = 0
EXIT_USAGE = 2
# check found integrity issues; the report itself is the output
EXIT_INTEGRITY = 11


class RationaleError(Exception):
    """Base class for all store failures."""
    exit_code = 1


class NotFoundError(RationaleError):
    """A path has no reasoning, or an identifier has no record."""
    exit_code = 3


class DuplicateIdentifierError(RationaleError):
    """An entry with the same identifier already exists."""
    exit_code = 4

    def __init__(self, entry_id: str):
        super().__init__(f"Entry {entry_id} already exists (identifier collision)")
        self.entry_id = entry_id


class StorageIOError(RationaleError):
    """Reading or writing the store failed at the filesystem level."""
    exit_code = 5

    def __init__(self, path: Union[str, Path], cause: Optional[BaseException] = None):
        detail = f": {cause}" if cause else ""
        super().__init__(f"Storage error at {path}{detail}")
        self.path = str(path)
        self.cause = cause


class CorruptRecordError(RationaleError):
    """A persisted entry or index does not match the expected structure."""
    exit_code = 6

    def __init__(self, location: Union[str, Path], reason: str):
        super().__init__(f"Corrupt record {location}: {reason}")
        self.location = str(location)
        self.reason = reason


class RepositoryUninitializedError(RationaleError):
    """No .rationale/ directory was found."""
    exit_code = 7

    def __init__(self, start: Union[str, Path]):
        super().__init__(
            f"No rationale store found at or above {start}. Run 'rationale init' first."
        )
        self.start = str(start)


class RepositoryBusyError(RationaleError):
    """Another process holds the store lock."""
    exit_code = 8

    def __init__(self, lock_path: Union[str, Path], timeout: float):
        super().__init__(
            f"Store is busy: could not lock {lock_path} within {timeout:g}s"
        )
        self.lock_path = str(lock_path)
        self.timeout = timeout


class MergeFailedError(RationaleError):
    """Neither side of an index merge could be read."""
    exit_code = 9


class InvalidInputError(RationaleError):
    """Caller-supplied values are malformed (line range, empty intent...)."""
    exit_code = 10
