"""
Rationale -- The reasoning behind your code, stored next to it

Records why a file looks the way it does: intent, full reasoning trace,
rejected alternatives. Queryable by file, keyword, agent or tag. The
index merges by set union, so parallel branches never conflict.

Usage:
    rationale init
    rationale record -f src/parse.py -i "Stream instead of buffering" --trace "..."
    rationale explain src/parse.py
    rationale search pandas
    rationale status
    rationale hooks install
"""

__version__ = "0.1.0"

# Core layer (data)
from .core.entry import Entry, RejectedAlternative, LineRange, make_entry
from .core.store import EntryStore, SkippedRecord
from .core.index import Index
from .core.merge import MergeResult, reconcile, merge_index_files
from .core.query import QueryEngine, QueryResult, StatusReport
from .core.repository import Repository, find_root

# Services layer
from .services.git import GitIntegration

# Config (stays at root)
from .config import Config, ConfigManager

# Errors
from .errors import (
    RationaleError, NotFoundError, DuplicateIdentifierError, StorageIOError,
    CorruptRecordError, RepositoryUninitializedError, RepositoryBusyError,
    MergeFailedError, InvalidInputError,
)

__all__ = [
    # Core
    'Entry', 'RejectedAlternative', 'LineRange', 'make_entry',
    'EntryStore', 'SkippedRecord',
    'Index',
    'MergeResult', 'reconcile', 'merge_index_files',
    'QueryEngine', 'QueryResult', 'StatusReport',
    'Repository', 'find_root',
    # Services
    'GitIntegration',
    # Config
    'Config', 'ConfigManager',
    # Errors
    'RationaleError', 'NotFoundError', 'DuplicateIdentifierError', 'StorageIOError',
    'CorruptRecordError', 'RepositoryUninitializedError', 'RepositoryBusyError',
    'MergeFailedError', 'InvalidInputError',
]
