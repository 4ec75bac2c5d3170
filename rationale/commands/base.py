"""
BaseCommand -- Shared foundation for all CLI commands

Provides access to CLI resources via composition.
Commands receive the CLI instance and access its resources through properties.
"""

import sys
from typing import TYPE_CHECKING, Any, List

from ..presentation.formatters import dump_json
from ..presentation.symbols import safe_print

if TYPE_CHECKING:
    from ..cli import RationaleCLI
    from ..core.store import SkippedRecord


class BaseCommand:
    """
    Base class for CLI commands with access to shared resources.

    Commands don't open the store themselves; they reach it through the
    CLI instance, which opens it lazily on first use.
    """

    def __init__(self, cli: 'RationaleCLI'):
        self._cli = cli

    # -------------------------------------------------------------------------
    # Core resources (convenience properties)
    # -------------------------------------------------------------------------

    @property
    def cwd(self):
        """Directory the command was invoked from."""
        return self._cli.cwd

    @property
    def repo(self):
        """Repository (raises RepositoryUninitializedError if there is none)."""
        return self._cli.repository

    @property
    def query(self):
        """Read-only query engine."""
        return self._cli.repository.query

    @property
    def config(self):
        """Application configuration."""
        return self._cli.config

    @property
    def symbols(self):
        """Symbol set for display (Unicode/ASCII)."""
        return self._cli.symbols

    @property
    def git(self):
        """Git integration rooted at the repository (or cwd before init)."""
        return self._cli.git

    @property
    def codec(self):
        """Short AA-BB aliases for entry ids."""
        return self._cli.codec

    # -------------------------------------------------------------------------
    # Output helpers
    # -------------------------------------------------------------------------

    def emit_json(self, data: Any) -> None:
        print(dump_json(data))

    def emit(self, text: str) -> None:
        safe_print(text)

    def warn_skipped(self, skipped: List['SkippedRecord']) -> None:
        """Tell the user (on stderr) that some records were left out."""
        if not skipped:
            return
        safe_print(
            f"{self.symbols.check_warn} Skipped {len(skipped)} unreadable record(s); "
            f"run 'rationale check' for details",
            file=sys.stderr,
        )
