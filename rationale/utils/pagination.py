"""
Paginator -- Windowing and "Showing X-Y of Z" summaries for list output

The query engine already returns the requested window plus the total, so
the paginator works from counts: it never needs the full result set.

Usage:
    limit, offset = window_from_args(args)
    result = repo.query.list(limit=limit, offset=offset)
    paginator = Paginator(result.total, limit=limit, offset=offset)
    print(paginator.header("Entries"))
    ...
    print(paginator.summary(command_hint="rationale list"))
"""

from typing import Optional, Tuple
import argparse


DEFAULT_LIMIT = 20


class Paginator:
    """Stateless offset pagination over a known total."""

    def __init__(self, total: int, limit: Optional[int] = DEFAULT_LIMIT, offset: int = 0):
        """
        Args:
            total: Number of items before windowing
            limit: Maximum items per page (None = everything)
            offset: Number of items skipped
        """
        self._total = max(0, total)
        self._offset = max(0, offset)
        self._limit = max(1, limit) if limit is not None else max(1, self._total)

    @property
    def total(self) -> int:
        return self._total

    @property
    def offset(self) -> int:
        return self._offset

    @property
    def limit(self) -> int:
        return self._limit

    @property
    def start_index(self) -> int:
        """1-based start index for display (e.g., "Showing 1-10")."""
        if self.total == 0:
            return 0
        return min(self._offset + 1, self.total)

    @property
    def end_index(self) -> int:
        """1-based end index for display."""
        return min(self._offset + self._limit, self.total)

    def has_more(self) -> bool:
        return self._offset + self._limit < self.total

    def has_previous(self) -> bool:
        return self._offset > 0

    def is_truncated(self) -> bool:
        return self.has_more() or self.has_previous()

    def summary(self, command_hint: Optional[str] = None) -> str:
        """
        Summary line with navigation hints.

        Returns:
            e.g. "Showing 1-20 of 85\\n-> Next: rationale list --offset 20"
        """
        if self.total == 0:
            return "No entries found."

        lines = [f"Showing {self.start_index}-{self.end_index} of {self.total}"]

        if command_hint and self.has_more():
            lines.append(f"-> Next: {command_hint} --offset {self._offset + self._limit}")

        if command_hint and self.has_previous():
            lines.append(f"-> Prev: {command_hint} --offset {max(0, self._offset - self._limit)}")

        return "\n".join(lines)

    def header(self, title: str) -> str:
        """e.g. "Entries (1-20 of 85):" """
        if self.total == 0:
            return f"{title}: none"

        if not self.is_truncated():
            return f"{title} ({self.total}):"

        return f"{title} ({self.start_index}-{self.end_index} of {self.total}):"


def add_pagination_args(parser: argparse.ArgumentParser, default_limit: int = DEFAULT_LIMIT,
                        offset: bool = True):
    """
    Add --limit (and optionally --offset, --no-limit) to a parser.

    --no-limit is stored as `show_all`; explain keeps --all for history.
    """
    group = parser.add_argument_group('pagination')

    group.add_argument(
        '--limit', '-n',
        type=int,
        default=default_limit,
        metavar='N',
        help=f'Maximum entries to show (default: {default_limit})'
    )

    if offset:
        group.add_argument(
            '--offset',
            type=int,
            default=0,
            metavar='N',
            help='Skip first N entries (default: 0)'
        )

        group.add_argument(
            '--no-limit',
            action='store_true',
            dest='show_all',
            help='Show every entry (ignores --limit)'
        )


def window_from_args(args) -> Tuple[Optional[int], int]:
    """(limit, offset) from parsed arguments; limit None means no limit."""
    if getattr(args, 'show_all', False):
        return None, 0
    return getattr(args, 'limit', DEFAULT_LIMIT), getattr(args, 'offset', 0)
