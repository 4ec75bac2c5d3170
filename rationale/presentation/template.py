"""
OutputTemplate -- Report layout for every human-readable command

A report is a banner, a run of titled blocks, and a closing rule that
carries a one-line summary and the next-step hint:

    ================================================================
    RATIONALE HISTORY - src/parse.py
    ================================================================
    3 of 3 entries, newest first

    ENTRIES
    -------
    ...

    SKIPPED (1)
    -----------
    [!] 0c4e8c5e-...: invalid JSON
    ----------------------------------------------------------------
    Summary: ...
    -> Next: ...
    ================================================================

Besides free-form blocks it lays out what this tool prints most: entries
(one line each or as full blocks), path lists, counted rankings, check
findings and records left out as unreadable.

Usage:
    template = OutputTemplate(symbols=cli.symbols)
    template.header("RATIONALE", "src/parse.py")
    template.entry_blocks("LATEST", [result.latest])
    template.skipped_records(result.skipped)
    print(template.render(command="explain"))
"""

import shutil
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from ..core.entry import Entry
from .formatters import format_entry_detail, format_entry_line
from .succession import get_hint
from .symbols import SymbolSet, get_symbols


BANNER_CHAR = "="
RULE_CHAR = "-"
DEFAULT_WIDTH = 80
MAX_WIDTH = 100


class OutputTemplate:
    """Builder for one command's report. Methods chain."""

    def __init__(self, symbols: Optional[SymbolSet] = None, width: Optional[int] = None):
        self.symbols = symbols or get_symbols()
        detected = shutil.get_terminal_size((DEFAULT_WIDTH, 24)).columns or DEFAULT_WIDTH
        self.width = width or min(detected, MAX_WIDTH)

        self._title: Optional[str] = None
        self._subject: Optional[str] = None
        self._banner_notes: List[str] = []
        self._blocks: List[Tuple[str, str]] = []
        self._summary: Optional[str] = None

    # =========================================================================
    # Banner and footer
    # =========================================================================

    def header(self, title: str, subject: Optional[str] = None) -> "OutputTemplate":
        self._title = title
        self._subject = subject
        return self

    def legend(self, meanings: Dict[str, str]) -> "OutputTemplate":
        """Explain the markers used below, e.g. {check_pass: "passed"}."""
        if meanings:
            self._banner_notes.append(
                "Legend: " + "  ".join(f"{mark} {meaning}" for mark, meaning in meanings.items())
            )
        return self

    def scope(self, text: str) -> "OutputTemplate":
        self._banner_notes.append(text)
        return self

    def footer(self, summary: Optional[str] = None) -> "OutputTemplate":
        self._summary = summary
        return self

    # =========================================================================
    # Blocks
    # =========================================================================

    def section(self, title: str, content: str) -> "OutputTemplate":
        self._blocks.append((title, content))
        return self

    def paths(self, title: str, paths: Iterable[str]) -> "OutputTemplate":
        """Bulleted path list. Nothing is added for an empty list."""
        paths = list(paths)
        if paths:
            self.section(title, "\n".join(f"{self.symbols.bullet} {p}" for p in paths))
        return self

    def entry_lines(self, title: str, entries: Sequence[Entry], full: bool = False) -> "OutputTemplate":
        if entries:
            self.section(title, "\n".join(
                format_entry_line(entry, self.symbols, full=full) for entry in entries
            ))
        return self

    def entry_blocks(self, title: str, entries: Sequence[Entry], full: bool = True) -> "OutputTemplate":
        """Every field of each entry, blank line between entries."""
        if entries:
            self.section(title, "\n\n".join(
                format_entry_detail(entry, self.symbols, full=full) for entry in entries
            ))
        return self

    def ranking(self, title: str, rows: Sequence[Tuple[str, int]], label: str) -> "OutputTemplate":
        """
        Counted ranking, count column first so names of any length align:

            Entries  File
            12       src/parse.py
        """
        if not rows:
            return self
        width = max(len("Entries"), *(len(str(count)) for _, count in rows))
        lines = [f"{'Entries'.ljust(width)}  {label}"]
        lines.extend(f"{str(count).ljust(width)}  {name}" for name, count in rows)
        return self.section(title, "\n".join(lines))

    def findings(self, title: str, findings: Sequence[Tuple[str, str]], mark: str) -> "OutputTemplate":
        """(problem, fix) pairs from check, each fix indented under its problem."""
        if findings:
            lines = []
            for problem, fix in findings:
                lines.append(f"{mark} {problem}")
                lines.append(f"    Fix: {fix}")
            self.section(f"{title} ({len(findings)})", "\n".join(lines))
        return self

    def skipped_records(self, skipped: Sequence[Any]) -> "OutputTemplate":
        """Records an aggregate read left out, with the reason for each."""
        if skipped:
            self.section(f"SKIPPED ({len(skipped)})", "\n".join(
                f"{self.symbols.check_warn} {record.id}: {record.reason}" for record in skipped
            ))
        return self

    # =========================================================================
    # Rendering
    # =========================================================================

    def render(self, command: Optional[str] = None, context: Optional[Dict[str, Any]] = None) -> str:
        """
        Render the report.

        Args:
            command: Command name for the succession hint
            context: Result flags the hint rules branch on
        """
        lines: List[str] = []

        if self._title:
            banner = BANNER_CHAR * self.width
            title = f"{self._title} - {self._subject}" if self._subject else self._title
            lines.extend([banner, title, banner, *self._banner_notes, ""])

        for title, content in self._blocks:
            if title:
                lines.extend([title, RULE_CHAR * len(title)])
            if content:
                lines.append(content)
            lines.append("")

        lines.append(RULE_CHAR * self.width)
        if self._summary:
            lines.append(f"Summary: {self._summary}")
        hint = get_hint(command, context) if command else None
        if hint:
            lines.append(hint)
        lines.append(BANNER_CHAR * self.width)

        return "\n".join(lines)
