"""
RecordCommand -- Capture reasoning for one or more files

    rationale record -f src/parse.py -i "Stream instead of buffering" \\
        --trace-file notes.md --reject "mmap: breaks on pipes" --tag perf

Without --file, the files git reports as changed (deleted ones excluded)
become the targets. The reasoning trace comes from --trace, --trace-file
or --stdin; HEAD is captured when inside a git work tree.
"""

import logging
import sys
from pathlib import Path

from ..commands.base import BaseCommand
from ..core.entry import LineRange, RejectedAlternative
from ..errors import InvalidInputError
from ..presentation.formatters import entry_to_json
from ..presentation.template import OutputTemplate


logger = logging.getLogger(__name__)


class RecordCommand(BaseCommand):
    """Command for the single write path."""

    def record(self, files, intent, trace=None, trace_file=None, use_stdin=False,
               lines=None, rejected=(), tags=(), agent=None, as_json=False):
        repo = self.repo

        if files:
            targets = [repo.relative_path(f, self.cwd) for f in files]
        else:
            targets = self.git.changed_files() if self.git.is_git_repo else []
            if not targets:
                raise InvalidInputError(
                    "No files given (--file) and no changed files detected by git"
                )
            logger.info("Auto-detected %d changed file(s)", len(targets))

        reasoning = self._read_trace(trace, trace_file, use_stdin)
        line_range = LineRange.parse(lines) if lines else None
        alternatives = [RejectedAlternative.parse(text) for text in rejected]
        commit = self.git.head_commit() if self.git.is_git_repo else None

        result = repo.record(
            targets=targets,
            intent=intent,
            reasoning=reasoning,
            agent=agent,
            line_range=line_range,
            rejected_alternatives=alternatives,
            tags=tags,
            commit=commit,
        )

        if as_json:
            self.emit_json({
                "entry": entry_to_json(result.entry),
                "skipped_targets": result.skipped_targets,
            })
            return

        entry = result.entry
        symbols = self.symbols
        template = OutputTemplate(symbols=symbols)
        template.header("RATIONALE RECORD", self.codec.format_with_code(entry.id, entry.intent))
        template.paths("FILES", entry.targets)
        template.paths(f"{symbols.check_warn} NOT FOUND", result.skipped_targets)
        details = [f"agent: {entry.agent}"]
        if entry.commit:
            details.append(f"commit: {entry.commit[:8]}")
        if entry.rejected_alternatives:
            details.append(f"{len(entry.rejected_alternatives)} rejected alternative(s)")
        template.footer(" | ".join(details))
        self.emit(template.render(
            command="record",
            context={"skipped_targets": bool(result.skipped_targets)},
        ))

    def _read_trace(self, trace, trace_file, use_stdin) -> str:
        if trace is not None:
            return trace
        if trace_file:
            try:
                return Path(trace_file).read_text(encoding="utf-8")
            except (OSError, UnicodeDecodeError) as e:
                raise InvalidInputError(f"Cannot read trace file {trace_file}: {e}") from e
        if use_stdin:
            return sys.stdin.read()
        return ""


def register_parser(subparsers):
    """Register record command parser."""
    p = subparsers.add_parser('record', help='Record the reasoning behind a change')
    p.add_argument('--file', '-f', dest='files', action='append', default=[],
                   metavar='PATH',
                   help='Target file (repeatable; default: files changed in git)')
    p.add_argument('--intent', '-i', required=True,
                   help='What the change is for, in one line')

    source = p.add_mutually_exclusive_group()
    source.add_argument('--trace', '-t',
                        help='Full reasoning trace')
    source.add_argument('--trace-file', metavar='PATH',
                        help='Read the reasoning trace from a file')
    source.add_argument('--stdin', action='store_true', dest='use_stdin',
                        help='Read the reasoning trace from standard input')

    p.add_argument('--lines', '-l', metavar='START-END',
                   help='Line range the reasoning is about (e.g., 10-45)')
    p.add_argument('--reject', '-r', dest='rejected', action='append', default=[],
                   metavar='"NAME: REASON"',
                   help='Alternative that was considered and rejected (repeatable)')
    p.add_argument('--tag', dest='tags', action='append', default=[],
                   help='Tag (repeatable)')
    p.add_argument('--agent', '-a',
                   help='Author id (default: store.default_agent)')
    p.add_argument('--json', action='store_true', dest='as_json',
                   help='Print the new entry as JSON')
    return p


def handle(cli, args):
    """Handle record command dispatch."""
    cli._record_cmd.record(
        files=args.files,
        intent=args.intent,
        trace=args.trace,
        trace_file=args.trace_file,
        use_stdin=args.use_stdin,
        lines=args.lines,
        rejected=args.rejected,
        tags=args.tags,
        agent=args.agent,
        as_json=args.as_json,
    )
