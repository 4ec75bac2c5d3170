"""
ExplainCommand -- Why does this file look like this?

Latest entry by default; --all for the full history, newest first. On a
miss, similar tracked paths are suggested (renames keep their old bucket).
"""

import sys

from ..commands.base import BaseCommand
from ..errors import NotFoundError
from ..presentation.formatters import entry_to_json
from ..presentation.symbols import safe_print
from ..presentation.template import OutputTemplate


class ExplainCommand(BaseCommand):
    """Command for per-file lookup."""

    def explain(self, path, show_all=False, limit=None, full=False, as_json=False):
        rel = self.repo.relative_path(path, self.cwd)
        try:
            result = self.query.explain(rel, all=show_all, limit=limit)
        except NotFoundError:
            suggestions = self.query.suggest_paths(rel)
            if suggestions and not as_json:
                safe_print(f"No reasoning for {rel}. Did you mean:", file=sys.stderr)
                for suggestion in suggestions:
                    safe_print(f"  {suggestion}", file=sys.stderr)
            raise

        self.warn_skipped(result.skipped)

        if as_json:
            self.emit_json({
                "path": rel,
                "total": result.total,
                "entries": [entry_to_json(e) for e in result.entries],
                "skipped": [s.to_dict() for s in result.skipped],
            })
            return

        template = OutputTemplate(symbols=self.symbols)
        if show_all:
            template.header("RATIONALE HISTORY", rel)
            template.scope(f"{len(result.entries)} of {result.total} entries, newest first")
            template.entry_blocks("ENTRIES", result.entries, full=full)
        else:
            template.header("RATIONALE", rel)
            template.entry_blocks("LATEST", [result.latest])
            if result.total > 1:
                template.footer(f"{result.total} entries recorded for this file")
        template.skipped_records(result.skipped)
        self.emit(template.render(
            command="explain",
            context={"has_history": not show_all and result.total > 1},
        ))


def register_parser(subparsers):
    """Register explain command parser."""
    p = subparsers.add_parser('explain', help='Show the reasoning recorded for a file')
    p.add_argument('path', help='File to explain')
    p.add_argument('--all', action='store_true', dest='show_all',
                   help='Show every entry, newest first')
    p.add_argument('--limit', '-n', type=int, metavar='N',
                   help='With --all, show at most N entries')
    p.add_argument('--full', action='store_true',
                   help='Do not truncate long reasoning')
    p.add_argument('--json', action='store_true', dest='as_json',
                   help='Output as JSON')
    return p


def handle(cli, args):
    """Handle explain command dispatch."""
    cli._explain_cmd.explain(
        args.path,
        show_all=args.show_all,
        limit=args.limit,
        full=args.full,
        as_json=args.as_json,
    )
