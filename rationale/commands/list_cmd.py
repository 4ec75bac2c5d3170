"""
ListCommand -- Every entry, newest first, a page at a time
"""

from ..commands.base import BaseCommand
from ..presentation.formatters import entry_to_json
from ..presentation.template import OutputTemplate
from ..utils.pagination import Paginator, add_pagination_args, window_from_args


class ListCommand(BaseCommand):
    """Command for listing entries."""

    def list_entries(self, limit=None, offset=0, full=False, as_json=False):
        result = self.query.list(limit=limit, offset=offset)
        self.warn_skipped(result.skipped)

        if as_json:
            self.emit_json({
                "total": result.total,
                "offset": offset,
                "limit": limit,
                "entries": [entry_to_json(e) for e in result.entries],
                "skipped": [s.to_dict() for s in result.skipped],
            })
            return

        paginator = Paginator(result.total, limit=limit, offset=offset)
        template = OutputTemplate(symbols=self.symbols)
        template.header("RATIONALE ENTRIES", paginator.header("Entries"))
        template.entry_lines("", result.entries, full=full)
        template.skipped_records(result.skipped)
        template.footer(paginator.summary(command_hint="rationale list"))
        self.emit(template.render(command="list", context={"has_more": paginator.has_more()}))


def register_parser(subparsers):
    """Register list command parser."""
    p = subparsers.add_parser('list', help='List all entries, newest first')
    p.add_argument('--full', action='store_true',
                   help='Do not truncate intents')
    p.add_argument('--json', action='store_true', dest='as_json',
                   help='Output as JSON')
    add_pagination_args(p)
    return p


def handle(cli, args):
    """Handle list command dispatch."""
    limit, offset = window_from_args(args)
    cli._list_cmd.list_entries(limit=limit, offset=offset, full=args.full, as_json=args.as_json)
