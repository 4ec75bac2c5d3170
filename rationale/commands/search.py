"""
SearchCommand -- Keyword search across all reasoning

Matches intent, reasoning, tags, agent and rejected alternative names
(case-insensitive). --file, --agent and --tag narrow the candidates.
"""

import sys

from ..commands.base import BaseCommand
from ..presentation.formatters import (
    entry_snippet, entry_to_json, format_entry_line, highlight,
)
from ..presentation.template import OutputTemplate
from ..utils.pagination import DEFAULT_LIMIT, Paginator, add_pagination_args, window_from_args


class SearchCommand(BaseCommand):
    """Command for keyword search."""

    def search(self, query, file=None, agent=None, tag=None, limit=DEFAULT_LIMIT,
               full=False, as_json=False):
        rel = self.repo.relative_path(file, self.cwd) if file else None
        result = self.query.search(query, file=rel, agent=agent, tag=tag, limit=limit)

        self.warn_skipped(result.skipped)

        if as_json:
            self.emit_json({
                "query": query,
                "filters": {"file": rel, "agent": agent, "tag": tag},
                "total": result.total,
                "entries": [entry_to_json(e) for e in result.entries],
                "skipped": [s.to_dict() for s in result.skipped],
            })
            return

        symbols = self.symbols
        if sys.stdout.isatty():
            marks = (symbols.highlight_open, symbols.highlight_close)
        else:
            marks = ("**", "**")

        template = OutputTemplate(symbols=symbols)
        template.header("RATIONALE SEARCH", f'"{query}"')
        filters = [f"{k}={v}" for k, v in (("file", rel), ("agent", agent), ("tag", tag)) if v]
        if filters:
            template.scope("Filters: " + ", ".join(filters))

        lines = []
        for entry in result.entries:
            lines.append(highlight(format_entry_line(entry, symbols, full=full), query, *marks))
            snippet = entry_snippet(entry, query)
            if snippet:
                lines.append(f"    {highlight(snippet, query, *marks)}")
        if lines:
            template.section("MATCHES", "\n".join(lines))
        template.skipped_records(result.skipped)

        template.footer(Paginator(result.total, limit=limit).summary())
        self.emit(template.render(command="search", context={"no_results": result.total == 0}))


def register_parser(subparsers):
    """Register search command parser."""
    p = subparsers.add_parser('search', help='Search reasoning by keyword')
    p.add_argument('query', help='Text to look for (case-insensitive)')
    p.add_argument('--file', '-f',
                   help='Only entries recorded for this file')
    p.add_argument('--agent', '-a',
                   help='Only entries whose agent contains this text')
    p.add_argument('--tag',
                   help='Only entries with this exact tag')
    p.add_argument('--full', action='store_true',
                   help='Do not truncate intents')
    p.add_argument('--json', action='store_true', dest='as_json',
                   help='Output as JSON')
    add_pagination_args(p, offset=False)
    return p


def handle(cli, args):
    """Handle search command dispatch."""
    limit, _ = window_from_args(args)
    cli._search_cmd.search(
        args.query,
        file=args.file,
        agent=args.agent,
        tag=args.tag,
        limit=limit,
        full=args.full,
        as_json=args.as_json,
    )
