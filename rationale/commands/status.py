"""
StatusCommand -- Documentation coverage against the working tree

Shows changed files that have no reasoning yet (the gaps), how much is
documented, the most documented files and who wrote the reasoning.
"""

from ..commands.base import BaseCommand
from ..presentation.template import OutputTemplate


class StatusCommand(BaseCommand):
    """Command for the coverage report."""

    def status(self, as_json=False):
        report = self.query.status(self.git)
        self.warn_skipped(report.skipped)

        if as_json:
            self.emit_json(report.to_dict())
            return

        symbols = self.symbols
        template = OutputTemplate(symbols=symbols)
        template.header("RATIONALE STATUS", str(self.repo.root))

        if report.vcs_available:
            head = report.head_commit[:8] if report.head_commit else "(no commits)"
            template.scope(f"HEAD: {head}")
        else:
            template.scope("Not a git repository: change tracking unavailable")

        if report.gaps:
            template.paths(
                f"{symbols.check_warn} CHANGED WITHOUT REASONING ({len(report.gaps)})", report.gaps
            )
        elif report.vcs_available:
            template.section("CHANGES", f"{symbols.check_pass} Every changed file has reasoning")

        template.ranking("MOST DOCUMENTED", report.top_files, "File")
        template.ranking("CONTRIBUTORS", report.contributors, "Agent")
        template.skipped_records(report.skipped)

        template.footer(
            f"{len(report.tracked)} files documented | "
            f"{report.distinct_entries} entries | {report.entry_count} index memberships"
        )
        self.emit(template.render(
            command="status",
            context={
                "has_gaps": bool(report.gaps),
                "has_skipped": bool(report.skipped),
            },
        ))


def register_parser(subparsers):
    """Register status command parser."""
    p = subparsers.add_parser('status', help='Show documentation coverage and gaps')
    p.add_argument('--json', action='store_true', dest='as_json',
                   help='Output as JSON')
    return p


def handle(cli, args):
    """Handle status command dispatch."""
    cli._status_cmd.status(as_json=args.as_json)
