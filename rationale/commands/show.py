"""
ShowCommand -- One entry in full, by id, id prefix or AA-BB code
"""

from ..commands.base import BaseCommand
from ..errors import InvalidInputError, NotFoundError
from ..presentation.formatters import entry_to_json
from ..presentation.template import OutputTemplate


class ShowCommand(BaseCommand):
    """Command for displaying a single entry."""

    def resolve(self, reference: str) -> str:
        """
        Full entry id for a user reference.

        Raises:
            NotFoundError: nothing matches
            InvalidInputError: more than one entry matches
        """
        matches = self.codec.resolve(reference, self.repo.store.ids())
        if not matches:
            raise NotFoundError(f"No entry matches {reference!r}")
        if len(matches) > 1:
            raise InvalidInputError(
                f"{reference!r} is ambiguous; matches: {', '.join(matches)}"
            )
        return matches[0]

    def show(self, reference, as_json=False):
        entry = self.repo.store.read(self.resolve(reference))

        if as_json:
            self.emit_json(entry_to_json(entry))
            return

        template = OutputTemplate(symbols=self.symbols)
        template.entry_blocks("", [entry])
        self.emit(template.render())


def register_parser(subparsers):
    """Register show command parser."""
    p = subparsers.add_parser('show', help='Show one entry in full')
    p.add_argument('reference', help='Entry id, id prefix, or AA-BB code')
    p.add_argument('--json', action='store_true', dest='as_json',
                   help='Output as JSON')
    return p


def handle(cli, args):
    """Handle show command dispatch."""
    cli._show_cmd.show(args.reference, as_json=args.as_json)
