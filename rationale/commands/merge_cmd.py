"""
MergeCommand -- Git merge driver for .rationale/index.json

Git calls this with the ancestor, ours and theirs versions of the index
(%O %A %B). The union is written over ours and git records the merge as
clean. It never prompts and needs no initialized store.
"""

import sys

from ..commands.base import BaseCommand
from ..core.merge import merge_index_files
from ..presentation.symbols import safe_print


COMMAND_NAME = 'merge-index'


class MergeCommand(BaseCommand):
    """Command for the index merge driver."""

    def merge_index(self, base, ours, theirs, quiet=False, as_json=False):
        result = merge_index_files(base, ours, theirs)

        if as_json:
            self.emit_json(result.to_dict())
        elif not quiet:
            safe_print(f"{self.symbols.check_pass} Rationale index: {result.summary()}", file=sys.stderr)


def register_parser(subparsers):
    """Register merge-index command parser."""
    p = subparsers.add_parser(COMMAND_NAME,
                              help='Merge driver: union three index versions into OURS')
    p.add_argument('base', help='Common ancestor version (%%O)')
    p.add_argument('ours', help='Our version, overwritten with the result (%%A)')
    p.add_argument('theirs', help='Their version (%%B)')
    p.add_argument('--quiet', '-q', action='store_true',
                   help='Do not print the merge summary')
    p.add_argument('--json', action='store_true', dest='as_json',
                   help='Print merge statistics as JSON on stdout')
    return p


def handle(cli, args):
    """Handle merge-index command dispatch."""
    cli._merge_cmd.merge_index(args.base, args.ours, args.theirs,
                               quiet=args.quiet, as_json=args.as_json)
