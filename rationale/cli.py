"""
CLI -- Command interface

    rationale init
    rationale record -f src/parse.py -i "Stream instead of buffering" --trace "..."
    rationale explain src/parse.py [--all]
    rationale search pandas --tag perf
    rationale status
    rationale hooks install

Every failure maps to its own exit code (see errors.py). The store is
opened lazily so that init and merge-index run without one.
"""

import argparse
import logging
import os
import sys
from pathlib import Path
from typing import List, Optional

from .config import Config, ConfigManager
from .core.repository import Repository
from .errors import EXIT_OK, RationaleError, RepositoryUninitializedError
from .presentation.codec import IDCodec
from .presentation.symbols import SymbolSet, get_symbols, safe_print
from .services.git import GitIntegration
from .commands.init_cmd import InitCommand
from .commands.record import RecordCommand
from .commands.explain import ExplainCommand
from .commands.search import SearchCommand
from .commands.list_cmd import ListCommand
from .commands.show import ShowCommand
from .commands.status import StatusCommand
from .commands.check import CheckCommand
from .commands.merge_cmd import MergeCommand
from .commands.hooks import HooksCommand
from .commands.config_cmd import ConfigCommand
from . import __version__


logger = logging.getLogger(__name__)


class RationaleCLI:
    """Shared resources for one command invocation."""

    def __init__(self, project_dir: Path):
        self.cwd = Path(project_dir).resolve()
        self.codec = IDCodec()

        self._repository: Optional[Repository] = None
        self._config: Optional[Config] = None
        self._symbols: Optional[SymbolSet] = None
        self._git: Optional[GitIntegration] = None

        self._init_cmd = InitCommand(self)
        self._record_cmd = RecordCommand(self)
        self._explain_cmd = ExplainCommand(self)
        self._search_cmd = SearchCommand(self)
        self._list_cmd = ListCommand(self)
        self._show_cmd = ShowCommand(self)
        self._status_cmd = StatusCommand(self)
        self._check_cmd = CheckCommand(self)
        self._merge_cmd = MergeCommand(self)
        self._hooks_cmd = HooksCommand(self)
        self._config_cmd = ConfigCommand(self)

    @property
    def repository(self) -> Repository:
        """
        The store at or above cwd, opened on first use.

        Raises:
            RepositoryUninitializedError
        """
        if self._repository is None:
            self._repository = Repository.discover(self.cwd)
            logger.debug("Using store at %s", self._repository.root)
        return self._repository

    def attach(self, repository: Repository) -> None:
        """Adopt a repository created during this invocation (init)."""
        self._repository = repository
        self._config = repository.config
        self._git = None

    @property
    def root(self) -> Path:
        """Repository root if there is a store, else cwd."""
        try:
            return self.repository.root
        except RepositoryUninitializedError:
            return self.cwd

    @property
    def config_manager(self) -> ConfigManager:
        return ConfigManager(self.root)

    @property
    def config(self) -> Config:
        if self._config is None:
            try:
                self._config = self.repository.config
            except RepositoryUninitializedError:
                self._config = ConfigManager(self.cwd).load()
        return self._config

    @property
    def symbols(self) -> SymbolSet:
        if self._symbols is None:
            self._symbols = get_symbols(self.config.display.symbols)
        return self._symbols

    @property
    def git(self) -> GitIntegration:
        if self._git is None:
            self._git = GitIntegration(self.root)
        return self._git


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="rationale",
        description="Rationale -- the reasoning behind your code, stored next to it",
        epilog="Records why. Answers 'why?'. Merges cleanly across branches."
    )

    parser.add_argument(
        '--project', '-p',
        default=os.environ.get("RATIONALE_PROJECT_PATH", "."),
        help='Directory to run in (default: RATIONALE_PROJECT_PATH or current)'
    )

    parser.add_argument(
        '--verbose', '-v',
        action='store_true',
        help='Debug logging on stderr'
    )

    parser.add_argument(
        '--version', '-V',
        action='version',
        version=f'rationale {__version__}'
    )

    subparsers = parser.add_subparsers(dest='command', help='Commands')

    from .commands import register_all
    register_all(subparsers)
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main entry point.

    Returns:
        Process exit code
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(name)s %(levelname)s %(message)s",
        )
    else:
        logging.basicConfig(level=logging.WARNING, format="%(levelname)s: %(message)s")

    if not args.command:
        parser.print_help()
        return EXIT_OK

    from .commands import dispatch
    cli = RationaleCLI(Path(args.project))

    try:
        code = dispatch(args.command, cli, args)
    except RationaleError as e:
        safe_print(f"Error: {e}", file=sys.stderr)
        return e.exit_code
    except BrokenPipeError:
        # Output piped into something that stopped reading (e.g. head)
        devnull = os.open(os.devnull, os.O_WRONLY)
        os.dup2(devnull, sys.stdout.fileno())
        return EXIT_OK
    except KeyboardInterrupt:
        return 130

    return code or EXIT_OK


if __name__ == '__main__':
    sys.exit(main())
