"""
ConfigCommand -- View and change configuration

    rationale config                              # show effective settings
    rationale config --get lock.timeout
    rationale config --set store.default_agent claude
    rationale config --set display.symbols ascii --user
"""

from ..commands.base import BaseCommand
from ..errors import InvalidInputError
from ..presentation.template import OutputTemplate


class ConfigCommand(BaseCommand):
    """Command for configuration management."""

    @property
    def manager(self):
        return self._cli.config_manager

    def show_config(self):
        self.emit(self.manager.display())

    def get_config(self, key: str):
        value = self.manager.get(key)
        if value is None:
            raise InvalidInputError(f"Unknown config key: {key}")
        print(value)

    def set_config(self, key: str, value: str, scope: str = "project"):
        """
        Raises:
            InvalidInputError: unknown key or invalid value
        """
        error = self.manager.set(key, value, scope)
        if error:
            raise InvalidInputError(error)

        symbols = self.symbols
        path = self.manager.project_config_path if scope == "project" else self.manager.user_config_path
        template = OutputTemplate(symbols=symbols)
        template.section("", f"{symbols.check_pass} {key} = {self.manager.get(key)}")
        template.footer(f"saved to {path}")
        self.emit(template.render())


def register_parser(subparsers):
    """Register config command parser."""
    p = subparsers.add_parser('config', help='View or set configuration')
    action = p.add_mutually_exclusive_group()
    action.add_argument('--set', nargs=2, metavar=('KEY', 'VALUE'),
                        help='Set a value (e.g., --set lock.timeout 10)')
    action.add_argument('--get', metavar='KEY',
                        help='Print a single value')
    p.add_argument('--user', action='store_true',
                   help='Apply to user config instead of project')
    return p


def handle(cli, args):
    """Handle config command dispatch."""
    if args.set:
        key, value = args.set
        cli._config_cmd.set_config(key, value, "user" if args.user else "project")
    elif args.get:
        cli._config_cmd.get_config(args.get)
    else:
        cli._config_cmd.show_config()
