"""
HooksCommand -- Register the index merge driver with git

install writes the driver into .git/config and the attribute line into
.gitattributes; uninstall removes both; status reports what is present.
"""

from ..commands.base import BaseCommand
from ..errors import EXIT_USAGE
from ..presentation.template import OutputTemplate
from ..services.git import ATTRIBUTES_LINE, MERGE_DRIVER_COMMAND


class HooksCommand(BaseCommand):
    """Command for merge driver management."""

    def install_hooks(self) -> int:
        symbols = self.symbols
        success, message = self.git.install_hooks()

        template = OutputTemplate(symbols=symbols)
        if success:
            template.header("RATIONALE HOOKS", "Merge Driver Installed")
            template.section("STATUS", f"{symbols.check_pass} {message}")
            template.section("CONFIGURED", "\n".join([
                f"git config: merge.rationale-index.driver = {MERGE_DRIVER_COMMAND}",
                f".gitattributes: {ATTRIBUTES_LINE}",
            ]))
            template.section("ACTION", "Commit .gitattributes so every clone merges the same way.")
            template.footer(f"{symbols.check_pass} Merge driver ready")
            self.emit(template.render(command="hooks", context={"installed": True}))
            return 0

        template.header("RATIONALE HOOKS", "Installation Failed")
        template.section("ERROR", f"{symbols.check_fail} {message}")
        self.emit(template.render(command="hooks", context={"error": True}))
        return 1

    def uninstall_hooks(self) -> int:
        symbols = self.symbols
        success, message = self.git.uninstall_hooks()

        template = OutputTemplate(symbols=symbols)
        if success:
            template.header("RATIONALE HOOKS", "Merge Driver Removed")
            template.section("STATUS", f"{symbols.check_pass} {message}")
            template.footer(f"{symbols.check_pass} Index merges fall back to git's text merge")
            self.emit(template.render(command="hooks", context={"uninstalled": True}))
            return 0

        template.header("RATIONALE HOOKS", "Uninstall Failed")
        template.section("ERROR", f"{symbols.check_fail} {message}")
        self.emit(template.render(command="hooks", context={"error": True}))
        return 1

    def hooks_status(self) -> int:
        status = self.git.hooks_status()

        template = OutputTemplate(symbols=self.symbols)
        template.header("RATIONALE HOOKS", "Status")
        template.section("MERGE DRIVER", status)
        self.emit(template.render(command="hooks", context={"installed": status == "Installed"}))
        return 0


def register_parser(subparsers):
    """Register hooks command parser."""
    p = subparsers.add_parser('hooks', help='Manage the git merge driver for the index')
    hooks_sub = p.add_subparsers(dest='hooks_command')
    hooks_sub.add_parser('install', help='Register the merge driver')
    hooks_sub.add_parser('uninstall', help='Remove the merge driver')
    hooks_sub.add_parser('status', help='Show merge driver status')
    return p


def handle(cli, args):
    """Handle hooks command dispatch."""
    if args.hooks_command == 'install':
        return cli._hooks_cmd.install_hooks()
    elif args.hooks_command == 'uninstall':
        return cli._hooks_cmd.uninstall_hooks()
    elif args.hooks_command == 'status':
        return cli._hooks_cmd.hooks_status()
    print("Usage: rationale hooks {install|uninstall|status}")
    return EXIT_USAGE
