"""
InitCommand -- Create the .rationale/ store

Lays out entries/, an empty index, the project config (with the default
agent) and a .gitignore for scratch files. Refuses to touch an existing
store.
"""

from ..commands.base import BaseCommand
from ..core.repository import Repository
from ..presentation.template import OutputTemplate


class InitCommand(BaseCommand):
    """Command for store initialization."""

    def init(self, agent: str = None):
        repo = Repository.init(self.cwd, agent=agent)
        self._cli.attach(repo)

        template = OutputTemplate(symbols=self.symbols)
        template.header("RATIONALE INIT", str(repo.store_dir))
        template.paths("CREATED", [
            f"{repo.entries_dir.relative_to(repo.root)}/",
            str(repo.index_path.relative_to(repo.root)),
            ".rationale/config.yaml",
            ".rationale/.gitignore",
        ])
        template.footer(f"default agent: {repo.config.store.default_agent}")
        print(template.render(command="init", context={"is_git_repo": self.git.is_git_repo}))


def register_parser(subparsers):
    """Register init command parser."""
    p = subparsers.add_parser('init', help='Create a rationale store in the current directory')
    p.add_argument('--agent', '-a',
                   help='Default agent/author id for new entries (default: unknown)')
    return p


def handle(cli, args):
    """Handle init command dispatch."""
    cli._init_cmd.init(agent=args.agent)
