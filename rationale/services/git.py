"""
Git Integration -- Commit context, changed files and the merge driver

Gives `record` the HEAD commit and the set of changed files, gives
`status` the files that changed without reasoning, and registers the
index merge driver so that branch merges union the index instead of
producing text conflicts:

    .git/config      [merge "rationale-index"] driver = rationale merge-index %O %A %B
    .gitattributes   .rationale/index.json merge=rationale-index

Git is optional. Every query degrades to "unavailable" outside a work tree.
"""

import logging
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Tuple


logger = logging.getLogger(__name__)

MERGE_DRIVER_NAME = "rationale-index"
MERGE_DRIVER_COMMAND = "rationale merge-index %O %A %B"
MERGE_DRIVER_DESCRIPTION = "Rationale index union merge"
ATTRIBUTES_LINE = f".rationale/index.json merge={MERGE_DRIVER_NAME}"

STORE_PREFIX = ".rationale/"


@dataclass
class FileChange:
    """A single working-tree change."""
    path: str
    status: str  # A=added, M=modified, D=deleted, R=renamed, ?=untracked
    staged: bool = False
    old_path: Optional[str] = None  # For renames

    @property
    def is_deleted(self) -> bool:
        return self.status == "D"


def parse_porcelain(output: str) -> List[FileChange]:
    """
    Parse `git status --porcelain=v1 -z` output.

    Records are NUL separated; a rename is followed by an extra record
    holding the original path.
    """
    changes: List[FileChange] = []
    records = output.split("\0")
    i = 0
    while i < len(records):
        record = records[i]
        i += 1
        if len(record) < 4:
            continue
        index_status, tree_status, path = record[0], record[1], record[3:]

        old_path = None
        if "R" in (index_status, tree_status) or "C" in (index_status, tree_status):
            old_path = records[i] if i < len(records) else None
            i += 1

        if index_status == "?" and tree_status == "?":
            status, staged = "?", False
        elif "D" in (index_status, tree_status):
            status, staged = "D", index_status == "D"
        elif "R" in (index_status, tree_status):
            status, staged = "R", index_status == "R"
        elif "A" in (index_status, tree_status):
            status, staged = "A", index_status == "A"
        else:
            status, staged = "M", index_status not in (" ", "?")

        changes.append(FileChange(path=path, status=status, staged=staged, old_path=old_path))
    return changes


class GitIntegration:
    """Git repository integration, rooted at the rationale store's root."""

    def __init__(self, repo_path: Optional[Path] = None):
        """
        Initialize git integration.

        Args:
            repo_path: Directory holding .rationale/. If None, uses current directory.
        """
        self.repo_path = Path(repo_path) if repo_path else Path.cwd()
        self._toplevel: Optional[Path] = None

    def _run_git(self, args: List[str], check: bool = True) -> Optional[str]:
        """Run a git command and return stdout, or None if it failed."""
        try:
            result = subprocess.run(
                ["git"] + args,
                cwd=self.repo_path,
                capture_output=True,
                text=True,
                check=check
            )
            return result.stdout
        except subprocess.CalledProcessError as e:
            logger.debug("git %s failed: %s", " ".join(args), e.stderr.strip() if e.stderr else e)
            return None
        except OSError as e:
            logger.debug("git unavailable: %s", e)
            return None

    @property
    def toplevel(self) -> Optional[Path]:
        """Work tree root, or None outside a git repository."""
        if self._toplevel is None:
            output = self._run_git(["rev-parse", "--show-toplevel"])
            if output and output.strip():
                self._toplevel = Path(output.strip())
        return self._toplevel

    @property
    def is_git_repo(self) -> bool:
        return self.toplevel is not None

    @property
    def is_available(self) -> bool:
        return self.is_git_repo

    def head_commit(self) -> Optional[str]:
        """Full hash of HEAD, or None (not a repo, or no commits yet)."""
        output = self._run_git(["rev-parse", "--verify", "--quiet", "HEAD"])
        if output and output.strip():
            return output.strip()
        return None

    def status_changes(self) -> List[FileChange]:
        """
        Working-tree and index changes, paths relative to repo_path.

        Changes inside .rationale/ and outside repo_path are left out.
        """
        output = self._run_git(["status", "--porcelain=v1", "-z", "--untracked-files=all"])
        if output is None or self.toplevel is None:
            return []

        root = self.repo_path.resolve()
        changes = []
        for change in parse_porcelain(output):
            try:
                rel = (self.toplevel / change.path).resolve().relative_to(root).as_posix()
            except ValueError:
                continue
            if rel.startswith(STORE_PREFIX):
                continue
            change.path = rel
            changes.append(change)
        return changes

    def changed_files(self, include_deleted: bool = False) -> List[str]:
        """Paths of changed files, deleted ones excluded unless asked for."""
        return sorted({
            change.path for change in self.status_changes()
            if include_deleted or not change.is_deleted
        })

    # -------------------------------------------------------------------------
    # Merge driver
    # -------------------------------------------------------------------------

    @property
    def attributes_path(self) -> Path:
        return self.repo_path / ".gitattributes"

    def _driver_configured(self) -> bool:
        output = self._run_git(["config", "--get", f"merge.{MERGE_DRIVER_NAME}.driver"])
        return bool(output and output.strip())

    def _attributes_configured(self) -> bool:
        if not self.attributes_path.exists():
            return False
        return ATTRIBUTES_LINE in self.attributes_path.read_text().splitlines()

    def install_hooks(self) -> Tuple[bool, str]:
        """
        Register the index merge driver.

        Returns:
            Tuple of (success, message)
        """
        if not self.is_git_repo:
            return False, "Not a git repository"

        if self._driver_configured() and self._attributes_configured():
            return True, "Merge driver already installed"

        for key, value in (
            ("name", MERGE_DRIVER_DESCRIPTION),
            ("driver", MERGE_DRIVER_COMMAND),
        ):
            if self._run_git(["config", f"merge.{MERGE_DRIVER_NAME}.{key}", value]) is None:
                return False, f"Could not set git config merge.{MERGE_DRIVER_NAME}.{key}"

        if not self._attributes_configured():
            existing = self.attributes_path.read_text() if self.attributes_path.exists() else ""
            if existing and not existing.endswith("\n"):
                existing += "\n"
            self.attributes_path.write_text(existing + ATTRIBUTES_LINE + "\n")

        return True, "Merge driver installed"

    def uninstall_hooks(self) -> Tuple[bool, str]:
        """
        Remove the merge driver from git config and .gitattributes.

        Returns:
            Tuple of (success, message)
        """
        if not self.is_git_repo:
            return False, "Not a git repository"

        if not self._driver_configured() and not self._attributes_configured():
            return True, "No merge driver to remove"

        self._run_git(["config", "--remove-section", f"merge.{MERGE_DRIVER_NAME}"], check=False)

        if self.attributes_path.exists():
            lines = self.attributes_path.read_text().splitlines()
            kept = [line for line in lines if line.strip() != ATTRIBUTES_LINE]
            if any(line.strip() for line in kept):
                self.attributes_path.write_text("\n".join(kept) + "\n")
            else:
                self.attributes_path.unlink()

        return True, "Merge driver removed"

    def hooks_status(self) -> str:
        """Get status of the merge driver registration."""
        if not self.is_git_repo:
            return "Not a git repository"

        driver = self._driver_configured()
        attributes = self._attributes_configured()
        if driver and attributes:
            return "Installed"
        if driver:
            return "Partially installed (missing .gitattributes entry)"
        if attributes:
            return "Partially installed (missing git config driver)"
        return "Not installed"
