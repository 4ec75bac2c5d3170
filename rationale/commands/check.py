"""
CheckCommand -- Store integrity verification and repair

Checks:
- Every record parses and validates
- Every entry is in the bucket of each of its targets (a crash between
  entry write and index write leaves it out)
- Every id in the index has a record
- The stored entry_count matches the buckets
- The merge driver is registered (warning only)

--repair restores missing memberships and rewrites the index. It never
removes anything, so corrupt records and dangling ids stay reported.
"""

from ..commands.base import BaseCommand
from ..errors import EXIT_INTEGRITY, EXIT_OK
from ..presentation.template import OutputTemplate


class CheckCommand(BaseCommand):
    """Command for store integrity verification."""

    def check(self, repair: bool = False, as_json: bool = False) -> int:
        """
        Verify store integrity, optionally repairing the index.

        Returns:
            Exit code: 0 when the store is consistent, 1 otherwise
        """
        repo = self.repo
        report = repo.check()

        repair_result = None
        if repair and report.repairable:
            repair_result = repo.repair()
            report = repo.check()

        if as_json:
            data = report.to_dict()
            if repair_result is not None:
                data["repair"] = {
                    "before": repair_result.left_count,
                    "after": repair_result.merged_count,
                    "index_was_unreadable": repair_result.left_unreadable,
                }
            self.emit_json(data)
            return EXIT_OK if report.ok else EXIT_INTEGRITY

        symbols = self.symbols
        passed, issues, warnings = [], [], []

        if report.index_error:
            issues.append((f"Index unreadable: {report.index_error}",
                           "Run 'rationale check --repair' to rebuild it from the entries"))
        else:
            passed.append(f"Index readable ({report.paths} files, {report.entry_count} memberships)")

        if report.corrupt:
            for skipped in report.corrupt:
                issues.append((f"Corrupt record {skipped.id}: {skipped.reason}",
                               "Restore the file from git history"))
        else:
            passed.append(f"All {report.entries} records valid")

        if report.missing_memberships:
            for path, entry_id in report.missing_memberships:
                issues.append((f"Entry {entry_id} missing from index bucket {path}",
                               "Run 'rationale check --repair'"))
        else:
            passed.append("Every entry is indexed under all of its files")

        if report.dangling:
            for entry_id in report.dangling:
                issues.append((f"Index lists {entry_id} but no record exists",
                               "Restore .rationale/entries/ from git history"))
        else:
            passed.append("Every indexed id has a record")

        if report.count_drift and not report.index_error:
            issues.append((f"Stored entry_count {report.stored_entry_count} != {report.entry_count}",
                           "Run 'rationale check --repair'"))

        if self.git.is_git_repo and self.git.hooks_status() != "Installed":
            warnings.append(("Merge driver not installed",
                             "Run 'rationale hooks install' so branch merges union the index"))

        template = OutputTemplate(symbols=symbols)
        template.header("RATIONALE CHECK", "Store Integrity Verification")
        template.legend({
            symbols.check_pass: "passed",
            symbols.check_fail: "issue",
            symbols.check_warn: "warning"
        })

        if passed:
            template.section("CHECKS PASSED", "\n".join(f"{symbols.check_pass} {p}" for p in passed))

        template.findings("ISSUES", issues, symbols.check_fail)
        template.findings("WARNINGS", warnings, symbols.check_warn)

        if repair_result is not None:
            template.section("REPAIRS", (
                f"{symbols.check_pass} Index rebuilt: "
                f"{repair_result.left_count} -> {repair_result.merged_count} memberships"
            ))

        if report.ok:
            template.footer(f"{symbols.check_pass} Store is consistent.")
        elif repair:
            template.footer("Remaining issues cannot be repaired automatically.")
        else:
            template.footer("Tip: Run 'rationale check --repair' to restore missing index entries.")

        self.emit(template.render(command="check", context={
            "ok": report.ok,
            "repairable": report.repairable,
        }))
        return EXIT_OK if report.ok else EXIT_INTEGRITY


def register_parser(subparsers):
    """Register check command parser."""
    p = subparsers.add_parser('check', help='Verify store integrity and repair the index')
    p.add_argument('--repair', action='store_true',
                   help='Restore index memberships missing for existing entries')
    p.add_argument('--json', action='store_true', dest='as_json',
                   help='Output as JSON')
    return p


def handle(cli, args):
    """Handle check command dispatch."""
    return cli._check_cmd.check(repair=args.repair, as_json=args.as_json)
