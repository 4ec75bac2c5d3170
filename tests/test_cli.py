"""
Tests for the CLI -- commands end to end, exit codes and --json output

Runs main() in-process against real stores. Every failure class must
surface as its own exit code.
"""

import io
import sys

import orjson
import pytest

from rationale.cli import main
from rationale.core.fsutil import store_lock
from rationale.core.index import Index
from rationale.presentation.codec import short_code
from rationale.services.git import GitIntegration


class TestInit:

    def test_creates_store(self, tmp_path, run_cli):
        code, out, _ = run_cli("init", "--agent", "claude", cwd=tmp_path)
        assert code == 0
        assert (tmp_path / ".rationale" / "index.json").is_file()
        assert "claude" in out

    def test_second_init_fails(self, tmp_path, run_cli):
        run_cli("init", cwd=tmp_path)
        code, _, err = run_cli("init", cwd=tmp_path)
        assert code == 1
        assert "already initialized" in err


class TestUninitialized:

    @pytest.mark.parametrize("args", [
        ("explain", "a.py"),
        ("list",),
        ("status",),
        ("check",),
    ])
    def test_exit_code(self, tmp_path, run_cli, args):
        code, _, err = run_cli(*args, cwd=tmp_path)
        assert code == 7
        assert "rationale init" in err


class TestRecord:

    def test_record_then_explain(self, rationale_factory, run_cli):
        rationale_factory.write_file("src/a.py")
        root = rationale_factory.root

        code, out, _ = run_cli("record", "-f", "src/a.py", "-i", "Use a set",
                               "--trace", "Lookups dominate", "--reject", "list: O(n)",
                               "--tag", "perf", "--lines", "3-9", cwd=root)
        assert code == 0
        assert "Use a set" in out

        code, out, _ = run_cli("explain", "src/a.py", "--json", cwd=root)
        assert code == 0
        data = orjson.loads(out)
        entry = data["entries"][0]
        assert entry["intent"] == "Use a set"
        assert entry["reasoning"] == "Lookups dominate"
        assert entry["rejected_alternatives"] == [{"name": "list", "reason": "O(n)"}]
        assert entry["line_range"] == [3, 9]
        assert entry["tags"] == ["perf"]
        assert entry["agent"] == "tester"

    def test_json_output(self, rationale_factory, run_cli):
        rationale_factory.write_file("a.py")
        code, out, _ = run_cli("record", "-f", "a.py", "-f", "gone.py", "-i", "Why",
                               "--agent", "gpt", "--json", cwd=rationale_factory.root)
        assert code == 0
        data = orjson.loads(out)
        assert data["entry"]["targets"] == ["a.py"]
        assert data["entry"]["agent"] == "gpt"
        assert data["skipped_targets"] == ["gone.py"]

    def test_trace_from_stdin(self, rationale_factory, run_cli, monkeypatch):
        rationale_factory.write_file("a.py")
        monkeypatch.setattr(sys, "stdin", io.StringIO("Long trace\nfrom a pipe\n"))
        run_cli("record", "-f", "a.py", "-i", "Why", "--stdin", cwd=rationale_factory.root)

        entry = rationale_factory.repo.query.explain("a.py").latest
        assert entry.reasoning == "Long trace\nfrom a pipe\n"

    def test_trace_from_file(self, rationale_factory, run_cli, tmp_path_factory):
        rationale_factory.write_file("a.py")
        notes = tmp_path_factory.mktemp("notes") / "trace.md"
        notes.write_text("# Reasoning\nDetailed.")
        run_cli("record", "-f", "a.py", "-i", "Why", "--trace-file", str(notes),
                cwd=rationale_factory.root)
        assert rationale_factory.repo.query.explain("a.py").latest.reasoning == "# Reasoning\nDetailed."

    def test_missing_trace_file(self, rationale_factory, run_cli):
        rationale_factory.write_file("a.py")
        code, _, _ = run_cli("record", "-f", "a.py", "-i", "Why", "--trace-file", "nope.md",
                             cwd=rationale_factory.root)
        assert code == 10

    def test_all_targets_missing(self, rationale_factory, run_cli):
        code, _, err = run_cli("record", "-f", "gone.py", "-i", "Why", cwd=rationale_factory.root)
        assert code == 3
        assert "gone.py" in err

    def test_target_outside_repository(self, rationale_factory, run_cli, tmp_path_factory):
        outside = tmp_path_factory.mktemp("elsewhere") / "secret.py"
        outside.write_text("x = 1\n")
        code, _, err = run_cli("record", "-f", str(outside), "-i", "Why", cwd=rationale_factory.root)
        assert code == 10
        assert "outside the repository" in err
        assert rationale_factory.repo.store.ids() == []

    def test_invalid_line_range(self, rationale_factory, run_cli):
        rationale_factory.write_file("a.py")
        code, _, _ = run_cli("record", "-f", "a.py", "-i", "Why", "--lines", "9-3",
                             cwd=rationale_factory.root)
        assert code == 10

    def test_empty_intent(self, rationale_factory, run_cli):
        rationale_factory.write_file("a.py")
        code, _, _ = run_cli("record", "-f", "a.py", "-i", " ", cwd=rationale_factory.root)
        assert code == 10

    def test_busy(self, rationale_factory, run_cli):
        rationale_factory.write_file("a.py")
        run_cli("config", "--set", "lock.timeout", "0.1", cwd=rationale_factory.root)

        with store_lock(rationale_factory.repo.lock_path, timeout=1.0):
            code, _, err = run_cli("record", "-f", "a.py", "-i", "Why", cwd=rationale_factory.root)
        assert code == 8
        assert "busy" in err

    def test_missing_intent_is_usage_error(self, rationale_factory):
        with pytest.raises(SystemExit) as exc:
            main(["--project", str(rationale_factory.root), "record", "-f", "a.py"])
        assert exc.value.code == 2


class TestReading:

    def test_explain_latest(self, rationale_env, run_cli):
        code, out, _ = run_cli("explain", "src/io.py", cwd=rationale_env.root)
        assert code == 0
        assert "Buffer writes in 64k chunks" in out
        assert "Share the reader" not in out

    def test_explain_all(self, rationale_env, run_cli):
        code, out, _ = run_cli("explain", "src/io.py", "--all", cwd=rationale_env.root)
        assert code == 0
        assert out.index("Buffer writes") < out.index("Share the reader")

    def test_explain_from_subdirectory(self, rationale_env, run_cli):
        code, out, _ = run_cli("explain", "parse.py", cwd=rationale_env.root / "src")
        assert code == 0
        assert "Share the reader" in out

    def test_explain_unknown_suggests(self, rationale_env, run_cli):
        code, _, err = run_cli("explain", "src/parser.py", cwd=rationale_env.root)
        assert code == 3
        assert "src/parse.py" in err

    def test_search_json(self, rationale_env, run_cli):
        code, out, _ = run_cli("search", "mmap", "--json", cwd=rationale_env.root)
        assert code == 0
        data = orjson.loads(out)
        assert data["total"] == 1
        assert data["entries"][0]["id"] == rationale_env.entries[1].id

    def test_search_no_results(self, rationale_env, run_cli):
        code, out, _ = run_cli("search", "kubernetes", cwd=rationale_env.root)
        assert code == 0
        assert "kubernetes" in out

    def test_list_json_window(self, rationale_env, run_cli):
        code, out, _ = run_cli("list", "--limit", "2", "--json", cwd=rationale_env.root)
        data = orjson.loads(out)
        assert data["total"] == 3
        assert [e["id"] for e in data["entries"]] == [
            rationale_env.entries[2].id, rationale_env.entries[1].id,
        ]

    def test_list_reports_skipped(self, rationale_env, run_cli):
        rationale_env.corrupt_entry(rationale_env.entries[0].id)
        code, out, err = run_cli("list", cwd=rationale_env.root)
        assert code == 0
        assert "Skipped 1" in err
        assert "SKIPPED (1)" in out
        assert rationale_env.entries[0].id in out

    def test_show_by_code(self, rationale_env, run_cli):
        entry = rationale_env.entries[0]
        code, out, _ = run_cli("show", short_code(entry.id), "--json", cwd=rationale_env.root)
        assert code == 0
        assert orjson.loads(out)["id"] == entry.id

    def test_show_unknown(self, rationale_env, run_cli):
        code, _, _ = run_cli("show", "ffffffff", cwd=rationale_env.root)
        assert code == 3

    def test_show_ambiguous(self, rationale_factory, run_cli):
        rationale_factory.add_entry(["a.py"], "one", entry_id="abcd-1")
        rationale_factory.add_entry(["a.py"], "two", entry_id="abcd-2")
        code, _, err = run_cli("show", "abcd", cwd=rationale_factory.root)
        assert code == 10
        assert "ambiguous" in err

    def test_status_json(self, rationale_env, run_cli):
        code, out, _ = run_cli("status", "--json", cwd=rationale_env.root)
        assert code == 0
        data = orjson.loads(out)
        assert data["tracked"] == ["src/io.py", "src/parse.py"]
        assert data["distinct_entries"] == 3

    def test_corrupt_record_read_directly(self, rationale_env, run_cli):
        entry = rationale_env.entries[0]
        rationale_env.corrupt_entry(entry.id)
        code, _, _ = run_cli("show", entry.id, cwd=rationale_env.root)
        assert code == 6


class TestCheck:

    def test_clean(self, rationale_env, run_cli):
        code, out, _ = run_cli("check", cwd=rationale_env.root)
        assert code == 0
        assert "consistent" in out

    def test_repair_restores_orphan(self, rationale_env, run_cli):
        orphan = rationale_env.add_entry(["src/new.py"], "Crashed", index=False)

        code, out, _ = run_cli("check", "--json", cwd=rationale_env.root)
        assert code == 11
        assert orjson.loads(out)["orphaned"] == [orphan.id]

        code, _, _ = run_cli("check", "--repair", cwd=rationale_env.root)
        assert code == 0
        assert rationale_env.index_ids("src/new.py") == [orphan.id]

    def test_corrupt_record_not_repairable(self, rationale_env, run_cli):
        rationale_env.corrupt_entry(rationale_env.entries[2].id)
        code, out, _ = run_cli("check", "--repair", cwd=rationale_env.root)
        assert code == 11
        assert "cannot be repaired" in out


class TestMergeIndex:

    def test_merges_into_ours(self, tmp_path, run_cli):
        base, ours, theirs = tmp_path / "O", tmp_path / "A", tmp_path / "B"
        Index().save(base)
        Index({"a.txt": ["x"]}).save(ours)
        Index({"a.txt": ["y"]}).save(theirs)

        code, _, err = run_cli("merge-index", str(base), str(ours), str(theirs), cwd=tmp_path)
        assert code == 0
        assert Index.load(ours).lookup("a.txt") == {"x", "y"}
        assert "merged 2" in err

    def test_json_statistics(self, tmp_path, run_cli):
        ours, theirs = tmp_path / "A", tmp_path / "B"
        Index({"a.txt": ["x"]}).save(ours)
        Index({"b.txt": ["y"]}).save(theirs)

        code, out, _ = run_cli("merge-index", str(tmp_path / "missing"), str(ours), str(theirs),
                               "--json", cwd=tmp_path)
        assert code == 0
        assert orjson.loads(out)["entry_count"] == 2

    def test_both_unreadable(self, tmp_path, run_cli):
        ours, theirs = tmp_path / "A", tmp_path / "B"
        ours.write_text("junk")
        theirs.write_text("junk")
        code, _, _ = run_cli("merge-index", str(tmp_path / "O"), str(ours), str(theirs),
                             "--quiet", cwd=tmp_path)
        assert code == 9


class TestConfig:

    def test_set_and_get(self, rationale_factory, run_cli):
        root = rationale_factory.root
        code, _, _ = run_cli("config", "--set", "store.default_agent", "claude", cwd=root)
        assert code == 0
        code, out, _ = run_cli("config", "--get", "store.default_agent", cwd=root)
        assert out.strip() == "claude"

    def test_invalid_value(self, rationale_factory, run_cli):
        code, _, err = run_cli("config", "--set", "display.symbols", "emoji",
                               cwd=rationale_factory.root)
        assert code == 10
        assert "emoji" in err

    def test_show(self, rationale_factory, run_cli):
        code, out, _ = run_cli("config", cwd=rationale_factory.root)
        assert code == 0
        assert "Default agent: tester" in out


class TestHooks:

    def test_outside_git(self, tmp_path, run_cli):
        if GitIntegration(tmp_path).is_git_repo:
            pytest.skip("tmp_path is inside a git work tree")
        code, out, _ = run_cli("hooks", "install", cwd=tmp_path)
        assert code == 1
        assert "Not a git repository" in out

    def test_no_subcommand(self, tmp_path, run_cli):
        code, out, _ = run_cli("hooks", cwd=tmp_path)
        assert code == 2


def test_no_command_prints_help(tmp_path, run_cli):
    code, out, _ = run_cli(cwd=tmp_path)
    assert code == 0
    assert "record" in out


def test_every_command_module_registers():
    from rationale.cli import build_parser
    from rationale.commands import get_registered_commands

    build_parser()
    names = get_registered_commands()
    assert names[0] == "init"
    assert {"list", "merge-index", "hooks", "config"} <= set(names)
