"""
Tests for presentation helpers -- formatters, symbols, template, hints
"""

from datetime import datetime, timedelta, timezone

from rationale.core.entry import LineRange, RejectedAlternative, make_entry
from rationale.core.store import SkippedRecord
from rationale.presentation.codec import short_code
from rationale.presentation.formatters import (
    entry_snippet, entry_to_json, format_entry_detail, format_entry_line,
    format_timestamp, highlight, make_snippet, one_line, truncate,
)
from rationale.presentation.succession import get_hint
from rationale.presentation.symbols import (
    ASCII, UNICODE, get_symbols, sanitize_control_chars,
)
from rationale.presentation.template import OutputTemplate


NOW = datetime(2025, 3, 10, 12, 0, tzinfo=timezone.utc)


def sample_entry(**kwargs):
    defaults = dict(
        targets=["src/parse.py"], agent="claude", intent="Stream the input",
        reasoning="Files exceed memory.\nReading line by line keeps RSS flat.",
        timestamp=NOW - timedelta(days=3), entry_id="0c4e8c5e-2f5a",
    )
    defaults.update(kwargs)
    return make_entry(**defaults)


class TestTruncate:

    def test_short_text_unchanged(self):
        assert truncate("Short", 50) == "Short"

    def test_long_text(self):
        assert truncate("abcdefghij", 8) == "abcde..."

    def test_full_mode(self):
        assert truncate("abcdefghij", 5, full=True) == "abcdefghij"

    def test_empty(self):
        assert truncate("", 5) == ""


class TestTimestamp:

    def test_relative(self):
        assert format_timestamp(NOW - timedelta(seconds=10), now=NOW) == "just now"
        assert format_timestamp(NOW - timedelta(minutes=5), now=NOW) == "5m ago"
        assert format_timestamp(NOW - timedelta(hours=3), now=NOW) == "3h ago"
        assert format_timestamp(NOW - timedelta(days=2), now=NOW) == "2d ago"

    def test_old_entries_show_date(self):
        assert format_timestamp(NOW - timedelta(days=30), now=NOW) == "2025-02-08"

    def test_future_is_just_now(self):
        assert format_timestamp(NOW + timedelta(hours=1), now=NOW) == "just now"

    def test_none(self):
        assert format_timestamp(None) == "unknown"


class TestSnippets:

    def test_one_line_collapses_whitespace(self):
        assert one_line("a\n  b\tc") == "a b c"

    def test_snippet_around_match(self):
        text = "x " * 100 + "pandas was too slow" + " y" * 100
        snippet = make_snippet(text, "pandas", width=30)
        assert "pandas" in snippet
        assert snippet.startswith("...")
        assert snippet.endswith("...")

    def test_snippet_no_match(self):
        assert make_snippet("nothing here", "pandas") is None

    def test_highlight_case_insensitive(self):
        assert highlight("Use Pandas or pandas", "pandas", "<", ">") == "Use <Pandas> or <pandas>"

    def test_entry_snippet_from_rejected(self):
        entry = sample_entry(reasoning="", rejected_alternatives=[RejectedAlternative("mmap")])
        assert entry_snippet(entry, "mmap") == "rejected: mmap"


class TestEntryFormatting:

    def test_line(self):
        line = format_entry_line(sample_entry(), ASCII)
        assert line.startswith(f"[{short_code('0c4e8c5e-2f5a')}] Stream the input")
        assert "claude" in line
        assert line.endswith("-> src/parse.py")

    def test_line_without_targets(self):
        assert "->" not in format_entry_line(sample_entry(), ASCII, show_targets=False)

    def test_detail_lists_every_field(self):
        entry = sample_entry(
            line_range=LineRange(10, 45), commit="abcdef1234567890",
            rejected_alternatives=[RejectedAlternative("mmap", "breaks on pipes")],
            tags=["perf"],
        )
        text = format_entry_detail(entry, ASCII)
        assert "Lines:     10-45" in text
        assert "Commit:    abcdef12" in text
        assert "#perf" in text
        assert "Reading line by line keeps RSS flat." in text
        assert "x mmap: breaks on pipes" in text

    def test_detail_strips_control_characters(self):
        entry = sample_entry(reasoning="safe\x1b[31m red")
        assert "\x1b" not in format_entry_detail(entry, ASCII)

    def test_json_adds_code(self):
        data = entry_to_json(sample_entry())
        assert data["code"] == short_code("0c4e8c5e-2f5a")
        assert data["targets"] == ["src/parse.py"]


class TestSymbols:

    def test_explicit_preference(self):
        assert get_symbols("ascii") is ASCII
        assert get_symbols("unicode") is UNICODE

    def test_sanitize_keeps_newlines(self):
        assert sanitize_control_chars("a\nb\tc\x07") == "a\nb\tc"


class TestTemplate:

    def test_render_structure(self):
        template = OutputTemplate(symbols=ASCII, width=40)
        template.header("RATIONALE", "src/parse.py")
        template.paths("FILES", ["a.py", "b.py"])
        template.footer("2 files")
        text = template.render()

        lines = text.splitlines()
        assert lines[0] == "=" * 40
        assert lines[1] == "RATIONALE - src/parse.py"
        assert "* a.py" in lines
        assert "Summary: 2 files" in lines
        assert lines[-1] == "=" * 40

    def test_render_includes_hint(self):
        text = OutputTemplate(symbols=ASCII, width=40).render(
            command="explain", context={"not_found": True})
        assert "rationale record" in text

    def test_empty_blocks_are_omitted(self):
        text = (OutputTemplate(symbols=ASCII, width=40)
                .paths("FILES", [])
                .entry_lines("ENTRIES", [])
                .skipped_records([])
                .ranking("CONTRIBUTORS", [], "Agent")
                .render())
        for title in ("FILES", "ENTRIES", "SKIPPED", "CONTRIBUTORS"):
            assert title not in text

    def test_entry_blocks(self):
        first = sample_entry(intent="Stream the input", entry_id="e-1")
        second = sample_entry(intent="Buffer the output", entry_id="e-2")
        text = OutputTemplate(symbols=ASCII, width=40).entry_blocks("ENTRIES", [first, second]).render()
        assert "Stream the input" in text
        assert "Buffer the output" in text
        assert text.index("Stream the input") < text.index("Buffer the output")

    def test_skipped_records(self):
        skipped = [SkippedRecord("0c4e8c5e", "invalid JSON")]
        text = OutputTemplate(symbols=ASCII, width=40).skipped_records(skipped).render()
        assert "SKIPPED (1)" in text
        assert "[!] 0c4e8c5e: invalid JSON" in text

    def test_ranking_aligns_counts(self):
        text = OutputTemplate(symbols=ASCII).ranking(
            "MOST DOCUMENTED", [("src/parse.py", 12), ("a.py", 2)], "File").render()
        assert "Entries  File\n12       src/parse.py\n2        a.py" in text

    def test_findings(self):
        text = OutputTemplate(symbols=ASCII).findings(
            "ISSUES", [("Index unreadable", "Run repair")], ASCII.check_fail).render()
        assert "ISSUES (1)" in text
        assert "[x] Index unreadable\n    Fix: Run repair" in text


class TestSuccession:

    def test_condition_selects_alternative(self):
        assert "--repair" in get_hint("check", {"repairable": True})

    def test_conditional_default_hidden(self):
        assert get_hint("check", {}) is None

    def test_unknown_command(self):
        assert get_hint("nope") is None
