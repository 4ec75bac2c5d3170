"""
Formatters -- Data-to-string transformations for consistent output

Centralized formatting for all CLI output:
- Text truncation with ellipsis
- Relative timestamps
- Search snippets and highlighting
- Entry one-liners and detail blocks
- JSON output (orjson, same options as the store)

Dependency direction: commands -> presentation -> core
"""

import re
from datetime import datetime, timezone
from typing import Any, List, Optional

import orjson

from ..core.entry import Entry, format_timestamp as iso_timestamp
from .codec import short_code
from .symbols import SymbolSet, sanitize_control_chars


# =============================================================================
# Display Truncation Constants
# =============================================================================

SUMMARY_LENGTH = 120      # One-line summaries
SNIPPET_LENGTH = 100      # Search context window
COMMIT_DISPLAY_LENGTH = 8


def truncate(text: str, length: int = SUMMARY_LENGTH, full: bool = False) -> str:
    """
    Truncate text with ellipsis, respecting full mode.

    Examples:
        truncate("Short", 50)                 -> "Short"
        truncate("Any length", 5, full=True)  -> "Any length"
    """
    if not text:
        return ""
    if full or len(text) <= length:
        return text
    if length <= 3:
        return text[:length]
    return text[:length - 3] + "..."


def format_timestamp(value: Optional[datetime], now: Optional[datetime] = None) -> str:
    """
    Relative time for recent entries, calendar date otherwise.

    Returns:
        - < 1 hour:   "23m ago"
        - < 24 hours: "5h ago"
        - < 7 days:   "3d ago"
        - >= 7 days:  "2025-01-15"
        - None:       "unknown"
    """
    if value is None:
        return "unknown"

    now = now or datetime.now(timezone.utc)
    total_seconds = (now - value).total_seconds()

    if total_seconds < 60:
        # Includes clock skew (future timestamps)
        return "just now"

    minutes = int(total_seconds // 60)
    hours = int(total_seconds // 3600)
    days = int(total_seconds // 86400)

    if days >= 7:
        return value.strftime("%Y-%m-%d")
    elif days >= 1:
        return f"{days}d ago"
    elif hours >= 1:
        return f"{hours}h ago"
    return f"{minutes}m ago"


def one_line(text: str) -> str:
    """Collapse whitespace (including newlines) to single spaces."""
    return " ".join(sanitize_control_chars(text or "").split())


# =============================================================================
# Search snippets
# =============================================================================

def make_snippet(text: str, query: str, width: int = SNIPPET_LENGTH) -> Optional[str]:
    """
    Window of roughly `width` characters around the first match of query.

    Returns None when text does not contain query (case-insensitive).
    """
    flat = one_line(text)
    if not query:
        return truncate(flat, width)
    pos = flat.lower().find(query.lower())
    if pos < 0:
        return None

    context = max(0, (width - len(query)) // 2)
    start = max(0, pos - context)
    end = min(len(flat), pos + len(query) + context)
    snippet = flat[start:end]
    if start > 0:
        snippet = "..." + snippet
    if end < len(flat):
        snippet = snippet + "..."
    return snippet


def highlight(text: str, query: str, open_mark: str, close_mark: str) -> str:
    """Wrap every case-insensitive occurrence of query in markers."""
    if not query:
        return text
    pattern = re.compile(re.escape(query), re.IGNORECASE)
    return pattern.sub(lambda m: f"{open_mark}{m.group(0)}{close_mark}", text)


def entry_snippet(entry: Entry, query: str, width: int = SNIPPET_LENGTH) -> Optional[str]:
    """Snippet from the first field that matched: reasoning, then rejected alternatives."""
    snippet = make_snippet(entry.reasoning, query, width)
    if snippet:
        return snippet
    for alt in entry.rejected_alternatives:
        if query.lower() in alt.name.lower():
            return f"rejected: {alt.name}"
    return None


# =============================================================================
# Entries
# =============================================================================

def format_entry_line(entry: Entry, symbols: SymbolSet, full: bool = False,
                      show_targets: bool = True) -> str:
    """
    One-line entry summary.

    Example:
        [KM-XP] Switch to streaming parser (3d ago, claude) -> src/parse.py
    """
    intent = truncate(one_line(entry.intent), SUMMARY_LENGTH, full)
    line = f"[{short_code(entry.id)}] {intent} ({format_timestamp(entry.timestamp)}, {entry.agent})"
    if show_targets:
        line += f" {symbols.arrow} {', '.join(entry.targets)}"
    return line


def format_entry_detail(entry: Entry, symbols: SymbolSet, full: bool = True) -> str:
    """Multi-line block with every field of an entry."""
    lines: List[str] = [
        f"{symbols.entry} [{short_code(entry.id)}] {entry.id}",
        f"  Intent:    {one_line(entry.intent)}",
        f"  Files:     {', '.join(entry.targets)}",
    ]
    if entry.line_range is not None:
        lines.append(f"  Lines:     {entry.line_range}")
    lines.append(f"  Agent:     {entry.agent}")
    lines.append(f"  Recorded:  {iso_timestamp(entry.timestamp)} ({format_timestamp(entry.timestamp)})")
    if entry.commit:
        lines.append(f"  Commit:    {entry.commit[:COMMIT_DISPLAY_LENGTH]}")
    if entry.tags:
        lines.append(f"  Tags:      {' '.join(symbols.tag + t for t in entry.tags)}")

    if entry.reasoning:
        lines.append("")
        lines.append("  Reasoning:")
        reasoning = sanitize_control_chars(entry.reasoning)
        if not full:
            reasoning = truncate(reasoning, 600)
        for text_line in reasoning.splitlines():
            lines.append(f"    {text_line}")

    if entry.rejected_alternatives:
        lines.append("")
        lines.append("  Rejected alternatives:")
        for alt in entry.rejected_alternatives:
            reason = f": {one_line(alt.reason)}" if alt.reason else ""
            lines.append(f"    {symbols.rejected} {one_line(alt.name)}{reason}")

    return "\n".join(lines)


def entry_to_json(entry: Entry) -> dict:
    """Entry record plus its display code."""
    data = entry.to_dict()
    data["code"] = short_code(entry.id)
    return data


def dump_json(data: Any) -> str:
    """Deterministic, indented JSON text for --json output."""
    return orjson.dumps(data, option=orjson.OPT_INDENT_2 | orjson.OPT_SORT_KEYS).decode()
