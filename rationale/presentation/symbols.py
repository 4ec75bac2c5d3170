"""
Symbols -- Visual vocabulary for entries and store health

Progressive enhancement: Unicode when supported, ASCII fallback.
Configurable via display.symbols (or RATIONALE_SYMBOLS).

Also provides safe output utilities:
- safe_print(): Encoding-safe printing for recorded content
- sanitize_control_chars(): Strip terminal escapes from recorded content
"""

import os
import sys
from dataclasses import dataclass
from typing import Optional


# =============================================================================
# Safe Output Utilities
# =============================================================================
# Reasoning is free text written by agents and humans. It is sanitized
# before display and printed with an encoding fallback.

UNICODE_TO_ASCII = {
    '→': '->',
    '←': '<-',
    '…': '...',
    '–': '-',
    '—': '--',
    '“': '"',
    '”': '"',
    '‘': "'",
    '’': "'",
    '•': '*',
    '·': '.',
    '✓': '[+]',
    '✗': '[x]',
    '⚠': '[!]',
}


def sanitize_control_chars(text: str) -> str:
    """
    Remove control characters that could drive the terminal.

    Keeps newlines, tabs and carriage returns.
    """
    if not text:
        return text
    return ''.join(
        char for char in text
        if ord(char) >= 32 or ord(char) in (9, 10, 13)
    )


def safe_print(text: str, end: str = '\n', file=None) -> None:
    """
    Print with graceful encoding fallback.

    Unencodable characters are replaced with ASCII equivalents, then with
    '?' as a last resort.
    """
    if file is None:
        file = sys.stdout

    try:
        print(text, end=end, file=file)
    except UnicodeEncodeError:
        safe_text = text
        for unicode_char, ascii_equiv in UNICODE_TO_ASCII.items():
            safe_text = safe_text.replace(unicode_char, ascii_equiv)

        try:
            print(safe_text, end=end, file=file)
        except UnicodeEncodeError:
            encoding = getattr(file, 'encoding', 'utf-8') or 'utf-8'
            encoded = safe_text.encode(encoding, errors='replace')
            print(encoded.decode(encoding), end=end, file=file)


@dataclass(frozen=True)
class SymbolSet:
    """Symbols used across command output."""
    # Entry parts
    entry: str
    rejected: str
    tag: str

    # Status markers
    check_pass: str
    check_warn: str
    check_fail: str
    arrow: str

    # Structure
    bullet: str

    # Search highlight delimiters
    highlight_open: str
    highlight_close: str


UNICODE = SymbolSet(
    entry='◆',
    rejected='✗',
    tag='#',
    check_pass='✓',
    check_warn='⚠',
    check_fail='✗',
    arrow='→',
    bullet='•',
    highlight_open='\033[1m',
    highlight_close='\033[0m',
)

ASCII = SymbolSet(
    entry='*',
    rejected='x',
    tag='#',
    check_pass='[+]',
    check_warn='[!]',
    check_fail='[x]',
    arrow='->',
    bullet='*',
    highlight_open='**',
    highlight_close='**',
)


def supports_unicode() -> bool:
    """
    Check if environment likely supports Unicode output.

    Conservative: defaults to ASCII if uncertain.
    """
    stdout_encoding = getattr(sys.stdout, 'encoding', None)
    if stdout_encoding:
        encoding_lower = stdout_encoding.lower().replace('-', '').replace('_', '')
        if encoding_lower.startswith('cp') or encoding_lower in ('ascii', 'latin1', 'iso88591'):
            return False
        if 'utf' in encoding_lower:
            return True

    lang = os.environ.get('LANG', '').lower()
    lc_all = os.environ.get('LC_ALL', '').lower()
    if 'utf-8' in lang or 'utf8' in lang or 'utf-8' in lc_all or 'utf8' in lc_all:
        return True

    if os.environ.get('WT_SESSION') or os.environ.get('TERM_PROGRAM') in ('vscode', 'iTerm.app', 'Apple_Terminal'):
        return True

    return False


def get_symbols(preference: Optional[str] = None) -> SymbolSet:
    """
    Get appropriate symbol set based on preference or auto-detection.

    Args:
        preference: "unicode", "ascii", or "auto" (None = auto)
    """
    if preference == 'unicode':
        return UNICODE
    if preference == 'ascii':
        return ASCII
    return UNICODE if supports_unicode() else ASCII
