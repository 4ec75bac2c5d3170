"""
Presentation -- Display layer

- Symbols: Visual vocabulary (unicode/ascii), safe printing
- Formatters: Truncation, timestamps, snippets, entry rendering, JSON
- Codec: AA-BB aliases for entry ids
- Succession: Next-step hints
- Template: Structured output with header/section/footer
"""

from .symbols import SymbolSet, get_symbols, safe_print, sanitize_control_chars
from .formatters import truncate, format_timestamp, dump_json
from .codec import IDCodec
from .succession import get_hint, RULES
from .template import OutputTemplate

__all__ = [
    # Symbols
    "SymbolSet", "get_symbols", "safe_print", "sanitize_control_chars",
    # Formatters
    "truncate", "format_timestamp", "dump_json",
    # Codec
    "IDCodec",
    # Succession
    "get_hint", "RULES",
    # Template
    "OutputTemplate",
]
