"""
IDCodec -- Deterministic hash-based aliases for entry ids

Entry ids are 36-character uuids. Nobody wants to type those, so every id
also has a short AA-BB alias computed from its hash. The alias is never
stored: the same id always encodes to the same code, and decoding scans
the ids that exist.

Usage:
    codec = IDCodec()
    code = codec.encode("0c4e8c5e-2f5a-4f55-9d55-5c3a0f0d9a11")   # e.g. "KM-XP"
    matches = codec.resolve("KM-XP", store.ids())

Code space: 26^4 = 456,976. Collisions are possible in large stores, so
resolve() returns every match and callers report ambiguity.
"""

import re
from typing import Iterable, List

import xxhash


# Pattern for valid codes: AA-BB (two letters, dash, two letters)
CODE_PATTERN = re.compile(r'^[A-Z]{2}-[A-Z]{2}$')

# Shortest id prefix accepted as a reference
MIN_PREFIX = 4


class IDCodec:
    """Deterministic AA-BB aliases. Stateless."""

    def encode(self, full_id: str) -> str:
        """5-char AA-BB code for an id. Same id, same code."""
        if not full_id:
            return full_id

        n = xxhash.xxh32(full_id.encode()).intdigest() % (26 ** 4)

        c0 = n % 26
        c1 = (n // 26) % 26
        c2 = (n // 676) % 26
        c3 = (n // 17576) % 26
        return f"{chr(65 + c3)}{chr(65 + c2)}-{chr(65 + c1)}{chr(65 + c0)}"

    def is_short_code(self, value: str) -> bool:
        if not value:
            return False
        return bool(CODE_PATTERN.match(value.upper()))

    def resolve(self, reference: str, candidate_ids: Iterable[str]) -> List[str]:
        """
        All candidate ids a reference could mean.

        A reference is an exact id, an AA-BB code, or an id prefix of at
        least MIN_PREFIX characters. An exact id always wins outright.
        """
        reference = reference.strip()
        candidates = list(candidate_ids)
        if reference in candidates:
            return [reference]

        if self.is_short_code(reference):
            code = reference.upper()
            return sorted(c for c in candidates if self.encode(c) == code)

        if len(reference) >= MIN_PREFIX:
            lowered = reference.lower()
            return sorted(c for c in candidates if c.lower().startswith(lowered))

        return []

    def format_with_code(self, full_id: str, display_text: str) -> str:
        """
        "[AA-BB] display_text"

        Example:
            format_with_code(entry.id, "Use SQLite") -> "[KM-XP] Use SQLite"
        """
        return f"[{self.encode(full_id)}] {display_text}"


_codec = IDCodec()


def short_code(full_id: str) -> str:
    """Module-level shortcut for IDCodec().encode."""
    return _codec.encode(full_id)
