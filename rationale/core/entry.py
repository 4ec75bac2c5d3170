"""
Entry -- The immutable reasoning record and its on-disk schema

An entry captures why code looks the way it does: the intent, the full
reasoning trace, the alternatives that were rejected, who wrote it and
against which file contents. Entries are written once and never edited;
a correction is a new entry.

Schema validation is strict. Every field's optionality is explicit and a
record with a missing required field or a wrong shape is reported as
CorruptRecordError instead of being silently defaulted.
"""

import hashlib
import re
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from ..errors import CorruptRecordError, InvalidInputError


ID_PATTERN = re.compile(r'^[A-Za-z0-9][A-Za-z0-9_-]*$')

# Older stores wrote one target per record under these keys
LEGACY_KEYS = ("target_file", "file_hash", "agent_id", "reasoning_trace")

_FRACTION = re.compile(r'(\.\d{6})\d+')


@dataclass(frozen=True)
class RejectedAlternative:
    """An option that was considered and not taken."""
    name: str
    reason: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        d: Dict[str, Any] = {"name": self.name}
        if self.reason is not None:
            d["reason"] = self.reason
        return d

    @classmethod
    def parse(cls, text: str) -> 'RejectedAlternative':
        """Parse 'name' or 'name: reason' as typed on the command line."""
        name, sep, reason = text.partition(":")
        name = name.strip()
        if not name:
            raise InvalidInputError(f"Rejected alternative has no name: {text!r}")
        reason = reason.strip() if sep else ""
        return cls(name=name, reason=reason or None)


@dataclass(frozen=True)
class LineRange:
    """1-based inclusive line span. A hint captured at creation time."""
    start: int
    end: int

    def __post_init__(self):
        if self.start < 1 or self.end < self.start:
            raise InvalidInputError(
                f"Invalid line range {self.start}-{self.end}: need 1 <= start <= end"
            )

    @classmethod
    def parse(cls, text: str) -> 'LineRange':
        """Parse 'start-end' (e.g. '10-45') or a single line number."""
        parts = text.strip().split("-")
        try:
            if len(parts) == 1:
                line = int(parts[0])
                return cls(line, line)
            if len(parts) == 2:
                return cls(int(parts[0]), int(parts[1]))
        except ValueError:
            pass
        raise InvalidInputError(f"Invalid line range {text!r}: expected START-END")

    def __str__(self) -> str:
        return f"{self.start}-{self.end}"


@dataclass(frozen=True)
class Entry:
    """A single immutable reasoning record."""
    id: str
    targets: Tuple[str, ...]
    agent: str
    timestamp: datetime
    intent: str
    reasoning: str = ""
    content_digests: Dict[str, str] = field(default_factory=dict, hash=False)
    line_range: Optional[LineRange] = None
    commit: Optional[str] = None
    rejected_alternatives: Tuple[RejectedAlternative, ...] = ()
    tags: Tuple[str, ...] = ()

    @property
    def sort_key(self) -> Tuple[datetime, str]:
        """Recency order: timestamp first, identifier breaks ties."""
        return (self.timestamp, self.id)

    def to_dict(self) -> Dict[str, Any]:
        d: Dict[str, Any] = {
            "id": self.id,
            "targets": list(self.targets),
            "content_digests": dict(self.content_digests),
            "agent": self.agent,
            "timestamp": format_timestamp(self.timestamp),
            "intent": self.intent,
            "reasoning": self.reasoning,
            "rejected_alternatives": [alt.to_dict() for alt in self.rejected_alternatives],
            "tags": list(self.tags),
        }
        if self.line_range is not None:
            d["line_range"] = [self.line_range.start, self.line_range.end]
        if self.commit is not None:
            d["commit"] = self.commit
        return d

    @classmethod
    def from_dict(cls, data: Any, source: str = "<entry>") -> 'Entry':
        """
        Build an Entry from a decoded record, validating every field.

        Args:
            data: Decoded JSON value
            source: Location used in error messages (path or id)

        Raises:
            CorruptRecordError: the record does not match the schema
        """
        if not isinstance(data, dict):
            raise CorruptRecordError(source, "record is not an object")

        if "targets" not in data and "target_file" in data:
            data = _upgrade_legacy(data)

        reader = _FieldReader(data, source)

        entry_id = reader.string("id")
        if not ID_PATTERN.match(entry_id):
            raise CorruptRecordError(source, f"invalid identifier {entry_id!r}")

        targets = reader.string_list("targets")
        if not targets:
            raise CorruptRecordError(source, "'targets' is empty")

        digests = reader.mapping("content_digests", required=False) or {}

        line_range = None
        raw_range = reader.value("line_range", required=False)
        if raw_range is not None:
            if (not isinstance(raw_range, list) or len(raw_range) != 2
                    or not all(_is_int(v) for v in raw_range)):
                raise CorruptRecordError(source, "'line_range' must be [start, end]")
            try:
                line_range = LineRange(raw_range[0], raw_range[1])
            except InvalidInputError as e:
                raise CorruptRecordError(source, str(e)) from e

        rejected = []
        for item in reader.list("rejected_alternatives", required=False) or []:
            if not isinstance(item, dict) or not isinstance(item.get("name"), str):
                raise CorruptRecordError(source, "rejected alternative needs a string 'name'")
            reason = item.get("reason")
            if reason is not None and not isinstance(reason, str):
                raise CorruptRecordError(source, "rejected alternative 'reason' must be a string")
            rejected.append(RejectedAlternative(item["name"], reason))

        raw_ts = reader.string("timestamp")
        try:
            timestamp = parse_timestamp(raw_ts)
        except ValueError as e:
            raise CorruptRecordError(source, f"bad timestamp {raw_ts!r}") from e

        return cls(
            id=entry_id,
            targets=tuple(targets),
            agent=reader.string("agent"),
            timestamp=timestamp,
            intent=reader.string("intent"),
            reasoning=reader.string("reasoning", required=False) or "",
            content_digests=digests,
            line_range=line_range,
            commit=reader.string("commit", required=False),
            rejected_alternatives=tuple(rejected),
            tags=normalize_tags(reader.string_list("tags", required=False) or []),
        )


class _FieldReader:
    """Typed accessors over a decoded record that fail as CorruptRecordError."""

    def __init__(self, data: Dict[str, Any], source: str):
        self.data = data
        self.source = source

    def value(self, key: str, required: bool = True) -> Any:
        if key not in self.data or self.data[key] is None:
            if required:
                raise CorruptRecordError(self.source, f"missing field '{key}'")
            return None
        return self.data[key]

    def string(self, key: str, required: bool = True) -> Optional[str]:
        value = self.value(key, required)
        if value is not None and not isinstance(value, str):
            raise CorruptRecordError(self.source, f"'{key}' must be a string")
        return value

    def list(self, key: str, required: bool = True) -> Optional[List[Any]]:
        value = self.value(key, required)
        if value is not None and not isinstance(value, list):
            raise CorruptRecordError(self.source, f"'{key}' must be a list")
        return value

    def string_list(self, key: str, required: bool = True) -> Optional[List[str]]:
        value = self.list(key, required)
        if value is not None and not all(isinstance(v, str) for v in value):
            raise CorruptRecordError(self.source, f"'{key}' must contain only strings")
        return value

    def mapping(self, key: str, required: bool = True) -> Optional[Dict[str, str]]:
        value = self.value(key, required)
        if value is None:
            return None
        if not isinstance(value, dict) or not all(
            isinstance(k, str) and isinstance(v, str) for k, v in value.items()
        ):
            raise CorruptRecordError(self.source, f"'{key}' must map strings to strings")
        return dict(value)


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _upgrade_legacy(data: Dict[str, Any]) -> Dict[str, Any]:
    """Map a single-target record to the current field names."""
    upgraded = dict(data)
    target = data.get("target_file")
    upgraded["targets"] = [target] if isinstance(target, str) else target
    if isinstance(data.get("file_hash"), str) and isinstance(target, str):
        upgraded["content_digests"] = {target: data["file_hash"]}
    upgraded["agent"] = data.get("agent_id")
    upgraded["reasoning"] = data.get("reasoning_trace", "")
    if "commit_hash" in data:
        upgraded["commit"] = data["commit_hash"]
    for key in LEGACY_KEYS + ("commit_hash",):
        upgraded.pop(key, None)
    return upgraded


# =============================================================================
# Construction helpers
# =============================================================================

def new_entry_id() -> str:
    """Generate a fresh, globally unique identifier."""
    return str(uuid.uuid4())


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def parse_timestamp(text: str) -> datetime:
    """
    Parse an ISO 8601 timestamp and normalize it to UTC.

    Accepts a trailing 'Z' and sub-microsecond fractions. Naive values are
    taken as UTC.

    Raises:
        ValueError: not a timestamp
    """
    text = text.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    text = _FRACTION.sub(r'\1', text)
    value = datetime.fromisoformat(text)
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def format_timestamp(value: datetime) -> str:
    return value.astimezone(timezone.utc).isoformat()


def normalize_path(path: str) -> str:
    """Repository-relative form: forward slashes, no leading './'."""
    path = str(path).replace("\\", "/")
    while path.startswith("./"):
        path = path[2:]
    return path


def normalize_tags(tags: Iterable[str]) -> Tuple[str, ...]:
    """Deduplicate (case-sensitive) and sort."""
    return tuple(sorted({t.strip() for t in tags if t and t.strip()}))


def hash_file(path: Path) -> str:
    """SHA-256 hex digest of a file's contents."""
    digest = hashlib.sha256()
    with open(path, 'rb') as f:
        for chunk in iter(lambda: f.read(65536), b''):
            digest.update(chunk)
    return digest.hexdigest()


def make_entry(
    targets: Sequence[str],
    agent: str,
    intent: str,
    reasoning: str = "",
    content_digests: Optional[Dict[str, str]] = None,
    line_range: Optional[LineRange] = None,
    commit: Optional[str] = None,
    rejected_alternatives: Sequence[RejectedAlternative] = (),
    tags: Iterable[str] = (),
    timestamp: Optional[datetime] = None,
    entry_id: Optional[str] = None,
) -> Entry:
    """
    Create a new entry, validating caller input.

    Targets are normalized and deduplicated (first occurrence wins).
    A fresh identifier and the current UTC time are used unless given.

    Raises:
        InvalidInputError: no targets, empty intent or agent, bad identifier
    """
    unique_targets: List[str] = []
    for target in targets:
        normalized = normalize_path(target)
        if normalized and normalized not in unique_targets:
            unique_targets.append(normalized)
    if not unique_targets:
        raise InvalidInputError("An entry needs at least one target file")

    if not intent or not intent.strip():
        raise InvalidInputError("Intent is required")
    if not agent or not agent.strip():
        raise InvalidInputError("Agent identifier is required")

    entry_id = entry_id or new_entry_id()
    if not ID_PATTERN.match(entry_id):
        raise InvalidInputError(f"Invalid entry identifier {entry_id!r}")

    if timestamp is None:
        timestamp = utc_now()
    elif timestamp.tzinfo is None:
        timestamp = timestamp.replace(tzinfo=timezone.utc)
    else:
        timestamp = timestamp.astimezone(timezone.utc)

    digests = {
        normalize_path(path): digest
        for path, digest in (content_digests or {}).items()
    }

    return Entry(
        id=entry_id,
        targets=tuple(unique_targets),
        agent=agent.strip(),
        timestamp=timestamp,
        intent=intent.strip(),
        reasoning=reasoning or "",
        content_digests=digests,
        line_range=line_range,
        commit=commit,
        rejected_alternatives=tuple(rejected_alternatives),
        tags=normalize_tags(tags),
    )


def newest_first(entries: Iterable[Entry]) -> List[Entry]:
    """Order by timestamp descending; the larger identifier wins ties."""
    return sorted(entries, key=lambda e: e.sort_key, reverse=True)
