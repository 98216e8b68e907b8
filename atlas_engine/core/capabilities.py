"""
Recognized tool capabilities.

A tool's capability set is a frozenset of Capability members. Behavior is
gated by membership checks on that set.
"""

from enum import Enum
from typing import FrozenSet, Iterable, Tuple


class Capability(str, Enum):
    TEXT_INPUT = "text-input"
    FILE_UPLOAD = "file-upload"
    PRESETS = "presets"
    STRUCTURED_OUTPUT = "structured-output"
    CLARIFY_FIRST = "clarify-first"
    SAVED_HISTORY = "saved-history"


BASELINE_CAPABILITIES: FrozenSet[Capability] = frozenset({Capability.TEXT_INPUT})

_BY_VALUE = {c.value: c for c in Capability}


def parse_capabilities(raw: Iterable) -> FrozenSet[Capability]:
    """Intersect raw entries with the enumeration; unknown entries are dropped."""
    found = set()
    for entry in raw or []:
        if isinstance(entry, Capability):
            found.add(entry)
        elif isinstance(entry, str) and entry.strip() in _BY_VALUE:
            found.add(_BY_VALUE[entry.strip()])
    if not found:
        return BASELINE_CAPABILITIES
    return frozenset(found)


def ordered(capabilities: Iterable[Capability]) -> Tuple[Capability, ...]:
    """Return capabilities in enumeration order (canonical serialization order)."""
    present = set(capabilities)
    return tuple(c for c in Capability if c in present)
