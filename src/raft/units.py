"""
Unit Parsers
Turn human-readable strings (byte sizes, snapshot policies) into typed values
"""

import re
from dataclasses import dataclass
from decimal import Decimal, localcontext
from typing import Union

from src.raft.errors import ConfigParseError, UnsupportedSnapshotPolicy


U64_MAX = 2 ** 64 - 1

SNAPSHOT_POLICY_GRAMMAR = "snapshot policy should be in form of 'since_last:<num>'"

# Decimal family is powers of 1000, binary family (with "i") powers of 1024
BYTE_UNITS = {
    "": 1,
    "b": 1,
    "k": 1000, "kb": 1000,
    "m": 1000 ** 2, "mb": 1000 ** 2,
    "g": 1000 ** 3, "gb": 1000 ** 3,
    "t": 1000 ** 4, "tb": 1000 ** 4,
    "p": 1000 ** 5, "pb": 1000 ** 5,
    "e": 1000 ** 6, "eb": 1000 ** 6,
    "ki": 1024, "kib": 1024,
    "mi": 1024 ** 2, "mib": 1024 ** 2,
    "gi": 1024 ** 3, "gib": 1024 ** 3,
    "ti": 1024 ** 4, "tib": 1024 ** 4,
    "pi": 1024 ** 5, "pib": 1024 ** 5,
    "ei": 1024 ** 6, "eib": 1024 ** 6,
}

_BYTE_SIZE_RE = re.compile(r"\s*(?P<number>[0-9]+(?:\.[0-9]*)?|\.[0-9]+)\s*(?P<unit>[A-Za-z]*)\s*")
_U64_RE = re.compile(r"\+?[0-9]+")


@dataclass(frozen=True)
class SnapshotPolicy:
    """Base for snapshot policy variants"""


@dataclass(frozen=True)
class LogsSinceLast(SnapshotPolicy):
    """Snapshot once `count` new entries were committed since the last one"""
    count: int

    def __str__(self):
        return f"since_last:{self.count}"


def parse_u64(text: Union[str, int]) -> int:
    """Parse an unsigned 64-bit integer"""
    if isinstance(text, bool):
        raise ConfigParseError("expected an unsigned integer", str(text))
    if isinstance(text, int):
        value = text
    elif isinstance(text, str) and _U64_RE.fullmatch(text):
        value = int(text)
    else:
        raise ConfigParseError("expected an unsigned integer", str(text))

    if not 0 <= value <= U64_MAX:
        raise ConfigParseError("integer out of range for u64", str(text))
    return value


def parse_string(text: str) -> str:
    """String fields pass through untouched"""
    if not isinstance(text, str):
        raise ConfigParseError("expected a string", str(text))
    return text


def parse_byte_size(text: Union[str, int]) -> int:
    """
    Parse a byte quantity such as "3MiB", "5.3 KB" or "204"

    Args:
        text: numeric prefix (integer or decimal) with an optional,
              case-insensitive unit suffix

    Returns:
        Byte count, truncated toward zero
    """
    if isinstance(text, int) and not isinstance(text, bool):
        return parse_u64(text)
    if not isinstance(text, str):
        raise ConfigParseError("expected a byte size such as '3MiB'", str(text))

    match = _BYTE_SIZE_RE.fullmatch(text)
    if not match:
        raise ConfigParseError("expected a byte size such as '3MiB'", text)

    unit = match.group("unit").lower()
    if unit not in BYTE_UNITS:
        raise ConfigParseError(f"unknown byte unit '{match.group('unit')}'", text)

    # Enough digits for the product to be exact before truncating
    number = match.group("number")
    with localcontext() as ctx:
        ctx.prec = len(number) + 20
        size = int(Decimal(number) * BYTE_UNITS[unit])
    if size > U64_MAX:
        raise ConfigParseError("byte size out of range for u64", text)
    return size


def parse_snapshot_policy(text: Union[str, SnapshotPolicy]) -> SnapshotPolicy:
    """
    Parse a policy descriptor of the form 'since_last:<num>'

    An already-built LogsSinceLast has its count re-checked; any other
    SnapshotPolicy variant is rejected.
    """
    if isinstance(text, LogsSinceLast):
        return LogsSinceLast(parse_u64(text.count))
    if isinstance(text, SnapshotPolicy):
        raise UnsupportedSnapshotPolicy(text)
    if not isinstance(text, str):
        raise ConfigParseError(SNAPSHOT_POLICY_GRAMMAR, str(text))

    parts = text.split(":")
    if len(parts) != 2 or parts[0] != "since_last":
        raise ConfigParseError(SNAPSHOT_POLICY_GRAMMAR, text)

    try:
        count = parse_u64(parts[1])
    except ConfigParseError:
        raise ConfigParseError(SNAPSHOT_POLICY_GRAMMAR, text)

    return LogsSinceLast(count)
