"""
Raft Configuration
Runtime configuration for a single Raft node

When choosing values remember the inequality from the Raft paper:
broadcastTime << electionTimeout << MTBF. Heartbeats must arrive well
inside one election window or followers will start spurious elections,
and the window must be short enough that a crashed leader is replaced
quickly.
"""

import random
from dataclasses import dataclass, fields
from typing import Any, Callable, Dict, Mapping, Optional, Tuple

from src.raft.errors import (
    ConfigParseError,
    ConfigUsageError,
    ElectionTimeoutLessThanHeartBeatInterval,
    InvalidElectionTimeoutMinMax,
    MaxPayloadEntriesTooSmall,
    UnsupportedSnapshotPolicy,
)
from src.raft.units import (
    LogsSinceLast,
    SnapshotPolicy,
    parse_byte_size,
    parse_snapshot_policy,
    parse_string,
    parse_u64,
)


ENV_PREFIX = "RAFT_"


@dataclass(frozen=True)
class FieldSpec:
    """How one config field is bound to its sources"""
    name: str
    default: str
    parser: Callable[[Any], Any]
    help: str = ""

    @property
    def flag(self) -> str:
        return "--" + self.name.replace("_", "-")

    @property
    def env_var(self) -> str:
        return ENV_PREFIX + self.name.upper()

    def parse(self, raw: Any, source: Optional[str] = None) -> Any:
        """Convert a raw value, naming this field on failure"""
        try:
            return self.parser(raw)
        except ConfigParseError as e:
            raise e.for_field(self.name, source)


# Defaults are kept textual and go through the same parser as any override
FIELDS: Tuple[FieldSpec, ...] = (
    FieldSpec(
        "cluster_name", "foo", parse_string,
        "The application specific name of this Raft cluster"
    ),
    FieldSpec(
        "election_timeout_min", "150", parse_u64,
        "The minimum election timeout in milliseconds"
    ),
    FieldSpec(
        "election_timeout_max", "300", parse_u64,
        "The maximum election timeout in milliseconds"
    ),
    FieldSpec(
        "heartbeat_interval", "50", parse_u64,
        "The interval in milliseconds at which leaders send heartbeats to followers"
    ),
    FieldSpec(
        "install_snapshot_timeout", "200", parse_u64,
        "The timeout for sending a snapshot segment, in milliseconds"
    ),
    FieldSpec(
        "max_payload_entries", "300", parse_u64,
        "The maximum number of entries per payload transmitted during replication"
    ),
    FieldSpec(
        "replication_lag_threshold", "1000", parse_u64,
        "How far behind a follower may fall before it is considered lagging"
    ),
    FieldSpec(
        "snapshot_policy", "since_last:5000", parse_snapshot_policy,
        "When to take a new snapshot, in the form 'since_last:<num>'"
    ),
    FieldSpec(
        "snapshot_max_chunk_size", "3MiB", parse_byte_size,
        "The maximum snapshot chunk size allowed when transmitting snapshots"
    ),
    FieldSpec(
        "max_applied_log_to_keep", "1000", parse_u64,
        "The maximum number of applied logs to keep before purging"
    ),
)


@dataclass(frozen=True)
class RaftConfig:
    """
    Validated runtime configuration of a Raft node

    Built once at start-up (see src.raft.builder.build) and shared
    read-only by the election timer, the replication manager and the
    snapshot manager. All durations are in milliseconds.
    """

    cluster_name: str
    election_timeout_min: int
    election_timeout_max: int
    heartbeat_interval: int
    install_snapshot_timeout: int
    max_payload_entries: int
    replication_lag_threshold: int
    snapshot_policy: SnapshotPolicy
    snapshot_max_chunk_size: int
    max_applied_log_to_keep: int

    @property
    def heartbeat_interval_seconds(self) -> float:
        return self.heartbeat_interval / 1000.0

    def election_timeout_bounds(self) -> Tuple[int, int]:
        return self.election_timeout_min, self.election_timeout_max

    def validate(self) -> "RaftConfig":
        return validate(self)

    def new_rand_election_timeout(self, rng: Optional[random.Random] = None) -> int:
        return next_election_timeout(self, rng)

    def to_dict(self) -> Dict[str, Any]:
        """Plain JSON-compatible view, snapshot policy in descriptor form"""
        data = {}
        for field in fields(self):
            value = getattr(self, field.name)
            if field.name == "snapshot_policy":
                value = format_snapshot_policy(value)
            data[field.name] = value
        return data

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "RaftConfig":
        """
        Build a validated config from a mapping such as the output of to_dict

        Missing keys take their defaults. Values go through the same
        parsers as command line overrides, so "3MiB" and 3145728 are
        both accepted for snapshot_max_chunk_size.
        """
        known = {spec.name for spec in FIELDS}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ConfigUsageError(f"unknown config keys: {', '.join(unknown)}")

        values = {}
        for spec in FIELDS:
            if spec.name in data:
                values[spec.name] = spec.parse(data[spec.name], "mapping")
            else:
                values[spec.name] = spec.parse(spec.default, "default")

        return validate(cls(**values))


def validate(config: RaftConfig) -> RaftConfig:
    """
    Check the cross-field invariants, in a fixed order

    Only the first violation is raised so that error reporting is
    deterministic when several invariants fail together.

    Returns:
        The same config object, unchanged
    """
    if config.election_timeout_min >= config.election_timeout_max:
        raise InvalidElectionTimeoutMinMax()

    if config.election_timeout_min <= config.heartbeat_interval:
        raise ElectionTimeoutLessThanHeartBeatInterval()

    if config.max_payload_entries == 0:
        raise MaxPayloadEntriesTooSmall()

    return config


def next_election_timeout(config: RaftConfig, rng: Optional[random.Random] = None) -> int:
    """
    Sample an election timeout in [election_timeout_min, election_timeout_max)

    Args:
        config: Validated configuration
        rng: Random source; the module level generator when omitted.
             Threads should pass their own random.Random.
    """
    source = rng if rng is not None else random
    return source.randrange(config.election_timeout_min, config.election_timeout_max)


def format_snapshot_policy(policy: SnapshotPolicy) -> str:
    if isinstance(policy, LogsSinceLast):
        return str(policy)
    raise UnsupportedSnapshotPolicy(policy)


def snapshot_due(policy: SnapshotPolicy, logs_since_last: int) -> bool:
    """Whether enough entries were committed to take a new snapshot"""
    if isinstance(policy, LogsSinceLast):
        return logs_since_last >= policy.count
    raise UnsupportedSnapshotPolicy(policy)
