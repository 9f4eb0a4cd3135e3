"""
Raft Configuration Errors
Error taxonomy for building and validating the node configuration
"""

from typing import Optional


class ConfigError(Exception):
    """Base class for every configuration failure"""


class ConfigParseError(ConfigError):
    """
    A raw value could not be converted to its field type

    Raised for malformed byte sizes, snapshot policies and integers.
    """

    def __init__(
        self,
        reason: str,
        value: Optional[str] = None,
        field: Optional[str] = None,
        source: Optional[str] = None
    ):
        self.reason = reason
        self.value = value
        self.field = field
        self.source = source
        super().__init__(self._format())

    def _format(self) -> str:
        if self.field is None:
            return f"{self.reason} (got {self.value!r})"
        origin = f" from {self.source}" if self.source else ""
        return f"invalid value {self.value!r} for '{self.field}'{origin}: {self.reason}"

    def for_field(self, field: str, source: str) -> "ConfigParseError":
        """Return a copy of this error bound to a config field"""
        return ConfigParseError(self.reason, self.value, field=field, source=source)


class ConfigUsageError(ConfigError):
    """Unrecognized or malformed override token"""


class ConfigValidationError(ConfigError):
    """
    A cross-field invariant does not hold

    The subclass alone identifies the invariant, so two errors of the
    same kind compare equal.
    """

    message = "invalid configuration"

    def __init__(self):
        super().__init__(self.message)

    def __eq__(self, other):
        return type(self) is type(other)

    def __hash__(self):
        return hash(type(self))


class InvalidElectionTimeoutMinMax(ConfigValidationError):
    message = "election_timeout_min must be less than election_timeout_max"


class ElectionTimeoutLessThanHeartBeatInterval(ConfigValidationError):
    message = "election_timeout_min must be greater than heartbeat_interval"


class MaxPayloadEntriesTooSmall(ConfigValidationError):
    message = "max_payload_entries must be greater than 0"


class UnsupportedSnapshotPolicy(ConfigError):
    """A consumer received a snapshot policy variant it does not know"""

    def __init__(self, policy):
        self.policy = policy
        super().__init__(f"unsupported snapshot policy: {policy!r}")
