"""
Tests for RaftConfig
Validation order, election timeout randomization and serialization
"""

import random
from dataclasses import FrozenInstanceError, replace

import pytest

from src.raft.config import (
    FIELDS,
    RaftConfig,
    format_snapshot_policy,
    next_election_timeout,
    snapshot_due,
    validate,
)
from src.raft.errors import (
    ConfigParseError,
    ConfigUsageError,
    ConfigValidationError,
    ElectionTimeoutLessThanHeartBeatInterval,
    InvalidElectionTimeoutMinMax,
    MaxPayloadEntriesTooSmall,
    UnsupportedSnapshotPolicy,
)
from src.raft.units import LogsSinceLast, SnapshotPolicy


class TestValidate:
    """Test suite for the invariant checks"""

    def test_defaults_are_valid(self, defaults):
        assert validate(defaults) is defaults

    def test_min_greater_than_max(self, defaults):
        """Test: min > max → InvalidElectionTimeoutMinMax"""
        config = replace(defaults, election_timeout_min=1000, election_timeout_max=700)

        with pytest.raises(InvalidElectionTimeoutMinMax):
            validate(config)

    def test_min_equal_to_max(self, defaults):
        """Test: the jitter window cannot be empty"""
        config = replace(defaults, election_timeout_min=300, election_timeout_max=300)

        with pytest.raises(InvalidElectionTimeoutMinMax):
            validate(config)

    @pytest.mark.parametrize("heartbeat", [150, 200])
    def test_min_not_above_heartbeat(self, defaults, heartbeat):
        config = replace(defaults, heartbeat_interval=heartbeat)

        with pytest.raises(ElectionTimeoutLessThanHeartBeatInterval):
            validate(config)

    def test_max_payload_entries_zero(self, defaults):
        with pytest.raises(MaxPayloadEntriesTooSmall):
            validate(replace(defaults, max_payload_entries=0))

    def test_max_payload_entries_one_passes(self, defaults):
        config = replace(defaults, max_payload_entries=1)
        assert validate(config) is config

    def test_min_max_reported_before_heartbeat(self, defaults):
        """Test: with several violations only the first is reported"""
        config = replace(
            defaults,
            election_timeout_min=100,
            election_timeout_max=50,
            heartbeat_interval=200,
            max_payload_entries=0
        )

        with pytest.raises(InvalidElectionTimeoutMinMax):
            validate(config)

    def test_heartbeat_reported_before_payload(self, defaults):
        config = replace(defaults, heartbeat_interval=500, max_payload_entries=0)

        with pytest.raises(ElectionTimeoutLessThanHeartBeatInterval):
            validate(config)

    def test_method_form(self, defaults):
        with pytest.raises(MaxPayloadEntriesTooSmall):
            replace(defaults, max_payload_entries=0).validate()

    def test_errors_of_same_kind_are_equal(self):
        assert InvalidElectionTimeoutMinMax() == InvalidElectionTimeoutMinMax()
        assert InvalidElectionTimeoutMinMax() != MaxPayloadEntriesTooSmall()
        assert isinstance(MaxPayloadEntriesTooSmall(), ConfigValidationError)


class TestRaftConfig:
    """Test suite for the value object"""

    def test_is_immutable(self, defaults):
        with pytest.raises(FrozenInstanceError):
            defaults.heartbeat_interval = 10

    def test_field_table_matches_dataclass(self):
        assert [spec.name for spec in FIELDS] == list(RaftConfig.__dataclass_fields__)

    def test_flag_and_env_names(self):
        spec = {s.name: s for s in FIELDS}["election_timeout_min"]

        assert spec.flag == "--election-timeout-min"
        assert spec.env_var == "RAFT_ELECTION_TIMEOUT_MIN"

    def test_field_parse_names_field(self):
        spec = {s.name: s for s in FIELDS}["snapshot_max_chunk_size"]

        with pytest.raises(ConfigParseError) as exc_info:
            spec.parse("lots", "env")

        assert exc_info.value.field == "snapshot_max_chunk_size"
        assert exc_info.value.source == "env"
        assert "snapshot_max_chunk_size" in str(exc_info.value)

    def test_heartbeat_interval_seconds(self, defaults):
        assert defaults.heartbeat_interval_seconds == 0.05

    def test_election_timeout_bounds(self, defaults):
        assert defaults.election_timeout_bounds() == (150, 300)


class TestElectionTimeout:
    """Test suite for next_election_timeout"""

    def test_samples_stay_in_half_open_range(self, defaults, rng):
        """Test: 10,000 samples all satisfy 10 <= v < 20"""
        config = replace(defaults, election_timeout_min=10, election_timeout_max=20, heartbeat_interval=5)

        samples = [next_election_timeout(config, rng) for _ in range(10_000)]

        assert all(10 <= v < 20 for v in samples)
        assert min(samples) == 10
        assert 20 not in samples

    def test_seeded_source_is_reproducible(self, defaults):
        first = [next_election_timeout(defaults, random.Random(7)) for _ in range(5)]
        second = [next_election_timeout(defaults, random.Random(7)) for _ in range(5)]

        assert first == second

    def test_calls_are_independent(self, defaults, rng):
        """Test: consecutive draws differ (with very high probability)"""
        samples = {defaults.new_rand_election_timeout(rng) for _ in range(50)}

        assert len(samples) > 1

    def test_default_source(self, defaults):
        value = next_election_timeout(defaults)

        assert 150 <= value < 300

    def test_single_value_window(self, defaults):
        config = replace(defaults, election_timeout_min=151, election_timeout_max=152)

        assert next_election_timeout(config) == 151


class TestSerialization:
    """Test suite for to_dict / from_dict"""

    def test_to_dict(self, defaults):
        data = defaults.to_dict()

        assert data["cluster_name"] == "foo"
        assert data["snapshot_policy"] == "since_last:5000"
        assert data["snapshot_max_chunk_size"] == 3 * 1024 * 1024

    def test_from_dict_restores_config(self, defaults):
        assert RaftConfig.from_dict(defaults.to_dict()) == defaults

    def test_from_dict_missing_keys_take_defaults(self, defaults):
        config = RaftConfig.from_dict({"cluster_name": "bar"})

        assert config == replace(defaults, cluster_name="bar")

    def test_from_dict_accepts_units(self):
        config = RaftConfig.from_dict({"snapshot_max_chunk_size": "1KiB"})

        assert config.snapshot_max_chunk_size == 1024

    def test_from_dict_validates(self):
        with pytest.raises(InvalidElectionTimeoutMinMax):
            RaftConfig.from_dict({"election_timeout_min": 400})

    def test_from_dict_unknown_key(self):
        with pytest.raises(ConfigUsageError):
            RaftConfig.from_dict({"election_timeout": 10})

    def test_from_dict_bad_value(self):
        with pytest.raises(ConfigParseError) as exc_info:
            RaftConfig.from_dict({"max_payload_entries": "many"})

        assert exc_info.value.field == "max_payload_entries"

    def test_from_dict_rejects_unknown_policy_variant(self):
        with pytest.raises(UnsupportedSnapshotPolicy):
            RaftConfig.from_dict({"snapshot_policy": SnapshotPolicy()})

    def test_from_dict_rejects_negative_policy_count(self):
        with pytest.raises(ConfigParseError) as exc_info:
            RaftConfig.from_dict({"snapshot_policy": LogsSinceLast(-1)})

        assert exc_info.value.field == "snapshot_policy"

    def test_from_dict_policy_object_round_trips(self):
        config = RaftConfig.from_dict({"snapshot_policy": LogsSinceLast(10)})

        assert config.to_dict()["snapshot_policy"] == "since_last:10"


class UnknownPolicy(SnapshotPolicy):
    pass


class TestSnapshotPolicyConsumers:
    """Test suite for snapshot_due and format_snapshot_policy"""

    def test_due_after_count(self):
        policy = LogsSinceLast(5000)

        assert snapshot_due(policy, 4999) is False
        assert snapshot_due(policy, 5000) is True

    def test_unknown_policy_is_an_error(self):
        with pytest.raises(UnsupportedSnapshotPolicy):
            snapshot_due(UnknownPolicy(), 10)

        with pytest.raises(UnsupportedSnapshotPolicy):
            format_snapshot_policy(UnknownPolicy())
