"""
Pytest configuration for the Raft configuration tests
Fixtures that isolate the environment and pin the random seed
"""

import os
import random

import pytest

from src.raft.builder import default_config
from src.raft.config import FIELDS


@pytest.fixture(autouse=True)
def clean_raft_env(monkeypatch):
    """Remove RAFT_* variables from the real environment for each test"""
    for spec in FIELDS:
        monkeypatch.delenv(spec.env_var, raising=False)
    monkeypatch.delenv("RAFT_LOG_LEVEL", raising=False)
    yield os.environ


@pytest.fixture
def rng():
    """Fixed-seed generator for deterministic tests"""
    return random.Random(42)


@pytest.fixture
def defaults():
    return default_config()
