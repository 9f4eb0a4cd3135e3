"""
Raft Configuration Builder
Merges command line overrides, environment and defaults into a validated RaftConfig
"""

import argparse
import logging
import os
from typing import Any, Dict, Mapping, Optional, Sequence

from src.raft.config import FIELDS, RaftConfig, validate
from src.raft.errors import ConfigUsageError


logger = logging.getLogger(__name__)


class OverrideParser(argparse.ArgumentParser):
    """ArgumentParser that raises ConfigUsageError instead of exiting"""

    def error(self, message):
        raise ConfigUsageError(message)


def build_parser(add_help: bool = False, **kwargs) -> OverrideParser:
    """
    Parser with one long flag per config field

    Every flag defaults to None so an absent flag can fall through
    to the environment and then to the field default.
    """
    parser = OverrideParser(add_help=add_help, allow_abbrev=False, **kwargs)
    for spec in FIELDS:
        parser.add_argument(
            spec.flag,
            dest=spec.name,
            default=None,
            metavar=spec.name.upper(),
            help=f"{spec.help} (env: {spec.env_var}, default: {spec.default})"
        )
    return parser


def parse_overrides(source: Sequence[str]) -> Dict[str, str]:
    """Parse flag-style tokens into {field: raw value} for the flags given"""
    namespace = build_parser().parse_args(list(source))
    return overrides_from_namespace(namespace)


def overrides_from_namespace(namespace: argparse.Namespace) -> Dict[str, str]:
    overrides = {}
    for spec in FIELDS:
        value = getattr(namespace, spec.name, None)
        if value is not None:
            overrides[spec.name] = value
    return overrides


def resolve_fields(
    overrides: Mapping[str, str],
    env: Mapping[str, str]
) -> Dict[str, Any]:
    """
    Resolve every field: override, then environment, then default

    Raises:
        ConfigParseError: naming the field and source whose value is malformed
    """
    values = {}
    for spec in FIELDS:
        if spec.name in overrides:
            raw, source = overrides[spec.name], "flag"
        elif spec.env_var in env:
            raw, source = env[spec.env_var], "env"
        else:
            raw, source = spec.default, "default"

        values[spec.name] = spec.parse(raw, source)
        logger.debug("%s=%r (from %s)", spec.name, raw, source)
    return values


def build_from_overrides(
    overrides: Mapping[str, str],
    env: Optional[Mapping[str, str]] = None
) -> RaftConfig:
    if env is None:
        env = os.environ
    config = RaftConfig(**resolve_fields(overrides, env))
    return validate(config)


def build(
    source: Sequence[str] = (),
    env: Optional[Mapping[str, str]] = None
) -> RaftConfig:
    """
    Build and validate the node configuration

    Args:
        source: Override tokens such as ["--heartbeat-interval=20"]
        env: Environment to read RAFT_* variables from (os.environ if None)

    Returns:
        Validated RaftConfig

    Raises:
        ConfigUsageError: unknown or malformed override tokens
        ConfigParseError: a value could not be parsed
        ConfigValidationError: an invariant does not hold
    """
    return build_from_overrides(parse_overrides(source), env)


def default_config() -> RaftConfig:
    """Configuration made only of the hardcoded defaults"""
    return build((), env={})
