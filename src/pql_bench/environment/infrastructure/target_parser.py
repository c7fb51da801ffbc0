"""Parse ``base`` / ``base(version)`` environment strings into EnvironmentTargets."""

import re

from pql_bench.environment.domain.target import BaseEnvironment, EnvironmentTarget
from pql_bench.environment.infrastructure.errors import InvalidEnvironmentError

_TARGET_PATTERN = re.compile(r"^([^(]+)(?:\(([^)]+)\))?$")


def parse_target(raw: str) -> EnvironmentTarget:
    """Parse a single ``base`` or ``base(version)`` string.

    Raises:
        InvalidEnvironmentError: if the string is malformed or names an
            unknown base environment.
    """
    text = raw.strip()
    match = _TARGET_PATTERN.match(text)
    if match is None:
        raise InvalidEnvironmentError(value=text)

    base, version = match.group(1), match.group(2)
    try:
        base_name = BaseEnvironment(base)
    except ValueError as exc:
        raise InvalidEnvironmentError(value=base) from exc
    return EnvironmentTarget(base_name=base_name, version=version)


def parse_targets(raw: str) -> list[EnvironmentTarget]:
    """Parse a comma-separated list such as ``production,production(3a3d68b8c8)``."""
    return [parse_target(raw=part) for part in raw.split(",")]
