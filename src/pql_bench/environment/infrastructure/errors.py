"""Error types raised while resolving environment configuration."""

from pathlib import Path

from pql_bench.core.errors import BenchError
from pql_bench.environment.domain.target import BaseEnvironment


class ConfigurationError(BenchError):
    """Base class for configuration problems detected before any network call."""


class InvalidEnvironmentError(ConfigurationError):
    """Raised when an environment string does not name a known base environment."""

    def __init__(self, value: str) -> None:
        self.value = value
        valid = ", ".join(env.value for env in BaseEnvironment)
        super().__init__(
            f"Failed to parse environment: {value!r}. Valid environments are: {valid}"
        )


class InvalidBackendUrlError(ConfigurationError):
    """Raised when a backend URL cannot be parsed for build-version rewriting."""

    def __init__(self, url: str) -> None:
        self.url = url
        super().__init__(f"Failed to rewrite backend URL: invalid format: {url}")


class MissingConfigurationError(ConfigurationError):
    """Raised when required variables or prompt files are missing.

    Carries every missing item for every requested environment, keyed by the
    environment display name, so that a single error reports everything.
    """

    def __init__(self, missing: dict[str, list[str]]) -> None:
        self.missing = missing
        lines = ["Missing required configuration:"]
        for display_name, items in missing.items():
            lines.append("")
            lines.append(f"{display_name}:")
            lines.extend(f"  - {item}" for item in items)
        lines.append("")
        lines.append(
            "Please ensure all required environment variables "
            "and system prompts are set."
        )
        super().__init__("\n".join(lines))


class SystemPromptLoadError(ConfigurationError):
    """Raised when no system prompt file can be read for an environment."""

    def __init__(self, path: Path) -> None:
        self.path = path
        super().__init__(f"Failed to read system prompt from {path}")
