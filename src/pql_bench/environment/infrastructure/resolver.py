"""EnvironmentResolver — turns EnvironmentTargets into ResolvedConfigs.

Credentials and URLs come from process environment variables. Validation is
eager and exhaustive: every requested environment is checked before any of
them is resolved, and all problems are reported in one error.
"""

import os
from collections.abc import Mapping
from urllib.parse import urlsplit, urlunsplit

from pql_bench.environment.domain.config import ResolvedConfig
from pql_bench.environment.domain.observer import EnvironmentObserver
from pql_bench.environment.domain.target import BaseEnvironment, EnvironmentTarget
from pql_bench.environment.infrastructure.errors import (
    InvalidBackendUrlError,
    MissingConfigurationError,
)
from pql_bench.environment.infrastructure.system_prompt import SystemPromptLoader

# (QA endpoint URL, QA API key, backend URL) variable names per base environment.
_ENVIRONMENT_VARS: dict[BaseEnvironment, tuple[str, str, str]] = {
    BaseEnvironment.DEV: (
        "PROMPTQL_DATA_PLANE_URL_SECONDARY",
        "PROMPTQL_API_KEY_DEV",
        "DDN_URL_DEV",
    ),
    BaseEnvironment.STAGING: (
        "PROMPTQL_DATA_PLANE_URL_MAIN",
        "PROMPTQL_API_KEY_STAGING",
        "DDN_URL_STAGING",
    ),
    BaseEnvironment.PRODUCTION: (
        "PROMPTQL_DATA_PLANE_URL_MAIN",
        "PROMPTQL_API_KEY_PRODUCTION",
        "DDN_URL_PRODUCTION",
    ),
}

_BACKEND_AUTH_TOKEN_VAR = "DDN_AUTH_TOKEN"
_TRACE_AUTH_TOKEN_VAR = "HASURA_PAT"
_COMMON_VARS = (_BACKEND_AUTH_TOKEN_VAR, _TRACE_AUTH_TOKEN_VAR)

_JUDGE_BASE_URL_VAR = "PATRONUS_BASE_URL"
_JUDGE_API_KEY_VAR = "PATRONUS_API_KEY"
_JUDGE_PROJECT_ID_VAR = "PATRONUS_PROJECT_ID"
_TIMEZONE_VAR = "TZ"


def required_vars(base_name: BaseEnvironment) -> list[str]:
    """Return the variable names that must be set to benchmark base_name."""
    return [*_ENVIRONMENT_VARS[base_name], *_COMMON_VARS]


def rewrite_backend_url(url: str, version: str) -> str:
    """Insert ``-{version}`` after the first DNS label of url's hostname.

    ``https://app-production.example.com/v1/sql`` with version ``abc123``
    becomes ``https://app-production-abc123.example.com/v1/sql``.

    The host is edited as written in the URL, so its case is kept.

    Raises:
        InvalidBackendUrlError: if url has no scheme or host, a bad port, or an
            IPv6 literal host, which has no DNS label to suffix.
    """
    try:
        parts = urlsplit(url)
        hostname = parts.hostname
        port = parts.port
    except ValueError as exc:
        raise InvalidBackendUrlError(url=url) from exc

    if not parts.scheme or not hostname:
        raise InvalidBackendUrlError(url=url)

    userinfo, at, hostport = parts.netloc.rpartition("@")
    if hostport.startswith("["):
        raise InvalidBackendUrlError(url=url)

    host = hostport.partition(":")[0]
    first_label, dot, rest = host.partition(".")
    netloc = f"{userinfo}{at}{first_label}-{version}{dot}{rest}"
    if port is not None:
        netloc = f"{netloc}:{port}"
    return urlunsplit(parts._replace(netloc=netloc))


class EnvironmentResolver:
    """Resolves and validates environment targets against the process environment."""

    def __init__(
        self,
        prompt_loader: SystemPromptLoader,
        observer: EnvironmentObserver,
        environ: Mapping[str, str] | None = None,
    ) -> None:
        self._prompt_loader = prompt_loader
        self._observer = observer
        self._environ = environ if environ is not None else os.environ

    def validate(self, targets: list[EnvironmentTarget]) -> None:
        """Check every target for required variables and its base system prompt.

        Raises:
            MissingConfigurationError: listing ALL missing items across ALL
                targets (not just the first one found).
        """
        missing: dict[str, list[str]] = {}
        for target in targets:
            items = self._missing_vars(base_name=target.base_name)
            prompt_path = self._prompt_loader.base_prompt_path(target=target)
            if not prompt_path.is_file():
                items.append(str(prompt_path))
            if items:
                missing[target.display_name] = items

        if missing:
            self._observer.environment_validation_failed(missing=missing)
            raise MissingConfigurationError(missing=missing)

    def resolve(self, target: EnvironmentTarget) -> ResolvedConfig:
        """Build the ResolvedConfig for a single target.

        Raises:
            MissingConfigurationError: if any required variable is unset.
            InvalidBackendUrlError: if target has a version and the backend
                URL cannot be rewritten.
        """
        missing = self._missing_vars(base_name=target.base_name)
        if missing:
            raise MissingConfigurationError(missing={target.display_name: missing})

        qa_url_var, qa_key_var, backend_url_var = _ENVIRONMENT_VARS[target.base_name]
        backend_url = self._environ[backend_url_var]
        if target.version:
            backend_url = rewrite_backend_url(url=backend_url, version=target.version)

        config = ResolvedConfig(
            qa_endpoint_url=self._environ[qa_url_var],
            qa_api_key=self._environ[qa_key_var],
            backend_url=backend_url,
            backend_auth_token=self._environ[_BACKEND_AUTH_TOKEN_VAR],
            trace_auth_token=self._environ[_TRACE_AUTH_TOKEN_VAR],
            timezone=self._environ.get(_TIMEZONE_VAR) or "UTC",
            judge_base_url=self._environ.get(_JUDGE_BASE_URL_VAR) or None,
            judge_api_key=self._environ.get(_JUDGE_API_KEY_VAR) or None,
            judge_project_id=self._environ.get(_JUDGE_PROJECT_ID_VAR) or None,
        )
        self._observer.environment_resolved(
            display_name=target.display_name,
            backend_url=config.backend_url,
            judge_enabled=config.judge_enabled,
        )
        return config

    def resolve_all(self, targets: list[EnvironmentTarget]) -> list[ResolvedConfig]:
        """Validate every target first, then resolve each in order."""
        self.validate(targets=targets)
        return [self.resolve(target=target) for target in targets]

    def _missing_vars(self, base_name: BaseEnvironment) -> list[str]:
        return [
            name
            for name in required_vars(base_name=base_name)
            if not self._environ.get(name)
        ]
