"""Structlog implementation of the EnvironmentObserver port."""

import structlog


class StructlogEnvironmentObserver:
    """Delegates environment domain events to structlog.

    Satisfies the EnvironmentObserver protocol structurally.
    """

    def __init__(self) -> None:
        self._log = structlog.get_logger()

    def environment_resolved(
        self, display_name: str, backend_url: str, judge_enabled: bool
    ) -> None:
        self._log.info(
            "environment.resolved",
            environment=display_name,
            backend_url=backend_url,
            judge_enabled=judge_enabled,
        )

    def environment_validation_failed(self, missing: dict[str, list[str]]) -> None:
        self._log.error("environment.validation_failed", missing=missing)

    def system_prompt_fallback(self, display_name: str, missing_path: str) -> None:
        self._log.info(
            "environment.system_prompt_fallback",
            environment=display_name,
            missing_path=missing_path,
        )
