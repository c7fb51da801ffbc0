"""Observer port for the environment domain — defines events in domain language."""

from typing import Protocol


class EnvironmentObserver(Protocol):
    def environment_resolved(
        self, display_name: str, backend_url: str, judge_enabled: bool
    ) -> None: ...

    def environment_validation_failed(self, missing: dict[str, list[str]]) -> None: ...

    def system_prompt_fallback(self, display_name: str, missing_path: str) -> None: ...
