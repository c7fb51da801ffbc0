"""SystemPromptLoader — reads per-environment system prompts with build-version fallback."""

from pathlib import Path

from pql_bench.environment.domain.observer import EnvironmentObserver
from pql_bench.environment.domain.target import EnvironmentTarget
from pql_bench.environment.infrastructure.errors import SystemPromptLoadError


class SystemPromptLoader:
    """Loads ``{prompts_dir}/{name}.txt`` files.

    A versioned target first looks for ``{display_name}.txt`` (for example
    ``production(3a3d68b8c8).txt``) and falls back to the base environment's
    prompt when that file does not exist.
    """

    def __init__(self, prompts_dir: Path, observer: EnvironmentObserver) -> None:
        self._prompts_dir = prompts_dir
        self._observer = observer

    def base_prompt_path(self, target: EnvironmentTarget) -> Path:
        return self._prompts_dir / f"{target.base_name.value}.txt"

    def load(self, target: EnvironmentTarget) -> str:
        """Return the stripped prompt text for target.

        Raises:
            SystemPromptLoadError: if neither the build-specific nor the base
                prompt file can be read.
        """
        if target.version:
            build_path = self._prompts_dir / f"{target.display_name}.txt"
            try:
                return build_path.read_text(encoding="utf-8").strip()
            except FileNotFoundError:
                self._observer.system_prompt_fallback(
                    display_name=target.display_name,
                    missing_path=str(build_path),
                )

        base_path = self.base_prompt_path(target=target)
        try:
            return base_path.read_text(encoding="utf-8").strip()
        except OSError as exc:
            raise SystemPromptLoadError(path=base_path) from exc
