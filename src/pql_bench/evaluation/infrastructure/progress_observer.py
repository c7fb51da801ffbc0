"""ProgressEvaluationObserver — live Rich progress for a benchmark, on stderr."""

from __future__ import annotations

from rich.console import Console
from rich.markup import escape
from rich.progress import (
    BarColumn,
    MofNCompleteColumn,
    Progress,
    ProgressColumn,
    Task,
    TaskID,
    TextColumn,
    TimeElapsedColumn,
    TimeRemainingColumn,
)
from rich.text import Text

_OVERALL = "Overall"

_ENVIRONMENT_STYLES = ("cyan", "green", "yellow", "magenta", "blue")


class _SecondsPerRunColumn(ProgressColumn):
    """Average wall-clock seconds per finished run, e.g. ``2.4s/run``."""

    def render(self, task: Task) -> Text:
        if not task.completed or not task.elapsed:
            return Text("--s/run", style="dim")
        return Text(f"{task.elapsed / task.completed:.1f}s/run", style="dim")


class _InFlightColumn(ProgressColumn):
    def render(self, task: Task) -> Text:
        inflight = int(task.fields.get("inflight", 0))
        return Text(f"{inflight} in flight", style="grey50")


class ProgressEvaluationObserver:
    """Shows one row per environment plus an Overall row.

    A run counts as done when it completes or fails; the in-flight column
    shows runs started but not yet finished. Only benchmark_*, run_started,
    run_completed and run_failed events matter here.

    With ``disabled=True`` the counters are kept but nothing is rendered.

    Does NOT inherit from EvaluationObserver (structural typing via Protocol).
    """

    def __init__(self, disabled: bool = False) -> None:
        self._disabled = disabled
        self._progress: Progress | None = None
        self._tasks: dict[str, TaskID] = {}
        self._done: dict[str, int] = {}
        self._inflight: dict[str, int] = {}

    def done(self, key: str) -> int:
        """Finished runs for an environment display name or ``"Overall"``."""
        return self._done.get(key, 0)

    def inflight(self, key: str) -> int:
        return self._inflight.get(key, 0)

    @property
    def live(self) -> bool:
        return self._progress is not None

    def stop(self) -> None:
        """Stop rendering and restore the terminal. Safe to call repeatedly."""
        if self._progress is not None:
            self._progress.stop()
        self._progress = None

    def _keys(self, environment: str) -> list[str]:
        return [key for key in (environment, _OVERALL) if key in self._done]

    def _refresh(self, keys: list[str]) -> None:
        if self._progress is None:
            return
        for key in keys:
            self._progress.update(
                self._tasks[key],
                completed=self._done[key],
                inflight=self._inflight[key],
            )

    def _finish_run(self, environment: str) -> None:
        keys = self._keys(environment=environment)
        for key in keys:
            self._done[key] += 1
            self._inflight[key] = max(0, self._inflight[key] - 1)
        self._refresh(keys=keys)

    def benchmark_started(
        self,
        environments: list[str],
        total_questions: int,
        runs_per_question: int,
        concurrency: int,
        batch_size: int,
        rate_limit: float,
        accuracy_enabled: bool,
    ) -> None:
        names = [*environments, _OVERALL]
        self._done = dict.fromkeys(names, 0)
        self._inflight = dict.fromkeys(names, 0)
        self._tasks = {}
        self.stop()
        if self._disabled:
            return

        per_environment = total_questions * runs_per_question
        width = max(len(name) for name in names)
        self._progress = Progress(
            TextColumn("{task.description}"),
            BarColumn(bar_width=40),
            MofNCompleteColumn(),
            _InFlightColumn(),
            TimeElapsedColumn(),
            TimeRemainingColumn(),
            _SecondsPerRunColumn(),
            console=Console(stderr=True),
            refresh_per_second=10,
        )
        for index, name in enumerate(environments):
            style = _ENVIRONMENT_STYLES[index % len(_ENVIRONMENT_STYLES)]
            # Build versions are user input.
            label = escape(name.ljust(width))
            self._tasks[name] = self._progress.add_task(
                f"[{style}]{label}[/{style}]", total=per_environment, inflight=0
            )
        self._tasks[_OVERALL] = self._progress.add_task(
            f"[bold]{_OVERALL.ljust(width)}[/bold]",
            total=per_environment * len(environments),
            inflight=0,
        )
        self._progress.start()

    def benchmark_completed(
        self,
        successful_runs: int,
        failed_runs: int,
        elapsed_seconds: float,
    ) -> None:
        self.stop()
        self._tasks = {}
        self._done = {}
        self._inflight = {}

    def question_started(self, question_index: int, question: str) -> None:
        pass

    def question_completed(
        self,
        question_index: int,
        environment: str,
        successful_runs: int,
        failed_runs: int,
    ) -> None:
        pass

    def run_started(
        self, question_index: int, environment: str, run_number: int
    ) -> None:
        keys = self._keys(environment=environment)
        for key in keys:
            self._inflight[key] += 1
        self._refresh(keys=keys)

    def run_completed(
        self,
        question_index: int,
        environment: str,
        run_number: int,
        duration_seconds: float,
    ) -> None:
        self._finish_run(environment=environment)

    def run_failed(
        self,
        question_index: int,
        environment: str,
        run_number: int,
        failure: str,
        reason: str,
    ) -> None:
        self._finish_run(environment=environment)

    def run_batch_waiting(
        self,
        question_index: int,
        environment: str,
        completed_batch: int,
        total_batches: int,
        delay_seconds: float,
    ) -> None:
        pass
