"""Observer port for the golden-answer updater."""

from typing import Protocol


class GoldenObserver(Protocol):
    def golden_run_started(
        self, question_index: int, run_number: int, total_runs: int
    ) -> None: ...

    def golden_run_completed(self, question_index: int, run_number: int) -> None: ...

    def golden_run_failed(
        self, question_index: int, run_number: int, reason: str
    ) -> None: ...

    def golden_answer_updated(self, path: str, question_index: int) -> None: ...
