"""Structlog implementation of the GoldenObserver port."""

import structlog


class StructlogGoldenObserver:
    """Delegates golden-answer events to structlog.

    Satisfies the GoldenObserver protocol structurally.
    """

    def __init__(self) -> None:
        self._log = structlog.get_logger()

    def golden_run_started(
        self, question_index: int, run_number: int, total_runs: int
    ) -> None:
        self._log.debug(
            "golden.run_started",
            question_index=question_index,
            run_number=run_number,
            total_runs=total_runs,
        )

    def golden_run_completed(self, question_index: int, run_number: int) -> None:
        self._log.debug(
            "golden.run_completed",
            question_index=question_index,
            run_number=run_number,
        )

    def golden_run_failed(
        self, question_index: int, run_number: int, reason: str
    ) -> None:
        self._log.warning(
            "golden.run_failed",
            question_index=question_index,
            run_number=run_number,
            reason=reason,
        )

    def golden_answer_updated(self, path: str, question_index: int) -> None:
        self._log.info(
            "golden.answer_updated", path=path, question_index=question_index
        )
