"""Structlog implementation of the DatasetObserver port."""

import structlog


class StructlogDatasetObserver:
    """Delegates dataset domain events to structlog.

    Satisfies the DatasetObserver protocol structurally.
    """

    def __init__(self) -> None:
        self._log = structlog.get_logger()

    def dataset_loading_started(self, path: str) -> None:
        self._log.info("dataset.loading_started", path=path)

    def dataset_loading_completed(self, path: str, total_questions: int) -> None:
        self._log.info(
            "dataset.loading_completed",
            path=path,
            total_questions=total_questions,
        )

    def dataset_loading_failed(self, path: str, reason: str) -> None:
        self._log.error("dataset.loading_failed", path=path, reason=reason)

    def questions_selected(self, selection: str, indices: list[int]) -> None:
        self._log.info(
            "dataset.questions_selected",
            selection=selection,
            indices=indices,
        )
