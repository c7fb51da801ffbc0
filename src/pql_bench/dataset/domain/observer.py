"""Observer port for the dataset domain — defines events in domain language."""

from typing import Protocol


class DatasetObserver(Protocol):
    def dataset_loading_started(self, path: str) -> None: ...

    def dataset_loading_completed(self, path: str, total_questions: int) -> None: ...

    def dataset_loading_failed(self, path: str, reason: str) -> None: ...

    def questions_selected(self, selection: str, indices: list[int]) -> None: ...
