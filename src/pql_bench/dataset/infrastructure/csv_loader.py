"""CSV eval-set loader — reads ``question,gold_answer`` rows into Question objects."""

import csv
from pathlib import Path

from pql_bench.dataset.domain.observer import DatasetObserver
from pql_bench.dataset.domain.question import Question
from pql_bench.dataset.infrastructure.errors import DatasetLoadError

_QUESTION_COLUMN = "question"
_GOLD_ANSWER_COLUMN = "gold_answer"


class CsvQuestionLoader:
    """Loads an eval-set CSV with a header row into 1-indexed Question objects.

    Cell values are trimmed and fully blank rows are skipped.
    """

    def __init__(self, observer: DatasetObserver) -> None:
        self._observer = observer

    def load(self, path: Path) -> list[Question]:
        """
        Load every question from the CSV at path.

        Collects ALL per-row errors before raising a single DatasetLoadError.

        Raises:
            DatasetLoadError: if the file is missing or unreadable, is not valid
                UTF-8 CSV, lacks a required column, or any row has an empty
                question.
        """
        path_str = str(path)
        self._observer.dataset_loading_started(path=path_str)

        try:
            with path.open(encoding="utf-8", newline="") as fh:
                reader = csv.DictReader(fh)
                rows = list(reader)
                fieldnames = [name.strip() for name in reader.fieldnames or []]
        except FileNotFoundError as exc:
            reason = f"file not found: {path_str}"
            self._observer.dataset_loading_failed(path=path_str, reason=reason)
            raise DatasetLoadError(reason=reason) from exc
        except (OSError, UnicodeDecodeError, csv.Error) as exc:
            reason = f"cannot read {path_str}: {exc}"
            self._observer.dataset_loading_failed(path=path_str, reason=reason)
            raise DatasetLoadError(reason=reason) from exc

        questions, errors = self._parse_rows(rows=rows, fieldnames=fieldnames)
        if errors:
            reason = "; ".join(errors)
            self._observer.dataset_loading_failed(path=path_str, reason=reason)
            raise DatasetLoadError(reason=reason)

        self._observer.dataset_loading_completed(
            path=path_str, total_questions=len(questions)
        )
        return questions

    def _parse_rows(
        self, rows: list[dict[str, str]], fieldnames: list[str]
    ) -> tuple[list[Question], list[str]]:
        """Parse rows into Questions, collecting errors without aborting early."""
        missing_columns = [
            column
            for column in (_QUESTION_COLUMN, _GOLD_ANSWER_COLUMN)
            if column not in fieldnames
        ]
        if missing_columns:
            columns = ", ".join(f"'{c}'" for c in missing_columns)
            return [], [f"missing column(s) {columns}"]

        questions: list[Question] = []
        errors: list[str] = []
        for row_number, row in enumerate(rows, start=1):
            cells = {
                (key or "").strip(): (value or "").strip()
                for key, value in row.items()
                if not isinstance(value, list)
            }
            if not any(cells.values()):
                continue

            text = cells.get(_QUESTION_COLUMN, "")
            if not text:
                errors.append(f"row {row_number}: empty question")
                continue
            questions.append(
                Question(
                    index=len(questions) + 1,
                    text=text,
                    gold_answer=cells.get(_GOLD_ANSWER_COLUMN, ""),
                )
            )
        return questions, errors
