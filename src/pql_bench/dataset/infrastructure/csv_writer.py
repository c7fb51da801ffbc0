"""Write Question objects back to a ``question,gold_answer`` eval-set CSV."""

import csv
from pathlib import Path

from pql_bench.dataset.domain.question import Question
from pql_bench.dataset.infrastructure.errors import DatasetWriteError

_FIELDNAMES = ["question", "gold_answer"]


def write_questions(path: Path, questions: list[Question]) -> None:
    """Overwrite path with a header row and one row per question, in order.

    Raises:
        DatasetWriteError: if the file cannot be written.
    """
    try:
        with path.open("w", encoding="utf-8", newline="") as fh:
            writer = csv.DictWriter(fh, fieldnames=_FIELDNAMES)
            writer.writeheader()
            for question in questions:
                writer.writerow(
                    {"question": question.text, "gold_answer": question.gold_answer}
                )
    except OSError as exc:
        raise DatasetWriteError(reason=f"cannot write {path}: {exc}") from exc
