"""Question selection — numbers, ranges, or a case-insensitive substring search."""

import re

from pql_bench.dataset.domain.question import Question
from pql_bench.dataset.infrastructure.errors import QuestionSelectionError

_NUMERIC_SELECTION = re.compile(r"^[\d,-]+$")


def parse_question_ranges(selection: str) -> list[int]:
    """Parse ``"1"``, ``"1,3"``, ``"2-4"`` or combinations into sorted unique indices.

    Raises:
        QuestionSelectionError: on non-positive numbers or reversed ranges.
    """
    indices: set[int] = set()
    for part in (p.strip() for p in selection.split(",")):
        if "-" in part:
            start_text, _, end_text = part.partition("-")
            start = _positive_int(text=start_text)
            end = _positive_int(text=end_text)
            if start is None or end is None:
                raise QuestionSelectionError(
                    reason=f"invalid range {part!r}: "
                    "start and end must be positive numbers"
                )
            if start > end:
                raise QuestionSelectionError(
                    reason=f"invalid range {part!r}: "
                    "start must be less than or equal to end"
                )
            indices.update(range(start, end + 1))
        else:
            number = _positive_int(text=part)
            if number is None:
                raise QuestionSelectionError(
                    reason=f"invalid question number {part!r}: "
                    "must be a positive number"
                )
            indices.add(number)
    return sorted(indices)


def _positive_int(text: str) -> int | None:
    try:
        value = int(text)
    except ValueError:
        return None
    return value if value > 0 else None


def find_matching_questions(query: str, questions: list[Question]) -> list[int]:
    """Return the 1-based indices of every question containing query (case-insensitive)."""
    needle = query.lower()
    return [q.index for q in questions if needle in q.text.lower()]


def select_questions(selection: str, questions: list[Question]) -> list[Question]:
    """Resolve a selection string against the loaded questions.

    Digits, commas and dashes are read as numbers/ranges; anything else is a
    substring search.

    Raises:
        QuestionSelectionError: if nothing matches or an index is out of range.
    """
    if _NUMERIC_SELECTION.match(selection):
        indices = parse_question_ranges(selection=selection)
    else:
        indices = find_matching_questions(query=selection, questions=questions)

    if not indices:
        raise QuestionSelectionError(reason=f"no matching questions for {selection!r}")

    highest = max(indices)
    if highest > len(questions):
        raise QuestionSelectionError(
            reason=f"requested question {highest} but only {len(questions)} available"
        )
    return [questions[i - 1] for i in indices]
