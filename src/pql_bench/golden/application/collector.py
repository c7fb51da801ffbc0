"""Collect candidate gold answers by asking the QA backend the same question."""

from pql_bench.dataset.domain.question import Question
from pql_bench.dataset.infrastructure.errors import QuestionSelectionError
from pql_bench.environment.domain.config import ResolvedConfig
from pql_bench.golden.domain.answer import format_answer
from pql_bench.golden.domain.observer import GoldenObserver
from pql_bench.qa.domain.client import QAClient
from pql_bench.qa.infrastructure.errors import QATransportError, TraceHeaderMissingError


def find_question(questions: list[Question], number: int) -> Question:
    """Return the question with 1-based index number.

    Raises:
        QuestionSelectionError: if number is outside the loaded eval set.
    """
    for question in questions:
        if question.index == number:
            return question
    raise QuestionSelectionError(
        reason=f"question number must be between 1 and {len(questions)}, "
        f"got {number}"
    )


def replace_gold_answer(
    questions: list[Question], number: int, gold_answer: str
) -> list[Question]:
    """Copy of questions with the gold answer of question number replaced."""
    return [
        question.model_copy(update={"gold_answer": gold_answer})
        if question.index == number
        else question
        for question in questions
    ]


async def collect_candidate_answers(
    qa_client: QAClient,
    observer: GoldenObserver,
    question: Question,
    config: ResolvedConfig,
    system_prompt: str,
    runs: int,
) -> list[str]:
    """Ask question runs times, one request after another.

    Failed requests are reported and skipped. A response without a trace
    header still carries a usable answer and is kept.
    """
    answers: list[str] = []
    for run_number in range(1, runs + 1):
        observer.golden_run_started(
            question_index=question.index, run_number=run_number, total_runs=runs
        )
        try:
            response = await qa_client.ask(
                question=question.text, config=config, system_prompt=system_prompt
            )
            raw_response = response.raw_response
        except TraceHeaderMissingError as exc:
            raw_response = exc.raw_response
        except QATransportError as exc:
            observer.golden_run_failed(
                question_index=question.index, run_number=run_number, reason=str(exc)
            )
            continue

        observer.golden_run_completed(
            question_index=question.index, run_number=run_number
        )
        answers.append(format_answer(raw_response=raw_response))
    return answers
