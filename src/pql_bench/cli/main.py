"""CLI entrypoint for pql-bench — `run` and `update-golden` typer commands."""

import asyncio
import os
import sys
from datetime import UTC, datetime
from pathlib import Path

import httpx
import structlog
import typer

from pql_bench.config.domain.execution import ExecutionConfig
from pql_bench.core.errors import BenchError
from pql_bench.dataset.domain.question import Question
from pql_bench.dataset.infrastructure.csv_loader import CsvQuestionLoader
from pql_bench.dataset.infrastructure.csv_writer import write_questions
from pql_bench.dataset.infrastructure.observer import StructlogDatasetObserver
from pql_bench.dataset.infrastructure.selection import select_questions
from pql_bench.environment.domain.config import ResolvedConfig
from pql_bench.environment.domain.target import EnvironmentTarget
from pql_bench.environment.infrastructure.observer import StructlogEnvironmentObserver
from pql_bench.environment.infrastructure.resolver import EnvironmentResolver
from pql_bench.environment.infrastructure.system_prompt import SystemPromptLoader
from pql_bench.environment.infrastructure.target_parser import (
    parse_target,
    parse_targets,
)
from pql_bench.evaluation.application.runner import BenchmarkRunner
from pql_bench.evaluation.domain.observer import EvaluationObserver
from pql_bench.evaluation.domain.outcome import BenchmarkOutcome
from pql_bench.evaluation.infrastructure.composite_observer import (
    CompositeEvaluationObserver,
)
from pql_bench.evaluation.infrastructure.memory_monitor import MemoryMonitor
from pql_bench.evaluation.infrastructure.observer import StructlogEvaluationObserver
from pql_bench.evaluation.infrastructure.progress_observer import (
    ProgressEvaluationObserver,
)
from pql_bench.golden.application.collector import (
    collect_candidate_answers,
    find_question,
    replace_gold_answer,
)
from pql_bench.golden.domain.observer import GoldenObserver
from pql_bench.golden.infrastructure.observer import StructlogGoldenObserver
from pql_bench.judge.infrastructure.observer import StructlogJudgeObserver
from pql_bench.judge.infrastructure.patronus import PatronusJudge
from pql_bench.qa.infrastructure.observer import StructlogQAObserver
from pql_bench.qa.infrastructure.promptql import PromptQLClient
from pql_bench.report.json_report import BenchmarkReport, build_report, write_report
from pql_bench.tracing.infrastructure.graphql_fetcher import (
    DEFAULT_TRACE_URL,
    GraphQLTraceFetcher,
)
from pql_bench.tracing.infrastructure.observer import StructlogTraceObserver

app = typer.Typer(add_completion=False)

_TRACE_URL_VAR = "PROMPTQL_TRACE_URL"

# QA answers can take minutes; only connecting is bounded tightly.
_HTTP_TIMEOUT = httpx.Timeout(600.0, connect=30.0)


@app.callback()
def main() -> None:
    """Latency and accuracy benchmarks for PromptQL environments."""


def _configure_structlog(log_format: str) -> None:
    """Configure structlog based on the requested format."""
    if log_format == "console":
        renderer: structlog.types.Processor = structlog.dev.ConsoleRenderer()
    elif log_format == "json":
        renderer = structlog.processors.JSONRenderer()
    else:
        typer.echo(f"Invalid log format: {log_format!r}. Must be 'console' or 'json'.")
        raise typer.Exit(code=1)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(0),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
    )


def _default_output_path() -> Path:
    """Build ``latency_results_{ISO timestamp}.json`` with ':' and '.' made safe."""
    stamp = datetime.now(UTC).isoformat(timespec="milliseconds")
    stamp = stamp.replace("+00:00", "Z").replace(":", "-").replace(".", "-")
    return Path(f"latency_results_{stamp}.json")


async def _run_benchmark(
    execution: ExecutionConfig,
    targets: list[EnvironmentTarget],
    questions: list[Question],
    prompts_dir: Path,
    evaluation_observer: EvaluationObserver,
) -> BenchmarkOutcome:
    environment_observer = StructlogEnvironmentObserver()
    prompt_loader = SystemPromptLoader(
        prompts_dir=prompts_dir, observer=environment_observer
    )
    resolver = EnvironmentResolver(
        prompt_loader=prompt_loader, observer=environment_observer
    )
    judge_observer = StructlogJudgeObserver()

    async with httpx.AsyncClient(timeout=_HTTP_TIMEOUT) as client:
        runner = BenchmarkRunner(
            execution=execution,
            resolver=resolver,
            prompt_loader=prompt_loader,
            qa_client=PromptQLClient(client=client, observer=StructlogQAObserver()),
            trace_fetcher=GraphQLTraceFetcher(
                client=client,
                observer=StructlogTraceObserver(),
                url=os.environ.get(_TRACE_URL_VAR) or DEFAULT_TRACE_URL,
            ),
            judge=PatronusJudge(client=client, observer=judge_observer),
            judge_observer=judge_observer,
            observer=evaluation_observer,
        )
        return await runner.run(questions=questions, targets=targets)


def _print_summary(report: BenchmarkReport, output: Path) -> None:
    """Print per-environment, per-question latency and accuracy to stdout."""
    metadata = report.metadata
    typer.echo("")
    typer.echo(
        f"Runs: {metadata.successful_runs} measured, {metadata.failed_runs} failed "
        f"({metadata.total_questions} questions, {metadata.num_runs} runs each)"
    )
    for display_name, env in report.environments.items():
        typer.echo("")
        typer.echo(f"{display_name}  ({env.ddn_url})")
        for text, stats in env.questions.items():
            line = (
                f"  avg {stats.average:.2f}s  min {stats.min:.2f}s  "
                f"max {stats.max:.2f}s  "
                f"[{stats.successful_runs}/{len(stats.runs)}]"
            )
            if stats.accuracy.evaluated_runs:
                line += (
                    f"  fuzzy {stats.accuracy.fuzzy_match_pass_rate:.0%}"
                    f"  data {stats.accuracy.data_accuracy_pass_rate:.0%}"
                )
            typer.echo(f"  {text}")
            typer.echo(line)
    typer.echo("")
    if metadata.memory_stats is not None:
        memory = metadata.memory_stats
        typer.echo(
            f"Memory: {memory.initial_mb}MB initial, {memory.current_mb}MB current, "
            f"{memory.peak_mb}MB peak"
        )
    typer.echo(f"Results written to {output}")


@app.command()
def run(
    env: str = typer.Option(
        ...,
        "--env",
        "-e",
        help=(
            "Comma-separated environments (dev, staging, production), "
            "optionally pinned to a build: 'production,production(3a3d68b8c8)'"
        ),
    ),
    runs: int = typer.Option(
        3, "--runs", "-r", min=1, help="Number of concurrent requests per run batch"
    ),
    questions_selection: str | None = typer.Option(
        None,
        "--questions",
        "-q",
        help="Questions to run: 1, 1,2,3, 1-3, or a search string",
    ),
    all_questions: bool = typer.Option(
        False, "--all", "-a", help="Run all questions"
    ),
    output: Path | None = typer.Option(
        None, "--output", "-o", help="Output file for results"
    ),
    concurrency: int = typer.Option(
        5, "--concurrency", "-c", min=1, help="Maximum concurrent questions"
    ),
    batch_size: int = typer.Option(
        10, "--batch-size", "-b", min=1, help="Number of questions per batch"
    ),
    rate_limit: float = typer.Option(
        0.0, "--rate-limit", min=0, help="Maximum question starts per second (0: none)"
    ),
    batch_delay: float = typer.Option(
        0.0, "--batch-delay", min=0, help="Delay in seconds between run batches"
    ),
    num_batches: int = typer.Option(
        1, "--num-batches", min=1, help="Number of run batches per question"
    ),
    skip_accuracy: bool = typer.Option(
        False,
        "--skip-accuracy",
        help="Skip accuracy judging even if Patronus is configured",
    ),
    evalset: Path = typer.Option(
        Path("evalset.csv"), "--evalset", help="CSV file of questions"
    ),
    prompts_dir: Path = typer.Option(
        Path("system_prompts"),
        "--prompts-dir",
        help="Directory of per-environment system prompts",
    ),
    log_format: str = typer.Option(
        "console",
        "--log-format",
        help="Log format: 'console' or 'json'",
    ),
) -> None:
    """Benchmark one or more PromptQL environments against the eval set."""
    if (questions_selection is None) == (not all_questions):
        typer.echo("You must specify exactly one of --questions or --all")
        raise typer.Exit(code=1)

    _configure_structlog(log_format=log_format)

    try:
        execution = ExecutionConfig(
            runs=runs,
            num_batches=num_batches,
            concurrency=concurrency,
            batch_size=batch_size,
            rate_limit=rate_limit,
            batch_delay=batch_delay,
            skip_accuracy=skip_accuracy,
        )
        targets = parse_targets(raw=env)

        dataset_observer = StructlogDatasetObserver()
        questions = CsvQuestionLoader(observer=dataset_observer).load(path=evalset)
        if questions_selection is not None:
            questions = select_questions(
                selection=questions_selection, questions=questions
            )
            dataset_observer.questions_selected(
                selection=questions_selection,
                indices=[question.index for question in questions],
            )

        observers: list[EvaluationObserver] = [
            StructlogEvaluationObserver(
                total_questions=len(questions),
                total_runs=execution.total_runs,
            )
        ]
        progress = ProgressEvaluationObserver() if log_format != "json" else None
        if progress is not None:
            observers.append(progress)
        evaluation_observer = CompositeEvaluationObserver(observers=observers)

        memory_monitor = MemoryMonitor()
        memory_monitor.start()
        try:
            outcome = asyncio.run(
                _run_benchmark(
                    execution=execution,
                    targets=targets,
                    questions=questions,
                    prompts_dir=prompts_dir,
                    evaluation_observer=evaluation_observer,
                )
            )
        finally:
            memory_stats = memory_monitor.stop()
            if progress is not None:
                progress.stop()

        report = build_report(
            outcome=outcome, execution=execution, memory_stats=memory_stats
        )
        output_path = output if output is not None else _default_output_path()
        write_report(report=report, path=output_path)
        _print_summary(report=report, output=output_path)

    except KeyboardInterrupt:
        typer.echo("Benchmark interrupted.")
        sys.exit(1)
    except BenchError as exc:
        typer.echo(str(exc))
        sys.exit(1)
    except Exception as exc:  # noqa: BLE001
        typer.echo(f"Unexpected error: {exc}\nPlease report this bug.")
        sys.exit(1)


def _prepare_environment(
    target: EnvironmentTarget, prompts_dir: Path
) -> tuple[ResolvedConfig, str]:
    """Resolve target and load its system prompt, or raise ConfigurationError."""
    environment_observer = StructlogEnvironmentObserver()
    prompt_loader = SystemPromptLoader(
        prompts_dir=prompts_dir, observer=environment_observer
    )
    resolver = EnvironmentResolver(
        prompt_loader=prompt_loader, observer=environment_observer
    )
    (config,) = resolver.resolve_all(targets=[target])
    return config, prompt_loader.load(target=target)


async def _collect_golden_answers(
    question: Question,
    config: ResolvedConfig,
    system_prompt: str,
    runs: int,
    observer: GoldenObserver,
) -> list[str]:
    async with httpx.AsyncClient(timeout=_HTTP_TIMEOUT) as client:
        return await collect_candidate_answers(
            qa_client=PromptQLClient(client=client, observer=StructlogQAObserver()),
            observer=observer,
            question=question,
            config=config,
            system_prompt=system_prompt,
            runs=runs,
        )


@app.command("update-golden")
def update_golden(
    question_number: int = typer.Option(
        ..., "--question", "-q", help="Question number to update"
    ),
    runs: int = typer.Option(
        3, "--runs", "-r", min=1, help="Number of candidate answers to fetch"
    ),
    env: str = typer.Option(
        "dev", "--env", "-e", help="Environment to ask: dev, staging, production"
    ),
    evalset: Path = typer.Option(
        Path("evalset.csv"), "--evalset", help="CSV file of questions"
    ),
    prompts_dir: Path = typer.Option(
        Path("system_prompts"),
        "--prompts-dir",
        help="Directory of per-environment system prompts",
    ),
    log_format: str = typer.Option(
        "console",
        "--log-format",
        help="Log format: 'console' or 'json'",
    ),
) -> None:
    """Replace one question's gold answer with a freshly generated answer."""
    _configure_structlog(log_format=log_format)

    try:
        target = parse_target(raw=env)
        config, system_prompt = _prepare_environment(
            target=target, prompts_dir=prompts_dir
        )
        questions = CsvQuestionLoader(observer=StructlogDatasetObserver()).load(
            path=evalset
        )
        question = find_question(questions=questions, number=question_number)
        golden_observer = StructlogGoldenObserver()

        typer.echo(f"\nUpdating golden answer for question {question.index}:")
        typer.echo(question.text)
        typer.echo("\nCurrent golden answer:")
        typer.echo(question.gold_answer)
        typer.echo(f"\nRunning {runs} new responses...")

        answers = asyncio.run(
            _collect_golden_answers(
                question=question,
                config=config,
                system_prompt=system_prompt,
                runs=runs,
                observer=golden_observer,
            )
        )
        if not answers:
            typer.echo("No successful responses received.")
            raise typer.Exit(code=1)

        for number, answer in enumerate(answers, start=1):
            typer.echo(f"\nResponse {number}/{len(answers)}:")
            typer.echo(answer)

        typer.echo(
            "\nWhich response would you like to use as the new golden answer?"
        )
        raw_selection = typer.prompt(
            f"Enter the number of the response (1-{len(answers)}), "
            "or 0 to keep current"
        )
        try:
            selection = int(raw_selection)
        except ValueError:
            selection = -1
        if not 0 <= selection <= len(answers):
            typer.echo("Invalid selection.")
            raise typer.Exit(code=1)
        if selection == 0:
            typer.echo("Keeping current golden answer.")
            return

        new_answer = answers[selection - 1]
        typer.echo("\nNew golden answer will be:")
        typer.echo(new_answer)
        if not typer.confirm("Confirm update?", default=False):
            typer.echo("Update cancelled.")
            return

        write_questions(
            path=evalset,
            questions=replace_gold_answer(
                questions=questions,
                number=question.index,
                gold_answer=new_answer.strip(),
            ),
        )
        golden_observer.golden_answer_updated(
            path=str(evalset), question_index=question.index
        )
        typer.echo("Golden answer updated successfully!")

    except KeyboardInterrupt:
        typer.echo("Update interrupted.")
        sys.exit(1)
    except BenchError as exc:
        typer.echo(str(exc))
        sys.exit(1)


if __name__ == "__main__":
    app()
