"""Tests for CsvQuestionLoader."""

from pathlib import Path

import pytest

from pql_bench.dataset.infrastructure.csv_loader import CsvQuestionLoader
from pql_bench.dataset.infrastructure.errors import DatasetLoadError
from tests.dataset.fake_observer import FakeDatasetObserver

FIXTURES = Path(__file__).parent.parent.parent / "fixtures"


def _make_loader() -> tuple[CsvQuestionLoader, FakeDatasetObserver]:
    observer = FakeDatasetObserver()
    return CsvQuestionLoader(observer=observer), observer


def _write_csv(tmp_path: Path, content: str) -> Path:
    path = tmp_path / "evalset.csv"
    path.write_text(content, encoding="utf-8")
    return path


class TestCsvQuestionLoader:
    def test_loads_fixture_with_one_based_indices(self) -> None:
        loader, observer = _make_loader()

        questions = loader.load(path=FIXTURES / "evalset.csv")

        assert [q.index for q in questions] == [1, 2, 3]
        assert questions[0].text == "How many orders were placed last month?"
        assert questions[0].gold_answer == "1523 orders"
        assert questions[1].text == "Which customer spent the most, overall?"
        assert observer.loading_completed[0].total_questions == 3

    def test_trims_cells_and_skips_blank_rows(self, tmp_path: Path) -> None:
        path = _write_csv(
            tmp_path=tmp_path,
            content="question,gold_answer\n  First?  , one \n,\n\nSecond?,two\n",
        )
        loader, _ = _make_loader()

        questions = loader.load(path=path)

        assert [(q.index, q.text, q.gold_answer) for q in questions] == [
            (1, "First?", "one"),
            (2, "Second?", "two"),
        ]

    def test_missing_gold_answer_cell_is_empty_string(self, tmp_path: Path) -> None:
        path = _write_csv(tmp_path=tmp_path, content="question,gold_answer\nOnly?\n")
        loader, _ = _make_loader()

        questions = loader.load(path=path)

        assert questions[0].gold_answer == ""

    def test_missing_file_raises(self, tmp_path: Path) -> None:
        loader, observer = _make_loader()

        with pytest.raises(DatasetLoadError, match="file not found"):
            loader.load(path=tmp_path / "nope.csv")

        assert len(observer.loading_failed) == 1

    def test_missing_column_raises(self, tmp_path: Path) -> None:
        path = _write_csv(tmp_path=tmp_path, content="prompt,gold_answer\nHi?,yes\n")
        loader, _ = _make_loader()

        with pytest.raises(DatasetLoadError, match="missing column\\(s\\) 'question'"):
            loader.load(path=path)

    def test_collects_every_empty_question_error(self, tmp_path: Path) -> None:
        path = _write_csv(
            tmp_path=tmp_path,
            content="question,gold_answer\n,answer one\nOk?,fine\n  ,answer three\n",
        )
        loader, observer = _make_loader()

        with pytest.raises(DatasetLoadError) as exc_info:
            loader.load(path=path)

        message = str(exc_info.value)
        assert "row 1: empty question" in message
        assert "row 3: empty question" in message
        assert observer.loading_completed == []

    def test_emits_started_before_loading(self, tmp_path: Path) -> None:
        path = _write_csv(tmp_path=tmp_path, content="question,gold_answer\nQ?,A\n")
        loader, observer = _make_loader()

        loader.load(path=path)

        assert observer.loading_started[0].path == str(path)

    def test_invalid_utf8_raises_dataset_error(self, tmp_path: Path) -> None:
        path = tmp_path / "evalset.csv"
        path.write_bytes(b"question,gold_answer\n\xff\xfe bad,x\n")
        loader, observer = _make_loader()

        with pytest.raises(DatasetLoadError, match="cannot read"):
            loader.load(path=path)

        assert len(observer.loading_failed) == 1
        assert observer.loading_completed == []

    def test_directory_path_raises_dataset_error(self, tmp_path: Path) -> None:
        loader, observer = _make_loader()

        with pytest.raises(DatasetLoadError, match="cannot read"):
            loader.load(path=tmp_path)

        assert observer.loading_failed[0].path == str(tmp_path)
