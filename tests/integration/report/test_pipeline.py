"""
End-to-end report generation from a CSV file.
"""

import re
import shutil
from dataclasses import replace
from pathlib import Path

import pandas as pd
import pytest

from scale_analysis.core.data_models import ResponseMatrix
from scale_analysis.core.exceptions import DataFormatError, InsufficientDataError
from scale_analysis.report import (
    AnalysisConfig,
    AnalysisReport,
    PipelineStageError,
    RuntimeSettings,
    Stage,
    run_report,
    write_report,
)
from scale_analysis.report import pipeline

EXPECTED_FILES = {
    "report.md",
    "model.json",
    "global_fit.json",
    "item_fit.csv",
    "irt_parameters.csv",
    "factor_parameters.csv",
    "scores.csv",
    "response_probabilities.csv",
    "trace.png",
    "info.png",
    "infoSE.png",
    "rxx.png",
    "score.png",
    "itemscore.png",
}

SETTINGS = RuntimeSettings(n_workers=1)


def write_dataset(data: ResponseMatrix, path: Path) -> Path:
    frame = pd.DataFrame(
        data.to_category_codes(), columns=list(data.item_ids)
    ).astype("Int64")
    frame.to_csv(path, index=False)
    return path


@pytest.fixture(scope="module")
def report_run(
    simulated_data: ResponseMatrix, tmp_path_factory: pytest.TempPathFactory
) -> tuple[AnalysisReport, list[Path], Path]:
    root = tmp_path_factory.mktemp("pipeline")
    dataset = write_dataset(simulated_data, root / "responses.csv")
    output_dir = root / "report"
    config = AnalysisConfig(
        dataset_path=str(dataset),
        category_min=1,
        category_max=4,
        output_dir=str(output_dir),
    )
    report, written = run_report(config, SETTINGS)
    return report, written, output_dir


class TestSuccessfulRun:
    def test_all_artifacts_written(self, report_run) -> None:
        _, written, output_dir = report_run

        assert {p.name for p in written} == EXPECTED_FILES
        assert {p.name for p in output_dir.iterdir()} == EXPECTED_FILES

    def test_report_sections(self, report_run) -> None:
        _, _, output_dir = report_run
        text = (output_dir / "report.md").read_text()

        for heading in (
            "# Scale Analysis Report",
            "## Model Fit",
            "## Item Fit",
            "## Item Parameters",
            "## Scoring and Reliability",
            "## Figures",
        ):
            assert heading in text
        assert "![Scale characteristic curve](score.png)" in text
        assert "AIC = " in text and "BIC = " in text
        assert re.search(r"M2\(\d+\) = [\d.]+, p (= [\d.]+|< \.001)\.", text)

    def test_tables(self, report_run) -> None:
        report, _, output_dir = report_run

        irt = pd.read_csv(output_dir / "irt_parameters.csv", index_col=0)
        assert list(irt.index) == list(report.model.item_ids)
        assert list(irt.columns[:4]) == ["a", "b1", "b2", "b3"]
        assert "se_a" in irt.columns

        scores = pd.read_csv(output_dir / "scores.csv", index_col=0)
        assert len(scores) == report.data.n_respondents
        assert scores["expected_sum_score"].between(6, 24).all()

    def test_reliabilities(self, report_run) -> None:
        report, _, _ = report_run

        assert 0.0 < report.marginal_reliability < 1.0
        assert 0.0 < report.empirical_reliability < 1.0


class TestFailedRun:
    def test_missing_dataset_fails_in_load(self, tmp_path: Path) -> None:
        output_dir = tmp_path / "report"
        config = AnalysisConfig(
            dataset_path=str(tmp_path / "missing.csv"),
            category_min=1,
            category_max=4,
            output_dir=str(output_dir),
        )

        with pytest.raises(PipelineStageError) as excinfo:
            run_report(config, SETTINGS)

        assert excinfo.value.stage is Stage.LOAD
        assert not output_dir.exists()

    def test_out_of_range_code_fails_in_load(
        self, simulated_data: ResponseMatrix, tmp_path: Path
    ) -> None:
        """A stray 0 in 1..4 data is a format error, not a new category."""
        dataset = write_dataset(simulated_data, tmp_path / "r.csv")
        frame = pd.read_csv(dataset)
        frame.iloc[0, 0] = 0
        frame.to_csv(dataset, index=False)
        output_dir = tmp_path / "report"
        config = AnalysisConfig(
            dataset_path=str(dataset),
            category_min=1,
            category_max=4,
            output_dir=str(output_dir),
        )

        with pytest.raises(PipelineStageError) as excinfo:
            run_report(config, SETTINGS)

        assert excinfo.value.stage is Stage.LOAD
        assert isinstance(excinfo.value.cause, DataFormatError)
        assert not output_dir.exists()

    def test_unobserved_category_fails_in_fit(
        self, simulated_data: ResponseMatrix, tmp_path: Path
    ) -> None:
        """Declaring a fifth category nobody used cannot be estimated."""
        output_dir = tmp_path / "report"
        config = AnalysisConfig(
            dataset_path=str(write_dataset(simulated_data, tmp_path / "r.csv")),
            category_min=1,
            category_max=5,
            output_dir=str(output_dir),
        )

        with pytest.raises(PipelineStageError) as excinfo:
            run_report(config, SETTINGS)

        assert excinfo.value.stage is Stage.FIT
        assert isinstance(excinfo.value.cause, InsufficientDataError)
        assert not output_dir.exists()


class TestWriteReport:
    def test_failed_write_creates_nothing(
        self, report_run, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        report, _, _ = report_run

        def broken(_report: AnalysisReport) -> str:
            raise RuntimeError("template error")

        monkeypatch.setattr(pipeline, "render_markdown", broken)
        output_dir = tmp_path / "report"

        with pytest.raises(PipelineStageError) as excinfo:
            write_report(replace(report, figures={}), output_dir)

        assert excinfo.value.stage is Stage.WRITE
        assert list(tmp_path.iterdir()) == []

    def test_failed_move_rolls_back(
        self, report_run, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """Files moved before the failure are removed again."""
        report, _, _ = report_run
        output_dir = tmp_path / "report"
        output_dir.mkdir()
        (output_dir / "notes.txt").write_text("keep me")

        real_move = shutil.move
        calls = []

        def flaky_move(src: str, dst: Path) -> str:
            calls.append(src)
            if len(calls) == 3:
                raise OSError("disk full")
            return real_move(src, dst)

        monkeypatch.setattr(pipeline.shutil, "move", flaky_move)

        with pytest.raises(PipelineStageError) as excinfo:
            write_report(replace(report, figures={}), output_dir)

        assert excinfo.value.stage is Stage.WRITE
        assert [p.name for p in output_dir.iterdir()] == ["notes.txt"]
        assert [p.name for p in tmp_path.iterdir()] == ["report"]

    def test_existing_directory_receives_files(
        self, report_run, tmp_path: Path
    ) -> None:
        report, _, _ = report_run
        output_dir = tmp_path / "report"
        output_dir.mkdir()

        written = write_report(replace(report, figures={}), output_dir)

        assert {p.parent for p in written} == {output_dir}
        assert "report.md" in {p.name for p in written}
        assert [p.name for p in tmp_path.iterdir()] == ["report"]
