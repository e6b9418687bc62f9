"""
Report pipeline: load -> fit -> assess -> parameters -> score -> plot -> write.

Each stage consumes the immutable results of the earlier ones. A failure
in any stage is raised as PipelineStageError naming the stage, and no
report files are left behind.
"""

import logging
import shutil
import tempfile
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from pathlib import Path

import matplotlib.pyplot as plt
import pandas as pd
from matplotlib.figure import Figure

from scale_analysis.core.data import load_csv_to_response_matrix
from scale_analysis.core.data_models import ResponseMatrix
from scale_analysis.irt.diagnostics import (
    ResponseProbComparison,
    compute_response_prob_comparison,
)
from scale_analysis.irt.estimation.abilities import AbilityEstimates
from scale_analysis.irt.estimation.config import (
    ConvergenceConfig,
    EstimationConfig,
)
from scale_analysis.irt.estimation.data_models import FittedModel
from scale_analysis.irt.estimation.fitting import fit
from scale_analysis.irt.fit import (
    GlobalFit,
    ItemFit,
    global_fit,
    item_fit,
    item_fit_to_frame,
)
from scale_analysis.irt.information import marginal_reliability
from scale_analysis.irt.reporting import (
    factor_parameters_frame,
    irt_parameters_frame,
)
from scale_analysis.irt.scoring import (
    ScaleTransform,
    empirical_reliability,
    estimate_scores,
    scale_transform,
    scores_to_frame,
)
from scale_analysis.plotting.figures import render_figures
from scale_analysis.report.config import AnalysisConfig
from scale_analysis.report.exceptions import PipelineStageError
from scale_analysis.report.settings import RuntimeSettings
from scale_analysis.report.stages import Stage
from scale_analysis.report.text import render_markdown

logger = logging.getLogger(__name__)

FIGURE_DPI = 150


@dataclass
class AnalysisReport:
    """Everything the report shows, computed from one fitted model."""

    config: AnalysisConfig
    data: ResponseMatrix
    model: FittedModel
    global_fit: GlobalFit
    item_fit: dict[str, ItemFit]
    irt_parameters: pd.DataFrame
    factor_parameters: pd.DataFrame
    marginal_reliability: float
    estimates: AbilityEstimates
    empirical_reliability: float
    transform: ScaleTransform
    response_probabilities: ResponseProbComparison
    figures: dict[str, Figure] = field(default_factory=dict)


@contextmanager
def _stage(stage: Stage) -> Iterator[None]:
    logger.info(f"Stage: {stage.value}")
    try:
        yield
    except PipelineStageError:
        raise
    except Exception as e:
        logger.error(f"Stage '{stage.value}' failed: {e}")
        raise PipelineStageError(stage, e) from e


def _estimation_config(settings: RuntimeSettings) -> EstimationConfig:
    return EstimationConfig(
        convergence=ConvergenceConfig(
            timeout_seconds=settings.fit_timeout_seconds
        )
    )


def run_analysis(
    config: AnalysisConfig,
    settings: RuntimeSettings | None = None,
) -> AnalysisReport:
    """
    Run every stage except writing.

    Args:
        config: Analysis configuration.
        settings: Runtime settings. Read from the environment if None.

    Returns:
        AnalysisReport with tables, statistics and rendered figures.

    Raises:
        PipelineStageError: If any stage fails.
    """
    settings = settings or RuntimeSettings()

    with _stage(Stage.LOAD):
        data = load_csv_to_response_matrix(
            Path(config.dataset_path),
            columns=config.column_selection,
            category_range=config.category_range,
            delimiter=config.delimiter,
        )

    with _stage(Stage.FIT):
        model = fit(
            data,
            dimensions=config.dimensions,
            item_type=config.item_type,
            compute_standard_errors=config.compute_standard_errors,
            config=_estimation_config(settings),
        )

    with _stage(Stage.ASSESS):
        model_fit = global_fit(model, data)
        item_fits = item_fit(model, data)

    with _stage(Stage.PARAMETERS):
        irt_table = irt_parameters_frame(model)
        factor_table = factor_parameters_frame(model)
        rxx_marginal = marginal_reliability(model)

    with _stage(Stage.SCORE):
        estimates = estimate_scores(model, data, n_workers=settings.n_workers)
        transform = scale_transform(model)
        rxx_empirical = empirical_reliability(estimates)
        response_probs = compute_response_prob_comparison(
            data, model, estimates.eap
        )

    report = AnalysisReport(
        config=config,
        data=data,
        model=model,
        global_fit=model_fit,
        item_fit=item_fits,
        irt_parameters=irt_table,
        factor_parameters=factor_table,
        marginal_reliability=rxx_marginal,
        estimates=estimates,
        empirical_reliability=rxx_empirical,
        transform=transform,
        response_probabilities=response_probs,
    )

    with _stage(Stage.PLOT):
        report.figures = render_figures(
            model, config.theta_range, data=data, estimates=estimates
        )

    return report


def _write_artifacts(report: AnalysisReport, target: Path) -> None:
    (target / "report.md").write_text(render_markdown(report))
    (target / "model.json").write_text(report.model.model_dump_json(indent=2))
    (target / "global_fit.json").write_text(
        report.global_fit.model_dump_json(indent=2)
    )
    item_fit_to_frame(report.item_fit).to_csv(target / "item_fit.csv")
    report.irt_parameters.to_csv(target / "irt_parameters.csv")
    report.factor_parameters.to_csv(target / "factor_parameters.csv")
    scores_to_frame(report.estimates, report.transform).to_csv(
        target / "scores.csv"
    )
    report.response_probabilities.to_frame().to_csv(
        target / "response_probabilities.csv", index=False
    )
    for name, fig in report.figures.items():
        fig.savefig(target / f"{name}.png", dpi=FIGURE_DPI)


def _publish(staging: Path, output_dir: Path) -> list[Path]:
    if not output_dir.exists():
        staging.rename(output_dir)
        return sorted(output_dir.iterdir())

    moved: list[Path] = []
    try:
        for path in sorted(staging.iterdir()):
            destination = output_dir / path.name
            shutil.move(str(path), destination)
            moved.append(destination)
    except OSError:
        for path in moved:
            path.unlink(missing_ok=True)
        raise
    return moved


def write_report(report: AnalysisReport, output_dir: Path) -> list[Path]:
    """
    Write every report artifact into output_dir.

    Files are staged in a sibling temporary directory. A new output_dir
    is created by renaming the staging directory. Into an existing one
    the files are moved, and already moved files are removed again if a
    move fails.

    Returns:
        Paths of the written files.
    """
    with _stage(Stage.WRITE):
        output_dir.parent.mkdir(parents=True, exist_ok=True)
        staging = Path(
            tempfile.mkdtemp(
                dir=output_dir.parent, prefix=f".{output_dir.name}-staging-"
            )
        )
        try:
            _write_artifacts(report, staging)
            written = _publish(staging, output_dir)
        finally:
            shutil.rmtree(staging, ignore_errors=True)
            for fig in report.figures.values():
                plt.close(fig)

    logger.info(f"Wrote {len(written)} files to {output_dir}")
    return written


def run_report(
    config: AnalysisConfig,
    settings: RuntimeSettings | None = None,
) -> tuple[AnalysisReport, list[Path]]:
    """Run the full pipeline and write the report to config.output_dir."""
    report = run_analysis(config, settings)
    written = write_report(report, Path(config.output_dir))
    return report, written
