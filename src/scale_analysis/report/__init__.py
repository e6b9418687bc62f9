"""
Scale analysis report: configuration, staged pipeline and rendering.
"""

from scale_analysis.report.config import (
    AnalysisConfig,
    get_available_configs,
    get_config_path,
    load_config,
)
from scale_analysis.report.exceptions import PipelineStageError
from scale_analysis.report.pipeline import (
    AnalysisReport,
    run_analysis,
    run_report,
    write_report,
)
from scale_analysis.report.settings import RuntimeSettings
from scale_analysis.report.stages import Stage
from scale_analysis.report.text import render_markdown

__all__ = [
    "AnalysisConfig",
    "AnalysisReport",
    "PipelineStageError",
    "RuntimeSettings",
    "Stage",
    "get_available_configs",
    "get_config_path",
    "load_config",
    "render_markdown",
    "run_analysis",
    "run_report",
    "write_report",
]
