"""
Curves and figures for a fitted graded response model.

- curves: pure functions returning arrays over a theta grid
- figures: matplotlib renderings of those curves
"""

from scale_analysis.plotting.curves import (
    DEFAULT_THETA_RANGE,
    compute_category_curves,
    compute_information_curves,
    compute_lowess_fit,
    theta_grid,
)
from scale_analysis.plotting.figures import (
    PLOT_TYPES,
    plot_category_curves,
    plot_information,
    plot_item_score_lowess,
    plot_reliability,
    plot_scale_characteristic,
    plot_standard_error,
    render_figures,
)

__all__ = [
    "DEFAULT_THETA_RANGE",
    "PLOT_TYPES",
    "compute_category_curves",
    "compute_information_curves",
    "compute_lowess_fit",
    "plot_category_curves",
    "plot_information",
    "plot_item_score_lowess",
    "plot_reliability",
    "plot_scale_characteristic",
    "plot_standard_error",
    "render_figures",
    "theta_grid",
]
