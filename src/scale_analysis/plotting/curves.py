"""
Curve computation, kept separate from rendering so it can be tested
without a graphics backend.
"""

from dataclasses import dataclass

import numpy as np
from numpy.typing import NDArray
from statsmodels.nonparametric.smoothers_lowess import (  # type: ignore[import-untyped]
    lowess,
)

from scale_analysis.irt.estimation.data_models import FittedModel
from scale_analysis.irt.information import (
    conditional_reliability,
    item_information_matrix,
    standard_error,
)

DEFAULT_THETA_RANGE = (-3.0, 3.0)
DEFAULT_GRID_POINTS = 201


def theta_grid(
    theta_range: tuple[float, float] = DEFAULT_THETA_RANGE,
    n_points: int = DEFAULT_GRID_POINTS,
) -> NDArray[np.float64]:
    """Equally spaced display grid over theta_range."""
    low, high = theta_range
    if high <= low:
        raise ValueError(f"Invalid theta range {theta_range}")
    return np.linspace(low, high, n_points, dtype=np.float64)


def compute_category_curves(
    model: FittedModel, theta: NDArray[np.float64]
) -> dict[str, NDArray[np.float64]]:
    """Category probabilities per item, each shape (n_theta, n_categories)."""
    return {
        p.item_id: p.compute_probabilities(theta) for p in model.item_parameters
    }


@dataclass(frozen=True)
class InformationCurves:
    """
    Information-derived curves over a theta grid.

    Attributes:
        theta: Grid, shape (n_theta,).
        item_information: Per-item information, shape (n_theta, n_items).
        scale_information: Sum over items, shape (n_theta,).
        standard_error: 1 / sqrt(scale information).
        reliability: Conditional reliability.
    """

    theta: NDArray[np.float64]
    item_information: NDArray[np.float64]
    scale_information: NDArray[np.float64]
    standard_error: NDArray[np.float64]
    reliability: NDArray[np.float64]


def compute_information_curves(
    model: FittedModel, theta: NDArray[np.float64]
) -> InformationCurves:
    items = item_information_matrix(model, theta)
    scale = items.sum(axis=1)
    se = standard_error(scale)
    return InformationCurves(
        theta=theta,
        item_information=items,
        scale_information=scale,
        standard_error=se,
        reliability=conditional_reliability(se, model.prior_variance),
    )


def compute_lowess_fit(
    x: NDArray[np.float64],
    y: NDArray[np.float64],
    frac: float = 0.3,
) -> tuple[NDArray[np.float64], NDArray[np.float64]]:
    """Compute LOWESS smoothed curve."""
    # Sort by x for proper plotting
    sorted_indices = np.argsort(x)
    x_sorted = x[sorted_indices]
    y_sorted = y[sorted_indices]

    smoothed = lowess(y_sorted, x_sorted, frac=frac, return_sorted=True)
    return smoothed[:, 0], smoothed[:, 1]
