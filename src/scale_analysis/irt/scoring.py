"""
Respondent scoring and the scale characteristic transformation.
"""

import logging
from dataclasses import dataclass

import numpy as np
import pandas as pd
from numpy.typing import ArrayLike, NDArray

from scale_analysis.core.data_models import ResponseMatrix
from scale_analysis.irt.estimation.abilities import (
    AbilityEstimates,
    estimate_abilities,
)
from scale_analysis.irt.estimation.config import ScoringGridConfig
from scale_analysis.irt.estimation.data_models import FittedModel
from scale_analysis.irt.estimation.grm.parameters import GRMItemParameters

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ScaleTransform:
    """
    Expected summed score as a function of theta.

        T(θ) = Σ_j Σ_k c_k P_jk(θ)

    where c_k are the original category values. T is non-decreasing when
    every slope is non-negative and always lies within [min_score, max_score].

    Attributes:
        item_parameters: Parameters of the items in the scale.
        category_values: Value of each category, shape (n_categories,).
    """

    item_parameters: tuple[GRMItemParameters, ...]
    category_values: NDArray[np.float64]

    @property
    def min_score(self) -> float:
        return float(len(self.item_parameters) * self.category_values.min())

    @property
    def max_score(self) -> float:
        return float(len(self.item_parameters) * self.category_values.max())

    def item_expected_scores(self, theta: ArrayLike) -> NDArray[np.float64]:
        """Expected score on each item, shape (n_theta, n_items)."""
        theta_arr = np.atleast_1d(np.asarray(theta, dtype=np.float64))
        return np.column_stack(
            [
                p.expected_score(theta_arr, self.category_values)
                for p in self.item_parameters
            ]
        )

    def __call__(self, theta: ArrayLike) -> NDArray[np.float64]:
        result: NDArray[np.float64] = self.item_expected_scores(theta).sum(
            axis=1
        )
        return result


def scale_transform(model: FittedModel) -> ScaleTransform:
    """Build the scale characteristic function of a fitted model."""
    if any(p.slope < 0 for p in model.item_parameters):
        logger.warning(
            "Some slopes are negative; the scale characteristic curve "
            "is not monotone"
        )
    return ScaleTransform(
        item_parameters=model.item_parameters,
        category_values=model.category_values,
    )


def estimate_scores(
    model: FittedModel,
    data: ResponseMatrix,
    n_workers: int | None = None,
    grid: ScoringGridConfig | None = None,
) -> AbilityEstimates:
    """
    EAP scores with posterior standard deviations for every respondent.

    Args:
        model: Fitted model.
        data: Response matrix to score.
        n_workers: Thread-pool size. None uses all available cores.
        grid: Scoring grid. Defaults to [-6, 6] with 121 points.

    Returns:
        AbilityEstimates in row order.
    """
    estimates = estimate_abilities(data, model, grid=grid, n_workers=n_workers)
    logger.info(
        f"Scored {estimates.n_respondents} respondents "
        f"(mean theta = {np.mean(estimates.eap):.3f})"
    )
    return estimates


def empirical_reliability(estimates: AbilityEstimates) -> float:
    """
    Reliability of EAP scores in the sample.

        ρ = var(θ̂) / (var(θ̂) + mean(SE²))
    """
    var_theta = float(np.var(estimates.eap))
    mean_error = float(np.mean(estimates.se**2))
    return var_theta / (var_theta + mean_error)


def scores_to_frame(
    estimates: AbilityEstimates,
    transform: ScaleTransform | None = None,
) -> pd.DataFrame:
    """
    Tabulate scores with one row per respondent.

    Args:
        estimates: EAP estimates.
        transform: If given, adds the expected summed score at each estimate.

    Returns:
        DataFrame indexed by respondent id with F1 and SE_F1 columns.
    """
    frame = pd.DataFrame({"F1": estimates.eap, "SE_F1": estimates.se})
    if estimates.respondent_ids:
        frame.index = pd.Index(estimates.respondent_ids, name="respondent_id")
    if transform is not None:
        frame["expected_sum_score"] = transform(estimates.eap)
    return frame
