"""
Diagnostic utilities for IRT model validation.

Provides functions to compare empirical response probabilities against
model-predicted probabilities.
"""

from dataclasses import dataclass

import numpy as np
import pandas as pd
from numpy.typing import NDArray

from scale_analysis.core.data_models import ResponseMatrix
from scale_analysis.irt.estimation.data_models import FittedModel


@dataclass
class ResponseProbComparison:
    """Comparison of empirical vs model response probabilities.

    One entry per (item, category). Categories are original codes.
    """

    item_id: NDArray[np.str_]
    category: NDArray[np.int64]
    empirical_prob: NDArray[np.float64]
    model_prob: NDArray[np.float64]
    difference: NDArray[np.float64]

    def to_frame(self) -> pd.DataFrame:
        return pd.DataFrame(
            {
                "item_id": self.item_id,
                "category": self.category,
                "empirical_prob": self.empirical_prob,
                "model_prob": self.model_prob,
                "difference": self.difference,
            }
        )


def compute_response_prob_comparison(
    data: ResponseMatrix,
    model: FittedModel,
    abilities: NDArray[np.float64],
) -> ResponseProbComparison:
    """Compare empirical vs model response probabilities.

    Empirical proportions use the respondents who answered the item; the
    model proportion averages P(category | theta_hat) over the same
    respondents.

    Args:
        data: Response matrix with observed responses
        model: Fitted IRT model
        abilities: Estimated ability values for each respondent

    Returns:
        ResponseProbComparison with empirical and model probabilities per item/category
    """
    n_categories = data.n_categories

    item_ids: list[str] = []
    categories: list[int] = []
    empirical_probs: list[float] = []
    model_probs: list[float] = []

    for item_idx, item_params in enumerate(model.item_parameters):
        valid = data.valid_mask[:, item_idx]
        n_valid = int(valid.sum())
        counts = data.item_response_counts(item_idx)

        # Model: average P(cat|theta) across respondents who answered
        probs = item_params.compute_probabilities(abilities[valid])
        mean_probs = probs.mean(axis=0) if n_valid else np.zeros(n_categories)

        for cat in range(n_categories):
            item_ids.append(item_params.item_id)
            categories.append(cat + data.min_category)
            empirical_probs.append(counts[cat] / n_valid if n_valid else 0.0)
            model_probs.append(float(mean_probs[cat]))

    empirical_arr = np.array(empirical_probs, dtype=np.float64)
    model_arr = np.array(model_probs, dtype=np.float64)

    return ResponseProbComparison(
        item_id=np.array(item_ids, dtype=np.str_),
        category=np.array(categories, dtype=np.int64),
        empirical_prob=empirical_arr,
        model_prob=model_arr,
        difference=empirical_arr - model_arr,
    )
