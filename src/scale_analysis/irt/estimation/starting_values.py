"""
Starting value computation for IRT estimation.

This module provides data-driven initialization strategies for item parameters,
shared across different IRT models.
"""

import numpy as np
from numpy.typing import NDArray
from scipy.special import logit

from scale_analysis.core.data_models import ResponseMatrix


def compute_response_proportions(
    data: ResponseMatrix,
    item_idx: int,
    add_constant: float = 0.5,
) -> NDArray[np.float64]:
    """
    Compute response proportions for an item with additive smoothing.

    Args:
        data: Response matrix.
        item_idx: Index of the item.
        add_constant: Additive smoothing constant (Laplace smoothing).

    Returns:
        Array of shape (n_categories,) with smoothed proportions.
    """
    counts = data.item_response_counts(item_idx).astype(np.float64)
    total = counts.sum()

    if total == 0:
        # No valid responses - return uniform
        uniform: NDArray[np.float64] = (
            np.ones(data.n_categories, dtype=np.float64) / data.n_categories
        )
        return uniform

    # Additive smoothing
    smoothed: NDArray[np.float64] = (counts + add_constant) / (
        total + add_constant * data.n_categories
    )
    return smoothed


def compute_cumulative_logits(
    proportions: NDArray[np.float64],
) -> NDArray[np.float64]:
    """
    Compute logit(P(Y >= k)) for k = 1..K-1.

    With a zero slope these are the maximum likelihood GRM intercepts, so
    they make natural starting values (and the independence-model values).

    Args:
        proportions: Category proportions, shape (n_categories,). Every
            entry must be positive.

    Returns:
        Strictly decreasing array of shape (n_categories - 1,).
    """
    # P(Y >= k) = 1 - P(Y <= k-1)
    upper_tail = 1.0 - np.cumsum(proportions)[:-1]
    upper_tail = np.clip(upper_tail, 1e-10, 1.0 - 1e-10)
    result: NDArray[np.float64] = logit(upper_tail)
    return result
