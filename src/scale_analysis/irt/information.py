"""
Fisher information, conditional standard errors and reliability.

For a graded item the information at θ is

    I_j(θ) = Σ_k (∂P_jk/∂θ)² / P_jk(θ)

and the scale information is the sum over items. The conditional standard
error is 1 / sqrt(I(θ)) and the conditional reliability is
σ² / (σ² + SE(θ)²), with σ² the prior variance of the latent trait.
"""

from collections.abc import Sequence

import numpy as np
from numpy.typing import ArrayLike, NDArray

from scale_analysis.irt.estimation.config import QuadratureConfig
from scale_analysis.irt.estimation.data_models import FittedModel
from scale_analysis.irt.estimation.grm.gradients import (
    PROB_EPS,
    compute_grm_theta_derivative,
)
from scale_analysis.irt.estimation.grm.parameters import GRMItemParameters
from scale_analysis.irt.estimation.quadrature import get_quadrature


def item_information(
    params: GRMItemParameters, theta: ArrayLike
) -> NDArray[np.float64]:
    """
    Fisher information of one item.

    Args:
        params: Item parameters.
        theta: Ability values, shape (n_theta,).

    Returns:
        Information, shape (n_theta,). Non-negative.
    """
    theta_arr = np.atleast_1d(np.asarray(theta, dtype=np.float64))
    probs = params.compute_probabilities(theta_arr)
    derivative = compute_grm_theta_derivative(
        theta_arr, params.slope, np.array(params.intercepts, dtype=np.float64)
    )
    result: NDArray[np.float64] = np.sum(
        derivative**2 / np.maximum(probs, PROB_EPS), axis=1
    )
    return result


def item_information_matrix(
    model: FittedModel, theta: ArrayLike
) -> NDArray[np.float64]:
    """Information of every item, shape (n_theta, n_items)."""
    return np.column_stack(
        [item_information(p, theta) for p in model.item_parameters]
    )


def scale_information(
    model: FittedModel,
    theta: ArrayLike,
    items: Sequence[str] | None = None,
) -> NDArray[np.float64]:
    """
    Sum of item information over the scale (or a subset of items).

    Args:
        model: Fitted model.
        theta: Ability values, shape (n_theta,).
        items: Item ids to include. None includes every item.

    Returns:
        Scale information, shape (n_theta,).
    """
    selected = model.item_parameters
    if items is not None:
        unknown = set(items) - set(model.item_ids)
        if unknown:
            raise ValueError(f"Unknown item ids: {sorted(unknown)}")
        selected = tuple(p for p in selected if p.item_id in set(items))

    total = np.zeros(np.atleast_1d(theta).shape, dtype=np.float64)
    for params in selected:
        total += item_information(params, theta)
    return total


def standard_error(information: ArrayLike) -> NDArray[np.float64]:
    """Conditional standard error 1 / sqrt(I); infinite where I = 0."""
    info = np.asarray(information, dtype=np.float64)
    with np.errstate(divide="ignore"):
        result: NDArray[np.float64] = 1.0 / np.sqrt(info)
    return result


def conditional_reliability(
    se: ArrayLike, prior_variance: float = 1.0
) -> NDArray[np.float64]:
    """
    Reliability σ² / (σ² + SE²) at each theta.

    Args:
        se: Conditional standard errors.
        prior_variance: Variance of the latent-trait prior.

    Returns:
        Reliability in [0, 1].
    """
    se_arr = np.asarray(se, dtype=np.float64)
    result: NDArray[np.float64] = prior_variance / (prior_variance + se_arr**2)
    return result


def marginal_reliability(model: FittedModel, n_quadrature: int = 41) -> float:
    """
    Reliability averaged over the latent-trait prior.

        ρ = Σ_q w_q I(θ_q) / (I(θ_q) + 1/σ²)

    Args:
        model: Fitted model.
        n_quadrature: Quadrature points for the prior.

    Returns:
        Marginal reliability in [0, 1).
    """
    quadrature = get_quadrature(
        QuadratureConfig(
            n_points=n_quadrature, mean=model.prior_mean, std=model.prior_std
        )
    )
    info = scale_information(model, quadrature.points)
    return float(
        quadrature.weights @ (info / (info + 1.0 / model.prior_variance))
    )
