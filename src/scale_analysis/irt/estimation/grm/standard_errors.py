"""
Cross-product (BHHH) standard errors for GRM item parameters.

The information matrix is approximated by the outer product of the
per-respondent scores of the marginal log-likelihood:

    s_i = ∂ log L_i / ∂ψ = Σ_q P(θ_q | y_i) ∂ log P(y_i | θ_q) / ∂ψ
    I ≈ Σ_i s_i s_i'

Standard errors of the locations b_k = -d_k / a follow from the delta
method with gradient (d_k / a², -1 / a) in (a, d_k).
"""

import logging

import numpy as np
from numpy.typing import NDArray

from scale_analysis.core.data_models import ResponseMatrix
from scale_analysis.irt.estimation.data_models import ItemStandardErrors
from scale_analysis.irt.estimation.grm.gradients import (
    PROB_EPS,
    compute_grm_probability_jacobian,
)
from scale_analysis.irt.estimation.grm.parameters import GRMItemParameters

logger = logging.getLogger(__name__)


def compute_item_scores(
    data: ResponseMatrix,
    item_idx: int,
    params: GRMItemParameters,
    posteriors: NDArray[np.float64],
    theta: NDArray[np.float64],
) -> NDArray[np.float64]:
    """
    Per-respondent score vectors for one item's natural parameters.

    Args:
        data: Response matrix.
        item_idx: Index of the item.
        params: Item parameters at the MLE.
        posteriors: Posterior weights, shape (n_respondents, n_quadrature).
        theta: Quadrature points, shape (n_quadrature,).

    Returns:
        Scores, shape (n_respondents, n_categories). Rows for respondents
        who skipped the item are zero.
    """
    probs = params.compute_probabilities(theta)
    jac = compute_grm_probability_jacobian(
        theta, params.slope, np.array(params.intercepts, dtype=np.float64)
    )
    # ∂ log P_k / ∂ψ, shape (n_quadrature, K, n_params)
    dlog = jac / np.maximum(probs, PROB_EPS)[:, :, np.newaxis]

    scores = np.zeros((data.n_respondents, params.n_categories))
    valid = data.valid_mask[:, item_idx]
    observed = data.responses[valid, item_idx].astype(np.int64)
    scores[valid] = np.einsum(
        "iq,qip->ip", posteriors[valid], dlog[:, observed, :]
    )
    return scores


def _invert_information(
    information: NDArray[np.float64],
) -> NDArray[np.float64]:
    try:
        return np.linalg.inv(information)
    except np.linalg.LinAlgError:
        logger.warning(
            "Information matrix is singular; using pseudo-inverse for SEs"
        )
        result: NDArray[np.float64] = np.linalg.pinv(information)
        return result


def _safe_sqrt(variances: NDArray[np.float64]) -> NDArray[np.float64]:
    result: NDArray[np.float64] = np.sqrt(
        np.where(variances >= 0, variances, np.nan)
    )
    return result


def compute_standard_errors(
    data: ResponseMatrix,
    item_parameters: list[GRMItemParameters],
    posteriors: NDArray[np.float64],
    theta: NDArray[np.float64],
) -> tuple[ItemStandardErrors, ...]:
    """
    Compute cross-product standard errors for all items.

    Args:
        data: Response matrix the model was fitted to.
        item_parameters: Item parameters at the MLE.
        posteriors: Posterior weights at the MLE.
        theta: Quadrature points used for the posteriors.

    Returns:
        One ItemStandardErrors per item.
    """
    blocks = [
        compute_item_scores(data, j, params, posteriors, theta)
        for j, params in enumerate(item_parameters)
    ]
    scores = np.hstack(blocks)
    covariance = _invert_information(scores.T @ scores)

    results: list[ItemStandardErrors] = []
    offset = 0
    for params in item_parameters:
        n_params = params.n_categories
        block = covariance[offset : offset + n_params, offset : offset + n_params]
        offset += n_params

        se = _safe_sqrt(np.diag(block))
        slope = params.slope

        location_se: list[float] = []
        for k, d_k in enumerate(params.intercepts, start=1):
            if slope == 0:
                location_se.append(float("nan"))
                continue
            gradient = np.array([d_k / slope**2, -1.0 / slope])
            sub = block[np.ix_([0, k], [0, k])]
            location_se.append(float(_safe_sqrt(gradient @ sub @ gradient)))

        results.append(
            ItemStandardErrors(
                item_id=params.item_id,
                slope=float(se[0]),
                intercepts=tuple(float(s) for s in se[1:]),
                locations=tuple(location_se),
            )
        )

    return tuple(results)
