"""
S-X2 item fit (Orlando & Thissen, 2000; Kang & Chen, 2008).

Respondents are grouped by summed score s. For item j, the model-implied
proportion choosing category k within score group s is

    E_jks = Σ_q w_q P_jk(θ_q) L^{-j}(s - k | θ_q) / Σ_q w_q L(s | θ_q)

where L(s | θ) is the summed-score likelihood from the Lord-Wingersky
recursion and L^{-j} excludes item j. Observed and expected proportions
are compared with a Pearson statistic after collapsing sparse cells.
"""

import logging

import numpy as np
from numpy.typing import NDArray
from scipy.stats import chi2

from scale_analysis.core.data_models import ResponseMatrix
from scale_analysis.core.exceptions import InsufficientDataError
from scale_analysis.irt.estimation.config import QuadratureConfig
from scale_analysis.irt.estimation.data_models import FittedModel
from scale_analysis.irt.estimation.grm.parameters import GRMItemParameters
from scale_analysis.irt.estimation.quadrature import get_quadrature
from scale_analysis.irt.fit.data_models import ItemFit
from scale_analysis.irt.fit.m2 import check_model_data_compatible

logger = logging.getLogger(__name__)

# Expected cell count below which adjacent categories are merged
DEFAULT_MIN_EXPECTED = 1.0


def summed_score_likelihood(
    probabilities: list[NDArray[np.float64]],
) -> NDArray[np.float64]:
    """
    Lord-Wingersky recursion for the summed-score distribution.

    Args:
        probabilities: Category probabilities per item, each of shape
            (n_quadrature, n_categories).

    Returns:
        L(s | θ_q), shape (n_quadrature, max_score + 1).
    """
    n_quadrature = probabilities[0].shape[0]
    dist = np.ones((n_quadrature, 1), dtype=np.float64)
    for probs in probabilities:
        n_categories = probs.shape[1]
        width = dist.shape[1]
        updated = np.zeros((n_quadrature, width + n_categories - 1))
        for k in range(n_categories):
            updated[:, k : k + width] += dist * probs[:, k : k + 1]
        dist = updated
    return dist


def collapse_cells(
    observed: NDArray[np.float64],
    expected: NDArray[np.float64],
    min_expected: float = DEFAULT_MIN_EXPECTED,
) -> tuple[NDArray[np.float64], NDArray[np.float64]]:
    """
    Merge adjacent cells until every expected count reaches min_expected.

    Args:
        observed: Observed counts in category order.
        expected: Expected counts in category order.
        min_expected: Minimum expected count per cell.

    Returns:
        Collapsed (observed, expected) counts.
    """
    out_obs: list[float] = []
    out_exp: list[float] = []
    acc_obs = 0.0
    acc_exp = 0.0
    for o, e in zip(observed, expected):
        acc_obs += o
        acc_exp += e
        if acc_exp >= min_expected:
            out_obs.append(acc_obs)
            out_exp.append(acc_exp)
            acc_obs = acc_exp = 0.0

    # Leftover tail joins the last full cell
    if acc_exp > 0 or acc_obs > 0:
        if out_exp:
            out_obs[-1] += acc_obs
            out_exp[-1] += acc_exp
        else:
            out_obs.append(acc_obs)
            out_exp.append(acc_exp)

    return np.array(out_obs), np.array(out_exp)


def compute_item_fit(
    item_idx: int,
    item_parameters: tuple[GRMItemParameters, ...],
    responses: NDArray[np.int64],
    weights: NDArray[np.float64],
    probabilities: list[NDArray[np.float64]],
    full_likelihood: NDArray[np.float64],
    min_expected: float = DEFAULT_MIN_EXPECTED,
) -> ItemFit:
    """
    S-X2 statistic for one item.

    Args:
        item_idx: Index of the item.
        item_parameters: Parameters of every item.
        responses: Complete 0-based responses, shape (n_respondents, n_items).
        weights: Quadrature weights.
        probabilities: Category probabilities per item at the quadrature points.
        full_likelihood: Summed-score likelihood over all items.
        min_expected: Minimum expected count per cell.

    Returns:
        ItemFit for the item.
    """
    params = item_parameters[item_idx]
    n_categories = params.n_categories
    rest = summed_score_likelihood(
        [p for i, p in enumerate(probabilities) if i != item_idx]
    )
    max_rest = rest.shape[1] - 1

    scores = responses.sum(axis=1)
    item_responses = responses[:, item_idx]
    marginal = weights @ full_likelihood
    item_probs = probabilities[item_idx]

    statistic = 0.0
    n_cells = 0
    for s in np.unique(scores):
        in_group = scores == s
        n_group = int(in_group.sum())

        feasible = [
            k for k in range(n_categories) if 0 <= s - k <= max_rest
        ]
        if len(feasible) < 2 or marginal[s] <= 0:
            continue

        expected = np.array(
            [weights @ (item_probs[:, k] * rest[:, s - k]) for k in feasible]
        ) / marginal[s]
        observed = np.array(
            [np.sum(item_responses[in_group] == k) for k in feasible],
            dtype=np.float64,
        )

        obs_cells, exp_cells = collapse_cells(
            observed, n_group * expected, min_expected
        )
        if len(exp_cells) < 2:
            continue
        statistic += float(np.sum((obs_cells - exp_cells) ** 2 / exp_cells))
        n_cells += len(exp_cells) - 1

    df = n_cells - GRMItemParameters.n_free_parameters(n_categories)
    n_respondents = responses.shape[0]
    if df <= 0:
        logger.warning(
            f"S-X2 for item {params.item_id} has {df} degrees of freedom"
        )
        p_value = rmsea = float("nan")
    else:
        p_value = float(chi2.sf(statistic, df))
        rmsea = float(
            np.sqrt(max(statistic - df, 0.0) / (df * (n_respondents - 1)))
        )

    return ItemFit(
        item_id=params.item_id,
        statistic=statistic,
        df=df,
        p_value=p_value,
        rmsea=rmsea,
    )


def item_fit(
    model: FittedModel,
    data: ResponseMatrix,
    min_expected: float = DEFAULT_MIN_EXPECTED,
    n_quadrature: int = 41,
) -> dict[str, ItemFit]:
    """
    S-X2 item fit for every item.

    Only complete response rows enter the statistic, since summed scores
    are undefined with missing responses.

    Args:
        model: Converged fitted model.
        data: Response matrix the model was fitted to.
        min_expected: Minimum expected count per cell before collapsing.
        n_quadrature: Quadrature points for the summed-score likelihoods.

    Returns:
        Mapping from item id to ItemFit, in item order.
    """
    check_model_data_compatible(model, data)
    complete = data.subset_rows(data.complete_rows)
    if complete.n_respondents < 2:
        raise InsufficientDataError(
            "S-X2 requires at least 2 complete response rows, "
            f"got {complete.n_respondents}"
        )

    quadrature = get_quadrature(
        QuadratureConfig(
            n_points=n_quadrature, mean=model.prior_mean, std=model.prior_std
        )
    )
    probabilities = [
        p.compute_probabilities(quadrature.points)
        for p in model.item_parameters
    ]
    full_likelihood = summed_score_likelihood(probabilities)
    responses = complete.responses.astype(np.int64)

    return {
        params.item_id: compute_item_fit(
            item_idx,
            model.item_parameters,
            responses,
            quadrature.weights,
            probabilities,
            full_likelihood,
            min_expected,
        )
        for item_idx, params in enumerate(model.item_parameters)
    }
