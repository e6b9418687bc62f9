"""
Ability estimation for IRT models.

This module provides Expected A Posteriori (EAP) ability estimation over
a bounded theta grid weighted by the latent-trait prior. Respondents are
independent given the item parameters, so the full matrix is scored in
chunks on a thread pool and reassembled by respondent index.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass

import numpy as np
from numpy.typing import NDArray

from scale_analysis.core.data_models import ResponseMatrix
from scale_analysis.core.utils import resolve_n_workers
from scale_analysis.irt.estimation.config import (
    QuadratureConfig,
    ScoringGridConfig,
)
from scale_analysis.irt.estimation.data_models import FittedModel
from scale_analysis.irt.estimation.parameters import (
    compute_item_log_likelihood,
)
from scale_analysis.irt.estimation.quadrature import (
    GaussHermiteQuadrature,
    get_scoring_grid,
)

logger = logging.getLogger(__name__)

# Respondents per thread-pool task
DEFAULT_CHUNK_SIZE = 512


@dataclass(frozen=True)
class AbilityEstimates:
    """
    Ability estimates for respondents.

    Attributes:
        eap: Expected A Posteriori (posterior mean) estimates, shape (n_respondents,).
        se: Standard errors (posterior standard deviation), shape (n_respondents,).
        respondent_ids: Identifier of each row.
    """

    eap: NDArray[np.float64]
    se: NDArray[np.float64]
    respondent_ids: tuple[str, ...] = ()

    @property
    def n_respondents(self) -> int:
        """Number of respondents."""
        return len(self.eap)


def _scoring_grid(
    model: FittedModel, grid: ScoringGridConfig | None
) -> GaussHermiteQuadrature:
    prior = QuadratureConfig(mean=model.prior_mean, std=model.prior_std)
    return get_scoring_grid(grid or ScoringGridConfig(), prior)


def _eap_from_responses(
    responses: NDArray[np.int8],
    missing_mask: NDArray[np.bool_],
    model: FittedModel,
    grid: GaussHermiteQuadrature,
) -> tuple[NDArray[np.float64], NDArray[np.float64]]:
    """
    Posterior mean and standard deviation for a block of respondents.

    Args:
        responses: 0-based responses, shape (n_rows, n_items).
        missing_mask: True where a response is missing.
        model: Fitted model.
        grid: Theta grid with prior weights.

    Returns:
        Tuple of (eap, se), each shape (n_rows,).
    """
    theta = grid.points

    log_lik = np.zeros((responses.shape[0], len(theta)), dtype=np.float64)
    log_lik += np.log(grid.weights + 1e-300)[np.newaxis, :]

    # Missing items drop out of the product; the prior is untouched
    for item_idx, item_params in enumerate(model.item_parameters):
        log_lik += compute_item_log_likelihood(
            responses[:, item_idx],
            item_params,
            theta,
            missing_mask[:, item_idx],
        )

    max_log_lik = np.max(log_lik, axis=1, keepdims=True)
    posteriors = np.exp(log_lik - max_log_lik)
    posteriors = posteriors / (posteriors.sum(axis=1, keepdims=True) + 1e-300)

    # EAP: posterior mean
    eap = posteriors @ theta

    # SE: posterior standard deviation, E[θ²] - E[θ]²
    variance = np.maximum(posteriors @ theta**2 - eap**2, 0.0)
    return eap, np.sqrt(variance)


def estimate_theta(
    model: FittedModel,
    response_row: NDArray[np.int_],
    grid: ScoringGridConfig | None = None,
) -> tuple[float, float]:
    """
    EAP estimate for a single respondent.

    Args:
        model: Fitted model.
        response_row: 0-based category indices, shape (n_items,); negative
            values mark missing responses.
        grid: Scoring grid. Defaults to [-6, 6] with 121 points.

    Returns:
        Tuple of (theta_hat, se).
    """
    row = np.asarray(response_row, dtype=np.int64).reshape(1, -1)
    if row.shape[1] != model.n_items:
        raise ValueError(
            f"Response row has {row.shape[1]} items, model has {model.n_items}"
        )
    missing = row < 0
    if np.any(row[~missing] >= model.n_categories):
        raise ValueError(
            f"Response row has categories outside 0..{model.n_categories - 1}"
        )
    eap, se = _eap_from_responses(
        row.astype(np.int8), missing, model, _scoring_grid(model, grid)
    )
    return float(eap[0]), float(se[0])


def estimate_abilities(
    data: ResponseMatrix,
    model: FittedModel,
    grid: ScoringGridConfig | None = None,
    n_workers: int | None = None,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
) -> AbilityEstimates:
    """
    Estimate abilities using Expected A Posteriori (EAP) method.

    EAP estimates are the posterior mean of ability given the responses
    and estimated item parameters:
        θ_EAP = E[θ | responses] = Σ_q θ_q * P(θ_q | responses)

    Standard errors are the posterior standard deviation:
        SE = sqrt(E[θ² | responses] - (E[θ | responses])²)

    Args:
        data: Response matrix.
        model: Fitted IRT model with item parameters.
        grid: Scoring grid. Defaults to [-6, 6] with 121 points.
        n_workers: Thread-pool size. None uses all available cores.
        chunk_size: Respondents per task.

    Returns:
        AbilityEstimates with EAP estimates and standard errors.
    """
    if data.n_items != model.n_items:
        raise ValueError(
            f"Data has {data.n_items} items, model has {model.n_items}"
        )
    if chunk_size < 1:
        raise ValueError(f"chunk_size must be >= 1, got {chunk_size}")

    scoring_grid = _scoring_grid(model, grid)
    n_respondents = data.n_respondents
    starts = list(range(0, n_respondents, chunk_size))
    workers = min(resolve_n_workers(n_workers), max(len(starts), 1))

    def score_chunk(
        start: int,
    ) -> tuple[int, NDArray[np.float64], NDArray[np.float64]]:
        stop = min(start + chunk_size, n_respondents)
        eap, se = _eap_from_responses(
            data.responses[start:stop],
            data.missing_mask[start:stop],
            model,
            scoring_grid,
        )
        return start, eap, se

    eap = np.empty(n_respondents, dtype=np.float64)
    se = np.empty(n_respondents, dtype=np.float64)

    logger.debug(
        f"Scoring {n_respondents} respondents in {len(starts)} chunks "
        f"on {workers} workers"
    )
    with ThreadPoolExecutor(max_workers=workers) as executor:
        for start, chunk_eap, chunk_se in executor.map(score_chunk, starts):
            eap[start : start + len(chunk_eap)] = chunk_eap
            se[start : start + len(chunk_se)] = chunk_se

    return AbilityEstimates(
        eap=eap, se=se, respondent_ids=data.respondent_ids
    )
