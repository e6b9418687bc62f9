"""
Response sampling for IRT models.

This module provides functions to sample responses given abilities and
item parameters. Works with any ItemParameters subclass.

Missing responses are injected completely at random after sampling and are
encoded as MISSING_VALUE (-1).
"""

from collections.abc import Sequence

import numpy as np
from numpy.random import Generator
from numpy.typing import NDArray

from scale_analysis.core.constants import MISSING_VALUE
from scale_analysis.core.data_models import ResponseMatrix
from scale_analysis.core.utils import get_rng
from scale_analysis.irt.estimation.abilities import estimate_abilities
from scale_analysis.irt.estimation.data_models import FittedModel
from scale_analysis.irt.estimation.parameters import ItemParameters


def sample_response(
    ability: float,
    item_params: ItemParameters,
    rng: Generator | None = None,
) -> int:
    """
    Sample a single response given ability and item parameters.

    Args:
        ability: Respondent's latent trait.
        item_params: Item parameters.
        rng: Random number generator.

    Returns:
        Index of the sampled category (0-based).
    """
    if rng is None:
        rng = get_rng()

    theta = np.array([ability], dtype=np.float64)
    probs = item_params.compute_probabilities(theta)[0]
    return int(rng.choice(item_params.n_categories, p=probs))


def sample_responses_batch(
    abilities: NDArray[np.float64],
    item_params_list: Sequence[ItemParameters],
    rng: Generator | None = None,
    missing_rate: float = 0.0,
) -> NDArray[np.int8]:
    """
    Sample responses for all respondents and items.

    Uses vectorized probability computation and sampling for efficiency.

    Args:
        abilities: Array of shape (n_respondents,) with ability values.
        item_params_list: Item parameters, one per item.
        rng: Random number generator.
        missing_rate: Probability that any single response is missing.

    Returns:
        Array of shape (n_respondents, n_items) with response indices.
        Missing responses are encoded as MISSING_VALUE (-1).
    """
    if not 0.0 <= missing_rate < 1.0:
        raise ValueError(f"missing_rate must be in [0, 1), got {missing_rate}")
    if rng is None:
        rng = get_rng()

    n_respondents = len(abilities)
    n_items = len(item_params_list)

    responses = np.empty((n_respondents, n_items), dtype=np.int8)

    for j, item_params in enumerate(item_params_list):
        # Compute probabilities for all respondents at once
        probs = item_params.compute_probabilities(abilities)

        # Vectorized sampling using cumulative probabilities
        cumprobs = np.cumsum(probs, axis=1)
        u = rng.random(n_respondents)

        # Find the category index where cumulative probability exceeds u
        sampled = np.minimum(
            (cumprobs < u[:, np.newaxis]).sum(axis=1),
            item_params.n_categories - 1,
        )
        responses[:, j] = sampled.astype(np.int8)

    if missing_rate > 0:
        responses[rng.random(responses.shape) < missing_rate] = MISSING_VALUE

    return responses


def generate_response_matrix(
    item_params_list: Sequence[ItemParameters],
    n_respondents: int,
    rng: Generator | None = None,
    min_category: int = 0,
    missing_rate: float = 0.0,
    prior_mean: float = 0.0,
    prior_std: float = 1.0,
) -> tuple[ResponseMatrix, NDArray[np.float64]]:
    """
    Simulate a response matrix from known item parameters.

    Args:
        item_params_list: Item parameters, one per item. All items must
            share a category count.
        n_respondents: Number of simulated respondents.
        rng: Random number generator.
        min_category: Category code for index 0 in the returned matrix.
        missing_rate: Probability that any single response is missing.
        prior_mean: Mean of the simulated trait distribution.
        prior_std: Standard deviation of the simulated trait distribution.

    Returns:
        Tuple of (response matrix, true abilities).
    """
    n_categories = {p.n_categories for p in item_params_list}
    if len(n_categories) != 1:
        raise ValueError(
            f"All items must share a category count, got {n_categories}"
        )
    if rng is None:
        rng = get_rng()

    abilities = rng.normal(prior_mean, prior_std, size=n_respondents)
    responses = sample_responses_batch(
        abilities, item_params_list, rng, missing_rate=missing_rate
    )
    matrix = ResponseMatrix(
        responses=responses,
        n_categories=n_categories.pop(),
        min_category=min_category,
        item_ids=tuple(p.item_id for p in item_params_list),
    )
    return matrix, abilities


def sample_synthetic_responses(
    data: ResponseMatrix,
    model: FittedModel,
    rng: Generator | None = None,
) -> ResponseMatrix:
    """
    Sample a replicate dataset from a fitted IRT model.

    Abilities are the EAP estimates of the original respondents, and the
    original missingness pattern is preserved.

    Args:
        data: Original response matrix (used to estimate abilities).
        model: Fitted IRT model with item parameters.
        rng: Random number generator.

    Returns:
        ResponseMatrix with sampled responses.
    """
    abilities = estimate_abilities(data, model)
    sample = sample_responses_batch(
        abilities.eap, list(model.item_parameters), rng
    )
    sample[data.missing_mask] = MISSING_VALUE
    return ResponseMatrix(
        responses=sample,
        n_categories=model.n_categories,
        min_category=data.min_category,
        item_ids=data.item_ids,
        respondent_ids=data.respondent_ids,
    )
