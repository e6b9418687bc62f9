"""
Abstract item parameter representation shared by IRT models.
"""

from abc import ABC, abstractmethod

import numpy as np
from numpy.typing import NDArray
from pydantic import BaseModel, ConfigDict


class ItemParameters(BaseModel, ABC):
    """
    Parameters for one item under some IRT model.

    Subclasses define the model-specific parameters and how they map to
    category probabilities and to the flat vector used by the optimizer.

    Attributes:
        item_id: Identifier of the item (the source column name).
    """

    model_config = ConfigDict(frozen=True)

    item_id: str

    @property
    @abstractmethod
    def n_categories(self) -> int:
        """Number of response categories."""
        ...

    @abstractmethod
    def compute_probabilities(
        self, theta: NDArray[np.float64]
    ) -> NDArray[np.float64]:
        """
        Category probabilities at the given theta values.

        Args:
            theta: Ability values, shape (n_theta,).

        Returns:
            Probabilities, shape (n_theta, n_categories).
        """
        ...

    @abstractmethod
    def to_array(self) -> NDArray[np.float64]:
        """Flatten free parameters to a 1D array for optimization."""
        ...


def compute_item_log_likelihood(
    responses: NDArray[np.int8],
    params: ItemParameters,
    theta: NDArray[np.float64],
    missing_mask: NDArray[np.bool_],
) -> NDArray[np.float64]:
    """
    Log-likelihood contribution of one item at each theta.

    Args:
        responses: Responses to this item, shape (n_respondents,).
        params: Item parameters.
        theta: Theta values, shape (n_theta,).
        missing_mask: Boolean mask where True = missing.

    Returns:
        Log-likelihood matrix, shape (n_respondents, n_theta). Missing
        responses contribute 0.
    """
    # Shape: (n_theta, n_categories)
    log_probs = np.log(params.compute_probabilities(theta) + 1e-300)

    log_lik = np.zeros((len(responses), len(theta)), dtype=np.float64)

    # log_probs[:, valid_responses] gives (n_theta, n_valid)
    valid_mask = ~missing_mask
    valid_responses = responses[valid_mask].astype(np.int64)
    log_lik[valid_mask, :] = log_probs[:, valid_responses].T

    return log_lik
