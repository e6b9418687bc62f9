from dataclasses import dataclass

import numpy as np
from numpy.typing import NDArray
from pydantic import BaseModel, ConfigDict, model_validator

from scale_analysis.irt.estimation.enums import ConvergenceStatus, ItemType
from scale_analysis.irt.estimation.grm.parameters import GRMItemParameters


@dataclass
class EStepResult:
    """
    Results from the E-step of EM algorithm.

    Attributes:
        posteriors: Posterior weights, shape (n_respondents, n_quadrature_points).
            posteriors[i, q] = P(theta = theta_q | responses_i, params).
        log_likelihood: Marginal log-likelihood for current parameters.
    """

    posteriors: NDArray[np.float64]
    log_likelihood: float


class ItemStandardErrors(BaseModel):
    """
    Asymptotic standard errors for one item.

    Attributes:
        item_id: Identifier of the item.
        slope: SE of the slope.
        intercepts: SE of each intercept d_k.
        locations: SE of each location b_k (delta method).
    """

    model_config = ConfigDict(frozen=True)

    item_id: str
    slope: float
    intercepts: tuple[float, ...]
    locations: tuple[float, ...]


class FittedModel(BaseModel):
    """
    Result of IRT model estimation.

    Items are always graded-response parameters. Information, fit and
    scoring code read slopes and intercepts directly, so any estimator
    feeding this model must emit GRMItemParameters.

    Attributes:
        item_parameters: Tuple of estimated item parameters, one per item.
        standard_errors: Standard errors per item, or None if not requested.
        log_likelihood: Final marginal log-likelihood value.
        n_iterations: Number of EM iterations performed.
        convergence_status: Status indicating how estimation terminated.
        n_respondents: Number of respondents the model was fitted to.
        min_category: Category code of the lowest category.
        item_type: IRT model family of every item.
        n_dimensions: Number of latent dimensions.
        prior_mean: Mean of the normal latent-trait prior.
        prior_std: Standard deviation of the latent-trait prior.
        model_version: Version string for reproducibility tracking.
    """

    model_config = ConfigDict(frozen=True)

    item_parameters: tuple[GRMItemParameters, ...]
    standard_errors: tuple[ItemStandardErrors, ...] | None = None
    log_likelihood: float
    n_iterations: int
    convergence_status: ConvergenceStatus
    n_respondents: int
    min_category: int = 0
    item_type: ItemType = ItemType.GRADED
    n_dimensions: int = 1
    prior_mean: float = 0.0
    prior_std: float = 1.0
    model_version: str

    @model_validator(mode="after")
    def _validate_consistent_items(self) -> "FittedModel":
        if not self.item_parameters:
            raise ValueError("FittedModel must have at least one item")
        n_categories = {p.n_categories for p in self.item_parameters}
        if len(n_categories) != 1:
            raise ValueError(
                f"All items must share a category count, got {n_categories}"
            )
        if self.standard_errors is not None and len(
            self.standard_errors
        ) != len(self.item_parameters):
            raise ValueError("standard_errors must have one entry per item")
        return self

    @property
    def n_items(self) -> int:
        """Number of items in the model."""
        return len(self.item_parameters)

    @property
    def n_categories(self) -> int:
        """Number of response categories per item."""
        return self.item_parameters[0].n_categories

    @property
    def item_ids(self) -> tuple[str, ...]:
        return tuple(p.item_id for p in self.item_parameters)

    @property
    def category_values(self) -> NDArray[np.float64]:
        """Original category codes, shape (n_categories,)."""
        return np.arange(
            self.min_category,
            self.min_category + self.n_categories,
            dtype=np.float64,
        )

    @property
    def prior_variance(self) -> float:
        return self.prior_std**2

    @property
    def converged(self) -> bool:
        """Whether estimation converged successfully."""
        return self.convergence_status == ConvergenceStatus.CONVERGED

    @property
    def n_free_parameters(self) -> int:
        return sum(
            GRMItemParameters.n_free_parameters(p.n_categories)
            for p in self.item_parameters
        )

    @property
    def aic(self) -> float:
        return -2.0 * self.log_likelihood + 2.0 * self.n_free_parameters

    @property
    def bic(self) -> float:
        return -2.0 * self.log_likelihood + self.n_free_parameters * float(
            np.log(self.n_respondents)
        )
