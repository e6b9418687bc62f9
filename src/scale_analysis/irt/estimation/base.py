"""
Abstract base classes for IRT estimation.

This module defines the extensible architecture for IRT model estimation:
- IRTEstimator: Abstract base with shared EM loop logic. Concrete
  estimators (one per item type) plug in the model-specific likelihood,
  M-step and post-processing, so downstream code only ever sees a
  FittedModel.
"""

import logging
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Generic, TypeVar

import numpy as np
from numpy.typing import NDArray

from scale_analysis.core.data_models import ResponseMatrix
from scale_analysis.core.exceptions import InsufficientDataError
from scale_analysis.irt.estimation.config import EstimationConfig
from scale_analysis.irt.estimation.data_models import (
    EStepResult,
    FittedModel,
)
from scale_analysis.irt.estimation.enums import ConvergenceStatus
from scale_analysis.irt.estimation.exceptions import (
    ConvergenceError,
    ConvergenceTimeout,
)
from scale_analysis.irt.estimation.parameters import ItemParameters
from scale_analysis.irt.estimation.quadrature import (
    GaussHermiteQuadrature,
    get_quadrature,
)

logger = logging.getLogger(__name__)

P = TypeVar("P", bound=ItemParameters)


@dataclass
class EMResult(Generic[P]):
    """
    Converged state of the EM loop.

    Attributes:
        item_parameters: Final item parameters.
        e_step: E-step evaluated at the final parameters.
        n_iterations: Number of EM iterations performed.
    """

    item_parameters: list[P]
    e_step: EStepResult
    n_iterations: int


class IRTEstimator(ABC, Generic[P]):
    """
    Abstract base class for IRT model estimators using MML-EM.

    Subclasses implement model-specific likelihood and M-step optimization.
    The EM loop and E-step are shared across all models.
    """

    def __init__(self, config: EstimationConfig | None = None):
        """
        Initialize estimator.

        Args:
            config: Estimation configuration. If None, uses defaults.
        """
        self.config = config or EstimationConfig()
        self._quadrature = get_quadrature(self.config.quadrature)

    @property
    def quadrature(self) -> GaussHermiteQuadrature:
        """Access quadrature points and weights."""
        return self._quadrature

    def fit(
        self,
        data: ResponseMatrix,
        compute_standard_errors: bool = True,
    ) -> FittedModel:
        """
        Fit IRT model to response data using EM algorithm.

        Args:
            data: Response matrix with respondent responses.
            compute_standard_errors: Whether to compute asymptotic SEs.

        Returns:
            FittedModel with estimated parameters.

        Raises:
            InsufficientDataError: If an item has an unobserved category.
            ConvergenceError: If EM fails or hits the iteration cap.
            ConvergenceTimeout: If EM exceeds its wall-clock budget.
        """
        self._check_category_coverage(data)
        em_result = self._run_em(data)
        return self._build_fitted_model(
            data, em_result, compute_standard_errors
        )

    def _run_em(self, data: ResponseMatrix) -> EMResult[P]:
        convergence = self.config.convergence
        started = time.monotonic()

        params = self._initialize(data)
        prev_ll = -np.inf

        for iteration in range(convergence.max_em_iterations):
            # E-step: compute posteriors
            e_result = self._e_step(data, params)
            logger.debug(
                f"Iteration {iteration + 1}: "
                f"LL = {e_result.log_likelihood:.4f}"
            )

            # Check for numerical issues
            if not np.isfinite(e_result.log_likelihood):
                raise ConvergenceError(
                    ConvergenceStatus.FAILED,
                    iteration + 1,
                    e_result.log_likelihood,
                )

            # Check convergence
            if self._check_convergence(e_result.log_likelihood, prev_ll):
                logger.info(
                    f"EM converged after {iteration + 1} iterations "
                    f"(LL = {e_result.log_likelihood:.4f})"
                )
                return EMResult(
                    item_parameters=params,
                    e_step=e_result,
                    n_iterations=iteration + 1,
                )

            elapsed = time.monotonic() - started
            if (
                convergence.timeout_seconds is not None
                and elapsed > convergence.timeout_seconds
            ):
                raise ConvergenceTimeout(
                    convergence.timeout_seconds,
                    iteration + 1,
                    e_result.log_likelihood,
                )

            prev_ll = e_result.log_likelihood

            # M-step: optimize parameters
            params = self._m_step(data, e_result.posteriors, params)

        raise ConvergenceError(
            ConvergenceStatus.MAX_ITERATIONS,
            convergence.max_em_iterations,
            prev_ll,
        )

    def _e_step(
        self,
        data: ResponseMatrix,
        params: list[P],
    ) -> EStepResult:
        """
        E-step: compute posterior distribution over abilities.

        For each respondent, compute:
            P(theta_q | responses) ∝ P(responses | theta_q) * P(theta_q)

        where P(theta_q) is the quadrature weight (prior).

        Args:
            data: Response matrix.
            params: Current item parameters.

        Returns:
            EStepResult with posteriors and marginal log-likelihood.
        """
        n_quadrature = self._quadrature.n_points

        # Shape: (n_respondents, n_quadrature_points)
        log_lik = np.zeros((data.n_respondents, n_quadrature), dtype=np.float64)

        # Add log prior (quadrature weights)
        log_prior = np.log(self._quadrature.weights + 1e-300)
        log_lik += log_prior[np.newaxis, :]

        # Add log-likelihood contribution from each item
        for item_idx, item_params in enumerate(params):
            log_lik += self._compute_item_log_likelihood(
                data.responses[:, item_idx],
                item_params,
                self._quadrature.points,
                data.missing_mask[:, item_idx],
            )

        # Log-sum-exp for numerical stability
        max_log_lik = np.max(log_lik, axis=1, keepdims=True)
        posteriors = np.exp(log_lik - max_log_lik)
        row_sums = posteriors.sum(axis=1, keepdims=True)
        posteriors = posteriors / (row_sums + 1e-300)

        # LL = sum over respondents of log(sum over theta of P(responses|theta) * P(theta))
        log_marginal = max_log_lik[:, 0] + np.log(row_sums[:, 0] + 1e-300)
        total_ll = float(np.sum(log_marginal))

        return EStepResult(posteriors=posteriors, log_likelihood=total_ll)

    def _m_step(
        self,
        data: ResponseMatrix,
        posteriors: NDArray[np.float64],
        current_params: list[P],
    ) -> list[P]:
        """
        M-step: optimize item parameters given posteriors.

        Args:
            data: Response matrix.
            posteriors: Posterior weights from E-step.
            current_params: Current parameter estimates.

        Returns:
            Updated parameter estimates.
        """
        return [
            self._optimize_item(
                responses=data.responses[:, item_idx],
                missing_mask=data.missing_mask[:, item_idx],
                posteriors=posteriors,
                current=current,
                n_categories=data.n_categories,
            )
            for item_idx, current in enumerate(current_params)
        ]

    def _check_convergence(self, current_ll: float, prev_ll: float) -> bool:
        """
        Check if EM has converged based on log-likelihood change.

        Args:
            current_ll: Current log-likelihood.
            prev_ll: Previous log-likelihood.

        Returns:
            True if converged.
        """
        if prev_ll == -np.inf:
            return False

        # Absolute change in log-likelihood
        abs_change = abs(current_ll - prev_ll)
        return bool(abs_change < self.config.convergence.em_tolerance)

    @staticmethod
    def _check_category_coverage(data: ResponseMatrix) -> None:
        for item_idx, item_id in enumerate(data.item_ids):
            counts = data.item_response_counts(item_idx)
            if counts.sum() == 0:
                raise InsufficientDataError(
                    f"Item {item_id} has no observed responses",
                    item_id=item_id,
                )
            empty = np.flatnonzero(counts == 0)
            if len(empty) > 0:
                codes = [int(k) + data.min_category for k in empty]
                raise InsufficientDataError(
                    f"Item {item_id} has no responses in categories {codes}",
                    item_id=item_id,
                )

    @abstractmethod
    def _initialize(self, data: ResponseMatrix) -> list[P]:
        """
        Initialize item parameters.

        Args:
            data: Response matrix.

        Returns:
            List of initial parameter estimates.
        """
        ...

    @abstractmethod
    def _compute_item_log_likelihood(
        self,
        responses: NDArray[np.int8],
        params: P,
        theta: NDArray[np.float64],
        missing_mask: NDArray[np.bool_],
    ) -> NDArray[np.float64]:
        """
        Compute log-likelihood contribution of one item.

        Args:
            responses: Responses to this item, shape (n_respondents,).
            params: Item parameters.
            theta: Quadrature points, shape (n_quadrature,).
            missing_mask: Boolean mask where True = missing, shape (n_respondents,).

        Returns:
            Log-likelihood matrix, shape (n_respondents, n_quadrature).
            Missing responses contribute 0 to log-likelihood.
        """
        ...

    @abstractmethod
    def _optimize_item(
        self,
        responses: NDArray[np.int8],
        missing_mask: NDArray[np.bool_],
        posteriors: NDArray[np.float64],
        current: P,
        n_categories: int,
    ) -> P:
        """
        Optimize parameters for one item in M-step.

        Args:
            responses: Responses to this item, shape (n_respondents,).
            missing_mask: Boolean mask where True = missing.
            posteriors: Posterior weights, shape (n_respondents, n_quadrature).
            current: Current parameter estimates.
            n_categories: Number of response categories.

        Returns:
            Optimized item parameters.
        """
        ...

    @abstractmethod
    def _build_fitted_model(
        self,
        data: ResponseMatrix,
        em_result: EMResult[P],
        compute_standard_errors: bool,
    ) -> FittedModel:
        """Package the converged EM state as an immutable FittedModel."""
        ...
