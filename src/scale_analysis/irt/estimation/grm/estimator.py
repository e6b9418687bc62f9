"""
GRM estimator using MML-EM algorithm.

Implements the Graded Response Model (Samejima, 1969) estimator
with Marginal Maximum Likelihood via EM.
"""

import logging

import numpy as np
from numpy.typing import NDArray
from scipy.optimize import minimize

from scale_analysis.core.data_models import ResponseMatrix
from scale_analysis.irt.estimation.base import EMResult, IRTEstimator
from scale_analysis.irt.estimation.data_models import FittedModel
from scale_analysis.irt.estimation.enums import ConvergenceStatus, ItemType
from scale_analysis.irt.estimation.grm.gradients import (
    grm_negative_expected_log_likelihood,
    grm_negative_expected_log_likelihood_gradient,
)
from scale_analysis.irt.estimation.grm.parameters import (
    DEFAULT_INITIAL_SLOPE,
    GRMItemParameters,
)
from scale_analysis.irt.estimation.grm.standard_errors import (
    compute_standard_errors as compute_item_standard_errors,
)
from scale_analysis.irt.estimation.parameters import (
    compute_item_log_likelihood,
)
from scale_analysis.irt.estimation.starting_values import (
    compute_cumulative_logits,
    compute_response_proportions,
)

logger = logging.getLogger(__name__)


class GRMEstimator(IRTEstimator[GRMItemParameters]):
    """
    Graded Response Model estimator using MML-EM.

    The GRM probability model:
        P*(Y >= k | θ) = logistic(a * θ + d_k)
        P(Y = k | θ) = P*(Y >= k | θ) - P*(Y >= k+1 | θ)

    Identification: θ ~ N(mean, std^2) with the prior fixed by the
    quadrature configuration.

    Uses L-BFGS-B for M-step optimization with analytical gradients.
    """

    def _initialize(self, data: ResponseMatrix) -> list[GRMItemParameters]:
        """
        Initialize parameters from marginal category frequencies.

        - Slopes start at the conventional 0.851
        - Intercepts start at the cumulative logits logit(P(Y >= k))

        Args:
            data: Response matrix.

        Returns:
            List of initial GRMItemParameters.
        """
        params = []
        for item_idx, item_id in enumerate(data.item_ids):
            proportions = compute_response_proportions(data, item_idx)
            intercepts = compute_cumulative_logits(proportions)
            params.append(
                GRMItemParameters(
                    item_id=item_id,
                    slope=DEFAULT_INITIAL_SLOPE,
                    intercepts=tuple(float(d) for d in intercepts),
                )
            )
        return params

    def _compute_item_log_likelihood(
        self,
        responses: NDArray[np.int8],
        params: GRMItemParameters,
        theta: NDArray[np.float64],
        missing_mask: NDArray[np.bool_],
    ) -> NDArray[np.float64]:
        return compute_item_log_likelihood(
            responses, params, theta, missing_mask
        )

    def _optimize_item(
        self,
        responses: NDArray[np.int8],
        missing_mask: NDArray[np.bool_],
        posteriors: NDArray[np.float64],
        current: GRMItemParameters,
        n_categories: int,
    ) -> GRMItemParameters:
        """
        Optimize parameters for one item using L-BFGS-B.

        The objective only depends on the posteriors through the expected
        category counts at each quadrature point, so those are formed once
        per item.

        Args:
            responses: Responses to this item, shape (n_respondents,).
            missing_mask: Boolean mask where True = missing.
            posteriors: Posterior weights, shape (n_respondents, n_quadrature).
            current: Current parameter estimates.
            n_categories: Number of response categories.

        Returns:
            Optimized GRMItemParameters.
        """
        valid_mask = ~missing_mask
        valid_responses = responses[valid_mask].astype(np.int64)

        if len(valid_responses) == 0:
            return current

        # Shape: (n_valid, n_categories)
        n_valid = len(valid_responses)
        response_indicators = np.zeros(
            (n_valid, n_categories), dtype=np.float64
        )
        response_indicators[np.arange(n_valid), valid_responses] = 1.0

        # r[k, q] = Σ_i I[Y_i = k] P(θ_q | y_i)
        expected_counts = response_indicators.T @ posteriors[valid_mask, :]

        bounds = self.config.bounds
        x0 = current.to_array()
        result = minimize(
            fun=grm_negative_expected_log_likelihood,
            x0=x0,
            args=(self._quadrature.points, expected_counts),
            method="L-BFGS-B",
            jac=grm_negative_expected_log_likelihood_gradient,
            bounds=[bounds.slope, bounds.intercept]
            + [bounds.log_increment] * (n_categories - 2),
            options={
                "maxiter": self.config.convergence.max_lbfgs_iterations,
                "ftol": self.config.convergence.lbfgs_tolerance,
            },
        )

        if not np.all(np.isfinite(result.x)):
            logger.warning(
                f"M-step for item {current.item_id} produced non-finite "
                "parameters; keeping previous estimates"
            )
            return current

        return GRMItemParameters.from_array(current.item_id, result.x)

    def _build_fitted_model(
        self,
        data: ResponseMatrix,
        em_result: EMResult[GRMItemParameters],
        compute_standard_errors: bool,
    ) -> FittedModel:
        standard_errors = None
        if compute_standard_errors:
            logger.debug("Computing cross-product standard errors")
            standard_errors = compute_item_standard_errors(
                data,
                em_result.item_parameters,
                em_result.e_step.posteriors,
                self._quadrature.points,
            )

        prior = self.config.quadrature
        return FittedModel(
            item_parameters=tuple(em_result.item_parameters),
            standard_errors=standard_errors,
            log_likelihood=em_result.e_step.log_likelihood,
            n_iterations=em_result.n_iterations,
            convergence_status=ConvergenceStatus.CONVERGED,
            n_respondents=data.n_respondents,
            min_category=data.min_category,
            item_type=ItemType.GRADED,
            n_dimensions=1,
            prior_mean=prior.mean,
            prior_std=prior.std,
            model_version=self.config.model_version,
        )
