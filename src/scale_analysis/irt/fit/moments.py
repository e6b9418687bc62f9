"""
Collapsed moments for limited-information goodness of fit.

The moment vector contains, for every item j, the univariate margins
P(Y_j = k) for k = 1..K-1, followed by the cross-products E[Y_j Y_l] for
every item pair j < l (C2 form of the M2 family).

Every moment, and every product of two moments, is a product over items of
a per-item function of the response. Under local independence its
model-implied expectation is therefore

    E[m] = Σ_q w_q Π_{j in m} Σ_k v_j[k] P_jk(θ_q)

so moments are represented as a mapping from item index to the value the
function takes at each category.
"""

from dataclasses import dataclass

import numpy as np
from numpy.typing import NDArray

from scale_analysis.irt.estimation.grm.gradients import (
    compute_grm_probability_jacobian,
)
from scale_analysis.irt.estimation.grm.parameters import GRMItemParameters
from scale_analysis.irt.estimation.quadrature import GaussHermiteQuadrature

# item index -> value of the moment function at each category
Moment = dict[int, NDArray[np.float64]]


@dataclass(frozen=True)
class MomentSet:
    """
    Ordered moments used by the fit statistic.

    Attributes:
        moments: Univariate margins first, then bivariate cross-products.
        n_univariate: Number of univariate moments at the front.
    """

    moments: tuple[Moment, ...]
    n_univariate: int

    def __len__(self) -> int:
        return len(self.moments)


def build_moments(n_items: int, n_categories: int) -> MomentSet:
    """
    Build the C2 moment set for a test.

    Args:
        n_items: Number of items.
        n_categories: Number of categories per item (K).

    Returns:
        MomentSet with n_items * (K-1) + n_items * (n_items-1) / 2 moments.
    """
    scores = np.arange(n_categories, dtype=np.float64)
    moments: list[Moment] = []

    for j in range(n_items):
        for k in range(1, n_categories):
            indicator = np.zeros(n_categories, dtype=np.float64)
            indicator[k] = 1.0
            moments.append({j: indicator})
    n_univariate = len(moments)

    for i in range(n_items):
        for j in range(i + 1, n_items):
            moments.append({i: scores, j: scores})

    return MomentSet(moments=tuple(moments), n_univariate=n_univariate)


def combine_moments(a: Moment, b: Moment) -> Moment:
    """Moment whose function is the product of the two functions."""
    combined = dict(a)
    for j, values in b.items():
        combined[j] = combined[j] * values if j in combined else values
    return combined


def observed_moments(
    responses: NDArray[np.int8], moment_set: MomentSet
) -> NDArray[np.float64]:
    """
    Sample moments of complete response data.

    Args:
        responses: 0-based responses without missing cells,
            shape (n_respondents, n_items).
        moment_set: Moments to evaluate.

    Returns:
        Sample means, shape (n_moments,).
    """
    codes = responses.astype(np.int64)
    result = np.empty(len(moment_set), dtype=np.float64)
    for m_idx, moment in enumerate(moment_set.moments):
        values = np.ones(codes.shape[0], dtype=np.float64)
        for j, v in moment.items():
            values *= v[codes[:, j]]
        result[m_idx] = values.mean()
    return result


class ModelMoments:
    """
    Model-implied moments of a GRM evaluated by quadrature.

    Args:
        item_parameters: GRM parameters, one per item.
        quadrature: Points and weights of the latent-trait prior.
    """

    def __init__(
        self,
        item_parameters: tuple[GRMItemParameters, ...],
        quadrature: GaussHermiteQuadrature,
    ):
        self.item_parameters = item_parameters
        self.weights = quadrature.weights
        theta = quadrature.points
        self.probs = [p.compute_probabilities(theta) for p in item_parameters]
        self.jacobians = [
            compute_grm_probability_jacobian(
                theta, p.slope, np.array(p.intercepts, dtype=np.float64)
            )
            for p in item_parameters
        ]
        self.n_params_per_item = item_parameters[0].n_categories

    def _factors(self, moment: Moment) -> dict[int, NDArray[np.float64]]:
        return {j: self.probs[j] @ v for j, v in moment.items()}

    def expectation(self, moment: Moment) -> float:
        curve = np.ones_like(self.weights)
        for factor in self._factors(moment).values():
            curve = curve * factor
        return float(self.weights @ curve)

    def expected_moments(self, moment_set: MomentSet) -> NDArray[np.float64]:
        """Model-implied moments, shape (n_moments,)."""
        return np.array(
            [self.expectation(m) for m in moment_set.moments],
            dtype=np.float64,
        )

    def covariance(self, moment_set: MomentSet) -> NDArray[np.float64]:
        """
        Asymptotic covariance of the sample moments (per respondent).

        Xi[a, b] = E[m_a m_b] - E[m_a] E[m_b]

        Returns:
            Symmetric matrix, shape (n_moments, n_moments).
        """
        moments = moment_set.moments
        expected = self.expected_moments(moment_set)
        n_moments = len(moments)
        xi = np.empty((n_moments, n_moments), dtype=np.float64)
        for a in range(n_moments):
            for b in range(a, n_moments):
                joint = self.expectation(
                    combine_moments(moments[a], moments[b])
                )
                xi[a, b] = xi[b, a] = joint - expected[a] * expected[b]
        return xi

    def jacobian(
        self, moment_set: MomentSet, include_slopes: bool = True
    ) -> NDArray[np.float64]:
        """
        Derivatives of the model-implied moments w.r.t. item parameters.

        Parameters are ordered item by item as [a, d_1, ..., d_{K-1}].

        Args:
            moment_set: Moments to differentiate.
            include_slopes: If False, slope columns are dropped (used for the
                independence model, whose slopes are fixed at zero).

        Returns:
            Jacobian, shape (n_moments, n_free_parameters).
        """
        n_params = self.n_params_per_item
        n_items = len(self.item_parameters)
        delta = np.zeros(
            (len(moment_set), n_items * n_params), dtype=np.float64
        )

        for m_idx, moment in enumerate(moment_set.moments):
            factors = self._factors(moment)
            for j, v in moment.items():
                others = np.ones_like(self.weights)
                for i, factor in factors.items():
                    if i != j:
                        others = others * factor
                # Shape: (n_quadrature, n_params)
                d_factor = np.einsum("qkp,k->qp", self.jacobians[j], v)
                delta[m_idx, j * n_params : (j + 1) * n_params] = (
                    self.weights * others
                ) @ d_factor

        if include_slopes:
            return delta
        keep = np.arange(delta.shape[1]) % n_params != 0
        result: NDArray[np.float64] = delta[:, keep]
        return result

    def item_correlations(self) -> NDArray[np.float64]:
        """Model-implied Pearson correlations of item scores."""
        n_items = len(self.item_parameters)
        scores = np.arange(self.n_params_per_item, dtype=np.float64)
        means = np.array([self.expectation({j: scores}) for j in range(n_items)])
        second = np.array(
            [self.expectation({j: scores**2}) for j in range(n_items)]
        )
        sds = np.sqrt(np.maximum(second - means**2, 0.0))

        corr = np.eye(n_items, dtype=np.float64)
        for i in range(n_items):
            for j in range(i + 1, n_items):
                cov = self.expectation({i: scores, j: scores}) - (
                    means[i] * means[j]
                )
                corr[i, j] = corr[j, i] = cov / (sds[i] * sds[j])
        return corr
