"""
GRM item parameter representation.

The Graded Response Model (Samejima, 1969) slope-intercept parameterization:
    P*(Y >= k | θ) = 1 / (1 + exp(-(a * θ + d_k))),  k = 1..K-1
    P(Y = k | θ) = P*(Y >= k | θ) - P*(Y >= k+1 | θ)

The traditional IRT parameterization uses locations (thresholds)
    b_k = -d_k / a
which increase with k when a > 0.
"""

from typing import Self

import numpy as np
from numpy.typing import NDArray
from pydantic import field_validator

from scale_analysis.irt.estimation.grm.gradients import (
    compute_grm_cumulative_probabilities,
    compute_grm_probabilities,
    pack_grm_array,
    unpack_grm_array,
)
from scale_analysis.irt.estimation.parameters import ItemParameters

# Starting slope used by mirt and flexMIRT for graded items
DEFAULT_INITIAL_SLOPE = 0.851


class GRMItemParameters(ItemParameters):
    """
    Parameters for one item under the Graded Response Model.

    Attributes:
        item_id: Identifier of the item.
        slope: Discrimination parameter (a).
        intercepts: Intercepts d_1..d_{K-1}, strictly decreasing so every
            category has positive probability.
    """

    slope: float
    intercepts: tuple[float, ...]

    @field_validator("intercepts")
    @classmethod
    def _validate_intercepts(cls, v: tuple[float, ...]) -> tuple[float, ...]:
        if len(v) < 1:
            raise ValueError("Must have at least 1 intercept (2 categories)")
        if any(later >= earlier for earlier, later in zip(v, v[1:])):
            raise ValueError(f"intercepts must be strictly decreasing, got {v}")
        return v

    @property
    def n_categories(self) -> int:
        """Number of response categories (K)."""
        return len(self.intercepts) + 1

    @property
    def locations(self) -> tuple[float, ...]:
        """Location (threshold) parameters b_k = -d_k / a."""
        if self.slope == 0:
            raise ValueError(
                f"Locations are undefined for item {self.item_id} with zero slope"
            )
        return tuple(-d / self.slope for d in self.intercepts)

    def compute_probabilities(
        self, theta: NDArray[np.float64]
    ) -> NDArray[np.float64]:
        """
        Compute GRM probabilities for all categories at given theta values.

        Args:
            theta: Ability values, shape (n_theta,).

        Returns:
            Probabilities, shape (n_theta, n_categories).
        """
        result: NDArray[np.float64] = compute_grm_probabilities(
            np.atleast_1d(np.asarray(theta, dtype=np.float64)),
            float(self.slope),
            np.array(self.intercepts, dtype=np.float64),
        )
        return result

    def compute_cumulative_probabilities(
        self, theta: NDArray[np.float64]
    ) -> NDArray[np.float64]:
        """P*(Y >= k | θ) for k = 0..K, shape (n_theta, K+1)."""
        result: NDArray[np.float64] = compute_grm_cumulative_probabilities(
            np.atleast_1d(np.asarray(theta, dtype=np.float64)),
            float(self.slope),
            np.array(self.intercepts, dtype=np.float64),
        )
        return result

    def expected_score(
        self,
        theta: NDArray[np.float64],
        category_values: NDArray[np.float64] | None = None,
    ) -> NDArray[np.float64]:
        """
        Expected category value at each theta.

        Args:
            theta: Ability values, shape (n_theta,).
            category_values: Value assigned to each category. Defaults to
                0..K-1.

        Returns:
            Expected item score, shape (n_theta,).
        """
        if category_values is None:
            category_values = np.arange(self.n_categories, dtype=np.float64)
        result: NDArray[np.float64] = (
            self.compute_probabilities(theta) @ category_values
        )
        return result

    def to_array(self) -> NDArray[np.float64]:
        """
        Flatten to the optimizer parameterization.

        Layout: [a, d_1, log(d_1 - d_2), ..., log(d_{K-2} - d_{K-1})]

        Returns:
            1D array of shape (K,).
        """
        return pack_grm_array(
            self.slope, np.array(self.intercepts, dtype=np.float64)
        )

    @classmethod
    def from_array(cls, item_id: str, arr: NDArray[np.float64]) -> Self:
        """
        Reconstruct parameters from the optimizer parameterization.

        Args:
            item_id: Item identifier.
            arr: 1D array from to_array().

        Returns:
            GRMItemParameters with ordered intercepts.
        """
        slope, intercepts = unpack_grm_array(arr)
        return cls(
            item_id=item_id,
            slope=slope,
            intercepts=tuple(float(d) for d in intercepts),
        )

    @classmethod
    def n_free_parameters(cls, n_categories: int) -> int:
        """
        Number of free parameters per item.

        Args:
            n_categories: Number of response categories (K).

        Returns:
            One slope plus K-1 intercepts.
        """
        return n_categories

    @classmethod
    def from_irt(
        cls, item_id: str, slope: float, locations: tuple[float, ...]
    ) -> Self:
        """Build from the traditional (a, b) parameterization."""
        return cls(
            item_id=item_id,
            slope=slope,
            intercepts=tuple(-slope * b for b in locations),
        )
