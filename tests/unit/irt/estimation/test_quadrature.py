"""
Tests for Gauss-Hermite quadrature and the EAP scoring grid.
"""

import numpy as np
import pytest

from scale_analysis.irt.estimation.config import (
    QuadratureConfig,
    ScoringGridConfig,
)
from scale_analysis.irt.estimation.quadrature import (
    get_quadrature,
    get_scoring_grid,
)


class TestGaussHermiteQuadrature:
    def test_weights_sum_to_one(self) -> None:
        """Quadrature weights should sum to 1 and be positive."""
        quad = get_quadrature(QuadratureConfig(n_points=41))

        np.testing.assert_allclose(quad.weights.sum(), 1.0, rtol=1e-10)
        assert (quad.weights > 0).all()

    def test_standard_normal_moments(self) -> None:
        """Mean 0, variance 1 and kurtosis 3 for the default prior."""
        quad = get_quadrature(QuadratureConfig(n_points=41))

        mean = np.sum(quad.points * quad.weights)
        variance = np.sum(quad.points**2 * quad.weights) - mean**2
        fourth_moment = np.sum(quad.points**4 * quad.weights)

        np.testing.assert_allclose(mean, 0.0, atol=1e-10)
        np.testing.assert_allclose(variance, 1.0, rtol=1e-3)
        np.testing.assert_allclose(fourth_moment, 3.0, rtol=1e-3)

    def test_scaled_distribution(self) -> None:
        """Should correctly scale to non-standard normal."""
        quad = get_quadrature(QuadratureConfig(n_points=41, mean=2.0, std=0.5))

        mean = np.sum(quad.points * quad.weights)
        variance = np.sum(quad.points**2 * quad.weights) - mean**2
        np.testing.assert_allclose(mean, 2.0, rtol=1e-3)
        np.testing.assert_allclose(variance, 0.25, rtol=1e-3)

    @pytest.mark.parametrize("n_points", [11, 21, 41, 61])
    def test_different_n_points(self, n_points: int) -> None:
        quad = get_quadrature(QuadratureConfig(n_points=n_points))

        assert quad.n_points == n_points
        assert len(quad.weights) == n_points


class TestScoringGrid:
    def test_default_grid(self) -> None:
        """The default scoring grid spans [-6, 6] with 121 points."""
        grid = get_scoring_grid(ScoringGridConfig(), QuadratureConfig())

        assert grid.n_points == 121
        assert grid.points[0] == -6.0
        assert grid.points[-1] == 6.0
        np.testing.assert_allclose(grid.weights.sum(), 1.0, rtol=1e-10)

    def test_weights_follow_prior(self) -> None:
        """Weights peak at the prior mean."""
        grid = get_scoring_grid(
            ScoringGridConfig(n_points=121), QuadratureConfig(mean=1.0)
        )
        assert grid.points[np.argmax(grid.weights)] == pytest.approx(1.0)

    def test_invalid_bounds(self) -> None:
        with pytest.raises(ValueError, match="theta_max"):
            ScoringGridConfig(theta_min=2.0, theta_max=1.0)
