"""
Tests for estimator selection and fit-time failures.
"""

import numpy as np
import pytest

from scale_analysis.core.data_models import ResponseMatrix
from scale_analysis.core.exceptions import InsufficientDataError
from scale_analysis.irt.estimation import (
    ConvergenceConfig,
    ConvergenceError,
    ConvergenceStatus,
    ConvergenceTimeout,
    EstimationConfig,
    GRMEstimator,
    GRMItemParameters,
    ItemType,
    fit,
    get_estimator,
)
from scale_analysis.irt.sampling import generate_response_matrix


@pytest.fixture
def small_data() -> ResponseMatrix:
    rng = np.random.default_rng(11)
    responses = rng.integers(0, 3, size=(200, 4)).astype(np.int8)
    return ResponseMatrix(responses=responses, n_categories=3)


class TestGetEstimator:
    def test_graded_by_name(self) -> None:
        assert isinstance(get_estimator("graded"), GRMEstimator)

    def test_graded_by_enum(self) -> None:
        assert isinstance(get_estimator(ItemType.GRADED), GRMEstimator)

    def test_unknown_item_type(self) -> None:
        with pytest.raises(ValueError, match="Unknown item type"):
            get_estimator("nominal")


class TestFitErrors:
    def test_multidimensional_rejected(self, small_data: ResponseMatrix) -> None:
        with pytest.raises(ValueError, match="unidimensional"):
            fit(small_data, dimensions=2)

    def test_unobserved_category(self) -> None:
        """A declared category nobody chose leaves its location unidentified."""
        responses = np.array([[0, 1], [1, 0], [0, 0], [1, 1]], dtype=np.int8)
        data = ResponseMatrix(
            responses=responses,
            n_categories=3,
            min_category=1,
            item_ids=("Q1", "Q2"),
        )

        with pytest.raises(InsufficientDataError, match=r"\[3\]") as exc_info:
            fit(data)
        assert exc_info.value.item_id == "Q1"

    def test_iteration_cap(self, small_data: ResponseMatrix) -> None:
        config = EstimationConfig(
            convergence=ConvergenceConfig(max_em_iterations=1)
        )
        with pytest.raises(ConvergenceError) as exc_info:
            fit(small_data, config=config)
        assert exc_info.value.status == ConvergenceStatus.MAX_ITERATIONS

    def test_timeout(self, small_data: ResponseMatrix) -> None:
        config = EstimationConfig(
            convergence=ConvergenceConfig(timeout_seconds=0.0)
        )
        with pytest.raises(ConvergenceTimeout) as exc_info:
            fit(small_data, config=config)
        assert exc_info.value.status == ConvergenceStatus.TIMEOUT


class TestFitSmallData:
    def test_converges_without_standard_errors(
        self, small_data: ResponseMatrix
    ) -> None:
        model = fit(small_data, compute_standard_errors=False)

        assert model.converged
        assert model.standard_errors is None
        assert model.n_items == 4
        assert model.n_respondents == 200
        assert np.isfinite(model.log_likelihood)

    def test_refit_is_deterministic(self) -> None:
        """Identical data give an identical fitted model."""
        items = [
            GRMItemParameters.from_irt(f"Q{j + 1}", 1.3, (-0.8, 0.4))
            for j in range(4)
        ]
        data, _ = generate_response_matrix(
            items, 300, rng=np.random.default_rng(5)
        )

        first = fit(data)
        second = fit(data)

        assert first.model_dump_json() == second.model_dump_json()
