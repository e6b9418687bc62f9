"""
Tests for EAP ability estimation.
"""

import numpy as np
import pytest

from scale_analysis.core.constants import MISSING_VALUE
from scale_analysis.core.data_models import ResponseMatrix
from scale_analysis.irt.estimation import (
    ConvergenceStatus,
    FittedModel,
    GRMItemParameters,
    estimate_abilities,
    estimate_theta,
)


@pytest.fixture
def model() -> FittedModel:
    items = tuple(
        GRMItemParameters.from_irt(f"Q{j + 1}", 1.5, (-1.0, 0.0, 1.0))
        for j in range(5)
    )
    return FittedModel(
        item_parameters=items,
        log_likelihood=-1.0,
        n_iterations=1,
        convergence_status=ConvergenceStatus.CONVERGED,
        n_respondents=1,
        model_version="test",
    )


class TestEstimateTheta:
    def test_ordered_by_response_level(self, model: FittedModel) -> None:
        """Higher responses give higher EAP estimates."""
        low, _ = estimate_theta(model, np.zeros(5, dtype=np.int8))
        mid, _ = estimate_theta(model, np.full(5, 2, dtype=np.int8))
        high, _ = estimate_theta(model, np.full(5, 3, dtype=np.int8))

        assert low < mid < high

    def test_all_missing_returns_prior(self, model: FittedModel) -> None:
        """With no observed responses the posterior is the prior."""
        theta, se = estimate_theta(model, np.full(5, MISSING_VALUE))

        assert theta == pytest.approx(0.0, abs=1e-6)
        assert se == pytest.approx(1.0, abs=1e-3)

    def test_missing_items_widen_posterior(self, model: FittedModel) -> None:
        row = np.array([2, 2, 2, 2, 2])
        partial = np.array([2, MISSING_VALUE, MISSING_VALUE, 2, 2])

        _, se_full = estimate_theta(model, row)
        _, se_partial = estimate_theta(model, partial)
        assert se_partial > se_full

    def test_se_below_prior(self, model: FittedModel) -> None:
        _, se = estimate_theta(model, np.array([1, 2, 1, 2, 1]))
        assert 0 < se < 1

    def test_wrong_length(self, model: FittedModel) -> None:
        with pytest.raises(ValueError, match="5"):
            estimate_theta(model, np.array([0, 1]))

    def test_category_out_of_range(self, model: FittedModel) -> None:
        with pytest.raises(ValueError, match="outside"):
            estimate_theta(model, np.array([0, 1, 2, 3, 4]))

    def test_large_code_not_wrapped(self, model: FittedModel) -> None:
        """128 must not wrap to a negative, i.e. missing, int8 code."""
        with pytest.raises(ValueError, match="outside"):
            estimate_theta(model, np.array([0, 1, 2, 3, 128]))

    def test_balanced_pattern_scores_at_prior_mean(
        self, model: FittedModel
    ) -> None:
        """Symmetric items and a mirror-image pattern give theta = 0."""
        balanced = FittedModel(
            item_parameters=model.item_parameters[:4],
            log_likelihood=-1.0,
            n_iterations=1,
            convergence_status=ConvergenceStatus.CONVERGED,
            n_respondents=1,
            model_version="test",
        )
        theta, _ = estimate_theta(balanced, np.array([1, 2, 1, 2]))

        assert theta == pytest.approx(0.0, abs=1e-8)

    def test_extreme_patterns_straddle_prior_mean(
        self, model: FittedModel
    ) -> None:
        low, _ = estimate_theta(model, np.zeros(5, dtype=np.int8))
        high, _ = estimate_theta(model, np.full(5, 3, dtype=np.int8))

        assert low < 0 < high
        assert high == pytest.approx(-low)

    def test_repeated_calls_identical(self, model: FittedModel) -> None:
        row = np.array([0, 3, 1, MISSING_VALUE, 2])
        assert estimate_theta(model, row) == estimate_theta(model, row)


class TestEstimateAbilities:
    def test_matches_single_row_scoring(self, model: FittedModel) -> None:
        """Chunked parallel scoring returns the same values in row order."""
        rng = np.random.default_rng(3)
        responses = rng.integers(0, 4, size=(37, 5)).astype(np.int8)
        responses[0, 2] = MISSING_VALUE
        data = ResponseMatrix(responses=responses, n_categories=4)

        estimates = estimate_abilities(data, model, n_workers=3, chunk_size=5)

        assert estimates.n_respondents == 37
        assert estimates.respondent_ids == data.respondent_ids
        for i in (0, 4, 5, 36):
            theta, se = estimate_theta(model, responses[i])
            assert estimates.eap[i] == pytest.approx(theta)
            assert estimates.se[i] == pytest.approx(se)

    def test_item_count_mismatch(self, model: FittedModel) -> None:
        data = ResponseMatrix(
            responses=np.zeros((3, 4), dtype=np.int8), n_categories=4
        )
        with pytest.raises(ValueError, match="items"):
            estimate_abilities(data, model)

    def test_invalid_chunk_size(self, model: FittedModel) -> None:
        data = ResponseMatrix(
            responses=np.zeros((3, 5), dtype=np.int8), n_categories=4
        )
        with pytest.raises(ValueError, match="chunk_size"):
            estimate_abilities(data, model, chunk_size=0)
