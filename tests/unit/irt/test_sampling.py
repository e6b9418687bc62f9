"""
Tests for response sampling.
"""

import numpy as np
import pytest

from scale_analysis.core.constants import MISSING_VALUE
from scale_analysis.core.data_models import ResponseMatrix
from scale_analysis.irt.estimation import FittedModel, GRMItemParameters
from scale_analysis.irt.sampling import (
    generate_response_matrix,
    sample_response,
    sample_responses_batch,
    sample_synthetic_responses,
)

ITEMS = [
    GRMItemParameters.from_irt("Q1", 1.5, (-1.0, 0.0, 1.0)),
    GRMItemParameters.from_irt("Q2", 0.8, (-0.5, 0.5, 1.5)),
]


class TestSampleResponse:
    def test_in_range(self) -> None:
        rng = np.random.default_rng(0)
        for ability in (-3.0, 0.0, 3.0):
            assert 0 <= sample_response(ability, ITEMS[0], rng) < 4

    def test_batch_frequencies_match_probabilities(self) -> None:
        """Sampled category frequencies converge to the model probabilities."""
        abilities = np.full(20000, 0.5)
        responses = sample_responses_batch(
            abilities, ITEMS[:1], np.random.default_rng(1)
        )

        observed = np.bincount(responses[:, 0], minlength=4) / 20000
        expected = ITEMS[0].compute_probabilities(np.array([0.5]))[0]
        np.testing.assert_allclose(observed, expected, atol=0.015)

    def test_missing_rate(self) -> None:
        responses = sample_responses_batch(
            np.zeros(5000), ITEMS, np.random.default_rng(2), missing_rate=0.2
        )
        rate = np.mean(responses == MISSING_VALUE)
        assert abs(rate - 0.2) < 0.02

    def test_invalid_missing_rate(self) -> None:
        with pytest.raises(ValueError, match="missing_rate"):
            sample_responses_batch(np.zeros(3), ITEMS, missing_rate=1.0)


class TestGenerateResponseMatrix:
    def test_shape_and_coding(self) -> None:
        data, abilities = generate_response_matrix(
            ITEMS, 300, rng=np.random.default_rng(4), min_category=1
        )

        assert data.n_respondents == 300
        assert data.item_ids == ("Q1", "Q2")
        assert data.min_category == 1
        assert data.n_categories == 4
        assert abilities.shape == (300,)

    def test_reproducible(self) -> None:
        first, _ = generate_response_matrix(
            ITEMS, 50, rng=np.random.default_rng(5)
        )
        second, _ = generate_response_matrix(
            ITEMS, 50, rng=np.random.default_rng(5)
        )
        np.testing.assert_array_equal(first.responses, second.responses)

    def test_mixed_category_counts_rejected(self) -> None:
        items = [ITEMS[0], GRMItemParameters(item_id="Q3", slope=1.0, intercepts=(0.0,))]
        with pytest.raises(ValueError, match="category count"):
            generate_response_matrix(items, 10)


class TestSyntheticReplicate:
    def test_preserves_missingness(self) -> None:
        """Replicates keep the observed missing cells and the ids."""
        rng = np.random.default_rng(6)
        responses = rng.integers(0, 4, size=(40, 2)).astype(np.int8)
        responses[::5, 1] = MISSING_VALUE
        data = ResponseMatrix(
            responses=responses, n_categories=4, item_ids=("Q1", "Q2")
        )
        model = FittedModel(
            item_parameters=tuple(ITEMS),
            log_likelihood=-1.0,
            n_iterations=1,
            convergence_status="converged",
            n_respondents=40,
            model_version="test",
        )

        replicate = sample_synthetic_responses(data, model, rng)

        np.testing.assert_array_equal(replicate.missing_mask, data.missing_mask)
        assert replicate.respondent_ids == data.respondent_ids
