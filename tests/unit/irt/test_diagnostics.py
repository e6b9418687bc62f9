import numpy as np

from scale_analysis.core.data_models import ResponseMatrix
from scale_analysis.irt.diagnostics import compute_response_prob_comparison
from scale_analysis.irt.estimation import FittedModel, estimate_abilities


class TestResponseProbComparison:
    def test_one_row_per_item_category(
        self, simulated_data: ResponseMatrix, fitted_model: FittedModel
    ) -> None:
        abilities = np.zeros(simulated_data.n_respondents)
        comparison = compute_response_prob_comparison(
            simulated_data, fitted_model, abilities
        )

        frame = comparison.to_frame()
        assert len(frame) == 6 * 4
        assert frame["category"].tolist()[:4] == [1, 2, 3, 4]
        np.testing.assert_allclose(
            frame.groupby("item_id")["empirical_prob"].sum(), 1.0
        )
        np.testing.assert_allclose(
            frame.groupby("item_id")["model_prob"].sum(), 1.0
        )

    def test_difference_is_small_for_fitted_model(
        self, simulated_data: ResponseMatrix, fitted_model: FittedModel
    ) -> None:
        """Marginal category proportions are reproduced at the EAP estimates."""
        estimates = estimate_abilities(simulated_data, fitted_model)
        comparison = compute_response_prob_comparison(
            simulated_data, fitted_model, estimates.eap
        )

        np.testing.assert_allclose(comparison.difference.sum(), 0.0, atol=1e-8)
        assert np.max(np.abs(comparison.difference)) < 0.1
