"""
Tests for the IRT and factor-analytic parameter views.
"""

import numpy as np
import pytest

from scale_analysis.core.constants import LOGISTIC_SCALING_CONSTANT
from scale_analysis.irt.estimation import (
    ConvergenceStatus,
    FittedModel,
    GRMItemParameters,
    ItemStandardErrors,
)
from scale_analysis.irt.reporting import (
    factor_parameters,
    factor_parameters_frame,
    irt_parameters,
    irt_parameters_frame,
    loading_to_slope,
    slope_to_loading,
)


def make_model(with_se: bool = True) -> FittedModel:
    items = (
        GRMItemParameters.from_irt("Q1", 1.702, (-1.0, 0.5)),
        GRMItemParameters(item_id="Q2", slope=0.0, intercepts=(1.0, -1.0)),
    )
    standard_errors = None
    if with_se:
        standard_errors = tuple(
            ItemStandardErrors(
                item_id=p.item_id,
                slope=0.1,
                intercepts=(0.2, 0.2),
                locations=(0.3, 0.3),
            )
            for p in items
        )
    return FittedModel(
        item_parameters=items,
        standard_errors=standard_errors,
        log_likelihood=-1.0,
        n_iterations=1,
        convergence_status=ConvergenceStatus.CONVERGED,
        n_respondents=100,
        model_version="test",
    )


class TestLoadingConversion:
    def test_known_value(self) -> None:
        """a = D gives λ = 1 / sqrt(2)."""
        assert slope_to_loading(LOGISTIC_SCALING_CONSTANT) == pytest.approx(
            1 / np.sqrt(2)
        )

    def test_inverse(self) -> None:
        slopes = np.array([-2.0, 0.0, 0.7, 3.1])
        np.testing.assert_allclose(
            loading_to_slope(slope_to_loading(slopes, 1.3), 1.3), slopes
        )

    def test_loadings_bounded(self) -> None:
        loadings = slope_to_loading(np.array([-50.0, 50.0]))
        assert (np.abs(loadings) < 1).all()

    def test_loading_of_one_rejected(self) -> None:
        with pytest.raises(ValueError, match="between -1 and 1"):
            loading_to_slope(1.0)


class TestParameterTables:
    def test_irt_parameters(self) -> None:
        first, second = irt_parameters(make_model())

        assert first.slope == pytest.approx(1.702)
        np.testing.assert_allclose(first.locations, (-1.0, 0.5))
        assert first.slope_se == 0.1
        assert first.location_se == (0.3, 0.3)
        # Zero slope leaves locations undefined
        assert all(np.isnan(b) for b in second.locations)

    def test_irt_frame_columns(self) -> None:
        frame = irt_parameters_frame(make_model())

        assert list(frame.columns) == ["a", "b1", "b2", "se_a", "se_b1", "se_b2"]
        assert frame.index.tolist() == ["Q1", "Q2"]

    def test_irt_frame_without_standard_errors(self) -> None:
        frame = irt_parameters_frame(make_model(with_se=False))
        assert list(frame.columns) == ["a", "b1", "b2"]

    def test_factor_parameters(self) -> None:
        first, second = factor_parameters(make_model())

        assert first.loading == pytest.approx(1 / np.sqrt(2))
        assert first.communality == pytest.approx(0.5)
        assert second.loading == 0.0

    def test_factor_frame(self) -> None:
        frame = factor_parameters_frame(make_model())
        assert list(frame.columns) == ["F1", "h2"]
        np.testing.assert_allclose(frame["h2"], frame["F1"] ** 2)

    def test_repeated_calls_identical(self) -> None:
        model = make_model()

        assert irt_parameters_frame(model).equals(irt_parameters_frame(model))
        assert factor_parameters_frame(model).equals(
            factor_parameters_frame(model)
        )

    def test_loadings_match_slopes(self) -> None:
        """Factor loadings follow from the reported slopes."""
        model = make_model()
        slopes = [p.slope for p in irt_parameters(model)]
        loadings = [p.loading for p in factor_parameters(model)]

        np.testing.assert_allclose(slope_to_loading(slopes), loadings)
