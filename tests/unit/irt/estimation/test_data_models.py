"""
Tests for estimation data models.
"""

import numpy as np
import pytest
from pydantic import ValidationError

from scale_analysis.irt.estimation import (
    ConvergenceStatus,
    FittedModel,
    GRMItemParameters,
    ItemStandardErrors,
)


def make_model(**overrides: object) -> FittedModel:
    fields: dict[str, object] = {
        "item_parameters": (
            GRMItemParameters(item_id="Q1", slope=1.0, intercepts=(1.0, -1.0)),
            GRMItemParameters(item_id="Q2", slope=1.5, intercepts=(0.5, -0.5)),
        ),
        "log_likelihood": -1234.5,
        "n_iterations": 42,
        "convergence_status": ConvergenceStatus.CONVERGED,
        "n_respondents": 500,
        "min_category": 1,
        "model_version": "0.1.0",
    }
    fields.update(overrides)
    return FittedModel(**fields)  # type: ignore[arg-type]


class TestFittedModel:
    def test_properties(self) -> None:
        model = make_model()

        assert model.n_items == 2
        assert model.n_categories == 3
        assert model.item_ids == ("Q1", "Q2")
        assert model.converged
        np.testing.assert_array_equal(model.category_values, [1.0, 2.0, 3.0])

    def test_information_criteria(self) -> None:
        """Two items with three categories have six free parameters."""
        model = make_model()

        assert model.n_free_parameters == 6
        assert model.aic == pytest.approx(2 * 1234.5 + 12)
        assert model.bic == pytest.approx(2 * 1234.5 + 6 * np.log(500))

    def test_json_round_trip(self) -> None:
        """A fitted model is persisted as JSON and restored unchanged."""
        model = make_model(
            standard_errors=(
                ItemStandardErrors(
                    item_id="Q1",
                    slope=0.1,
                    intercepts=(0.1, 0.1),
                    locations=(0.2, 0.2),
                ),
                ItemStandardErrors(
                    item_id="Q2",
                    slope=0.1,
                    intercepts=(0.1, 0.1),
                    locations=(0.2, 0.2),
                ),
            )
        )
        restored = FittedModel.model_validate_json(model.model_dump_json())

        assert restored == model

    def test_items_must_be_graded(self) -> None:
        """Parameters without ordered intercepts cannot back a model."""
        with pytest.raises(ValidationError):
            make_model(item_parameters=({"item_id": "Q1", "slope": 1.0},))

    def test_requires_items(self) -> None:
        with pytest.raises(ValidationError, match="at least one item"):
            make_model(item_parameters=())

    def test_mixed_category_counts_rejected(self) -> None:
        with pytest.raises(ValidationError, match="share a category count"):
            make_model(
                item_parameters=(
                    GRMItemParameters(item_id="Q1", slope=1.0, intercepts=(0.0,)),
                    GRMItemParameters(
                        item_id="Q2", slope=1.0, intercepts=(1.0, -1.0)
                    ),
                )
            )

    def test_standard_errors_per_item(self) -> None:
        with pytest.raises(ValidationError, match="one entry per item"):
            make_model(
                standard_errors=(
                    ItemStandardErrors(
                        item_id="Q1",
                        slope=0.1,
                        intercepts=(0.1, 0.1),
                        locations=(0.2, 0.2),
                    ),
                )
            )
