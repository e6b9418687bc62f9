"""
Shared fixtures: a small graded scale, data simulated from it and the
model fitted to that data.
"""

import numpy as np
import pytest
from numpy.typing import NDArray

from scale_analysis.core.data_models import ResponseMatrix
from scale_analysis.irt.estimation import FittedModel, GRMItemParameters, fit
from scale_analysis.irt.sampling import generate_response_matrix

N_RESPONDENTS = 3221
SEED = 20240611

TRUE_SLOPES = (1.2, 0.9, 1.6, 1.0, 1.4, 0.8)
TRUE_LOCATIONS = (
    (-1.5, -0.3, 0.9),
    (-1.0, 0.0, 1.2),
    (-2.0, -0.8, 0.4),
    (-0.8, 0.3, 1.5),
    (-1.2, -0.2, 0.7),
    (-1.6, 0.1, 1.8),
)


@pytest.fixture(scope="session")
def true_items() -> list[GRMItemParameters]:
    """Six 4-category items spanning the trait range."""
    return [
        GRMItemParameters.from_irt(f"Q{j + 1}", slope, locations)
        for j, (slope, locations) in enumerate(
            zip(TRUE_SLOPES, TRUE_LOCATIONS)
        )
    ]


@pytest.fixture(scope="session")
def simulated(
    true_items: list[GRMItemParameters],
) -> tuple[ResponseMatrix, NDArray[np.float64]]:
    """Responses coded 1..4 and the abilities that generated them."""
    return generate_response_matrix(
        true_items,
        N_RESPONDENTS,
        rng=np.random.default_rng(SEED),
        min_category=1,
    )


@pytest.fixture(scope="session")
def simulated_data(
    simulated: tuple[ResponseMatrix, NDArray[np.float64]],
) -> ResponseMatrix:
    return simulated[0]


@pytest.fixture(scope="session")
def fitted_model(simulated_data: ResponseMatrix) -> FittedModel:
    return fit(simulated_data)
