"""
Entry point for fitting IRT models.

Item types are resolved through a registry of estimators. Downstream
code depends on FittedModel, not on a concrete estimator, but FittedModel
carries graded-response item parameters and every downstream module
evaluates GRM category probabilities. A replacement estimator must
therefore produce GRMItemParameters.
"""

import logging

from scale_analysis.core.data_models import ResponseMatrix
from scale_analysis.irt.estimation.base import IRTEstimator
from scale_analysis.irt.estimation.config import EstimationConfig
from scale_analysis.irt.estimation.data_models import FittedModel
from scale_analysis.irt.estimation.enums import ItemType
from scale_analysis.irt.estimation.grm.estimator import GRMEstimator
from scale_analysis.irt.estimation.grm.parameters import GRMItemParameters

logger = logging.getLogger(__name__)

ESTIMATORS: dict[ItemType, type[IRTEstimator[GRMItemParameters]]] = {
    ItemType.GRADED: GRMEstimator,
}

SUPPORTED_DIMENSIONS = 1


def get_estimator(
    item_type: ItemType | str,
    config: EstimationConfig | None = None,
) -> IRTEstimator[GRMItemParameters]:
    """
    Instantiate the estimator registered for an item type.

    Args:
        item_type: Item type name, e.g. "graded".
        config: Estimation configuration. If None, uses defaults.

    Returns:
        A ready-to-use estimator.

    Raises:
        ValueError: If the item type is unknown.
    """
    try:
        resolved = ItemType(item_type)
    except ValueError as e:
        known = ", ".join(t.value for t in ESTIMATORS)
        raise ValueError(
            f"Unknown item type {item_type!r}; expected one of: {known}"
        ) from e
    return ESTIMATORS[resolved](config)


def fit(
    data: ResponseMatrix,
    dimensions: int = 1,
    item_type: ItemType | str = ItemType.GRADED,
    compute_standard_errors: bool = True,
    config: EstimationConfig | None = None,
) -> FittedModel:
    """
    Fit an IRT model to a response matrix.

    Args:
        data: Validated response matrix.
        dimensions: Number of latent dimensions. Only 1 is supported.
        item_type: Item type for every item.
        compute_standard_errors: Whether to compute asymptotic SEs.
        config: Estimation configuration. If None, uses defaults.

    Returns:
        Converged FittedModel.

    Raises:
        ValueError: For unsupported dimensions or item types.
        InsufficientDataError: If an item has an unobserved category.
        ConvergenceError: If estimation does not converge.
    """
    if dimensions != SUPPORTED_DIMENSIONS:
        raise ValueError(
            f"Only unidimensional models are supported, got dimensions={dimensions}"
        )
    estimator = get_estimator(item_type, config)
    logger.info(
        f"Fitting {ItemType(item_type).value} model to "
        f"{data.n_respondents} respondents x {data.n_items} items"
    )
    return estimator.fit(data, compute_standard_errors=compute_standard_errors)
