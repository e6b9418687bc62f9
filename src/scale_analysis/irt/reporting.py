"""
IRT and factor-analytic views of a fitted graded response model.

The two parameterizations are linked through the normal-ogive scaling
constant D = 1.702 and the prior standard deviation σ of the latent trait:

    λ = a σ / sqrt(D² + a² σ²)
    a = D λ / (σ sqrt(1 - λ²))

and the communality of an item is h² = λ².
"""

import numpy as np
import pandas as pd
from numpy.typing import ArrayLike, NDArray
from pydantic import BaseModel, ConfigDict

from scale_analysis.core.constants import LOGISTIC_SCALING_CONSTANT
from scale_analysis.irt.estimation.data_models import FittedModel


class ItemIRTParameters(BaseModel):
    """
    IRT parameterization of one item.

    Attributes:
        item_id: Identifier of the item.
        slope: Discrimination (a).
        locations: Thresholds b_1..b_{m-1}, NaN when the slope is zero.
        intercepts: Intercepts d_1..d_{m-1}.
        slope_se: Standard error of the slope, if computed.
        location_se: Standard errors of the thresholds, if computed.
        intercept_se: Standard errors of the intercepts, if computed.
    """

    model_config = ConfigDict(frozen=True)

    item_id: str
    slope: float
    locations: tuple[float, ...]
    intercepts: tuple[float, ...]
    slope_se: float | None = None
    location_se: tuple[float, ...] | None = None
    intercept_se: tuple[float, ...] | None = None


class ItemFactorParameters(BaseModel):
    """Standardized loading and communality of one item."""

    model_config = ConfigDict(frozen=True)

    item_id: str
    loading: float
    communality: float


def slope_to_loading(
    slope: ArrayLike, prior_std: float = 1.0
) -> NDArray[np.float64]:
    """
    Convert logistic slopes to standardized factor loadings.

    Args:
        slope: Slope(s) a.
        prior_std: Standard deviation of the latent-trait prior.

    Returns:
        Loadings in (-1, 1), same shape as slope.
    """
    a = np.asarray(slope, dtype=np.float64) * prior_std
    result: NDArray[np.float64] = a / np.sqrt(
        LOGISTIC_SCALING_CONSTANT**2 + a**2
    )
    return result


def loading_to_slope(
    loading: ArrayLike, prior_std: float = 1.0
) -> NDArray[np.float64]:
    """
    Inverse of slope_to_loading.

    Args:
        loading: Loading(s) in (-1, 1).
        prior_std: Standard deviation of the latent-trait prior.

    Returns:
        Slopes, same shape as loading.
    """
    lam = np.asarray(loading, dtype=np.float64)
    if np.any(np.abs(lam) >= 1.0):
        raise ValueError("Loadings must lie strictly between -1 and 1")
    result: NDArray[np.float64] = (
        LOGISTIC_SCALING_CONSTANT * lam / (prior_std * np.sqrt(1.0 - lam**2))
    )
    return result


def irt_parameters(model: FittedModel) -> tuple[ItemIRTParameters, ...]:
    """
    Slopes, thresholds and their standard errors per item.

    Args:
        model: Fitted model.

    Returns:
        One ItemIRTParameters per item, in item order.
    """
    results = []
    for idx, params in enumerate(model.item_parameters):
        if params.slope == 0:
            locations = tuple(float("nan") for _ in params.intercepts)
        else:
            locations = params.locations

        se = model.standard_errors[idx] if model.standard_errors else None
        results.append(
            ItemIRTParameters(
                item_id=params.item_id,
                slope=params.slope,
                locations=locations,
                intercepts=params.intercepts,
                slope_se=se.slope if se else None,
                location_se=se.locations if se else None,
                intercept_se=se.intercepts if se else None,
            )
        )
    return tuple(results)


def factor_parameters(model: FittedModel) -> tuple[ItemFactorParameters, ...]:
    """
    Standardized loadings and communalities per item.

    Args:
        model: Fitted model.

    Returns:
        One ItemFactorParameters per item, in item order.
    """
    slopes = np.array([p.slope for p in model.item_parameters])
    loadings = slope_to_loading(slopes, model.prior_std)
    return tuple(
        ItemFactorParameters(
            item_id=item_id,
            loading=float(loading),
            communality=float(loading**2),
        )
        for item_id, loading in zip(model.item_ids, loadings)
    )


def irt_parameters_frame(model: FittedModel) -> pd.DataFrame:
    """
    Tabulate IRT parameters with one row per item.

    Columns are a, b1..b{m-1} and, when available, the matching SE columns.
    """
    rows = []
    for item in irt_parameters(model):
        row: dict[str, float | str] = {"item_id": item.item_id, "a": item.slope}
        for k, b in enumerate(item.locations, start=1):
            row[f"b{k}"] = b
        if item.slope_se is not None and item.location_se is not None:
            row["se_a"] = item.slope_se
            for k, se in enumerate(item.location_se, start=1):
                row[f"se_b{k}"] = se
        rows.append(row)
    return pd.DataFrame(rows).set_index("item_id")


def factor_parameters_frame(model: FittedModel) -> pd.DataFrame:
    """Tabulate loadings (F1) and communalities (h2) with one row per item."""
    return pd.DataFrame(
        [
            {
                "item_id": item.item_id,
                "F1": item.loading,
                "h2": item.communality,
            }
            for item in factor_parameters(model)
        ]
    ).set_index("item_id")
