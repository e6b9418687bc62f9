"""
Data models for model-fit assessment.
"""

import pandas as pd
from pydantic import BaseModel, ConfigDict


class GlobalFit(BaseModel):
    """Limited-information global fit of a fitted model.

    Attributes:
        statistic: M2-family statistic (C2 form).
        df: Degrees of freedom of the statistic.
        p_value: Upper-tail chi-square probability of the statistic.
        rmsea: Root mean square error of approximation.
        rmsea_ci_lower: Lower bound of the RMSEA confidence interval.
        rmsea_ci_upper: Upper bound of the RMSEA confidence interval.
        ci_level: Coverage of the RMSEA interval.
        srmsr: Standardized root mean square residual of item correlations.
        cfi: Comparative fit index against the independence model.
        tli: Tucker-Lewis index against the independence model.
        baseline_statistic: Statistic of the independence model.
        baseline_df: Degrees of freedom of the independence model.
        n_respondents: Number of complete response rows used.
    """

    model_config = ConfigDict(frozen=True)

    statistic: float
    df: int
    p_value: float
    rmsea: float
    rmsea_ci_lower: float
    rmsea_ci_upper: float
    ci_level: float = 0.90
    srmsr: float
    cfi: float
    tli: float
    baseline_statistic: float
    baseline_df: int
    n_respondents: int


class ItemFit(BaseModel):
    """S-X2 item fit for one item."""

    model_config = ConfigDict(frozen=True)

    item_id: str
    statistic: float
    df: int
    p_value: float
    rmsea: float


def item_fit_to_frame(item_fits: dict[str, ItemFit]) -> pd.DataFrame:
    """Tabulate item fit with one row per item."""
    return pd.DataFrame(
        [fit.model_dump() for fit in item_fits.values()]
    ).set_index("item_id")
