"""
Global goodness of fit from collapsed moments.

    M2 = N e' C e,    C = Ξ⁻¹ - Ξ⁻¹Δ (Δ'Ξ⁻¹Δ)⁻¹ Δ'Ξ⁻¹

where e is the residual between observed and model-implied moments, Ξ
their asymptotic covariance and Δ the moment Jacobian (Maydeu-Olivares &
Joe, 2006; Cai & Hansen, 2013 for the C2 moments). Incremental indices
compare the model against the independence model (all slopes zero).
"""

import logging

import numpy as np
from numpy.typing import NDArray
from scipy.optimize import brentq
from scipy.stats import chi2, ncx2

from scale_analysis.core.data_models import ResponseMatrix
from scale_analysis.core.exceptions import InsufficientDataError
from scale_analysis.irt.estimation.config import QuadratureConfig
from scale_analysis.irt.estimation.data_models import FittedModel
from scale_analysis.irt.estimation.grm.parameters import GRMItemParameters
from scale_analysis.irt.estimation.quadrature import get_quadrature
from scale_analysis.irt.estimation.starting_values import (
    compute_cumulative_logits,
    compute_response_proportions,
)
from scale_analysis.irt.fit.data_models import GlobalFit
from scale_analysis.irt.fit.moments import (
    ModelMoments,
    MomentSet,
    build_moments,
    observed_moments,
)

logger = logging.getLogger(__name__)

DEFAULT_CI_LEVEL = 0.90


def check_model_data_compatible(model: FittedModel, data: ResponseMatrix) -> None:
    """Raise ValueError unless the data has the model's items and categories."""
    if not model.converged:
        raise ValueError(
            f"Fit statistics require a converged model, got "
            f"{model.convergence_status.value}"
        )
    if data.n_items != model.n_items:
        raise ValueError(
            f"Data has {data.n_items} items, model has {model.n_items}"
        )
    if data.n_categories != model.n_categories:
        raise ValueError(
            f"Data has {data.n_categories} categories, "
            f"model has {model.n_categories}"
        )


def independence_parameters(
    data: ResponseMatrix,
) -> tuple[GRMItemParameters, ...]:
    """
    Zero-slope GRM reproducing each item's marginal category proportions.

    Args:
        data: Response matrix.

    Returns:
        Item parameters of the independence (null) model.
    """
    return tuple(
        GRMItemParameters(
            item_id=item_id,
            slope=0.0,
            intercepts=tuple(
                float(d)
                for d in compute_cumulative_logits(
                    compute_response_proportions(data, item_idx)
                )
            ),
        )
        for item_idx, item_id in enumerate(data.item_ids)
    )


def compute_c2_statistic(
    observed: NDArray[np.float64],
    fitted: ModelMoments,
    moment_set: MomentSet,
    n_respondents: int,
    include_slopes: bool = True,
) -> float:
    """
    Quadratic form N e' C e for one set of item parameters.

    Args:
        observed: Sample moments.
        fitted: Model-implied moments.
        moment_set: Moment definitions.
        n_respondents: Sample size behind the observed moments.
        include_slopes: Whether slopes are free parameters.

    Returns:
        The M2-family statistic.
    """
    residual = observed - fitted.expected_moments(moment_set)
    xi_inv = np.linalg.pinv(fitted.covariance(moment_set))
    delta = fitted.jacobian(moment_set, include_slopes=include_slopes)

    xi_inv_delta = xi_inv @ delta
    middle = np.linalg.pinv(delta.T @ xi_inv_delta)
    weight = xi_inv - xi_inv_delta @ middle @ xi_inv_delta.T

    return float(n_respondents * residual @ weight @ residual)


def compute_rmsea(statistic: float, df: int, n_respondents: int) -> float:
    """RMSEA = sqrt(max(X2 - df, 0) / (N df))."""
    return float(np.sqrt(max(statistic - df, 0.0) / (n_respondents * df)))


def _noncentrality_bound(statistic: float, df: int, target: float) -> float:
    # Smallest λ with P(X2 <= statistic | df, λ) = target; 0 if none
    if chi2.cdf(statistic, df) < target:
        return 0.0

    def f(nc: float) -> float:
        return float(ncx2.cdf(statistic, df, nc)) - target

    upper = max(statistic, 1.0)
    while f(upper) > 0:
        upper *= 2.0
    return float(brentq(f, 1e-12, upper))


def compute_rmsea_interval(
    statistic: float,
    df: int,
    n_respondents: int,
    ci_level: float = DEFAULT_CI_LEVEL,
) -> tuple[float, float]:
    """
    Confidence interval for RMSEA from the noncentral chi-square.

    Args:
        statistic: Observed statistic.
        df: Degrees of freedom.
        n_respondents: Sample size.
        ci_level: Interval coverage.

    Returns:
        (lower, upper) RMSEA bounds.
    """
    alpha = 1.0 - ci_level
    nc_lower = _noncentrality_bound(statistic, df, 1.0 - alpha / 2.0)
    nc_upper = _noncentrality_bound(statistic, df, alpha / 2.0)
    scale = n_respondents * df
    return (
        float(np.sqrt(nc_lower / scale)),
        float(np.sqrt(nc_upper / scale)),
    )


def compute_srmsr(
    observed_corr: NDArray[np.float64], model_corr: NDArray[np.float64]
) -> float:
    """Root mean square of residual correlations over item pairs."""
    lower = np.tril_indices_from(observed_corr, k=-1)
    residuals = observed_corr[lower] - model_corr[lower]
    return float(np.sqrt(np.mean(residuals**2)))


def compute_incremental_indices(
    statistic: float,
    df: int,
    baseline_statistic: float,
    baseline_df: int,
) -> tuple[float, float]:
    """
    CFI and TLI against a baseline model.

    Returns:
        (cfi, tli). CFI is clipped to [0, 1]; TLI is not.
    """
    excess = max(statistic - df, 0.0)
    baseline_excess = max(baseline_statistic - baseline_df, 0.0)
    denominator = max(excess, baseline_excess)
    cfi = 1.0 if denominator == 0 else 1.0 - excess / denominator

    baseline_ratio = baseline_statistic / baseline_df
    if baseline_ratio == 1.0:
        tli = float("nan")
    else:
        tli = (baseline_ratio - statistic / df) / (baseline_ratio - 1.0)
    return float(cfi), float(tli)


def global_fit(
    model: FittedModel,
    data: ResponseMatrix,
    ci_level: float = DEFAULT_CI_LEVEL,
    n_quadrature: int = 41,
) -> GlobalFit:
    """
    Limited-information global fit of a fitted model.

    Only complete response rows enter the statistic.

    Args:
        model: Converged fitted model.
        data: Response matrix the model was fitted to.
        ci_level: Coverage of the RMSEA interval.
        n_quadrature: Quadrature points for model-implied moments.

    Returns:
        GlobalFit with M2, RMSEA (and interval), SRMSR, CFI and TLI.

    Raises:
        ValueError: If the model is not converged, does not match the data,
            or the statistic has no degrees of freedom.
        InsufficientDataError: If there are too few complete rows.
    """
    check_model_data_compatible(model, data)

    complete = data.subset_rows(data.complete_rows)
    n = complete.n_respondents
    if n < 2:
        raise InsufficientDataError(
            f"M2 requires at least 2 complete response rows, got {n}"
        )
    if n < data.n_respondents:
        logger.info(
            f"Global fit uses {n} of {data.n_respondents} rows "
            "(rows with missing responses excluded)"
        )

    moment_set = build_moments(model.n_items, model.n_categories)
    df = len(moment_set) - model.n_free_parameters
    if df <= 0:
        raise ValueError(
            f"M2 has no degrees of freedom ({len(moment_set)} moments, "
            f"{model.n_free_parameters} parameters); more items are needed"
        )

    quadrature = get_quadrature(
        QuadratureConfig(
            n_points=n_quadrature, mean=model.prior_mean, std=model.prior_std
        )
    )
    observed = observed_moments(complete.responses, moment_set)

    fitted = ModelMoments(model.item_parameters, quadrature)
    statistic = compute_c2_statistic(observed, fitted, moment_set, n)

    baseline = ModelMoments(independence_parameters(complete), quadrature)
    baseline_statistic = compute_c2_statistic(
        observed, baseline, moment_set, n, include_slopes=False
    )
    baseline_df = len(moment_set) - moment_set.n_univariate

    lower, upper = compute_rmsea_interval(statistic, df, n, ci_level)
    cfi, tli = compute_incremental_indices(
        statistic, df, baseline_statistic, baseline_df
    )
    observed_corr = np.corrcoef(complete.responses.T.astype(np.float64))

    result = GlobalFit(
        statistic=statistic,
        df=df,
        p_value=float(chi2.sf(statistic, df)),
        rmsea=compute_rmsea(statistic, df, n),
        rmsea_ci_lower=lower,
        rmsea_ci_upper=upper,
        ci_level=ci_level,
        srmsr=compute_srmsr(observed_corr, fitted.item_correlations()),
        cfi=cfi,
        tli=tli,
        baseline_statistic=baseline_statistic,
        baseline_df=baseline_df,
        n_respondents=n,
    )
    logger.debug(
        f"M2 = {statistic:.3f} on {df} df, RMSEA = {result.rmsea:.4f}"
    )
    return result
