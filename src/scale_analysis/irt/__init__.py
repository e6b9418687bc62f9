"""
IRT (Item Response Theory) module.

This module provides:
- Graded response model estimation and EAP scoring
- Global and item fit assessment
- IRT and factor-analytic parameter tables
- Information, standard error and reliability curves
- Sampling functions for generating responses
- Diagnostic utilities for model validation
"""

from scale_analysis.irt.diagnostics import (
    ResponseProbComparison,
    compute_response_prob_comparison,
)
from scale_analysis.irt.estimation import (
    FittedModel,
    GRMItemParameters,
    estimate_theta,
    fit,
)
from scale_analysis.irt.fit import global_fit, item_fit
from scale_analysis.irt.information import (
    conditional_reliability,
    item_information,
    marginal_reliability,
    scale_information,
    standard_error,
)
from scale_analysis.irt.reporting import (
    factor_parameters,
    irt_parameters,
    loading_to_slope,
    slope_to_loading,
)
from scale_analysis.irt.sampling import (
    generate_response_matrix,
    sample_response,
    sample_responses_batch,
)
from scale_analysis.irt.scoring import (
    ScaleTransform,
    empirical_reliability,
    estimate_scores,
    scale_transform,
)

__all__ = [
    "FittedModel",
    "GRMItemParameters",
    "ResponseProbComparison",
    "ScaleTransform",
    "compute_response_prob_comparison",
    "conditional_reliability",
    "empirical_reliability",
    "estimate_scores",
    "estimate_theta",
    "factor_parameters",
    "fit",
    "generate_response_matrix",
    "global_fit",
    "irt_parameters",
    "item_fit",
    "item_information",
    "loading_to_slope",
    "marginal_reliability",
    "sample_response",
    "sample_responses_batch",
    "scale_information",
    "scale_transform",
    "slope_to_loading",
    "standard_error",
]
