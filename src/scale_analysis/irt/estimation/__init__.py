"""
IRT model estimation module.

This module provides infrastructure for estimating Item Response Theory models
using Marginal Maximum Likelihood via the EM algorithm.

Key components:
- EstimationConfig: Configuration for estimation
- FittedModel: Output from estimation
- IRTEstimator: Abstract base class for estimators
- GRMEstimator: Graded Response Model estimator
- fit: Estimator lookup by item type
- estimate_abilities: EAP ability estimation
"""

from scale_analysis.irt.estimation.abilities import (
    AbilityEstimates,
    estimate_abilities,
    estimate_theta,
)
from scale_analysis.irt.estimation.base import IRTEstimator
from scale_analysis.irt.estimation.config import (
    ConvergenceConfig,
    EstimationConfig,
    QuadratureConfig,
    ScoringGridConfig,
)
from scale_analysis.irt.estimation.data_models import (
    FittedModel,
    ItemStandardErrors,
)
from scale_analysis.irt.estimation.enums import ConvergenceStatus, ItemType
from scale_analysis.irt.estimation.exceptions import (
    ConvergenceError,
    ConvergenceTimeout,
)
from scale_analysis.irt.estimation.fitting import fit, get_estimator
from scale_analysis.irt.estimation.grm.estimator import GRMEstimator
from scale_analysis.irt.estimation.grm.parameters import GRMItemParameters

__all__ = [
    "AbilityEstimates",
    "ConvergenceConfig",
    "ConvergenceError",
    "ConvergenceStatus",
    "ConvergenceTimeout",
    "EstimationConfig",
    "FittedModel",
    "GRMEstimator",
    "GRMItemParameters",
    "IRTEstimator",
    "ItemStandardErrors",
    "ItemType",
    "QuadratureConfig",
    "ScoringGridConfig",
    "estimate_abilities",
    "estimate_theta",
    "fit",
    "get_estimator",
]
