"""
Configuration dataclasses for IRT model estimation.

This module defines the configuration parameters for:
- Quadrature settings (Gauss-Hermite integration for EM)
- Scoring grid settings (bounded rectangular grid for EAP scoring)
- Convergence criteria for EM algorithm
- Overall estimation settings
"""

from dataclasses import dataclass, field
from importlib.metadata import PackageNotFoundError, version
from pathlib import Path

import toml

DISTRIBUTION_NAME = "scale-analysis"

# Default parameter bounds
DEFAULT_SLOPE_BOUNDS = (-10.0, 10.0)
DEFAULT_INTERCEPT_BOUNDS = (-15.0, 15.0)
# Bounds on log(d_{k-1} - d_k), keeping thresholds strictly ordered
DEFAULT_LOG_INCREMENT_BOUNDS = (-12.0, 3.0)

# Default convergence settings
DEFAULT_MAX_EM_ITERATIONS = 2000
DEFAULT_EM_TOLERANCE = 1e-4
DEFAULT_MAX_LBFGS_ITERATIONS = 100
DEFAULT_LBFGS_TOLERANCE = 1e-9

# Default quadrature settings
DEFAULT_QUADRATURE_POINTS = 41

# Default EAP scoring grid
DEFAULT_SCORING_THETA_MIN = -6.0
DEFAULT_SCORING_THETA_MAX = 6.0
DEFAULT_SCORING_POINTS = 121


def _find_pyproject() -> Path | None:
    """The pyproject.toml of a source checkout, if running from one."""
    for parent in Path(__file__).resolve().parents:
        candidate = parent / "pyproject.toml"
        if not candidate.exists():
            continue
        data = toml.load(candidate)
        if data.get("project", {}).get("name") == DISTRIBUTION_NAME:
            return candidate
    return None


def _get_package_version() -> str:
    pyproject = _find_pyproject()
    if pyproject is None:
        try:
            return version(DISTRIBUTION_NAME)
        except PackageNotFoundError as e:
            raise ValueError("Version not found for scale-analysis") from e

    pkg_version = toml.load(pyproject)["project"].get("version")

    if not pkg_version:
        raise ValueError(f"Version not found in {pyproject}")

    assert isinstance(pkg_version, str)
    return pkg_version


@dataclass(frozen=True)
class QuadratureConfig:
    """
    Configuration for Gauss-Hermite quadrature.

    The mean and standard deviation describe the latent-trait prior.

    Attributes:
        n_points: Number of quadrature points. Standard in IRT software
            (IRTPRO, flexMIRT) is 41 points.
        mean: Mean of the ability distribution (typically 0).
        std: Standard deviation of the ability distribution (typically 1).
    """

    n_points: int = DEFAULT_QUADRATURE_POINTS
    mean: float = 0.0
    std: float = 1.0

    def __post_init__(self) -> None:
        if self.n_points < 3:
            raise ValueError(f"n_points must be >= 3, got {self.n_points}")
        if self.std <= 0:
            raise ValueError(f"std must be > 0, got {self.std}")

    @property
    def variance(self) -> float:
        return self.std**2


@dataclass(frozen=True)
class ScoringGridConfig:
    """
    Bounded, equally spaced theta grid used for EAP scoring.

    Attributes:
        theta_min: Lower integration bound.
        theta_max: Upper integration bound.
        n_points: Number of grid points.
    """

    theta_min: float = DEFAULT_SCORING_THETA_MIN
    theta_max: float = DEFAULT_SCORING_THETA_MAX
    n_points: int = DEFAULT_SCORING_POINTS

    def __post_init__(self) -> None:
        if self.theta_max <= self.theta_min:
            raise ValueError(
                f"theta_max ({self.theta_max}) must exceed "
                f"theta_min ({self.theta_min})"
            )
        if self.n_points < 3:
            raise ValueError(f"n_points must be >= 3, got {self.n_points}")


@dataclass(frozen=True)
class ConvergenceConfig:
    """
    Configuration for EM algorithm convergence.

    Attributes:
        max_em_iterations: Maximum number of EM iterations.
        em_tolerance: Convergence tolerance for log-likelihood change.
            EM stops when |LL_new - LL_old| < tolerance.
        max_lbfgs_iterations: Maximum iterations for L-BFGS-B in M-step.
        lbfgs_tolerance: Convergence tolerance for L-BFGS-B optimizer.
        timeout_seconds: Wall-clock budget for the whole fit. None disables it.
    """

    max_em_iterations: int = DEFAULT_MAX_EM_ITERATIONS
    em_tolerance: float = DEFAULT_EM_TOLERANCE
    max_lbfgs_iterations: int = DEFAULT_MAX_LBFGS_ITERATIONS
    lbfgs_tolerance: float = DEFAULT_LBFGS_TOLERANCE
    timeout_seconds: float | None = None


@dataclass(frozen=True)
class ParameterBounds:
    """
    Bounds for item parameters during optimization.

    Attributes:
        slope: (min, max) bounds for the slope.
        intercept: (min, max) bounds for the first (largest) intercept.
        log_increment: (min, max) bounds for the log gaps between
            consecutive intercepts.
    """

    slope: tuple[float, float] = DEFAULT_SLOPE_BOUNDS
    intercept: tuple[float, float] = DEFAULT_INTERCEPT_BOUNDS
    log_increment: tuple[float, float] = DEFAULT_LOG_INCREMENT_BOUNDS


@dataclass(frozen=True)
class EstimationConfig:
    """
    Master configuration for IRT model estimation.

    Attributes:
        quadrature: Settings for Gauss-Hermite quadrature and the prior.
        scoring: Grid used for EAP scoring.
        convergence: Convergence criteria for EM algorithm.
        bounds: Parameter bounds for optimization.
        model_version: Version string for reproducibility tracking.
    """

    quadrature: QuadratureConfig = QuadratureConfig()
    scoring: ScoringGridConfig = ScoringGridConfig()
    convergence: ConvergenceConfig = ConvergenceConfig()
    bounds: ParameterBounds = ParameterBounds()
    model_version: str = field(default_factory=_get_package_version)
