"""
Analysis configuration loaded from YAML with OmegaConf structured configs.
"""

from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from omegaconf import MISSING, OmegaConf

from scale_analysis.irt.estimation.enums import ItemType

PARAMS_DIR = Path(__file__).parent / "params"
DEFAULT_CONFIG_NAME = "default"


@dataclass
class AnalysisConfig:
    """Complete configuration for one scale analysis report.

    Attributes:
        dataset_path: Delimited file with one row per respondent.
        columns: Item column names. None selects the first n_columns.
        n_columns: Number of leading columns used when columns is None.
        category_min: Lowest valid category code.
        category_max: Highest valid category code.
        infer_categories: Take the category range from the observed codes
            instead of category_min and category_max.
        delimiter: Field delimiter of the dataset.
        dimensions: Number of latent dimensions.
        item_type: IRT model for every item.
        theta_min: Lower bound of the theta display range.
        theta_max: Upper bound of the theta display range.
        output_dir: Directory receiving the report artifacts.
        compute_standard_errors: Whether to compute parameter SEs.
    """

    dataset_path: str = MISSING
    columns: list[str] | None = None
    n_columns: int = 6
    category_min: int | None = None
    category_max: int | None = None
    infer_categories: bool = False
    delimiter: str = ","
    dimensions: int = 1
    item_type: str = ItemType.GRADED.value
    theta_min: float = -3.0
    theta_max: float = 3.0
    output_dir: str = "report"
    compute_standard_errors: bool = True

    def __post_init__(self) -> None:
        if self.columns is None and self.n_columns < 1:
            raise ValueError(f"n_columns must be >= 1, got {self.n_columns}")
        if (self.category_min is None) != (self.category_max is None):
            raise ValueError(
                "category_min and category_max must be given together"
            )
        if (
            self.category_min is not None
            and self.category_max is not None
            and self.category_max <= self.category_min
        ):
            raise ValueError(
                f"category_max ({self.category_max}) must exceed "
                f"category_min ({self.category_min})"
            )
        if self.theta_max <= self.theta_min:
            raise ValueError(
                f"theta_max ({self.theta_max}) must exceed "
                f"theta_min ({self.theta_min})"
            )
        if not self.infer_categories and self.category_min is None:
            raise ValueError(
                "category_min and category_max are required unless "
                "infer_categories is set"
            )

    @property
    def column_selection(self) -> int | list[str]:
        return self.columns if self.columns is not None else self.n_columns

    @property
    def category_range(self) -> tuple[int, int] | None:
        if self.infer_categories:
            return None
        if self.category_min is None or self.category_max is None:
            return None
        return (self.category_min, self.category_max)

    @property
    def theta_range(self) -> tuple[float, float]:
        return (self.theta_min, self.theta_max)


def load_config(
    yaml_path: Path | None = None,
    overrides: Mapping[str, Any] | None = None,
) -> AnalysisConfig:
    """Load and validate an analysis configuration.

    Args:
        yaml_path: Path to YAML config file. None uses only the schema
            defaults and overrides.
        overrides: Values applied on top of the file.

    Returns:
        Validated AnalysisConfig

    Raises:
        FileNotFoundError: If yaml_path doesn't exist
        omegaconf.errors.MissingMandatoryValue: If dataset_path is unset
    """
    # Create schema from dataclass
    schema = OmegaConf.structured(AnalysisConfig)
    layers = [schema]

    if yaml_path is not None:
        if not yaml_path.exists():
            raise FileNotFoundError(f"Config file not found: {yaml_path}")
        layers.append(OmegaConf.load(yaml_path))

    if overrides:
        layers.append(
            OmegaConf.create({k: v for k, v in overrides.items() if v is not None})
        )

    config = OmegaConf.merge(*layers)

    # Convert to typed dataclass
    result = OmegaConf.to_object(config)
    assert isinstance(result, AnalysisConfig)

    return result


def get_available_configs() -> list[str]:
    return sorted(x.stem for x in PARAMS_DIR.glob("*.yaml"))


def get_config_path(name: str = DEFAULT_CONFIG_NAME) -> Path:
    """Path of a bundled configuration by name."""
    config_path = PARAMS_DIR / f"{name}.yaml"
    if not config_path.exists():
        raise ValueError(
            f"Unknown config: {name}. Available configs: {get_available_configs()}"
        )
    return config_path
