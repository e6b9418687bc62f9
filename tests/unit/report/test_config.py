import pytest

from scale_analysis.report import (
    AnalysisConfig,
    RuntimeSettings,
    get_available_configs,
    get_config_path,
    load_config,
)
from scale_analysis.report.config import PARAMS_DIR

########################################################
# Configuration loading
########################################################


def test_bundled_configs_load() -> None:
    """Every bundled configuration loads once a dataset is given."""

    for config_path in PARAMS_DIR.glob("*.yaml"):
        config = load_config(config_path, {"dataset_path": "responses.csv"})
        assert config is not None


def test_default_config_available() -> None:
    assert "default" in get_available_configs()
    assert get_config_path().name == "default.yaml"


def test_get_config_path_unknown_raises() -> None:
    with pytest.raises(ValueError, match="Unknown config"):
        get_config_path("nonexistent_config")


def test_missing_file_raises(tmp_path) -> None:
    with pytest.raises(FileNotFoundError):
        load_config(tmp_path / "missing.yaml")


def test_overrides_skip_none() -> None:
    config = load_config(
        get_config_path(),
        {"dataset_path": "other.csv", "theta_min": None, "theta_max": 4.0},
    )

    assert config.dataset_path == "other.csv"
    assert config.theta_range == (-3.0, 4.0)


def test_yaml_values_override_schema(tmp_path) -> None:
    path = tmp_path / "custom.yaml"
    path.write_text(
        "dataset_path: data.tsv\n"
        "columns: [A, B, C]\n"
        "category_min: 0\n"
        "category_max: 4\n"
        "delimiter: \"\\t\"\n"
    )

    config = load_config(path)

    assert config.column_selection == ["A", "B", "C"]
    assert config.category_range == (0, 4)
    assert config.delimiter == "\t"


########################################################
# Validation
########################################################


def test_invalid_theta_range() -> None:
    with pytest.raises(ValueError, match="theta_max"):
        load_config(
            overrides={"dataset_path": "x.csv", "theta_min": 2.0, "theta_max": 1.0}
        )


def test_half_category_range() -> None:
    with pytest.raises(ValueError, match="together"):
        AnalysisConfig(dataset_path="x.csv", category_min=1)


def test_inverted_category_range() -> None:
    with pytest.raises(ValueError, match="category_max"):
        AnalysisConfig(dataset_path="x.csv", category_min=5, category_max=1)


def test_category_range_required() -> None:
    with pytest.raises(ValueError, match="infer_categories"):
        AnalysisConfig(dataset_path="x.csv")


def test_bundled_default_declares_range() -> None:
    config = load_config(get_config_path(), {"dataset_path": "x.csv"})

    assert not config.infer_categories
    assert config.category_range == (1, 5)


def test_inference_overrides_declared_range() -> None:
    config = load_config(
        get_config_path(),
        {"dataset_path": "x.csv", "infer_categories": True},
    )
    assert config.category_range is None


def test_defaults() -> None:
    config = AnalysisConfig(dataset_path="x.csv", infer_categories=True)

    assert config.column_selection == 6
    assert config.category_range is None
    assert config.theta_range == (-3.0, 3.0)


########################################################
# Runtime settings
########################################################


def test_settings_from_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("SCALE_ANALYSIS_N_WORKERS", "3")
    monkeypatch.setenv("SCALE_ANALYSIS_FIT_TIMEOUT_SECONDS", "12.5")

    settings = RuntimeSettings()

    assert settings.n_workers == 3
    assert settings.fit_timeout_seconds == 12.5


def test_settings_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("SCALE_ANALYSIS_N_WORKERS", raising=False)
    monkeypatch.delenv("SCALE_ANALYSIS_FIT_TIMEOUT_SECONDS", raising=False)
    monkeypatch.delenv("SCALE_ANALYSIS_LOG_LEVEL", raising=False)

    settings = RuntimeSettings()

    assert settings.n_workers is None
    assert settings.fit_timeout_seconds is None
    assert settings.log_level == "INFO"
