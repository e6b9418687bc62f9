from pydantic_settings import BaseSettings

SCALE_ANALYSIS_ENV_PREFIX = "SCALE_ANALYSIS_"


class RuntimeSettings(BaseSettings):
    """Runtime knobs read from SCALE_ANALYSIS_* environment variables."""

    model_config = {"env_prefix": SCALE_ANALYSIS_ENV_PREFIX}

    n_workers: int | None = None
    fit_timeout_seconds: float | None = None
    log_level: str = "INFO"
