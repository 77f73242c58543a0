from pathlib import Path
from typing import Optional
from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class BacktestSettings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="BACKTEST_")

    initial_balance: float = Field(default=10000.0, gt=0)
    position_fraction: float = Field(default=0.95, gt=0, le=1)
    decision_tail: int = Field(default=100, ge=1)
    sharpe_annualization: int = Field(default=252, ge=1)
    profit_factor_cap: float = Field(default=10.0, gt=0)


class ClusteringSettings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="CLUSTER_")

    k: int = Field(default=5, ge=1)
    max_iterations: int = Field(default=100, ge=1)
    tolerance: float = Field(default=0.001, ge=0)
    training_max_iterations: int = Field(default=50, ge=1)
    training_tolerance: float = Field(default=0.01, ge=0)


class ModelSettings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="MODEL_")

    version: str = "1.0.0"
    learning_rate: float = Field(default=0.01, gt=0)
    min_training_points: int = Field(default=10, ge=1)
    metrics_window: int = Field(default=100, ge=1)
    max_pending_predictions: int = Field(default=10_000, ge=1)
    seed_on_startup: bool = True


class ApiSettings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="API_")

    host: str = "127.0.0.1"
    port: int = Field(default=8787, ge=1, le=65535)


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    log_dir: Path = Field(default=Path("logs"), alias="LOG_DIR")
    log_json: bool = Field(default=False, alias="LOG_JSON")
    random_seed: Optional[int] = Field(default=None, alias="RANDOM_SEED")

    backtest: BacktestSettings = Field(default_factory=BacktestSettings)
    clustering: ClusteringSettings = Field(default_factory=ClusteringSettings)
    model: ModelSettings = Field(default_factory=ModelSettings)
    api: ApiSettings = Field(default_factory=ApiSettings)


@lru_cache
def get_settings() -> Settings:
    return Settings()
