from pathlib import Path

import pytest
from pydantic import ValidationError

from config.settings import (
    ApiSettings,
    BacktestSettings,
    ClusteringSettings,
    ModelSettings,
    Settings,
    get_settings,
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ("LOG_LEVEL", "LOG_DIR", "LOG_JSON", "RANDOM_SEED", "BACKTEST_INITIAL_BALANCE", "CLUSTER_K"):
        monkeypatch.delenv(name, raising=False)


def test_backtest_settings_defaults() -> None:
    backtest = BacktestSettings()
    assert backtest.initial_balance == 10000.0
    assert backtest.position_fraction == 0.95
    assert backtest.decision_tail == 100
    assert backtest.sharpe_annualization == 252
    assert backtest.profit_factor_cap == 10.0


def test_clustering_settings_defaults() -> None:
    clustering = ClusteringSettings()
    assert clustering.k == 5
    assert clustering.max_iterations == 100
    assert clustering.tolerance == 0.001
    assert clustering.training_max_iterations == 50
    assert clustering.training_tolerance == 0.01


def test_model_settings_defaults() -> None:
    model = ModelSettings()
    assert model.version == "1.0.0"
    assert model.learning_rate == 0.01
    assert model.min_training_points == 10
    assert model.metrics_window == 100
    assert model.seed_on_startup is True


def test_api_settings_defaults() -> None:
    api = ApiSettings()
    assert api.host == "127.0.0.1"
    assert api.port == 8787


def test_settings_loads_defaults() -> None:
    settings = Settings()
    assert settings.log_level == "INFO"
    assert settings.log_dir == Path("logs")
    assert settings.random_seed is None
    assert isinstance(settings.backtest, BacktestSettings)
    assert isinstance(settings.clustering, ClusteringSettings)
    assert isinstance(settings.model, ModelSettings)
    assert isinstance(settings.api, ApiSettings)


def test_env_prefix_overrides(monkeypatch) -> None:
    monkeypatch.setenv("BACKTEST_INITIAL_BALANCE", "2500")
    monkeypatch.setenv("CLUSTER_K", "3")
    monkeypatch.setenv("RANDOM_SEED", "42")
    settings = Settings()
    assert settings.backtest.initial_balance == 2500.0
    assert settings.clustering.k == 3
    assert settings.random_seed == 42


def test_invalid_position_fraction_rejected(monkeypatch) -> None:
    monkeypatch.setenv("BACKTEST_POSITION_FRACTION", "1.5")
    with pytest.raises(ValidationError):
        BacktestSettings()


def test_get_settings_is_cached() -> None:
    get_settings.cache_clear()
    assert get_settings() is get_settings()
    get_settings.cache_clear()
