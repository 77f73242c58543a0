"""
Simulation Core - single entry point over both backtest engines and the model.
"""
from __future__ import annotations

from datetime import datetime
from typing import Any, Mapping, Optional, Sequence

import numpy as np
from loguru import logger

from config.settings import Settings
from neuronet.backtest import BacktestingEngine, QuickBacktestEngine
from neuronet.ml import EventBus, PatternRecognition, seed_training_data
from neuronet.models import (
    BacktestComparison,
    BacktestResult,
    BacktestRun,
    BacktestStats,
    CreditTransaction,
    FeatureVector,
    KMeansConfig,
    MarketCluster,
    MarketData,
    MemoryEntry,
    ModelMetrics,
    ModelWeights,
    Prediction,
    Scenario,
    StrategyConfig,
    TrainingDataPoint,
)
from neuronet.models.ml import Outcome
from neuronet.simulation import MarketGenerator


class SimulationCore:
    """
    Facade owning the quick engine, the scenario engine and the pattern model.

    The core does no locking. Hosts that call it from several threads must
    serialize writes (see ``neuronet.api.server``).
    """

    def __init__(
        self,
        quick: QuickBacktestEngine,
        scenarios: BacktestingEngine,
        model: PatternRecognition,
    ) -> None:
        self.quick = quick
        self.scenarios = scenarios
        self.model = model

    @property
    def events(self) -> EventBus:
        return self.model.events

    # ------------------------------------------------------------------
    # Quick backtest
    # ------------------------------------------------------------------
    def run_quick_backtest(
        self,
        symbol: str,
        interval: str,
        from_date: str,
        to_date: str,
        agents: Sequence[str],
        initial_balance: Optional[float] = None,
    ) -> BacktestResult:
        return self.quick.run_quick_backtest(
            symbol, interval, from_date, to_date, agents, initial_balance
        )

    def get_result(self, result_id: str) -> Optional[BacktestResult]:
        return self.quick.get_result(result_id)

    def get_results(self) -> list[BacktestResult]:
        return self.quick.get_results()

    def get_available_agents(self) -> list[str]:
        return self.quick.get_available_agents()

    def get_agent_descriptions(self) -> dict[str, str]:
        return self.quick.get_agent_descriptions()

    def format_summary(self, result: BacktestResult) -> str:
        return self.quick.format_summary(result)

    # ------------------------------------------------------------------
    # Scenario backtests
    # ------------------------------------------------------------------
    def create_scenario(
        self,
        name: str,
        description: str,
        chain: str,
        start_date: str | datetime,
        end_date: str | datetime,
    ) -> Scenario:
        return self.scenarios.create_scenario(name, description, chain, start_date, end_date)

    def get_scenarios(self) -> list[Scenario]:
        return self.scenarios.get_scenarios()

    def get_scenario(self, scenario_id: str) -> Optional[Scenario]:
        return self.scenarios.get_scenario(scenario_id)

    def delete_scenario(self, scenario_id: str) -> bool:
        return self.scenarios.delete_scenario(scenario_id)

    def run_backtest(
        self,
        scenario_id: str,
        strategy_config: StrategyConfig | Mapping[str, Any],
        initial_balance: float,
        agent_id: Optional[str] = None,
    ) -> BacktestRun:
        return self.scenarios.run_backtest(scenario_id, strategy_config, initial_balance, agent_id)

    def get_runs(self) -> list[BacktestRun]:
        return self.scenarios.get_runs()

    def get_run(self, run_id: str) -> Optional[BacktestRun]:
        return self.scenarios.get_run(run_id)

    def get_runs_for_scenario(self, scenario_id: str) -> list[BacktestRun]:
        return self.scenarios.get_runs_for_scenario(scenario_id)

    def compare_runs(self, run_ids: Sequence[str]) -> BacktestComparison:
        return self.scenarios.compare_runs(run_ids)

    def get_comparisons(self) -> list[BacktestComparison]:
        return self.scenarios.get_comparisons()

    def get_stats(self) -> BacktestStats:
        return self.scenarios.get_stats()

    # ------------------------------------------------------------------
    # Pattern recognition
    # ------------------------------------------------------------------
    def extract_features(
        self,
        memory_entries: Sequence[MemoryEntry],
        credit_transactions: Sequence[CreditTransaction],
        market_data: Optional[MarketData] = None,
    ) -> FeatureVector:
        return self.model.extract_features(memory_entries, credit_transactions, market_data)

    def perform_kmeans_clustering(
        self,
        feature_vectors: Sequence[FeatureVector],
        config: Optional[KMeansConfig] = None,
    ) -> list[MarketCluster]:
        return self.model.perform_kmeans_clustering(feature_vectors, config)

    def predict_success_probability(
        self, opportunity_id: str, features: FeatureVector
    ) -> Prediction:
        return self.model.predict_success_probability(opportunity_id, features)

    def train(self, labeled_points: Sequence[TrainingDataPoint]) -> None:
        self.model.train(labeled_points)

    def record_outcome(self, opportunity_id: str, outcome: Outcome, actual_return: float) -> bool:
        return self.model.record_outcome(opportunity_id, outcome, actual_return)

    def get_model_metrics(self) -> ModelMetrics:
        return self.model.get_model_metrics()

    def get_model_weights(self) -> ModelWeights:
        return self.model.get_model_weights()

    def get_clusters(self) -> list[MarketCluster]:
        return self.model.get_clusters()


def create_simulation_core(
    settings: Optional[Settings] = None,
    seed: Optional[int] = None,
) -> SimulationCore:
    """
    Build a fully wired core.

    Factory function that initializes:
    - MarketGenerator (shared by both engines)
    - QuickBacktestEngine
    - BacktestingEngine
    - PatternRecognition, trained on the bootstrap set when configured

    Args:
        settings: Application settings (defaults from environment)
        seed: Random seed; overrides ``settings.random_seed``

    Returns:
        SimulationCore ready to serve requests
    """
    settings = settings or Settings()
    seed = seed if seed is not None else settings.random_seed
    rng = np.random.default_rng(seed)

    generator = MarketGenerator(rng)
    model = PatternRecognition(
        clustering=settings.clustering,
        settings=settings.model,
        rng=rng,
    )
    if settings.model.seed_on_startup:
        model.train(seed_training_data())
        logger.info("Seeded pattern model with bootstrap training data")

    return SimulationCore(
        quick=QuickBacktestEngine(generator=generator, settings=settings.backtest),
        scenarios=BacktestingEngine(generator=generator, settings=settings.backtest),
        model=model,
    )
