from neuronet.models.market import (
    INTERVAL_MS,
    Candle,
    Chain,
    HistoricalDataPoint,
    Interval,
    Scenario,
)
from neuronet.models.backtest import (
    AgentPerformance,
    BacktestComparison,
    BacktestDecision,
    BacktestResult,
    BacktestRun,
    BacktestStats,
    QuickBacktestRequest,
    RunMetrics,
    StrategyConfig,
    TradeDecision,
)
from neuronet.models.ml import (
    CLUSTER_LABELS,
    FEATURE_FIELDS,
    ClusterLabel,
    CreditTransaction,
    FeatureVector,
    KMeansConfig,
    MarketCluster,
    MarketData,
    MemoryEntry,
    ModelMetrics,
    ModelSnapshot,
    ModelWeights,
    Prediction,
    TrainingDataPoint,
)

__all__ = [
    "INTERVAL_MS",
    "Candle",
    "Chain",
    "HistoricalDataPoint",
    "Interval",
    "Scenario",
    "AgentPerformance",
    "BacktestComparison",
    "BacktestDecision",
    "BacktestResult",
    "BacktestRun",
    "BacktestStats",
    "QuickBacktestRequest",
    "RunMetrics",
    "StrategyConfig",
    "TradeDecision",
    "CLUSTER_LABELS",
    "FEATURE_FIELDS",
    "ClusterLabel",
    "CreditTransaction",
    "FeatureVector",
    "KMeansConfig",
    "MarketCluster",
    "MarketData",
    "MemoryEntry",
    "ModelMetrics",
    "ModelSnapshot",
    "ModelWeights",
    "Prediction",
    "TrainingDataPoint",
]
