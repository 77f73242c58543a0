"""Pattern-recognition records: features, clusters, predictions, weights."""
from __future__ import annotations

from typing import Literal, Optional

import numpy as np
from pydantic import BaseModel, ConfigDict, Field

ClusterLabel = Literal["bullish", "bearish", "sideways", "volatile", "stable"]
Outcome = Literal["success", "failure"]

CLUSTER_LABELS: tuple[ClusterLabel, ...] = (
    "bullish",
    "bearish",
    "sideways",
    "volatile",
    "stable",
)

FEATURE_FIELDS: tuple[str, ...] = (
    "price_volatility",
    "tvl_change",
    "gas_price",
    "agent_performance",
    "market_sentiment",
    "liquidity_depth",
    "volume_change",
)


class FeatureVector(BaseModel):
    model_config = ConfigDict(frozen=True)

    price_volatility: float = 0.0
    tvl_change: float = 0.0
    gas_price: float = 50.0
    agent_performance: float = 50.0
    market_sentiment: float = 50.0
    liquidity_depth: float = 50.0
    volume_change: float = 0.0
    timestamp: int = 0

    def as_array(self) -> np.ndarray:
        return np.array([getattr(self, name) for name in FEATURE_FIELDS], dtype=float)

    @classmethod
    def from_array(cls, values: np.ndarray, timestamp: int = 0) -> "FeatureVector":
        return cls(
            **{name: float(v) for name, v in zip(FEATURE_FIELDS, values)},
            timestamp=timestamp,
        )

    @classmethod
    def neutral(cls, timestamp: int = 0) -> "FeatureVector":
        return cls(timestamp=timestamp)


class MemoryEntry(BaseModel):
    model_config = {"from_attributes": True}

    id: str
    strategy_type: Literal["successful", "blocked", "high-risk", "learned"]
    description: str = ""
    timestamp: int = 0
    tags: list[str] = []


class CreditTransaction(BaseModel):
    model_config = {"from_attributes": True}

    agent_id: str
    amount: float
    reason: str = ""
    timestamp: int = 0


class MarketData(BaseModel):
    price: Optional[float] = None
    previous_price: Optional[float] = None
    tvl: Optional[float] = None
    previous_tvl: Optional[float] = None
    gas_price: Optional[float] = None
    volume: Optional[float] = None
    previous_volume: Optional[float] = None


class KMeansConfig(BaseModel):
    k: int = Field(default=5, ge=1)
    max_iterations: int = Field(default=100, ge=1)
    tolerance: float = Field(default=0.001, ge=0.0)


class MarketCluster(BaseModel):
    model_config = {"from_attributes": True}

    id: str
    centroid: FeatureVector
    members: list[str]
    label: ClusterLabel
    confidence: float = Field(ge=0.0, le=100.0)
    timestamp: int


class Prediction(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    opportunity_id: str
    success_probability: float = Field(ge=0.0, le=100.0)
    expected_return: float
    risk_adjusted_score: float = Field(ge=0.0, le=100.0)
    features: FeatureVector
    cluster_label: ClusterLabel
    model_version: str
    timestamp: int


class ModelWeights(BaseModel):
    """
    Signed predictor weights.

    The field defaults are the raw seed weights (absolute sum 1.15).
    ``renormalized()`` and ``nudged()`` return copies whose absolute values
    sum to 1, and the pattern model only ever holds such copies.
    """

    model_config = ConfigDict(frozen=True)

    volatility_weight: float = -0.15
    tvl_weight: float = 0.20
    gas_weight: float = -0.10
    performance_weight: float = 0.25
    sentiment_weight: float = 0.15
    liquidity_weight: float = 0.10
    volume_weight: float = 0.05
    cluster_bonus_weight: float = 0.15

    @property
    def feature_weights(self) -> np.ndarray:
        return np.array(
            [
                self.volatility_weight,
                self.tvl_weight,
                self.gas_weight,
                self.performance_weight,
                self.sentiment_weight,
                self.liquidity_weight,
                self.volume_weight,
            ],
            dtype=float,
        )

    @property
    def abs_sum(self) -> float:
        return float(np.abs(self.feature_weights).sum() + abs(self.cluster_bonus_weight))

    def renormalized(self) -> "ModelWeights":
        total = self.abs_sum
        if total == 0:
            return self
        return ModelWeights(
            **{name: value / total for name, value in self.model_dump().items()}
        )

    def nudged(self, directions: np.ndarray, learning_rate: float) -> "ModelWeights":
        """Step each feature weight by ``learning_rate`` in the given direction."""
        updated = self.feature_weights + np.sign(directions) * learning_rate
        return ModelWeights(
            volatility_weight=float(updated[0]),
            tvl_weight=float(updated[1]),
            gas_weight=float(updated[2]),
            performance_weight=float(updated[3]),
            sentiment_weight=float(updated[4]),
            liquidity_weight=float(updated[5]),
            volume_weight=float(updated[6]),
            cluster_bonus_weight=self.cluster_bonus_weight,
        ).renormalized()


class ModelMetrics(BaseModel):
    model_config = ConfigDict(frozen=True, protected_namespaces=())

    model_id: str
    version: str
    accuracy: float = 0.0
    precision: float = 0.0
    recall: float = 0.0
    f1_score: float = 0.0
    total_predictions: int = 0
    correct_predictions: int = 0
    last_trained_at: int
    training_data_points: int = 0


class TrainingDataPoint(BaseModel):
    model_config = {"from_attributes": True}

    id: str
    features: FeatureVector
    outcome: Outcome
    actual_return: float = 0.0
    opportunity_type: str = ""
    timestamp: int = 0


class ModelSnapshot(BaseModel):
    clusters: list[MarketCluster] = []
    training_data: list[TrainingDataPoint] = []
    metrics: ModelMetrics
    weights: ModelWeights
