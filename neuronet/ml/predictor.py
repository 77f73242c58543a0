"""Success-probability scoring against the current weights and cluster registry."""
from __future__ import annotations

import time
import uuid
from dataclasses import dataclass
from typing import Sequence

from neuronet.ml.clustering import classify_cluster, normalized_distance
from neuronet.models import FeatureVector, MarketCluster, ModelWeights, Prediction
from neuronet.models.ml import ClusterLabel

CLUSTER_BONUS: dict[str, float] = {
    "bullish": 0.15,
    "stable": 0.10,
    "sideways": 0.0,
    "volatile": -0.10,
    "bearish": -0.15,
}

HIGH_LIQUIDITY = 70.0
GAS_PENALTY_THRESHOLD = 100.0


def _clamp(value: float) -> float:
    return min(100.0, max(0.0, value))


@dataclass(frozen=True)
class Score:
    success_probability: float
    expected_return: float
    risk_adjusted_score: float
    cluster_label: ClusterLabel


def nearest_cluster_label(
    features: FeatureVector, clusters: Sequence[MarketCluster]
) -> ClusterLabel:
    """Label of the closest registered cluster, or a direct classification if none."""
    if not clusters:
        return classify_cluster(features)
    nearest = min(clusters, key=lambda c: normalized_distance(features, c.centroid))
    return nearest.label


def success_probability(
    features: FeatureVector, weights: ModelWeights, label: ClusterLabel
) -> float:
    base = (
        features.price_volatility * weights.volatility_weight
        + features.tvl_change * weights.tvl_weight
        + features.gas_price * weights.gas_weight / 100
        + features.agent_performance * weights.performance_weight
        + features.market_sentiment * weights.sentiment_weight
        + features.liquidity_depth * weights.liquidity_weight
        + features.volume_change * weights.volume_weight
    )
    bonus = CLUSTER_BONUS[label] * weights.cluster_bonus_weight * 100
    return _clamp(50 + base + bonus)


def expected_return(probability: float, features: FeatureVector) -> float:
    """Expected return as a fraction (0.12 == 12%)."""
    base = probability / 100 * 0.15
    volatility_adjustment = min(0.05, features.price_volatility * 0.002)
    liquidity_adjustment = 0.02 if features.liquidity_depth > HIGH_LIQUIDITY else -0.01
    return base + volatility_adjustment + liquidity_adjustment


def risk_adjusted_score(probability: float, features: FeatureVector) -> float:
    volatility_penalty = features.price_volatility * 0.5
    gas_penalty = max(0.0, features.gas_price - GAS_PENALTY_THRESHOLD) * 0.1
    liquidity_bonus = 5.0 if features.liquidity_depth > HIGH_LIQUIDITY else 0.0
    return _clamp(probability - volatility_penalty - gas_penalty + liquidity_bonus)


class SuccessPredictor:
    """Scores opportunities with a weighted linear model plus a regime bonus."""

    def __init__(self, model_version: str = "1.0.0") -> None:
        self.model_version = model_version

    def score(
        self,
        features: FeatureVector,
        weights: ModelWeights,
        clusters: Sequence[MarketCluster],
    ) -> Score:
        label = nearest_cluster_label(features, clusters)
        probability = success_probability(features, weights, label)
        return Score(
            success_probability=float(round(probability)),
            expected_return=float(round(expected_return(probability, features) * 100)),
            risk_adjusted_score=float(round(risk_adjusted_score(probability, features))),
            cluster_label=label,
        )

    def predict(
        self,
        opportunity_id: str,
        features: FeatureVector,
        weights: ModelWeights,
        clusters: Sequence[MarketCluster],
    ) -> Prediction:
        """
        Build a full ``Prediction`` record.

        ``expected_return`` is reported in whole percent and both scores are
        rounded to integers in [0, 100].
        """
        score = self.score(features, weights, clusters)
        now = int(time.time() * 1000)
        return Prediction(
            id=f"pred-{now}-{uuid.uuid4().hex[:8]}",
            opportunity_id=opportunity_id,
            success_probability=score.success_probability,
            expected_return=score.expected_return,
            risk_adjusted_score=score.risk_adjusted_score,
            features=features,
            cluster_label=score.cluster_label,
            model_version=self.model_version,
            timestamp=now,
        )
