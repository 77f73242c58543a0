"""
K-means clustering of feature vectors into labeled market regimes.

Distances are Euclidean over the 7 feature dimensions after dividing each
dimension by a fixed scale, so gas price (tens to hundreds) does not swamp
the percentage-valued dimensions.
"""
from __future__ import annotations

import time
from typing import Optional, Sequence

import numpy as np
from loguru import logger

from neuronet.models import CLUSTER_LABELS, FeatureVector, KMeansConfig, MarketCluster
from neuronet.models.ml import ClusterLabel

FEATURE_SCALES = np.array([100.0, 100.0, 200.0, 100.0, 100.0, 100.0, 100.0])
NEUTRAL_CENTROID = FeatureVector.neutral().as_array()


def _now_ms() -> int:
    return int(time.time() * 1000)


def normalized_distance(a: FeatureVector, b: FeatureVector) -> float:
    diff = (a.as_array() - b.as_array()) / FEATURE_SCALES
    return float(np.sqrt((diff * diff).sum()))


def classify_cluster(centroid: FeatureVector) -> ClusterLabel:
    if centroid.price_volatility > 10:
        return "volatile"
    if centroid.tvl_change > 5 and centroid.market_sentiment > 60:
        return "bullish"
    if centroid.tvl_change < -5 and centroid.market_sentiment < 40:
        return "bearish"
    if abs(centroid.tvl_change) < 2 and abs(centroid.volume_change) < 5:
        return "stable"
    return "sideways"


def default_clusters(timestamp: Optional[int] = None) -> list[MarketCluster]:
    """One neutral, memberless cluster per label at 50% confidence."""
    ts = timestamp if timestamp is not None else _now_ms()
    return [
        MarketCluster(
            id=f"default-cluster-{i}",
            centroid=FeatureVector.neutral(ts),
            members=[],
            label=label,
            confidence=50.0,
            timestamp=ts,
        )
        for i, label in enumerate(CLUSTER_LABELS)
    ]


def needs_fallback(points: Sequence[FeatureVector], k: int) -> bool:
    """True when k distinct initial centroids cannot be drawn from ``points``."""
    if len(points) < k:
        return True
    matrix = np.array([p.as_array() for p in points])
    return len(np.unique(matrix, axis=0)) < k


class KMeansClusterer:
    """Lloyd's algorithm with randomly sampled distinct initial centroids."""

    def __init__(self, rng: Optional[np.random.Generator] = None) -> None:
        self.rng = rng if rng is not None else np.random.default_rng()

    def cluster(
        self,
        points: Sequence[FeatureVector],
        config: Optional[KMeansConfig] = None,
    ) -> list[MarketCluster]:
        """
        Partition ``points`` into ``config.k`` labeled clusters.

        Args:
            points: Feature vectors; member ids are ``datapoint-<index>``
            config: k, iteration cap and convergence tolerance

        Returns:
            k clusters, or the default clusters when the input is too small
        """
        config = config or KMeansConfig()
        if needs_fallback(points, config.k):
            logger.debug(
                f"Clustering fallback: {len(points)} points for k={config.k}"
            )
            return default_clusters()

        scaled = np.array([p.as_array() for p in points]) / FEATURE_SCALES
        centroids = self._initial_centroids(scaled, config.k)
        assignments = self._assign(scaled, centroids)

        for iteration in range(config.max_iterations):
            assignments = self._assign(scaled, centroids)
            updated = self._recompute(scaled, assignments, config.k)
            shift = np.sqrt(((updated - centroids) ** 2).sum(axis=1))
            centroids = updated
            if np.all(shift <= config.tolerance):
                logger.debug(f"K-means converged after {iteration + 1} iterations")
                break

        timestamp = _now_ms()
        clusters = []
        for i in range(config.k):
            member_idx = np.flatnonzero(assignments == i)
            centroid = FeatureVector.from_array(centroids[i] * FEATURE_SCALES, timestamp)
            if len(member_idx) == 0:
                confidence = 0.0
            else:
                distances = np.sqrt(((scaled[member_idx] - centroids[i]) ** 2).sum(axis=1))
                confidence = min(100.0, max(0.0, 100 - float(distances.mean()) * 50))
            clusters.append(
                MarketCluster(
                    id=f"cluster-{i}-{timestamp}",
                    centroid=centroid,
                    members=[f"datapoint-{idx}" for idx in member_idx],
                    label=classify_cluster(centroid),
                    confidence=confidence,
                    timestamp=timestamp,
                )
            )
        return clusters

    def _initial_centroids(self, scaled: np.ndarray, k: int) -> np.ndarray:
        distinct = np.unique(scaled, axis=0)
        chosen = self.rng.choice(len(distinct), size=k, replace=False)
        return distinct[chosen].copy()

    @staticmethod
    def _assign(scaled: np.ndarray, centroids: np.ndarray) -> np.ndarray:
        diffs = scaled[:, None, :] - centroids[None, :, :]
        return np.argmin((diffs ** 2).sum(axis=2), axis=1)

    @staticmethod
    def _recompute(scaled: np.ndarray, assignments: np.ndarray, k: int) -> np.ndarray:
        neutral = NEUTRAL_CENTROID / FEATURE_SCALES
        centroids = np.empty((k, scaled.shape[1]))
        for i in range(k):
            members = scaled[assignments == i]
            centroids[i] = members.mean(axis=0) if len(members) else neutral
        return centroids
