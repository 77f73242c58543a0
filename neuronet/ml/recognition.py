"""
Pattern Recognition - clustering, success prediction and online weight adaptation.

Usage:
    model = PatternRecognition()
    model.train(seed_training_data())
    prediction = model.predict_success_probability("opp-1", features)
"""
from __future__ import annotations

import math
import time
from typing import Optional, Sequence

import numpy as np
from loguru import logger

from config.settings import ClusteringSettings, ModelSettings
from neuronet.ml.clustering import KMeansClusterer, needs_fallback
from neuronet.ml.events import (
    ClusteringCompleted,
    EventBus,
    ModelTrained,
    OutcomeRecorded,
    PredictionMade,
)
from neuronet.ml.features import FeatureExtractor
from neuronet.ml.predictor import SuccessPredictor
from neuronet.models import (
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
from neuronet.models.ml import Outcome


def _now_ms() -> int:
    return int(time.time() * 1000)


def _normalized_weights(weights: ModelWeights) -> ModelWeights:
    if weights.abs_sum == 0:
        raise ValueError("Model snapshot has all-zero weights")
    if math.isclose(weights.abs_sum, 1.0, rel_tol=1e-9):
        return weights
    return weights.renormalized()


def _mean_features(points: Sequence[TrainingDataPoint]) -> np.ndarray:
    return np.mean([p.features.as_array() for p in points], axis=0)


class PatternRecognition:
    """
    Owns the cluster registry, training set, weights and metrics.

    Weights and metrics are immutable records; every change replaces the
    whole object, so a caller holding an earlier ``get_model_weights()``
    result never sees it change underneath.
    """

    def __init__(
        self,
        clustering: Optional[ClusteringSettings] = None,
        settings: Optional[ModelSettings] = None,
        rng: Optional[np.random.Generator] = None,
        events: Optional[EventBus] = None,
    ) -> None:
        self.clustering = clustering or ClusteringSettings()
        self.settings = settings or ModelSettings()
        self.events = events or EventBus()

        self.extractor = FeatureExtractor()
        self.clusterer = KMeansClusterer(rng)
        self.predictor = SuccessPredictor(model_version=self.settings.version)

        self._clusters: dict[str, MarketCluster] = {}
        self._training_data: list[TrainingDataPoint] = []
        self._pending: dict[str, Prediction] = {}
        self._weights = ModelWeights().renormalized()

        now = _now_ms()
        self._metrics = ModelMetrics(
            model_id=f"ml-model-{now}",
            version=self.settings.version,
            last_trained_at=now,
        )

    # ------------------------------------------------------------------
    # Features and clustering
    # ------------------------------------------------------------------
    def extract_features(
        self,
        memory_entries: Sequence[MemoryEntry],
        credit_transactions: Sequence[CreditTransaction],
        market_data: Optional[MarketData] = None,
    ) -> FeatureVector:
        return self.extractor.extract(memory_entries, credit_transactions, market_data)

    def perform_kmeans_clustering(
        self,
        feature_vectors: Sequence[FeatureVector],
        config: Optional[KMeansConfig] = None,
    ) -> list[MarketCluster]:
        """
        Cluster feature vectors and make the result the current registry.

        When the input is too small for k distinct centroids the default
        clusters are returned and the existing registry is kept.
        """
        config = config or KMeansConfig(
            k=self.clustering.k,
            max_iterations=self.clustering.max_iterations,
            tolerance=self.clustering.tolerance,
        )
        clusters = self.clusterer.cluster(feature_vectors, config)
        if needs_fallback(feature_vectors, config.k):
            return clusters

        self._clusters = {cluster.id: cluster for cluster in clusters}
        logger.info(
            f"Clustered {len(feature_vectors)} points: "
            + ", ".join(f"{c.label}({len(c.members)})" for c in clusters)
        )
        self.events.emit(ClusteringCompleted(clusters=tuple(clusters)))
        return clusters

    def get_clusters(self) -> list[MarketCluster]:
        return list(self._clusters.values())

    # ------------------------------------------------------------------
    # Prediction
    # ------------------------------------------------------------------
    def predict_success_probability(
        self, opportunity_id: str, features: FeatureVector
    ) -> Prediction:
        prediction = self.predictor.predict(
            opportunity_id, features, self._weights, self.get_clusters()
        )
        self._pending.pop(opportunity_id, None)
        self._pending[opportunity_id] = prediction
        if len(self._pending) > self.settings.max_pending_predictions:
            dropped = next(iter(self._pending))
            del self._pending[dropped]
            logger.debug(f"Dropped unscored prediction for {dropped}")
        self._metrics = self._metrics.model_copy(
            update={"total_predictions": self._metrics.total_predictions + 1}
        )
        logger.debug(
            f"Predicted {opportunity_id}: {prediction.success_probability:.0f}% "
            f"({prediction.cluster_label})"
        )
        self.events.emit(PredictionMade(prediction=prediction))
        return prediction

    def record_outcome(
        self, opportunity_id: str, outcome: Outcome, actual_return: float
    ) -> bool:
        """
        Score the last prediction issued for an opportunity against its outcome.

        Returns:
            True if a prediction for the opportunity was found and scored
        """
        prediction = self._pending.pop(opportunity_id, None)
        if prediction is not None:
            predicted_success = prediction.success_probability >= 50
            if predicted_success == (outcome == "success"):
                self._metrics = self._metrics.model_copy(
                    update={"correct_predictions": self._metrics.correct_predictions + 1}
                )
        else:
            logger.debug(f"No pending prediction for {opportunity_id}")

        self.events.emit(
            OutcomeRecorded(
                opportunity_id=opportunity_id,
                outcome=outcome,
                actual_return=actual_return,
            )
        )
        return prediction is not None

    # ------------------------------------------------------------------
    # Training
    # ------------------------------------------------------------------
    def train(self, labeled_points: Sequence[TrainingDataPoint]) -> None:
        """
        Add labeled points and, once enough have accumulated, adapt the model.

        Adaptation nudges weights toward the successful/failed mean
        difference, re-clusters the full training set and recomputes
        metrics over the most recent points.
        """
        self._training_data.extend(labeled_points)
        if len(self._training_data) < self.settings.min_training_points:
            logger.debug(
                f"Training deferred: {len(self._training_data)}/"
                f"{self.settings.min_training_points} points"
            )
            return

        successful = [p for p in self._training_data if p.outcome == "success"]
        failed = [p for p in self._training_data if p.outcome == "failure"]
        if successful and failed:
            directions = _mean_features(successful) - _mean_features(failed)
            self._weights = self._weights.nudged(directions, self.settings.learning_rate)

        self.perform_kmeans_clustering(
            [p.features for p in self._training_data],
            KMeansConfig(
                k=self.clustering.k,
                max_iterations=self.clustering.training_max_iterations,
                tolerance=self.clustering.training_tolerance,
            ),
        )
        self._metrics = self._replay_metrics()

        logger.info(
            f"Model trained on {len(self._training_data)} points: "
            f"accuracy {self._metrics.accuracy:.0f}%, f1 {self._metrics.f1_score:.0f}"
        )
        self.events.emit(ModelTrained(metrics=self._metrics))

    def _replay_metrics(self) -> ModelMetrics:
        recent = self._training_data[-self.settings.metrics_window:]
        clusters = self.get_clusters()
        correct = tp = fp = fn = 0

        for point in recent:
            score = self.predictor.score(point.features, self._weights, clusters)
            predicted = score.success_probability >= 50
            actual = point.outcome == "success"
            if predicted == actual:
                correct += 1
            if predicted and actual:
                tp += 1
            elif predicted and not actual:
                fp += 1
            elif actual:
                fn += 1

        precision = tp / (tp + fp) if tp + fp else 0.0
        recall = tp / (tp + fn) if tp + fn else 0.0
        f1 = 2 * precision * recall / (precision + recall) if precision + recall else 0.0

        return self._metrics.model_copy(
            update={
                "accuracy": float(round(correct / len(recent) * 100)),
                "precision": float(round(precision * 100)),
                "recall": float(round(recall * 100)),
                "f1_score": float(round(f1 * 100)),
                "correct_predictions": correct,
                "last_trained_at": _now_ms(),
                "training_data_points": len(self._training_data),
            }
        )

    # ------------------------------------------------------------------
    # Accessors and persistence
    # ------------------------------------------------------------------
    def get_model_metrics(self) -> ModelMetrics:
        return self._metrics

    def get_model_weights(self) -> ModelWeights:
        return self._weights

    @property
    def training_data(self) -> list[TrainingDataPoint]:
        return list(self._training_data)

    def to_json(self) -> str:
        snapshot = ModelSnapshot(
            clusters=self.get_clusters(),
            training_data=self._training_data,
            metrics=self._metrics,
            weights=self._weights,
        )
        return snapshot.model_dump_json()

    def load_json(self, payload: str) -> None:
        snapshot = ModelSnapshot.model_validate_json(payload)
        weights = _normalized_weights(snapshot.weights)
        self._clusters = {cluster.id: cluster for cluster in snapshot.clusters}
        self._training_data = list(snapshot.training_data)
        self._metrics = snapshot.metrics
        self._weights = weights
        self._pending.clear()
        logger.info(
            f"Loaded model snapshot: {len(self._clusters)} clusters, "
            f"{len(self._training_data)} training points"
        )
