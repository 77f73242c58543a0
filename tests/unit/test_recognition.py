import json

import numpy as np
import pytest

from config.settings import ClusteringSettings, ModelSettings
from neuronet.ml import (
    ClusteringCompleted,
    ModelTrained,
    OutcomeRecorded,
    PatternRecognition,
    PredictionMade,
    seed_training_data,
)
from neuronet.models import FeatureVector, KMeansConfig, MarketData, MemoryEntry


@pytest.fixture
def model():
    return PatternRecognition(rng=np.random.default_rng(7))


@pytest.fixture
def trained(model):
    model.train(seed_training_data(now_ms=1_700_000_000_000))
    return model


def capture(model, event_type) -> list:
    received = []
    model.events.subscribe(event_type, received.append)
    return received


def test_seed_training_data() -> None:
    points = seed_training_data(now_ms=1_000_000_000_000)
    assert [p.id for p in points] == [f"seed-{i}" for i in range(1, 13)]
    assert sum(p.outcome == "success" for p in points) == 8
    assert sum(p.outcome == "failure" for p in points) == 4
    assert all(p.timestamp < 1_000_000_000_000 for p in points)


class TestInitialState:
    def test_fresh_model(self, model) -> None:
        metrics = model.get_model_metrics()
        assert metrics.model_id.startswith("ml-model-")
        assert metrics.version == "1.0.0"
        assert metrics.total_predictions == 0
        assert metrics.training_data_points == 0
        assert model.get_model_weights().abs_sum == pytest.approx(1.0)
        assert model.get_clusters() == []
        assert model.training_data == []

    def test_extract_features(self, model) -> None:
        features = model.extract_features(
            [MemoryEntry(id="m1", strategy_type="successful")],
            [],
            MarketData(price=105.0, previous_price=100.0),
        )
        assert features.market_sentiment == 52.0
        assert features.price_volatility == pytest.approx(5.0)


class TestPrediction:
    def test_predict_counts_and_emits(self, model) -> None:
        made = capture(model, PredictionMade)
        prediction = model.predict_success_probability("opp-1", FeatureVector.neutral())
        assert prediction.success_probability == 73.0
        assert model.get_model_metrics().total_predictions == 1
        assert [e.prediction for e in made] == [prediction]

    def test_record_outcome_scores_pending_prediction(self, model) -> None:
        recorded = capture(model, OutcomeRecorded)
        model.predict_success_probability("opp-1", FeatureVector.neutral())

        assert model.record_outcome("opp-1", "success", 0.12) is True
        assert model.get_model_metrics().correct_predictions == 1
        assert model.record_outcome("opp-1", "success", 0.12) is False
        assert len(recorded) == 2

    def test_wrong_prediction_not_counted_correct(self, model) -> None:
        model.predict_success_probability("opp-2", FeatureVector.neutral())
        assert model.record_outcome("opp-2", "failure", -0.05) is True
        assert model.get_model_metrics().correct_predictions == 0

    def test_unknown_opportunity(self, model) -> None:
        recorded = capture(model, OutcomeRecorded)
        assert model.record_outcome("never-predicted", "failure", 0.0) is False
        assert recorded[0].opportunity_id == "never-predicted"


class TestTraining:
    def test_training_deferred_below_minimum(self, model) -> None:
        trained_events = capture(model, ModelTrained)
        before = model.get_model_weights()
        model.train(seed_training_data()[:5])
        assert len(model.training_data) == 5
        assert model.get_model_weights() == before
        assert model.get_clusters() == []
        assert trained_events == []

    def test_training_adapts_model(self, model) -> None:
        trained_events = capture(model, ModelTrained)
        clustered = capture(model, ClusteringCompleted)
        before = model.get_model_weights()

        model.train(seed_training_data())

        weights = model.get_model_weights()
        assert weights != before
        assert weights.abs_sum == pytest.approx(1.0)
        assert weights.volatility_weight < before.volatility_weight < 0
        assert len(model.get_clusters()) == 5
        assert len(clustered) == 1
        assert len(trained_events) == 1

        metrics = model.get_model_metrics()
        assert trained_events[0].metrics == metrics
        assert metrics.training_data_points == 12
        assert 0 <= metrics.accuracy <= 100
        assert 0 <= metrics.f1_score <= 100

    def test_earlier_weights_are_not_mutated(self, model) -> None:
        before = model.get_model_weights()
        snapshot = before.model_dump()
        model.train(seed_training_data())
        assert before.model_dump() == snapshot

    def test_training_accumulates(self, model) -> None:
        model.train(seed_training_data()[:6])
        model.train(seed_training_data()[6:])
        assert model.get_model_metrics().training_data_points == 12

    def test_custom_thresholds(self) -> None:
        model = PatternRecognition(
            clustering=ClusteringSettings(k=2),
            settings=ModelSettings(min_training_points=3, version="9.9.9"),
            rng=np.random.default_rng(0),
        )
        model.train(seed_training_data()[:3])
        assert len(model.get_clusters()) == 2
        assert model.get_model_metrics().version == "9.9.9"


class TestClusteringRegistry:
    def test_fallback_keeps_registry(self, trained) -> None:
        registry = trained.get_clusters()
        clustered = capture(trained, ClusteringCompleted)
        result = trained.perform_kmeans_clustering([FeatureVector.neutral()])
        assert [c.id for c in result] == [f"default-cluster-{i}" for i in range(5)]
        assert trained.get_clusters() == registry
        assert clustered == []

    def test_identical_vectors_return_defaults(self, model) -> None:
        completed = capture(model, ClusteringCompleted)
        points = [FeatureVector(tvl_change=1.0) for _ in range(5)]
        clusters = model.perform_kmeans_clustering(points, KMeansConfig(k=5))
        assert len(clusters) == 5
        assert all(c.confidence == 50.0 and c.id.startswith("default-cluster-") for c in clusters)
        assert model.get_clusters() == []
        assert completed == []

    def test_clustering_replaces_registry(self, trained) -> None:
        points = [FeatureVector(tvl_change=i, volume_change=i) for i in range(8)]
        clusters = trained.perform_kmeans_clustering(points)
        assert trained.get_clusters() == clusters


def test_json_round_trip(trained) -> None:
    restored = PatternRecognition()
    restored.load_json(trained.to_json())
    assert restored.get_model_weights() == trained.get_model_weights()
    assert restored.get_model_metrics() == trained.get_model_metrics()
    assert [c.id for c in restored.get_clusters()] == [c.id for c in trained.get_clusters()]
    assert len(restored.training_data) == 12


def test_load_json_renormalizes_scaled_weights(trained) -> None:
    snapshot = json.loads(trained.to_json())
    snapshot["weights"] = {name: value * 3 for name, value in snapshot["weights"].items()}

    restored = PatternRecognition()
    restored.load_json(json.dumps(snapshot))
    weights = restored.get_model_weights()
    assert weights.abs_sum == pytest.approx(1.0)
    assert weights.feature_weights == pytest.approx(trained.get_model_weights().feature_weights)


def test_load_json_rejects_zero_weights(trained) -> None:
    snapshot = json.loads(trained.to_json())
    snapshot["weights"] = {name: 0.0 for name in snapshot["weights"]}

    restored = PatternRecognition()
    with pytest.raises(ValueError, match="all-zero weights"):
        restored.load_json(json.dumps(snapshot))
    assert restored.get_clusters() == []
    assert restored.get_model_weights().abs_sum == pytest.approx(1.0)


def test_pending_predictions_are_capped() -> None:
    model = PatternRecognition(settings=ModelSettings(max_pending_predictions=2))
    for opportunity_id in ("opp-1", "opp-2", "opp-3"):
        model.predict_success_probability(opportunity_id, FeatureVector.neutral())

    assert model.record_outcome("opp-1", "success", 0.1) is False
    assert model.record_outcome("opp-2", "success", 0.1) is True
    assert model.record_outcome("opp-3", "success", 0.1) is True
