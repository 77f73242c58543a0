from neuronet.ml.features import FeatureExtractor, percent_change, relative_volatility
from neuronet.ml.clustering import (
    FEATURE_SCALES,
    KMeansClusterer,
    classify_cluster,
    default_clusters,
    needs_fallback,
    normalized_distance,
)
from neuronet.ml.predictor import (
    CLUSTER_BONUS,
    Score,
    SuccessPredictor,
    expected_return,
    nearest_cluster_label,
    risk_adjusted_score,
    success_probability,
)
from neuronet.ml.events import (
    ClusteringCompleted,
    EventBus,
    ModelEvent,
    ModelTrained,
    OutcomeRecorded,
    PredictionMade,
)
from neuronet.ml.recognition import PatternRecognition
from neuronet.ml.seed import seed_training_data

__all__ = [
    "FeatureExtractor",
    "percent_change",
    "relative_volatility",
    "FEATURE_SCALES",
    "KMeansClusterer",
    "classify_cluster",
    "default_clusters",
    "needs_fallback",
    "normalized_distance",
    "CLUSTER_BONUS",
    "Score",
    "SuccessPredictor",
    "expected_return",
    "nearest_cluster_label",
    "risk_adjusted_score",
    "success_probability",
    "ClusteringCompleted",
    "EventBus",
    "ModelEvent",
    "ModelTrained",
    "OutcomeRecorded",
    "PredictionMade",
    "PatternRecognition",
    "seed_training_data",
]
