"""
Training pipeline for per-route ferry delay models.

This module provides:
- Training window construction from raw vessel history
- Leakage-tiered feature extraction
- Route bucketing with a recency cap
- Per-route linear model training and evaluation
- Pipeline coordination with a run report

Quick start:
    from ferrycast.training import PipelineCoordinator
    report = PipelineCoordinator(loader, repository, create_route_priors()).run()
"""

from ferrycast.training.types import (
    VesselHistoryRecord,
    TripLeg,
    WithNextLegWindow,
    WithoutNextLegWindow,
    TrainingWindow,
    FeatureSets,
    Targets,
    FeatureRecord,
    BucketStats,
    RouteBucket,
    TestMetrics,
    ModelParameters,
    RunStatus,
    PipelineRunReport,
)
from ferrycast.training.windows import TripWindowBuilder, WindowBuildStats, create_training_windows
from ferrycast.training.features import (
    FeatureExtractor,
    create_feature_record,
    create_feature_records,
    merge_feature_vectors,
)
from ferrycast.training.buckets import create_route_buckets
from ferrycast.training.models import ModelType, MODEL_TYPES, get_model_definition
from ferrycast.training.metrics import calculate_metrics
from ferrycast.training.prediction import predict_linear
from ferrycast.training.trainer import ModelTrainer
from ferrycast.training.pipeline import Pipeline, PipelineCoordinator

__all__ = [
    # Types
    "VesselHistoryRecord",
    "TripLeg",
    "WithNextLegWindow",
    "WithoutNextLegWindow",
    "TrainingWindow",
    "FeatureSets",
    "Targets",
    "FeatureRecord",
    "BucketStats",
    "RouteBucket",
    "TestMetrics",
    "ModelParameters",
    "RunStatus",
    "PipelineRunReport",
    # Windows
    "TripWindowBuilder",
    "WindowBuildStats",
    "create_training_windows",
    # Features
    "FeatureExtractor",
    "create_feature_record",
    "create_feature_records",
    "merge_feature_vectors",
    # Buckets
    "create_route_buckets",
    # Models
    "ModelType",
    "MODEL_TYPES",
    "get_model_definition",
    "calculate_metrics",
    "predict_linear",
    "ModelTrainer",
    # Pipeline
    "Pipeline",
    "PipelineCoordinator",
]
