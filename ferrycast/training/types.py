"""
Record types flowing through the training pipeline.

Raw history -> TripLeg -> TrainingWindow -> FeatureRecord -> RouteBucket
-> ModelParameters. All timestamps are integer epoch milliseconds.
"""

from datetime import date, datetime
from enum import Enum
from typing import Any, NamedTuple, Union


ARRIVAL_PROXY_SOURCE = "wsf_est_arrival"


class VesselHistoryRecord(NamedTuple):
    """Raw vessel history row as returned by the upstream source."""
    vessel: str | None
    departing: str | None
    arriving: str | None
    scheduled_depart: datetime | None
    actual_depart: datetime | None
    est_arrival: datetime | None
    sailing_date: date | None = None


class TripLeg(NamedTuple):
    """A single normalized sailing between two terminal codes."""
    from_terminal: str
    to_terminal: str
    scheduled_departure_ms: int
    actual_departure_ms: int
    arrival_proxy_ms: int | None = None
    arrival_proxy_source: str | None = None


class WithoutNextLegWindow(NamedTuple):
    """Two consecutive legs A->B, B->C with no usable leg out of C."""
    vessel: str
    prev_terminal: str
    curr_terminal: str
    next_terminal: str
    prev_leg: TripLeg
    curr_leg: TripLeg
    route_key: str
    slack_before_curr_scheduled_depart_minutes: float
    mean_at_dock_minutes_for_curr_route: float
    kind: str = "without_next_leg"


class WithNextLegWindow(NamedTuple):
    """Three consecutive legs A->B, B->C, C->D with an eligible next leg."""
    vessel: str
    prev_terminal: str
    curr_terminal: str
    next_terminal: str
    after_terminal: str
    prev_leg: TripLeg
    curr_leg: TripLeg
    next_leg: TripLeg
    route_key: str
    next_route_key: str
    slack_before_curr_scheduled_depart_minutes: float
    mean_at_dock_minutes_for_curr_route: float
    slack_before_next_scheduled_depart_minutes: float
    mean_at_dock_minutes_for_next_route: float
    next_leg_eligible: bool = True
    kind: str = "with_next_leg"


TrainingWindow = Union[WithNextLegWindow, WithoutNextLegWindow]


class FeatureSets(NamedTuple):
    """Feature vectors per leakage tier."""
    at_dock: dict[str, float]
    at_sea: dict[str, float]


class Targets(NamedTuple):
    """Regression targets in minutes; None when not observable."""
    depart_curr_minutes: float
    arrive_next_from_scheduled_minutes: float | None
    arrive_next_from_actual_minutes: float | None
    depart_next_from_next_scheduled_minutes: float | None


class FeatureRecord(NamedTuple):
    route_key: str
    scheduled_departure_ms: int
    next_leg_eligible: bool
    features: FeatureSets
    targets: Targets


class BucketStats(NamedTuple):
    total_records: int
    sampled_records: int

    def to_dict(self) -> dict[str, int]:
        return self._asdict()


class RouteBucket(NamedTuple):
    route_key: str
    records: list[FeatureRecord]
    stats: BucketStats


class TestMetrics(NamedTuple):
    """Hold-out evaluation metrics, all in minutes except r2."""
    __test__ = False

    mae: float
    rmse: float
    r2: float
    std_dev: float

    def to_dict(self) -> dict[str, float]:
        return self._asdict()


class ModelParameters(NamedTuple):
    """A fitted per-route linear model."""
    model_type: str
    route_key: str
    feature_keys: list[str]
    coefficients: list[float]
    intercept: float
    test_metrics: TestMetrics
    created_at: int
    bucket_stats: BucketStats

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-serializable dictionary."""
        return {
            "model_type": self.model_type,
            "route_key": self.route_key,
            "feature_keys": list(self.feature_keys),
            "coefficients": list(self.coefficients),
            "intercept": self.intercept,
            "test_metrics": self.test_metrics.to_dict(),
            "created_at": self.created_at,
            "bucket_stats": self.bucket_stats.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ModelParameters":
        return cls(
            model_type=data["model_type"],
            route_key=data["route_key"],
            feature_keys=list(data["feature_keys"]),
            coefficients=[float(c) for c in data["coefficients"]],
            intercept=float(data["intercept"]),
            test_metrics=TestMetrics(**data["test_metrics"]),
            created_at=int(data["created_at"]),
            bucket_stats=BucketStats(**data["bucket_stats"]),
        )


class RunStatus(str, Enum):
    """Status of a pipeline run."""
    SUCCESS = "success"
    FAILED = "failed"


class PipelineRunReport(NamedTuple):
    """Summary of a single pipeline run."""
    status: RunStatus
    total_raw_records: int
    total_windows: int
    total_feature_records: int
    buckets_processed: int
    models_trained: int
    models_skipped: int
    training_failures: list[str]
    error: dict[str, Any] | None
    started_at: datetime
    finished_at: datetime

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging."""
        return {
            "status": self.status.value,
            "total_raw_records": self.total_raw_records,
            "total_windows": self.total_windows,
            "total_feature_records": self.total_feature_records,
            "buckets_processed": self.buckets_processed,
            "models_trained": self.models_trained,
            "models_skipped": self.models_skipped,
            "training_failures": list(self.training_failures),
            "error": self.error,
            "started_at": self.started_at.isoformat(),
            "finished_at": self.finished_at.isoformat(),
        }


__all__ = [
    "ARRIVAL_PROXY_SOURCE",
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
]
