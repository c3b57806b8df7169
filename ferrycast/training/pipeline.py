"""
Training pipeline coordination.

Sequences the run as an ordered list of named stages:
1. load       - raw vessel history from the upstream source
2. windows    - leakage-safe training windows
3. features   - feature records
4. buckets    - route buckets with recency cap
5. train      - one model per (bucket, model type)
6. persist    - one upsert per trained model

A failed (bucket, model type) unit is logged and recorded but never aborts
the run. A failed load aborts before any training.
"""

import time
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timezone
from typing import Any, Callable, NamedTuple, Protocol
from zoneinfo import ZoneInfo

from ferrycast.utils import logger
from ferrycast.utils.exceptions import ExternalFetchError, ModelStorageError
from ferrycast.config.route_priors import RoutePriorsConfig
from ferrycast.training.buckets import create_route_buckets
from ferrycast.training.features import create_feature_records
from ferrycast.training.models import MODEL_TYPES, ModelType
from ferrycast.training.trainer import ModelTrainer, summarize_models
from ferrycast.training.types import (
    ModelParameters,
    PipelineRunReport,
    RouteBucket,
    RunStatus,
    VesselHistoryRecord,
)
from ferrycast.training.windows import TripWindowBuilder


class HistorySource(Protocol):
    def load(self) -> list[VesselHistoryRecord]: ...


class ModelSink(Protocol):
    def upsert_model(self, model: ModelParameters) -> Any: ...


class Pipeline:
    """Ordered list of named stages, each fed the previous stage's output."""

    def __init__(self, stages: list[tuple[str, Callable[[Any], Any]]] | None = None):
        self.stages: list[tuple[str, Callable[[Any], Any]]] = list(stages or [])

    def add_stage(self, name: str, func: Callable[[Any], Any]) -> "Pipeline":
        self.stages.append((name, func))
        return self

    @property
    def stage_names(self) -> list[str]:
        return [name for name, _ in self.stages]

    def run(self, payload: Any = None) -> Any:
        for name, func in self.stages:
            logger.info(f"Stage '{name}' started")
            start = time.perf_counter()
            payload = func(payload)
            logger.info(f"Stage '{name}' finished in {time.perf_counter() - start:.2f}s")
        return payload


class TrainingOutcome(NamedTuple):
    """Result of one (bucket, model type) training unit."""
    route_key: str
    model_type: str
    model: ModelParameters | None
    error: str | None = None


class PipelineCoordinator:
    """
    Runs the full training pipeline and reports what happened.

    Usage:
        coordinator = PipelineCoordinator(loader, repository, create_route_priors())
        report = coordinator.run()
    """

    def __init__(
        self,
        loader: HistorySource,
        sink: ModelSink,
        priors: RoutePriorsConfig,
        model_types: list[ModelType] | None = None,
        max_workers: int = 1,
        timezone_name: str = "America/Los_Angeles",
        trainer: ModelTrainer | None = None,
    ):
        """
        Initialize the coordinator.

        Args:
            loader: Source of raw vessel history
            sink: Persistence target for trained models
            priors: Route priors and thresholds
            model_types: Model types to train (defaults to all)
            max_workers: Parallel training units (1 = sequential)
            timezone_name: Operating timezone for time-of-day features
            trainer: Model trainer (defaults to one built from priors.thresholds)
        """
        self.loader = loader
        self.sink = sink
        self.priors = priors
        self.model_types = list(model_types or MODEL_TYPES)
        self.max_workers = max(1, max_workers)
        self.tz = ZoneInfo(timezone_name)
        self.window_builder = TripWindowBuilder(priors)
        self.trainer = trainer or ModelTrainer(priors.thresholds)
        self._counts: dict[str, Any] = {}

    # -------------------------------------------------------------------------
    # Stages
    # -------------------------------------------------------------------------

    def _load(self, _: Any) -> list[VesselHistoryRecord]:
        records = self.loader.load()
        self._counts["total_raw_records"] = len(records)
        return records

    def _build_windows(self, records):
        windows = self.window_builder.build(records)
        self._counts["total_windows"] = len(windows)
        return windows

    def _extract_features(self, windows):
        feature_records = create_feature_records(windows, self.priors, self.tz)
        self._counts["total_feature_records"] = len(feature_records)
        return feature_records

    def _bucket(self, feature_records) -> list[RouteBucket]:
        buckets = create_route_buckets(feature_records, self.priors.thresholds.max_samples_per_route)
        self._counts["buckets_processed"] = len(buckets)
        return buckets

    def _train_unit(self, unit: tuple[RouteBucket, ModelType]) -> TrainingOutcome:
        bucket, model_type = unit
        try:
            model = self.trainer.train(bucket, model_type)
            return TrainingOutcome(bucket.route_key, model_type.value, model)
        except Exception as e:
            logger.exception(f"Training failed for {bucket.route_key} {model_type.value}: {e}")
            return TrainingOutcome(
                bucket.route_key,
                model_type.value,
                None,
                error=f"{bucket.route_key} {model_type.value}: {type(e).__name__}: {e}",
            )

    def train_buckets(self, buckets: list[RouteBucket]) -> list[TrainingOutcome]:
        """
        Train every (bucket, model type) unit.

        Outcomes come back in bucket order, then model type order, whatever
        max_workers is.
        """
        units = [(bucket, model_type) for bucket in buckets for model_type in self.model_types]
        logger.info(f"Training {len(units)} units across {len(buckets)} buckets (workers={self.max_workers})")

        if self.max_workers == 1:
            return [self._train_unit(unit) for unit in units]

        with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            return list(executor.map(self._train_unit, units))

    def _train(self, buckets: list[RouteBucket]) -> list[ModelParameters]:
        outcomes = self.train_buckets(buckets)
        models = [o.model for o in outcomes if o.model is not None]
        failures = [o.error for o in outcomes if o.error is not None]

        self._counts["models_trained"] = len(models)
        self._counts["models_skipped"] = len(outcomes) - len(models) - len(failures)
        self._counts["training_failures"] = failures

        if models:
            logger.info(f"Model summary:\n{summarize_models(models)}")
        if failures:
            logger.warning(f"{len(failures)} training units failed")
        return models

    def _persist(self, models: list[ModelParameters]) -> int:
        for model in models:
            self.sink.upsert_model(model)
        logger.info(f"Persisted {len(models)} models")
        return len(models)

    def build_pipeline(self) -> Pipeline:
        return (
            Pipeline()
            .add_stage("load", self._load)
            .add_stage("windows", self._build_windows)
            .add_stage("features", self._extract_features)
            .add_stage("buckets", self._bucket)
            .add_stage("train", self._train)
            .add_stage("persist", self._persist)
        )

    # -------------------------------------------------------------------------
    # Run
    # -------------------------------------------------------------------------

    def _report(self, status: RunStatus, started_at: datetime, error: dict[str, Any] | None = None) -> PipelineRunReport:
        return PipelineRunReport(
            status=status,
            total_raw_records=self._counts.get("total_raw_records", 0),
            total_windows=self._counts.get("total_windows", 0),
            total_feature_records=self._counts.get("total_feature_records", 0),
            buckets_processed=self._counts.get("buckets_processed", 0),
            models_trained=self._counts.get("models_trained", 0),
            models_skipped=self._counts.get("models_skipped", 0),
            training_failures=list(self._counts.get("training_failures", [])),
            error=error,
            started_at=started_at,
            finished_at=datetime.now(timezone.utc),
        )

    def run(self) -> PipelineRunReport:
        """
        Run the pipeline once.

        Returns:
            PipelineRunReport with counts and any run-level error
        """
        started_at = datetime.now(timezone.utc)
        with logger.contextualize(run_id=started_at.strftime("%Y%m%dT%H%M%S")):
            return self._run(started_at)

    def _run(self, started_at: datetime) -> PipelineRunReport:
        logger.info("Starting training pipeline run")
        self._counts = {}

        try:
            self.build_pipeline().run()

        except ExternalFetchError as e:
            logger.error(f"Load failed, aborting before training: {e.message}")
            self._counts = {}
            return self._report(RunStatus.FAILED, started_at, error=e.to_dict())

        except ModelStorageError as e:
            logger.error(f"Storage error while persisting models: {e.message}")
            return self._report(RunStatus.FAILED, started_at, error={
                "kind": "model_storage",
                "message": e.message,
                "route_key": e.route_key,
                "model_type": e.model_type,
            })

        except Exception as e:
            logger.exception(f"Unexpected error during pipeline run: {e}")
            return self._report(RunStatus.FAILED, started_at, error={
                "kind": "unexpected",
                "message": f"{type(e).__name__}: {e}",
            })

        report = self._report(RunStatus.SUCCESS, started_at)
        logger.info(
            f"Pipeline complete: {report.total_raw_records} records, {report.total_windows} windows, "
            f"{report.buckets_processed} buckets, {report.models_trained} models trained, "
            f"{report.models_skipped} skipped, {len(report.training_failures)} failed"
        )
        return report


__all__ = [
    "Pipeline",
    "TrainingOutcome",
    "PipelineCoordinator",
    "HistorySource",
    "ModelSink",
]
