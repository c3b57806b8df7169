"""Tests for per-route model training, metrics and prediction."""

import math

import numpy as np
import pytest

from ferrycast.config.route_priors import ValidationThresholds
from ferrycast.training.metrics import calculate_metrics, r_squared
from ferrycast.training.models import MODEL_TYPES, ModelType, get_model_definition
from ferrycast.training.prediction import feature_row, predict_linear
from ferrycast.training.trainer import ModelTrainer, build_design_matrix, summarize_models
from ferrycast.training.types import (
    BucketStats,
    FeatureRecord,
    FeatureSets,
    RouteBucket,
    Targets,
)


def make_record(i: int, arrive: float | None = None) -> FeatureRecord:
    """Record whose departure delay is exactly 2x + 1."""
    at_dock = {"x": float(i), "b_other": float((i * i) % 7)}
    return FeatureRecord(
        route_key="BBB->CCC",
        scheduled_departure_ms=i * 60_000,
        next_leg_eligible=False,
        features=FeatureSets(at_dock=at_dock, at_sea=dict(at_dock, curr_trip_delay_minutes=1.0)),
        targets=Targets(
            depart_curr_minutes=2.0 * i + 1.0,
            arrive_next_from_scheduled_minutes=arrive,
            arrive_next_from_actual_minutes=arrive,
            depart_next_from_next_scheduled_minutes=None,
        ),
    )


def make_bucket(records: list[FeatureRecord]) -> RouteBucket:
    return RouteBucket(
        route_key="BBB->CCC",
        records=records,
        stats=BucketStats(total_records=len(records), sampled_records=len(records)),
    )


class FixedSolutionTrainer(ModelTrainer):
    """Trainer whose least-squares solve returns a preset solution."""

    def __init__(self, coefficients, intercept):
        super().__init__()
        self.solution = (np.asarray(coefficients, dtype=float), intercept)

    def solve(self, X, y):
        return self.solution


def test_exact_linear_fit():
    """A noiseless linear target is recovered with near-zero test error."""
    bucket = make_bucket([make_record(i) for i in range(30)])

    model = ModelTrainer().fit(bucket, ModelType.AT_DOCK_DEPART_CURR)

    assert model.model_type == "at-dock-depart-curr"
    assert model.route_key == "BBB->CCC"
    assert model.feature_keys == ["b_other", "x"]
    assert model.coefficients[1] == pytest.approx(2.0)
    assert model.coefficients[0] == pytest.approx(0.0, abs=1e-6)
    assert model.intercept == pytest.approx(1.0)
    assert model.test_metrics.mae == pytest.approx(0.0, abs=1e-6)
    assert model.test_metrics.r2 == pytest.approx(1.0)
    assert model.bucket_stats == bucket.stats
    assert predict_linear(model, {"x": 100.0, "b_other": 3.0}) == pytest.approx(201.0)


def test_fit_accepts_string_model_type():
    bucket = make_bucket([make_record(i) for i in range(30)])

    model = ModelTrainer().train(bucket, "at-dock-depart-curr")

    assert model is not None
    assert model.model_type == ModelType.AT_DOCK_DEPART_CURR.value


def test_too_few_records_skipped():
    bucket = make_bucket([make_record(i) for i in range(10)])

    assert ModelTrainer().train(bucket, ModelType.AT_DOCK_DEPART_CURR) is None


def test_target_filter_skips_unobservable_targets():
    """Arrival models are skipped when few records carry arrival targets."""
    records = [make_record(i, arrive=40.0 if i < 5 else None) for i in range(30)]
    bucket = make_bucket(records)
    trainer = ModelTrainer()

    assert trainer.train(bucket, ModelType.AT_DOCK_ARRIVE_NEXT) is None
    assert trainer.train(bucket, ModelType.AT_DOCK_DEPART_NEXT) is None
    assert trainer.train(bucket, ModelType.AT_DOCK_DEPART_CURR) is not None


def test_chronological_split():
    """Earlier records train, later records test, whatever the input order."""
    records = [make_record(i) for i in (7, 2, 9, 0, 5, 1, 8, 3, 6, 4)]

    train, test = ModelTrainer().split(make_bucket(records))

    assert [r.scheduled_departure_ms // 60_000 for r in train] == list(range(8))
    assert [r.scheduled_departure_ms // 60_000 for r in test] == [8, 9]


def test_unstable_fit_falls_back_to_train_mean():
    bucket = make_bucket([make_record(i) for i in range(30)])
    trainer = FixedSolutionTrainer([1e6, 0.0], 0.0)

    model = trainer.fit(bucket, ModelType.AT_DOCK_DEPART_CURR)

    # train targets are 2i + 1 for i in 0..23
    assert model.coefficients == [0.0, 0.0]
    assert model.intercept == pytest.approx(24.0)


def test_non_finite_fit_falls_back_to_train_mean():
    bucket = make_bucket([make_record(i) for i in range(30)])
    trainer = FixedSolutionTrainer([float("nan"), 0.0], 0.0)

    model = trainer.fit(bucket, ModelType.AT_DOCK_DEPART_CURR)

    assert model.coefficients == [0.0, 0.0]
    assert model.intercept == pytest.approx(24.0)
    assert all(math.isfinite(v) for v in model.test_metrics.to_dict().values())


def test_tiny_values_rounded_to_zero():
    bucket = make_bucket([make_record(i) for i in range(30)])
    trainer = FixedSolutionTrainer([1e-9, 2.0], 1e-8)

    model = trainer.fit(bucket, ModelType.AT_DOCK_DEPART_CURR)

    assert model.coefficients == [0.0, 2.0]
    assert model.intercept == 0.0


def test_custom_thresholds():
    thresholds = ValidationThresholds(min_total_examples=5, min_train_examples=3, min_test_examples=1)
    bucket = make_bucket([make_record(i) for i in range(6)])

    assert ModelTrainer(thresholds).train(bucket, ModelType.AT_DOCK_DEPART_CURR) is not None


def test_build_design_matrix_orders_columns():
    matrix = build_design_matrix([{"b": 2.0, "a": 1.0}, {"a": 3.0}], ["a", "b"])

    assert matrix.tolist() == [[1.0, 2.0], [3.0, 0.0]]


def test_summarize_models():
    bucket = make_bucket([make_record(i) for i in range(30)])
    model = ModelTrainer().fit(bucket, ModelType.AT_DOCK_DEPART_CURR)

    summary = summarize_models([model])

    assert summary.shape == (1, 7)
    assert summary["route_key"].to_list() == ["BBB->CCC"]
    assert summary["bucket_records"].to_list() == [30]


def test_model_definitions_use_matching_tier():
    record = make_record(3)

    for model_type in MODEL_TYPES:
        definition = get_model_definition(model_type.value)
        features = definition.extract_features(record)
        if model_type.value.startswith("at-dock"):
            assert features is record.features.at_dock
        else:
            assert features is record.features.at_sea
    assert len(MODEL_TYPES) == 5


def test_calculate_metrics():
    metrics = calculate_metrics([1.0, 2.0, 3.0], [0.0, 0.0, 0.0])

    assert metrics.mae == pytest.approx(2.0)
    assert metrics.rmse == pytest.approx(math.sqrt(14 / 3))
    assert metrics.std_dev == pytest.approx(1.0)
    assert metrics.r2 == pytest.approx(-6.0)


def test_r_squared_constant_targets():
    y = np.array([4.0, 4.0, 4.0])

    assert r_squared(y, np.array([3.0, 4.0, 5.0])) == 0.0


def test_single_test_example_has_zero_std_dev():
    metrics = calculate_metrics([5.0], [3.0])

    assert metrics.std_dev == 0.0
    assert metrics.mae == pytest.approx(2.0)


def test_feature_row_fills_missing_keys():
    row = feature_row(["a", "b", "c"], {"c": 3.0, "a": 1.0, "extra": 9.0})

    assert row.tolist() == [1.0, 0.0, 3.0]
