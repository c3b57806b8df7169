"""
Per-route linear model training.

Fits one LinearRegression per (route bucket, model type) on a chronological
train/test split. Unstable fits fall back to predicting the train-set mean.
"""

from datetime import datetime, timezone

import numpy as np
import polars as pl
from sklearn.linear_model import LinearRegression

from ferrycast.utils import logger
from ferrycast.utils.exceptions import InsufficientDataError, NumericalInstabilityError
from ferrycast.utils.time import to_epoch_ms
from ferrycast.config.route_priors import ValidationThresholds
from ferrycast.training.metrics import calculate_metrics
from ferrycast.training.models import ModelType, get_model_definition
from ferrycast.training.prediction import predict_many
from ferrycast.training.types import FeatureRecord, ModelParameters, RouteBucket, TestMetrics


def build_design_matrix(vectors: list[dict[str, float]], feature_keys: list[str]) -> np.ndarray:
    """
    Stack feature vectors into a matrix with columns in feature_keys order.

    Keys missing from a vector are filled with 0.0.
    """
    rows = [{key: vector.get(key, 0.0) for key in feature_keys} for vector in vectors]
    df = pl.from_dicts(rows, schema={key: pl.Float64 for key in feature_keys})
    return df.select(feature_keys).to_numpy()


class ModelTrainer:
    """
    Trains linear models for route buckets.

    Usage:
        trainer = ModelTrainer(priors.thresholds)
        model = trainer.train(bucket, ModelType.AT_DOCK_DEPART_CURR)
        if model is None:
            ...  # not enough data for this route and model type
    """

    def __init__(self, thresholds: ValidationThresholds | None = None):
        self.thresholds = thresholds or ValidationThresholds()

    def split(self, bucket: RouteBucket) -> tuple[list[FeatureRecord], list[FeatureRecord]]:
        """Chronological split: earlier records train, later records test."""
        ordered = sorted(bucket.records, key=lambda r: r.scheduled_departure_ms)
        split_idx = int(len(ordered) * self.thresholds.train_ratio)
        return ordered[:split_idx], ordered[split_idx:]

    def _check_counts(self, n_train: int, n_test: int, bucket: RouteBucket, model_type: ModelType, stage: str) -> None:
        t = self.thresholds
        if n_train < t.min_train_examples or n_test < t.min_test_examples:
            raise InsufficientDataError(
                f"{stage}: {n_train} train / {n_test} test examples "
                f"(need {t.min_train_examples} / {t.min_test_examples})",
                route_key=bucket.route_key,
                model_type=model_type.value,
            )

    def solve(self, X: np.ndarray, y: np.ndarray) -> tuple[np.ndarray, float]:
        """Ordinary least squares; returns (coefficients, intercept)."""
        model = LinearRegression()
        model.fit(X, y)
        return np.asarray(model.coef_, dtype=float), float(model.intercept_)

    def _round_tiny(self, values: np.ndarray) -> np.ndarray:
        return np.where(np.abs(values) < self.thresholds.zero_rounding_threshold, 0.0, values)

    def _check_stability(self, coefficients: np.ndarray, intercept: float) -> None:
        if not np.all(np.isfinite(coefficients)) or not np.isfinite(intercept):
            raise NumericalInstabilityError("Non-finite coefficients or intercept")
        max_coef = float(np.max(np.abs(coefficients))) if coefficients.size else 0.0
        if max_coef > self.thresholds.instability_coefficient_threshold:
            raise NumericalInstabilityError(f"Coefficient magnitude {max_coef:.1f} exceeds threshold")

    def fit(self, bucket: RouteBucket, model_type: ModelType | str) -> ModelParameters:
        """
        Fit one model for a route bucket.

        Args:
            bucket: Route bucket
            model_type: Model type to train

        Returns:
            ModelParameters with hold-out metrics

        Raises:
            InsufficientDataError: Not enough records or examples
        """
        definition = get_model_definition(model_type)
        model_type = definition.model_type

        if len(bucket.records) < self.thresholds.min_total_examples:
            raise InsufficientDataError(
                f"{len(bucket.records)} records (need {self.thresholds.min_total_examples})",
                route_key=bucket.route_key,
                model_type=model_type.value,
            )

        train_records, test_records = self.split(bucket)
        self._check_counts(len(train_records), len(test_records), bucket, model_type, "split")

        train = [(definition.extract_features(r), definition.extract_target(r)) for r in train_records]
        test = [(definition.extract_features(r), definition.extract_target(r)) for r in test_records]
        train = [(x, y) for x, y in train if y is not None]
        test = [(x, y) for x, y in test if y is not None]
        self._check_counts(len(train), len(test), bucket, model_type, "after target filter")

        feature_keys = sorted(train[0][0].keys())
        X_train = build_design_matrix([x for x, _ in train], feature_keys)
        y_train = np.array([y for _, y in train], dtype=float)
        y_test = np.array([y for _, y in test], dtype=float)

        coefficients, intercept = self.solve(X_train, y_train)
        coefficients = self._round_tiny(coefficients)
        intercept = float(self._round_tiny(np.array([intercept]))[0])

        try:
            self._check_stability(coefficients, intercept)
        except NumericalInstabilityError as e:
            logger.warning(
                f"Unstable fit for {bucket.route_key} {model_type.value}: {e.message}; "
                f"falling back to train mean"
            )
            coefficients = np.zeros(len(feature_keys))
            intercept = float(np.mean(y_train))

        model = ModelParameters(
            model_type=model_type.value,
            route_key=bucket.route_key,
            feature_keys=feature_keys,
            coefficients=[float(c) for c in coefficients],
            intercept=intercept,
            test_metrics=TestMetrics(mae=0.0, rmse=0.0, r2=0.0, std_dev=0.0),
            created_at=to_epoch_ms(datetime.now(timezone.utc)),
            bucket_stats=bucket.stats,
        )

        y_pred = predict_many(model, [x for x, _ in test])
        return model._replace(test_metrics=calculate_metrics(y_test, y_pred))

    def train(self, bucket: RouteBucket, model_type: ModelType | str) -> ModelParameters | None:
        """
        Train a model, returning None when there is not enough data.

        Returns:
            ModelParameters, or None to signal a skip
        """
        try:
            model = self.fit(bucket, model_type)
        except InsufficientDataError as e:
            logger.debug(f"Skipping {bucket.route_key} {e.model_type}: {e.message}")
            return None

        logger.debug(
            f"Trained {model.route_key} {model.model_type}: "
            f"MAE={model.test_metrics.mae:.2f} R2={model.test_metrics.r2:.3f}"
        )
        return model


def summarize_models(models: list[ModelParameters]) -> pl.DataFrame:
    """One row per model with its hold-out metrics."""
    return pl.DataFrame(
        [
            {
                "route_key": m.route_key,
                "model_type": m.model_type,
                "bucket_records": m.bucket_stats.sampled_records,
                "mae": m.test_metrics.mae,
                "rmse": m.test_metrics.rmse,
                "r2": m.test_metrics.r2,
                "std_dev": m.test_metrics.std_dev,
            }
            for m in models
        ],
        schema={
            "route_key": pl.Utf8,
            "model_type": pl.Utf8,
            "bucket_records": pl.Int64,
            "mae": pl.Float64,
            "rmse": pl.Float64,
            "r2": pl.Float64,
            "std_dev": pl.Float64,
        },
    )


__all__ = ["ModelTrainer", "build_design_matrix", "summarize_models"]
