"""
Apply trained linear models to feature vectors.

Shared by training-time evaluation and inference so both build the input row
in the model's own feature_keys order.
"""

import numpy as np

from ferrycast.training.types import ModelParameters


def feature_row(feature_keys: list[str], features: dict[str, float]) -> np.ndarray:
    """Build an input row in feature_keys order; missing keys are 0.0."""
    return np.array([features.get(key, 0.0) for key in feature_keys], dtype=float)


def predict_linear(model: ModelParameters, features: dict[str, float]) -> float:
    """
    Predict minutes for one feature vector.

    Args:
        model: Trained model parameters
        features: Feature vector (extra keys are ignored)

    Returns:
        intercept + coefficients . row
    """
    row = feature_row(model.feature_keys, features)
    return float(model.intercept + np.dot(np.asarray(model.coefficients, dtype=float), row))


def predict_many(model: ModelParameters, vectors: list[dict[str, float]]) -> np.ndarray:
    return np.array([predict_linear(model, features) for features in vectors], dtype=float)


__all__ = ["feature_row", "predict_linear", "predict_many"]
