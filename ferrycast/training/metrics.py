"""
Hold-out evaluation metrics.
"""

import numpy as np
from sklearn.metrics import mean_absolute_error, mean_squared_error

from ferrycast.training.types import TestMetrics


def r_squared(y_true: np.ndarray, y_pred: np.ndarray) -> float:
    """
    Coefficient of determination against the test-mean baseline.

    Returns 0.0 when the targets have no variance.
    """
    ss_res = float(np.sum((y_true - y_pred) ** 2))
    ss_tot = float(np.sum((y_true - np.mean(y_true)) ** 2))
    if ss_tot == 0:
        return 0.0
    return 1 - ss_res / ss_tot


def residual_std_dev(y_true: np.ndarray, y_pred: np.ndarray) -> float:
    """Sample standard deviation of residuals (0.0 for fewer than 2)."""
    if len(y_true) < 2:
        return 0.0
    return float(np.std(y_true - y_pred, ddof=1))


def calculate_metrics(y_true, y_pred) -> TestMetrics:
    """
    Compute MAE, RMSE, R^2 and residual standard deviation.

    Args:
        y_true: Actual values (minutes)
        y_pred: Predicted values (minutes)

    Returns:
        TestMetrics
    """
    y_true = np.asarray(y_true, dtype=float)
    y_pred = np.asarray(y_pred, dtype=float)
    return TestMetrics(
        mae=float(mean_absolute_error(y_true, y_pred)),
        rmse=float(np.sqrt(mean_squared_error(y_true, y_pred))),
        r2=r_squared(y_true, y_pred),
        std_dev=residual_std_dev(y_true, y_pred),
    )


__all__ = ["calculate_metrics", "r_squared", "residual_std_dev"]
