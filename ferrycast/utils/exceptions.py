"""
Custom exceptions for the ferrycast training pipeline.

Provides a hierarchy of exceptions for different error scenarios:
- Data quality errors (record and window level, never fatal)
- Training errors (per route and model type, never fatal)
- API errors (WSF Vessels API)
- Load errors (fatal to the whole run)
- Storage errors (model repository)
"""

from typing import Any


class FerrycastError(Exception):
    """Base exception for all ferrycast errors."""

    def __init__(self, message: str, *args, **kwargs):
        self.message = message
        super().__init__(message, *args, **kwargs)


# =============================================================================
# Record-level Data Quality Exceptions
# =============================================================================

class DataQualityError(FerrycastError):
    """Base exception for raw records that cannot be used for training."""
    pass


class MissingFieldError(DataQualityError):
    """A required field is missing from a raw history record."""

    def __init__(self, field: str, vessel: str | None = None):
        self.field = field
        self.vessel = vessel
        super().__init__(f"Missing required field: {field}")


class UnmappedTerminalError(DataQualityError):
    """A terminal name has no valid terminal code."""

    def __init__(self, terminal_name: str):
        self.terminal_name = terminal_name
        super().__init__(f"Terminal name not mapped: {terminal_name!r}")


class ImplausibleRecordError(DataQualityError):
    """A record is complete but its timestamps are not believable."""
    pass


# =============================================================================
# Window-level Exceptions
# =============================================================================

class WindowRejectedError(FerrycastError):
    """Base exception for consecutive trip pairs that cannot form a window."""
    pass


class ContinuityViolation(WindowRejectedError):
    """Previous trip does not arrive where the current trip departs."""

    def __init__(self, prev_to_terminal: str, curr_from_terminal: str):
        self.prev_to_terminal = prev_to_terminal
        self.curr_from_terminal = curr_from_terminal
        super().__init__(
            f"Continuity violation: previous leg ends at {prev_to_terminal}, "
            f"current leg departs {curr_from_terminal}"
        )


class DurationOutOfBounds(WindowRejectedError):
    """At-dock or at-sea duration falls outside the configured bounds."""

    def __init__(self, message: str, at_dock_minutes: float, at_sea_minutes: float):
        self.at_dock_minutes = at_dock_minutes
        self.at_sea_minutes = at_sea_minutes
        super().__init__(message)


# =============================================================================
# Training Exceptions
# =============================================================================

class TrainingError(FerrycastError):
    """Base exception for model training errors."""
    pass


class InsufficientDataError(TrainingError):
    """Not enough examples to train a (route, model type) combination."""

    def __init__(self, message: str, route_key: str | None = None, model_type: str | None = None):
        self.route_key = route_key
        self.model_type = model_type
        super().__init__(message)


class NumericalInstabilityError(TrainingError):
    """Fitted coefficients exploded or became non-finite."""
    pass


# =============================================================================
# API Exceptions
# =============================================================================

class APIError(FerrycastError):
    """Base exception for API-related errors."""
    pass


class WsfApiError(APIError):
    """Error when communicating with the WSF Vessels API."""

    def __init__(self, message: str, status_code: int | None = None, response_body: str | None = None):
        self.status_code = status_code
        self.response_body = response_body
        super().__init__(message)


class RateLimitError(APIError):
    """Error when API rate limit is exceeded."""

    def __init__(self, message: str = "API rate limit exceeded", retry_after: int | None = None):
        self.retry_after = retry_after
        super().__init__(message)


class APIConnectionError(APIError):
    """Error when unable to connect to the API."""
    pass


class APITimeoutError(APIError):
    """Error when API request times out."""
    pass


# =============================================================================
# Load Exceptions
# =============================================================================

class ExternalFetchError(FerrycastError):
    """
    Fetching vessel history failed; aborts the whole run.

    Partial fleet data would bias route statistics, so a single failed
    vessel fails the load.
    """

    def __init__(
        self,
        message: str,
        vessel: str | None = None,
        date_start: str | None = None,
        date_end: str | None = None,
        cause: BaseException | None = None,
    ):
        self.vessel = vessel
        self.date_start = date_start
        self.date_end = date_end
        self.cause = cause
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        """Structured diagnostic payload for run reports."""
        cause: dict[str, Any] | None = None
        if self.cause is not None:
            cause = {
                "type": type(self.cause).__name__,
                "message": str(self.cause),
            }
            status_code = getattr(self.cause, "status_code", None)
            if status_code is not None:
                cause["status_code"] = status_code
        return {
            "kind": "external_fetch",
            "message": self.message,
            "vessel": self.vessel,
            "date_start": self.date_start,
            "date_end": self.date_end,
            "cause": cause,
        }


# =============================================================================
# Storage Exceptions
# =============================================================================

class StorageError(FerrycastError):
    """Base exception for storage-related errors."""
    pass


class ModelStorageError(StorageError):
    """Error when writing or reading model parameters."""

    def __init__(self, message: str, route_key: str | None = None, model_type: str | None = None):
        self.route_key = route_key
        self.model_type = model_type
        super().__init__(message)


# =============================================================================
# Configuration Exceptions
# =============================================================================

class ConfigurationError(FerrycastError):
    """Error with pipeline configuration."""
    pass


class MissingConfigError(ConfigurationError):
    """Error when required configuration is missing."""

    def __init__(self, config_key: str):
        self.config_key = config_key
        super().__init__(f"Missing required configuration: {config_key}")


# Export all exceptions
__all__ = [
    # Base
    "FerrycastError",
    # Data quality
    "DataQualityError",
    "MissingFieldError",
    "UnmappedTerminalError",
    "ImplausibleRecordError",
    # Windows
    "WindowRejectedError",
    "ContinuityViolation",
    "DurationOutOfBounds",
    # Training
    "TrainingError",
    "InsufficientDataError",
    "NumericalInstabilityError",
    # API
    "APIError",
    "WsfApiError",
    "RateLimitError",
    "APIConnectionError",
    "APITimeoutError",
    # Load
    "ExternalFetchError",
    # Storage
    "StorageError",
    "ModelStorageError",
    # Configuration
    "ConfigurationError",
    "MissingConfigError",
]
