"""
Utility modules for the ferrycast training pipeline.

Provides:
    - logger: Loguru-based logging with stdout and file output
    - exceptions: Custom exception classes for error handling
    - time: Epoch-millisecond and local time helpers
"""

from ferrycast.utils.logger import logger, setup_logger
from ferrycast.utils.exceptions import (
    # Base
    FerrycastError,
    # Data quality
    DataQualityError,
    MissingFieldError,
    UnmappedTerminalError,
    ImplausibleRecordError,
    # Windows
    WindowRejectedError,
    ContinuityViolation,
    DurationOutOfBounds,
    # Training
    TrainingError,
    InsufficientDataError,
    NumericalInstabilityError,
    # API
    APIError,
    WsfApiError,
    RateLimitError,
    APIConnectionError,
    APITimeoutError,
    # Load
    ExternalFetchError,
    # Storage
    StorageError,
    ModelStorageError,
    # Configuration
    ConfigurationError,
    MissingConfigError,
)

__all__ = [
    # Logger
    "logger",
    "setup_logger",
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
