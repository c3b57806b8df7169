"""Database module for trained model parameters."""

from ferrycast.db.models import (
    DEFAULT_VERSION_TYPE,
    DEFAULT_VERSION_NUMBER,
    StoredModel,
    ModelRepository,
    create_repository,
)

__all__ = [
    "DEFAULT_VERSION_TYPE",
    "DEFAULT_VERSION_NUMBER",
    "StoredModel",
    "ModelRepository",
    "create_repository",
]
