"""
Model parameter storage.

Uses SQLite to keep one row per (route, model type, version).
"""

import json
import sqlite3
from contextlib import closing
from datetime import datetime, timezone
from pathlib import Path
from typing import NamedTuple

from ferrycast.utils import logger
from ferrycast.utils.exceptions import ModelStorageError
from ferrycast.config import settings
from ferrycast.training.types import BucketStats, ModelParameters, TestMetrics

# Freshly trained models are written as the "dev" working version
DEFAULT_VERSION_TYPE = "dev"
DEFAULT_VERSION_NUMBER = -1


class StoredModel(NamedTuple):
    """Model parameters as stored, with their version key."""
    id: int
    version_type: str
    version_number: int
    parameters: ModelParameters
    updated_at: datetime

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "id": self.id,
            "version_type": self.version_type,
            "version_number": self.version_number,
            "updated_at": self.updated_at.isoformat(),
            **self.parameters.to_dict(),
        }


# SQL statements
CREATE_TABLE_SQL = """
CREATE TABLE IF NOT EXISTS model_parameters (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    route_key TEXT NOT NULL,
    model_type TEXT NOT NULL,
    version_type TEXT NOT NULL,
    version_number INTEGER NOT NULL,
    feature_keys TEXT NOT NULL,
    coefficients TEXT NOT NULL,
    intercept REAL NOT NULL,
    test_metrics TEXT NOT NULL,
    bucket_stats TEXT NOT NULL,
    created_at INTEGER NOT NULL,
    updated_at TEXT NOT NULL,
    UNIQUE (route_key, model_type, version_type, version_number)
)
"""

CREATE_INDEX_SQL = """
CREATE INDEX IF NOT EXISTS idx_model_route ON model_parameters(route_key);
CREATE INDEX IF NOT EXISTS idx_model_version ON model_parameters(version_type, version_number);
"""

UPSERT_MODEL_SQL = """
INSERT INTO model_parameters
    (route_key, model_type, version_type, version_number, feature_keys, coefficients,
     intercept, test_metrics, bucket_stats, created_at, updated_at)
VALUES
    (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
ON CONFLICT (route_key, model_type, version_type, version_number) DO UPDATE SET
    feature_keys = excluded.feature_keys,
    coefficients = excluded.coefficients,
    intercept = excluded.intercept,
    test_metrics = excluded.test_metrics,
    bucket_stats = excluded.bucket_stats,
    created_at = excluded.created_at,
    updated_at = excluded.updated_at
"""

SELECT_COLUMNS = """
SELECT id, route_key, model_type, version_type, version_number, feature_keys,
       coefficients, intercept, test_metrics, bucket_stats, created_at, updated_at
FROM model_parameters
"""

SELECT_MODEL_SQL = SELECT_COLUMNS + """
WHERE route_key = ? AND model_type = ? AND version_type = ? AND version_number = ?
"""

SELECT_ALL_SQL = SELECT_COLUMNS + "ORDER BY route_key, model_type"

SELECT_BY_VERSION_TYPE_SQL = SELECT_COLUMNS + """
WHERE version_type = ?
ORDER BY route_key, model_type
"""

DELETE_VERSION_SQL = """
DELETE FROM model_parameters
WHERE version_type = ? AND version_number = ?
"""


def _row_to_model(row: tuple) -> StoredModel:
    """Convert database row to StoredModel."""
    return StoredModel(
        id=row[0],
        version_type=row[3],
        version_number=row[4],
        parameters=ModelParameters(
            model_type=row[2],
            route_key=row[1],
            feature_keys=json.loads(row[5]),
            coefficients=json.loads(row[6]),
            intercept=row[7],
            test_metrics=TestMetrics(**json.loads(row[8])),
            created_at=row[10],
            bucket_stats=BucketStats(**json.loads(row[9])),
        ),
        updated_at=datetime.fromisoformat(row[11]),
    )


class ModelRepository:
    """
    Repository for trained model parameters in SQLite.

    Rows are keyed by (route, model type, version type, version number);
    writing the same key again replaces the row.
    """

    def __init__(self, db_path: str | Path | None = None):
        """
        Initialize the repository.

        Args:
            db_path: Path to SQLite database file
        """
        self.db_path = Path(db_path) if db_path else settings.database.full_path
        self._ensure_database()

    def _ensure_database(self) -> None:
        """Ensure database and tables exist."""
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

        with closing(self._get_connection()) as conn, conn:
            cursor = conn.cursor()
            cursor.execute(CREATE_TABLE_SQL)
            cursor.executescript(CREATE_INDEX_SQL)
            conn.commit()

        logger.info(f"Model database initialized at {self.db_path}")

    def _get_connection(self) -> sqlite3.Connection:
        """Get a database connection."""
        return sqlite3.connect(str(self.db_path))

    def upsert_model(
        self,
        model: ModelParameters,
        version_type: str = DEFAULT_VERSION_TYPE,
        version_number: int = DEFAULT_VERSION_NUMBER,
    ) -> None:
        """
        Insert or replace a model version.

        Args:
            model: Trained model parameters
            version_type: Version label, e.g. "dev" or "prod"
            version_number: Version number within the label

        Raises:
            ModelStorageError: On database errors
        """
        try:
            with closing(self._get_connection()) as conn, conn:
                conn.execute(
                    UPSERT_MODEL_SQL,
                    (
                        model.route_key,
                        model.model_type,
                        version_type,
                        version_number,
                        json.dumps(list(model.feature_keys)),
                        json.dumps(list(model.coefficients)),
                        model.intercept,
                        json.dumps(model.test_metrics.to_dict()),
                        json.dumps(model.bucket_stats.to_dict()),
                        model.created_at,
                        datetime.now(timezone.utc).isoformat(),
                    ),
                )
                conn.commit()
        except sqlite3.Error as e:
            raise ModelStorageError(
                f"Failed to store model: {e}",
                route_key=model.route_key,
                model_type=model.model_type,
            ) from e

        logger.debug(f"Stored {model.route_key} {model.model_type} as {version_type}/{version_number}")

    def get_model(
        self,
        route_key: str,
        model_type: str,
        version_type: str = DEFAULT_VERSION_TYPE,
        version_number: int = DEFAULT_VERSION_NUMBER,
    ) -> StoredModel | None:
        """Get one model version."""
        with closing(self._get_connection()) as conn, conn:
            cursor = conn.cursor()
            cursor.execute(SELECT_MODEL_SQL, (route_key, model_type, version_type, version_number))
            row = cursor.fetchone()

        return _row_to_model(row) if row else None

    def list_models(self, version_type: str | None = None) -> list[StoredModel]:
        """List stored models, optionally for one version type."""
        with closing(self._get_connection()) as conn, conn:
            cursor = conn.cursor()
            if version_type is None:
                cursor.execute(SELECT_ALL_SQL)
            else:
                cursor.execute(SELECT_BY_VERSION_TYPE_SQL, (version_type,))
            rows = cursor.fetchall()

        return [_row_to_model(row) for row in rows]

    def delete_version(self, version_type: str, version_number: int) -> int:
        """
        Delete every model of one version.

        Returns:
            Number of rows deleted
        """
        with closing(self._get_connection()) as conn, conn:
            cursor = conn.cursor()
            cursor.execute(DELETE_VERSION_SQL, (version_type, version_number))
            conn.commit()
            deleted = cursor.rowcount

        logger.info(f"Deleted {deleted} models for version {version_type}/{version_number}")
        return deleted


def create_repository() -> ModelRepository:
    """Create a new repository with default settings."""
    return ModelRepository()


__all__ = [
    "DEFAULT_VERSION_TYPE",
    "DEFAULT_VERSION_NUMBER",
    "StoredModel",
    "ModelRepository",
    "create_repository",
]
