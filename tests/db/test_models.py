"""Tests for the SQLite model repository."""

import sqlite3
from contextlib import closing

import pytest

from ferrycast.db import DEFAULT_VERSION_NUMBER, DEFAULT_VERSION_TYPE, ModelRepository
from ferrycast.training.types import BucketStats, ModelParameters, TestMetrics
from ferrycast.utils.exceptions import ModelStorageError


@pytest.fixture
def repository(tmp_path) -> ModelRepository:
    return ModelRepository(db_path=tmp_path / "models.db")


def make_model(route_key: str = "BBI->P52", model_type: str = "at-dock-depart-curr", intercept: float = 1.5) -> ModelParameters:
    return ModelParameters(
        model_type=model_type,
        route_key=route_key,
        feature_keys=["prev_trip_delay_minutes", "time_08h"],
        coefficients=[0.8, -0.25],
        intercept=intercept,
        test_metrics=TestMetrics(mae=1.2, rmse=1.9, r2=0.41, std_dev=1.7),
        created_at=1718200800000,
        bucket_stats=BucketStats(total_records=900, sampled_records=750),
    )


def test_upsert_and_get(repository):
    model = make_model()
    repository.upsert_model(model)

    stored = repository.get_model("BBI->P52", "at-dock-depart-curr")

    assert stored is not None
    assert stored.parameters == model
    assert stored.version_type == DEFAULT_VERSION_TYPE
    assert stored.version_number == DEFAULT_VERSION_NUMBER
    assert stored.to_dict()["coefficients"] == [0.8, -0.25]


def test_upsert_replaces_same_key(repository):
    repository.upsert_model(make_model(intercept=1.0))
    repository.upsert_model(make_model(intercept=2.0))

    models = repository.list_models()

    assert len(models) == 1
    assert models[0].parameters.intercept == 2.0


def test_versions_are_kept_apart(repository):
    repository.upsert_model(make_model(intercept=1.0))
    repository.upsert_model(make_model(intercept=2.0), version_type="prod", version_number=3)

    assert len(repository.list_models()) == 2
    assert [m.parameters.intercept for m in repository.list_models(version_type="prod")] == [2.0]
    assert repository.get_model("BBI->P52", "at-dock-depart-curr", "prod", 3).parameters.intercept == 2.0


def test_get_missing_model(repository):
    assert repository.get_model("BBI->P52", "at-sea-arrive-next") is None


def test_list_models_sorted(repository):
    repository.upsert_model(make_model(route_key="P52->BBI"))
    repository.upsert_model(make_model(model_type="at-sea-arrive-next"))
    repository.upsert_model(make_model())

    keys = [(m.parameters.route_key, m.parameters.model_type) for m in repository.list_models()]

    assert keys == [
        ("BBI->P52", "at-dock-depart-curr"),
        ("BBI->P52", "at-sea-arrive-next"),
        ("P52->BBI", "at-dock-depart-curr"),
    ]


def test_delete_version(repository):
    repository.upsert_model(make_model())
    repository.upsert_model(make_model(route_key="P52->BBI"))
    repository.upsert_model(make_model(), version_type="prod", version_number=1)

    assert repository.delete_version(DEFAULT_VERSION_TYPE, DEFAULT_VERSION_NUMBER) == 2
    assert [m.version_type for m in repository.list_models()] == ["prod"]


def test_storage_error(repository):
    with closing(sqlite3.connect(repository.db_path)) as conn, conn:
        conn.execute("DROP TABLE model_parameters")

    with pytest.raises(ModelStorageError) as exc_info:
        repository.upsert_model(make_model())

    assert exc_info.value.route_key == "BBI->P52"
    assert exc_info.value.model_type == "at-dock-depart-curr"


class TrackingRepository(ModelRepository):
    """Repository that keeps every connection it opens."""

    def __init__(self, *args, **kwargs):
        self.opened: list[sqlite3.Connection] = []
        super().__init__(*args, **kwargs)

    def _get_connection(self) -> sqlite3.Connection:
        conn = super()._get_connection()
        self.opened.append(conn)
        return conn


def test_connections_are_closed(tmp_path):
    """Every operation closes the connection it opened."""
    repository = TrackingRepository(db_path=tmp_path / "models.db")
    repository.upsert_model(make_model())
    repository.get_model("BBI->P52", "at-dock-depart-curr")
    repository.list_models()
    repository.delete_version(DEFAULT_VERSION_TYPE, DEFAULT_VERSION_NUMBER)

    assert len(repository.opened) == 5
    for conn in repository.opened:
        with pytest.raises(sqlite3.ProgrammingError):
            conn.execute("SELECT 1")
