"""Tests for route priors and validation thresholds."""

import pytest
from pydantic import ValidationError

from ferrycast.config.config import TrainingSettings
from ferrycast.config.route_priors import (
    MEAN_AT_DOCK_MINUTES,
    MEAN_AT_SEA_MINUTES,
    VALID_TERMINALS,
    ValidationThresholds,
    create_route_priors,
    format_route_key,
    parse_route_key,
)


def test_route_key_round_trip():
    assert format_route_key("BBI", "P52") == "BBI->P52"
    assert parse_route_key("BBI->P52") == ("BBI", "P52")


@pytest.mark.parametrize("key", ["BBI", "BBI->", "->P52", "A->B->C"])
def test_parse_route_key_rejects_bad_format(key):
    with pytest.raises(ValueError):
        parse_route_key(key)


def test_network_tables_use_valid_terminals():
    for key in list(MEAN_AT_DOCK_MINUTES) + list(MEAN_AT_SEA_MINUTES):
        departing, arriving = parse_route_key(key)
        assert departing in VALID_TERMINALS
        assert arriving in VALID_TERMINALS


def test_terminal_code_lookup():
    priors = create_route_priors(ValidationThresholds())

    assert priors.terminal_code("Seattle") == "P52"
    assert priors.terminal_code("Bainbridge Island") == "BBI"
    assert priors.terminal_code(" Friday Harbor ") == "FRH"
    assert priors.terminal_code("Atlantis") is None


def test_terminal_code_rejects_invalid_mapped_code(priors):
    """A name mapped to a code outside the valid set is unmapped."""
    assert priors.terminal_code("Nowhere") is None
    assert priors.terminal_code("Alpha") == "AAA"


def test_unknown_route_has_zero_means():
    priors = create_route_priors(ValidationThresholds())

    assert priors.mean_at_dock("BBI->P52") == 18.5
    assert priors.mean_at_sea("P52->BRE") == 57.0
    assert priors.mean_at_dock("BBI->ANA") == 0.0
    assert priors.mean_at_sea("BBI->ANA") == 0.0


def test_priors_are_frozen():
    priors = create_route_priors(ValidationThresholds())

    with pytest.raises(ValidationError):
        priors.thresholds = ValidationThresholds(min_total_examples=1)


def test_thresholds_from_settings():
    training = TrainingSettings(min_total_examples=50, train_ratio=0.7, max_workers=8)

    thresholds = ValidationThresholds.from_settings(training)

    assert thresholds.min_total_examples == 50
    assert thresholds.train_ratio == 0.7
    assert thresholds.max_at_dock_minutes == 45.0


def test_thresholds_from_env(monkeypatch):
    monkeypatch.setenv("TRAINING_MAX_AT_DOCK_MINUTES", "60")

    thresholds = ValidationThresholds.from_settings(TrainingSettings())

    assert thresholds.max_at_dock_minutes == 60.0


@pytest.mark.parametrize("ratio", [0.0, 1.0, 1.5])
def test_train_ratio_must_be_fraction(ratio):
    with pytest.raises(ValidationError):
        ValidationThresholds(train_ratio=ratio)
