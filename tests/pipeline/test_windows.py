"""Tests for training window construction."""

from ferrycast.training.types import WithNextLegWindow, WithoutNextLegWindow
from ferrycast.training.windows import TripWindowBuilder, create_training_windows
from ferrycast.utils.time import to_epoch_ms

from tests.conftest import at, history


def test_two_leg_window(priors, scenario_records):
    """A->B then B->C yields one window with clamped slack and route priors."""
    windows = create_training_windows(scenario_records, priors)

    assert len(windows) == 1
    window = windows[0]
    assert isinstance(window, WithoutNextLegWindow)
    assert window.vessel == "Tacoma"
    assert (window.prev_terminal, window.curr_terminal, window.next_terminal) == ("AAA", "BBB", "CCC")
    assert window.route_key == "BBB->CCC"
    assert window.slack_before_curr_scheduled_depart_minutes == 20.0
    assert window.mean_at_dock_minutes_for_curr_route == 20.0
    assert window.curr_leg.scheduled_departure_ms == to_epoch_ms(at(9, 10))
    assert window.prev_leg.arrival_proxy_ms == to_epoch_ms(at(8, 50))
    assert window.prev_leg.arrival_proxy_source == "wsf_est_arrival"


def test_slack_clamped_to_multiple_of_mean(priors):
    """Slack beyond 1.5x the mean at-dock time is clamped."""
    records = [
        history("Alpha", "Bravo", at(8, 0), at(8, 0), at(8, 45)),
        history("Bravo", "Charlie", at(9, 30), at(9, 30), at(10, 12)),
    ]
    windows = create_training_windows(records, priors)

    assert len(windows) == 1
    assert windows[0].slack_before_curr_scheduled_depart_minutes == 30.0


def test_unordered_input_is_sorted(priors, scenario_records):
    """Record order does not change the windows built."""
    ordered = create_training_windows(scenario_records, priors)
    reversed_ = create_training_windows(list(reversed(scenario_records)), priors)

    assert ordered == reversed_


def test_fewer_than_two_trips(priors, scenario_records):
    """A single usable trip yields no windows."""
    assert create_training_windows(scenario_records[:1], priors) == []
    assert create_training_windows([], priors) == []


def test_multiple_vessels_are_kept_apart(priors, scenario_records):
    """Legs from different vessels are never paired."""
    other = [r._replace(vessel="Walla Walla") for r in scenario_records]
    mixed = [scenario_records[0], other[1], other[0], scenario_records[1]]

    windows = create_training_windows(mixed, priors)

    assert [w.vessel for w in windows] == ["Tacoma", "Walla Walla"]


def test_continuity_violation_rejected(priors):
    """Current leg must depart where the previous leg arrived."""
    records = [
        history("Alpha", "Bravo", at(8, 0), at(8, 5), at(8, 50)),
        history("Charlie", "Delta", at(9, 10), at(9, 12), at(9, 45)),
    ]
    builder = TripWindowBuilder(priors)

    assert builder.build(records) == []
    assert builder.stats.rejected_pairs["ContinuityViolation"] == 1


def test_missing_field_drops_record(priors, scenario_records):
    """Records missing a required field are dropped, never inferred."""
    records = [scenario_records[0], scenario_records[1]._replace(actual_depart=None)]
    builder = TripWindowBuilder(priors)

    assert builder.build(records) == []
    assert builder.stats.dropped_records["MissingFieldError"] == 1
    assert builder.stats.normalized_trips == 1


def test_missing_vessel_drops_record(priors, scenario_records):
    records = [r._replace(vessel=None) for r in scenario_records]
    builder = TripWindowBuilder(priors)

    assert builder.build(records) == []
    assert builder.stats.dropped_records["MissingFieldError"] == 2


def test_unmapped_terminal_drops_record(priors, scenario_records):
    """Terminals mapping to no valid code are dropped."""
    records = [scenario_records[0]._replace(departing="Nowhere"), scenario_records[1]]
    builder = TripWindowBuilder(priors)

    assert builder.build(records) == []
    assert builder.stats.dropped_records["UnmappedTerminalError"] == 1


def test_early_departure_drops_record(priors, scenario_records):
    """Departing more than 5 minutes before schedule is implausible."""
    records = [scenario_records[0]._replace(actual_depart=at(7, 54)), scenario_records[1]]
    builder = TripWindowBuilder(priors)

    assert builder.build(records) == []
    assert builder.stats.dropped_records["ImplausibleRecordError"] == 1


def test_short_crossing_drops_record(priors, scenario_records):
    """At-sea below 80% of the route mean is implausible."""
    records = [scenario_records[0]._replace(est_arrival=at(8, 30)), scenario_records[1]]
    builder = TripWindowBuilder(priors)

    assert builder.build(records) == []
    assert builder.stats.dropped_records["ImplausibleRecordError"] == 1


def test_long_dock_stay_rejected(priors, scenario_records):
    """At-dock above the upper bound rejects the pair."""
    records = [
        scenario_records[0],
        history("Bravo", "Charlie", at(9, 50), at(9, 50), at(10, 33)),
    ]
    builder = TripWindowBuilder(priors)

    assert builder.build(records) == []
    assert builder.stats.rejected_pairs["DurationOutOfBounds"] == 1


def test_negative_dock_stay_rejected(priors, scenario_records):
    """Leaving B before the previous leg arrived rejects the pair."""
    records = [
        scenario_records[0],
        history("Bravo", "Charlie", at(8, 45), at(8, 45), at(9, 28)),
    ]
    builder = TripWindowBuilder(priors)

    assert builder.build(records) == []
    assert builder.stats.rejected_pairs["DurationOutOfBounds"] == 1


def test_next_leg_attached_when_slack_small(priors, scenario_records):
    """C->D leaving soon after arrival at C makes the window next-leg eligible."""
    records = scenario_records + [
        history("Charlie", "Delta", at(10, 10), at(10, 12), at(10, 45)),
    ]
    windows = create_training_windows(records, priors)

    assert len(windows) == 2
    window = windows[0]
    assert isinstance(window, WithNextLegWindow)
    assert window.next_leg_eligible
    assert window.after_terminal == "DDD"
    assert window.next_route_key == "CCC->DDD"
    assert window.slack_before_next_scheduled_depart_minutes == 15.0
    assert window.mean_at_dock_minutes_for_next_route == 15.0
    assert window.next_leg.arrival_proxy_ms is None
    assert window.next_leg.actual_departure_ms == to_epoch_ms(at(10, 12))


def test_next_leg_dropped_when_slack_large(priors, scenario_records):
    """Next-leg slack above 1.5x the next route's mean at-dock is not eligible."""
    records = scenario_records + [
        history("Charlie", "Delta", at(10, 30), at(10, 32), at(11, 5)),
    ]
    windows = create_training_windows(records, priors)

    assert isinstance(windows[0], WithoutNextLegWindow)


def test_next_leg_dropped_without_route_prior(priors, scenario_records):
    """Unknown next route means no next leg."""
    records = scenario_records + [
        history("Charlie", "Alpha", at(10, 10), at(10, 12), at(10, 50)),
    ]
    windows = create_training_windows(records, priors)

    assert isinstance(windows[0], WithoutNextLegWindow)


def test_build_resets_stats(priors, scenario_records):
    builder = TripWindowBuilder(priors)
    builder.build(scenario_records)
    builder.build(scenario_records)

    assert builder.stats.total_records == 2
    assert builder.stats.total_windows == 1
    assert builder.stats.to_dict()["windows_without_next_leg"] == 1
