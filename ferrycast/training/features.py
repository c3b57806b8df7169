"""
Feature extraction from training windows.

Two leakage tiers are produced for every window:
- at_dock: known once the vessel has arrived at B, before it leaves
- at_sea: at_dock plus what becomes known when the vessel leaves B

Nothing in at_dock may read curr_leg.actual_departure_ms or any timestamp
after it. Missing arrival proxies turn into 0.0 feature values so every
record in a tier carries the same keys.
"""

import math
from zoneinfo import ZoneInfo

from ferrycast.utils.time import MS_PER_MINUTE, local_hour_and_weekday, minutes_between
from ferrycast.config.route_priors import RoutePriorsConfig, format_route_key
from ferrycast.training.types import (
    FeatureRecord,
    FeatureSets,
    Targets,
    TrainingWindow,
    WithNextLegWindow,
    WithoutNextLegWindow,
)

# Gaussian RBF centers every 2 hours; sigma = half the spacing
TIME_CENTERS = tuple(range(0, 24, 2))
TIME_SIGMA = (24 / len(TIME_CENTERS)) * 0.5

# Saturday, Sunday with Monday=0
WEEKEND_DAYS = (5, 6)


def merge_feature_vectors(*vectors: dict[str, float]) -> dict[str, float]:
    """
    Merge feature vectors left to right, preserving key order.

    Raises:
        ValueError: If a key repeats with a different value
    """
    merged: dict[str, float] = {}
    for vector in vectors:
        for key, value in vector.items():
            if key in merged and merged[key] != value:
                raise ValueError(f"Conflicting values for feature {key!r}")
            merged[key] = value
    return merged


def time_feature_key(center: int) -> str:
    return f"time_{center:02d}h"


def time_of_day_features(hour_of_day: float) -> dict[str, float]:
    """
    Radial basis activations of decimal hour of day.

    Distance wraps around midnight, so 23:00 is 1 hour from 00:00.
    """
    features = {}
    for center in TIME_CENTERS:
        diff = abs(hour_of_day - center)
        distance = min(diff, 24 - diff)
        features[time_feature_key(center)] = math.exp(-(distance ** 2) / (2 * TIME_SIGMA ** 2))
    return features


def time_context_features(scheduled_departure_ms: int, tz: ZoneInfo) -> dict[str, float]:
    hour, weekday = local_hour_and_weekday(scheduled_departure_ms, tz)
    return merge_feature_vectors(
        time_of_day_features(hour),
        {"is_weekend": 1.0 if weekday in WEEKEND_DAYS else 0.0},
    )


def route_prior_features(window: TrainingWindow, priors: RoutePriorsConfig) -> dict[str, float]:
    return {
        "mean_at_sea_curr_minutes": priors.mean_at_sea(window.route_key),
        "mean_at_dock_curr_minutes": priors.mean_at_dock(window.route_key),
    }


def prev_leg_features(window: TrainingWindow, priors: RoutePriorsConfig) -> dict[str, float]:
    """How the vessel got from A to B compared with the A->B prior."""
    prev = window.prev_leg
    arrival_ms = prev.arrival_proxy_ms or 0

    mean_at_sea_prev = priors.mean_at_sea(format_route_key(window.prev_terminal, window.curr_terminal))

    vs_estimated = prev_at_sea = prev_at_sea_delay = 0.0
    if arrival_ms:
        estimated_arrival_ms = prev.scheduled_departure_ms + mean_at_sea_prev * MS_PER_MINUTE
        vs_estimated = minutes_between(estimated_arrival_ms, arrival_ms)
        prev_at_sea = minutes_between(prev.actual_departure_ms, arrival_ms)
        prev_at_sea_delay = prev_at_sea - mean_at_sea_prev

    return {
        "arrival_vs_estimated_schedule_minutes": vs_estimated,
        "arrival_after_estimated_schedule_minutes": max(0.0, vs_estimated),
        "arrival_before_estimated_schedule_minutes": max(0.0, -vs_estimated),
        "prev_trip_delay_minutes": minutes_between(prev.scheduled_departure_ms, prev.actual_departure_ms),
        "prev_at_sea_duration_minutes": prev_at_sea,
        "prev_at_sea_delay_minutes": prev_at_sea_delay,
    }


def dock_cue_features(window: TrainingWindow) -> dict[str, float]:
    """Schedule pressure at B given when the vessel arrived."""
    arrival_ms = window.prev_leg.arrival_proxy_ms or 0
    slack = window.slack_before_curr_scheduled_depart_minutes

    after_scheduled = (
        max(0.0, minutes_between(window.curr_leg.scheduled_departure_ms, arrival_ms))
        if arrival_ms else 0.0
    )
    return {
        "arrival_after_scheduled_departure_minutes": after_scheduled,
        "schedule_pressure_minutes": max(0.0, window.mean_at_dock_minutes_for_curr_route - slack),
        "slack_before_curr_scheduled_depart_minutes": slack,
    }


def departure_features(window: TrainingWindow) -> dict[str, float]:
    """Known only once the vessel has left B."""
    curr = window.curr_leg
    arrival_ms = window.prev_leg.arrival_proxy_ms or 0
    return {
        "curr_trip_delay_minutes": minutes_between(curr.scheduled_departure_ms, curr.actual_departure_ms),
        "curr_at_dock_duration_minutes": (
            minutes_between(arrival_ms, curr.actual_departure_ms) if arrival_ms else 0.0
        ),
    }


def compute_targets(window: TrainingWindow) -> Targets:
    if isinstance(window, WithNextLegWindow):
        depart_next = (
            minutes_between(window.next_leg.scheduled_departure_ms, window.next_leg.actual_departure_ms)
            if window.next_leg_eligible else None
        )
    elif isinstance(window, WithoutNextLegWindow):
        depart_next = None
    else:
        raise TypeError(f"Unknown window type: {type(window).__name__}")

    curr = window.curr_leg
    arrival_ms = curr.arrival_proxy_ms
    return Targets(
        depart_curr_minutes=minutes_between(curr.scheduled_departure_ms, curr.actual_departure_ms),
        arrive_next_from_scheduled_minutes=(
            minutes_between(curr.scheduled_departure_ms, arrival_ms) if arrival_ms else None
        ),
        arrive_next_from_actual_minutes=(
            minutes_between(curr.actual_departure_ms, arrival_ms) if arrival_ms else None
        ),
        depart_next_from_next_scheduled_minutes=depart_next,
    )


def create_feature_record(
    window: TrainingWindow,
    priors: RoutePriorsConfig,
    tz: ZoneInfo,
) -> FeatureRecord:
    """
    Build the feature record for a training window.

    Args:
        window: Training window
        priors: Route priors
        tz: Operating timezone for time-of-day features

    Returns:
        FeatureRecord with at_dock / at_sea features and targets
    """
    at_dock = merge_feature_vectors(
        time_context_features(window.curr_leg.scheduled_departure_ms, tz),
        route_prior_features(window, priors),
        prev_leg_features(window, priors),
        dock_cue_features(window),
    )
    at_sea = merge_feature_vectors(at_dock, departure_features(window))

    return FeatureRecord(
        route_key=window.route_key,
        scheduled_departure_ms=window.curr_leg.scheduled_departure_ms,
        next_leg_eligible=isinstance(window, WithNextLegWindow) and window.next_leg_eligible,
        features=FeatureSets(at_dock=at_dock, at_sea=at_sea),
        targets=compute_targets(window),
    )


def create_feature_records(
    windows: list[TrainingWindow],
    priors: RoutePriorsConfig,
    tz: ZoneInfo,
) -> list[FeatureRecord]:
    return [create_feature_record(window, priors, tz) for window in windows]


class FeatureExtractor:
    """Feature extraction bound to one set of route priors and a timezone."""

    def __init__(self, priors: RoutePriorsConfig, tz: ZoneInfo):
        self.priors = priors
        self.tz = tz

    def extract(self, window: TrainingWindow) -> FeatureRecord:
        return create_feature_record(window, self.priors, self.tz)

    def extract_all(self, windows: list[TrainingWindow]) -> list[FeatureRecord]:
        return create_feature_records(windows, self.priors, self.tz)


__all__ = [
    "TIME_CENTERS",
    "merge_feature_vectors",
    "time_of_day_features",
    "compute_targets",
    "create_feature_record",
    "create_feature_records",
    "FeatureExtractor",
]
