"""
Training window construction from raw vessel history.

Each vessel's history is normalized, sorted by scheduled departure and walked
pairwise. A pair of consecutive legs A->B, B->C forms a window when the
vessel actually continued from B, and the durations at B are plausible. When
the leg after that (C->D) leaves C soon enough, the window also carries the
next leg and becomes eligible for depart-next targets.
"""

from collections import Counter, defaultdict

from ferrycast.utils import logger
from ferrycast.utils.exceptions import (
    ContinuityViolation,
    DataQualityError,
    DurationOutOfBounds,
    ImplausibleRecordError,
    MissingFieldError,
    UnmappedTerminalError,
    WindowRejectedError,
)
from ferrycast.utils.time import MS_PER_MINUTE, minutes_between, to_epoch_ms
from ferrycast.config.route_priors import RoutePriorsConfig, format_route_key
from ferrycast.training.types import (
    ARRIVAL_PROXY_SOURCE,
    TrainingWindow,
    TripLeg,
    VesselHistoryRecord,
    WithNextLegWindow,
    WithoutNextLegWindow,
)

REQUIRED_FIELDS = (
    "vessel",
    "departing",
    "arriving",
    "scheduled_depart",
    "actual_depart",
    "est_arrival",
)


class WindowBuildStats:
    """Counts of records and pairs dropped while building windows."""

    def __init__(self):
        self.total_records = 0
        self.normalized_trips = 0
        self.windows_with_next_leg = 0
        self.windows_without_next_leg = 0
        self.dropped_records: Counter[str] = Counter()
        self.rejected_pairs: Counter[str] = Counter()

    @property
    def total_windows(self) -> int:
        return self.windows_with_next_leg + self.windows_without_next_leg

    def to_dict(self) -> dict:
        return {
            "total_records": self.total_records,
            "normalized_trips": self.normalized_trips,
            "windows_with_next_leg": self.windows_with_next_leg,
            "windows_without_next_leg": self.windows_without_next_leg,
            "dropped_records": dict(self.dropped_records),
            "rejected_pairs": dict(self.rejected_pairs),
        }


class TripWindowBuilder:
    """
    Builds leakage-safe training windows from raw vessel history.

    Stateless apart from the stats of the last build() call, so one builder
    can be reused across runs.
    """

    def __init__(self, priors: RoutePriorsConfig):
        self.priors = priors
        self.thresholds = priors.thresholds
        self.stats = WindowBuildStats()

    # -------------------------------------------------------------------------
    # Record normalization
    # -------------------------------------------------------------------------

    def _terminal_code(self, name: str) -> str:
        code = self.priors.terminal_code(name)
        if code is None:
            raise UnmappedTerminalError(name)
        return code

    def normalize(self, record: VesselHistoryRecord) -> TripLeg:
        """
        Convert a raw history record into a TripLeg.

        No field is ever inferred; anything missing drops the record.

        Raises:
            MissingFieldError: A required field is absent
            UnmappedTerminalError: A terminal has no valid code
            ImplausibleRecordError: Early departure or too-short crossing
        """
        for field in REQUIRED_FIELDS:
            if not getattr(record, field):
                raise MissingFieldError(field, vessel=record.vessel)

        from_terminal = self._terminal_code(record.departing)
        to_terminal = self._terminal_code(record.arriving)

        scheduled_ms = to_epoch_ms(record.scheduled_depart)
        actual_ms = to_epoch_ms(record.actual_depart)
        arrival_ms = to_epoch_ms(record.est_arrival)

        tolerance_ms = self.thresholds.early_departure_tolerance_minutes * MS_PER_MINUTE
        if actual_ms < scheduled_ms - tolerance_ms:
            raise ImplausibleRecordError(
                f"Departed {minutes_between(actual_ms, scheduled_ms):.1f} min before schedule"
            )

        at_sea_minutes = minutes_between(actual_ms, arrival_ms)
        mean_at_sea = self.priors.mean_at_sea(format_route_key(from_terminal, to_terminal))
        if mean_at_sea > 0 and at_sea_minutes < self.thresholds.min_at_sea_ratio_of_mean * mean_at_sea:
            raise ImplausibleRecordError(
                f"At-sea {at_sea_minutes:.1f} min is too short for mean {mean_at_sea:.1f} min"
            )

        return TripLeg(
            from_terminal=from_terminal,
            to_terminal=to_terminal,
            scheduled_departure_ms=scheduled_ms,
            actual_departure_ms=actual_ms,
            arrival_proxy_ms=arrival_ms,
            arrival_proxy_source=ARRIVAL_PROXY_SOURCE,
        )

    def _normalize_all(self, records: list[VesselHistoryRecord]) -> list[TripLeg]:
        legs = []
        for record in records:
            try:
                legs.append(self.normalize(record))
            except DataQualityError as e:
                self.stats.dropped_records[type(e).__name__] += 1
                logger.debug(f"Dropped record for {record.vessel}: {e.message}")
        legs.sort(key=lambda leg: leg.scheduled_departure_ms)
        return legs

    # -------------------------------------------------------------------------
    # Pair validation
    # -------------------------------------------------------------------------

    def _check_durations(self, prev: TripLeg, curr: TripLeg) -> None:
        """Raise DurationOutOfBounds unless at-dock and at-sea are within bounds."""
        t = self.thresholds
        at_dock = minutes_between(prev.arrival_proxy_ms, curr.actual_departure_ms)
        at_sea = minutes_between(curr.actual_departure_ms, curr.arrival_proxy_ms)

        # Negative durations fall through to the lower bounds
        if not t.min_at_sea_minutes <= at_sea <= t.max_at_sea_minutes:
            raise DurationOutOfBounds(f"At-sea {at_sea:.1f} min out of bounds", at_dock, at_sea)
        if not t.min_at_dock_minutes <= at_dock <= t.max_at_dock_minutes:
            raise DurationOutOfBounds(f"At-dock {at_dock:.1f} min out of bounds", at_dock, at_sea)
        if at_dock + at_sea > t.max_total_minutes:
            raise DurationOutOfBounds(
                f"Total {at_dock + at_sea:.1f} min exceeds {t.max_total_minutes} min", at_dock, at_sea
            )

    def _curr_slack(self, prev: TripLeg, curr: TripLeg, mean_at_dock: float) -> float:
        raw = minutes_between(prev.arrival_proxy_ms, curr.scheduled_departure_ms)
        upper = self.thresholds.slack_clamp_multiplier * mean_at_dock if mean_at_dock > 0 else 0.0
        return min(max(raw, 0.0), upper)

    def _build_window(
        self,
        vessel: str,
        prev: TripLeg,
        curr: TripLeg,
        next_leg: TripLeg | None,
    ) -> TrainingWindow:
        if prev.to_terminal != curr.from_terminal:
            raise ContinuityViolation(prev.to_terminal, curr.from_terminal)

        self._check_durations(prev, curr)

        route_key = format_route_key(curr.from_terminal, curr.to_terminal)
        mean_at_dock = self.priors.mean_at_dock(route_key)
        slack = self._curr_slack(prev, curr, mean_at_dock)

        base = dict(
            vessel=vessel,
            prev_terminal=prev.from_terminal,
            curr_terminal=curr.from_terminal,
            next_terminal=curr.to_terminal,
            prev_leg=prev,
            curr_leg=curr,
            route_key=route_key,
            slack_before_curr_scheduled_depart_minutes=slack,
            mean_at_dock_minutes_for_curr_route=mean_at_dock,
        )

        if next_leg is None or next_leg.from_terminal != curr.to_terminal:
            return WithoutNextLegWindow(**base)

        next_route_key = format_route_key(next_leg.from_terminal, next_leg.to_terminal)
        mean_at_dock_next = self.priors.mean_at_dock(next_route_key)
        if mean_at_dock_next <= 0:
            return WithoutNextLegWindow(**base)

        slack_next = max(0.0, minutes_between(curr.arrival_proxy_ms, next_leg.scheduled_departure_ms))
        max_slack = min(
            self.thresholds.max_next_slack_minutes,
            self.thresholds.slack_clamp_multiplier * mean_at_dock_next,
        )
        if slack_next > max_slack:
            return WithoutNextLegWindow(**base)

        return WithNextLegWindow(
            **base,
            after_terminal=next_leg.to_terminal,
            next_leg=TripLeg(
                from_terminal=next_leg.from_terminal,
                to_terminal=next_leg.to_terminal,
                scheduled_departure_ms=next_leg.scheduled_departure_ms,
                actual_departure_ms=next_leg.actual_departure_ms,
            ),
            next_route_key=next_route_key,
            slack_before_next_scheduled_depart_minutes=slack_next,
            mean_at_dock_minutes_for_next_route=mean_at_dock_next,
        )

    # -------------------------------------------------------------------------
    # Public API
    # -------------------------------------------------------------------------

    def build_for_vessel(self, vessel: str, records: list[VesselHistoryRecord]) -> list[TrainingWindow]:
        """Build windows from one vessel's history."""
        legs = self._normalize_all(records)
        self.stats.normalized_trips += len(legs)

        windows: list[TrainingWindow] = []
        for i in range(1, len(legs)):
            next_leg = legs[i + 1] if i + 1 < len(legs) else None
            try:
                window = self._build_window(vessel, legs[i - 1], legs[i], next_leg)
            except WindowRejectedError as e:
                self.stats.rejected_pairs[type(e).__name__] += 1
                logger.debug(f"Rejected pair for {vessel}: {e.message}")
                continue

            if isinstance(window, WithNextLegWindow):
                self.stats.windows_with_next_leg += 1
            else:
                self.stats.windows_without_next_leg += 1
            windows.append(window)

        return windows

    def build(self, records: list[VesselHistoryRecord]) -> list[TrainingWindow]:
        """
        Build training windows for every vessel in the history.

        Args:
            records: Raw history records, any order, any vessels

        Returns:
            Windows grouped by vessel (first-seen order), chronological within
            each vessel
        """
        self.stats = WindowBuildStats()
        self.stats.total_records = len(records)

        by_vessel: dict[str, list[VesselHistoryRecord]] = defaultdict(list)
        for record in records:
            if not record.vessel:
                self.stats.dropped_records[MissingFieldError.__name__] += 1
                continue
            by_vessel[record.vessel].append(record)

        windows: list[TrainingWindow] = []
        for vessel, vessel_records in by_vessel.items():
            windows.extend(self.build_for_vessel(vessel, vessel_records))

        logger.info(
            f"Built {self.stats.total_windows} windows from {len(records)} records "
            f"({self.stats.windows_with_next_leg} with next leg)"
        )
        if self.stats.dropped_records or self.stats.rejected_pairs:
            logger.debug(
                f"Dropped records: {dict(self.stats.dropped_records)}, "
                f"rejected pairs: {dict(self.stats.rejected_pairs)}"
            )
        return windows


def create_training_windows(
    records: list[VesselHistoryRecord],
    priors: RoutePriorsConfig,
) -> list[TrainingWindow]:
    """Build training windows with a fresh TripWindowBuilder."""
    return TripWindowBuilder(priors).build(records)


__all__ = [
    "WindowBuildStats",
    "TripWindowBuilder",
    "create_training_windows",
]
