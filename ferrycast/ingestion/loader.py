"""
History loader that pulls raw vessel history for the whole fleet.

Workflow:
1. Fetch the vessel fleet
2. Compute the sailing-day date range (days_back .. today)
3. Fetch vessels in small concurrent batches, failing fast on any error
4. Optionally sample each vessel down to the most recent records
"""

from concurrent.futures import FIRST_EXCEPTION, ThreadPoolExecutor, wait
from datetime import date, datetime, timedelta, timezone
from zoneinfo import ZoneInfo

from ferrycast.utils import logger
from ferrycast.utils.exceptions import APIError, ExternalFetchError
from ferrycast.utils.time import get_sailing_day
from ferrycast.config import WsfSettings, settings
from ferrycast.ingestion.components.client import WsfVesselsClient, create_client
from ferrycast.training.types import VesselHistoryRecord


def sample_recent_first(
    records: list[VesselHistoryRecord],
    max_records: int,
) -> list[VesselHistoryRecord]:
    """Keep the most recent max_records records by scheduled departure."""
    if len(records) <= max_records:
        return records

    epoch = datetime.fromtimestamp(0, tz=timezone.utc)
    ordered = sorted(records, key=lambda r: r.scheduled_depart or epoch, reverse=True)
    return ordered[:max_records]


class HistoryLoader:
    """
    Loads raw vessel history from the WSF Vessels API.

    Any failed vessel fetch aborts the load with ExternalFetchError, since
    partial fleet data would skew route statistics.
    """

    def __init__(
        self,
        client: WsfVesselsClient | None = None,
        wsf_settings: WsfSettings | None = None,
        timezone_name: str | None = None,
        sample_records: bool | None = None,
    ):
        """
        Initialize the loader.

        Args:
            client: WSF API client
            wsf_settings: Fetch configuration (defaults to settings.wsf)
            timezone_name: Operating timezone for sailing days
            sample_records: Override for settings.wsf.sample_records
        """
        self.client = client or create_client()
        self.settings = wsf_settings or settings.wsf
        self.tz = ZoneInfo(timezone_name or settings.training.timezone)
        self.sample_records = (
            self.settings.sample_records if sample_records is None else sample_records
        )

    def date_range(self, now: datetime | None = None) -> tuple[date, date]:
        """Sailing-day range covering the last days_back days."""
        now = now or datetime.now(timezone.utc)
        end = get_sailing_day(now, self.tz)
        start = get_sailing_day(now - timedelta(days=self.settings.days_back), self.tz)
        return start, end

    def fetch_vessel_names(self) -> list[str]:
        """Fetch the names of all vessels in the fleet."""
        try:
            vessels = self.client.get_vessel_basics()
        except APIError as e:
            raise ExternalFetchError(
                f"Failed to fetch vessel fleet: {e.message}",
                cause=e,
            ) from e

        names = [v["VesselName"] for v in vessels if v.get("VesselName")]
        logger.info(f"Fetched {len(names)} vessels from WSF")
        return names

    def fetch_vessel(
        self,
        vessel_name: str,
        date_start: date,
        date_end: date,
    ) -> list[VesselHistoryRecord]:
        """
        Fetch (and optionally sample) history for a single vessel.

        Raises:
            ExternalFetchError: If the API call fails
        """
        try:
            records = self.client.get_vessel_history(vessel_name, date_start, date_end)
        except APIError as e:
            raise ExternalFetchError(
                f"Failed to fetch data for vessel {vessel_name}: {e.message}",
                vessel=vessel_name,
                date_start=date_start.isoformat(),
                date_end=date_end.isoformat(),
                cause=e,
            ) from e

        logger.debug(f"Fetched {len(records)} WSF records for {vessel_name}")

        if not self.sample_records:
            return records

        sampled = sample_recent_first(records, self.settings.max_records_per_vessel)
        if len(sampled) < len(records):
            logger.info(
                f"Sampled {vessel_name} down to {len(sampled)} records "
                f"({self.settings.sampling_strategy})"
            )
        return sampled

    def _fetch_batch(
        self,
        batch: list[str],
        date_start: date,
        date_end: date,
    ) -> list[VesselHistoryRecord]:
        with ThreadPoolExecutor(max_workers=len(batch)) as executor:
            futures = [
                executor.submit(self.fetch_vessel, name, date_start, date_end)
                for name in batch
            ]
            _, pending = wait(futures, return_when=FIRST_EXCEPTION)
            for future in pending:
                future.cancel()

            records: list[VesselHistoryRecord] = []
            for future in futures:
                if future.cancelled():
                    continue
                # Re-raises the first failure in batch order
                records.extend(future.result())
            return records

    def load(self, now: datetime | None = None) -> list[VesselHistoryRecord]:
        """
        Load history for every vessel in the fleet.

        Returns:
            Raw history records, in vessel batch order

        Raises:
            ExternalFetchError: On any fetch failure
        """
        vessel_names = self.fetch_vessel_names()
        date_start, date_end = self.date_range(now)
        batch_size = max(1, self.settings.batch_size)
        record_cap = self.settings.max_records_per_vessel * len(vessel_names)

        logger.info(
            f"Loading {len(vessel_names)} vessels from {date_start} to {date_end} "
            f"in batches of {batch_size}"
        )

        all_records: list[VesselHistoryRecord] = []
        for i in range(0, len(vessel_names), batch_size):
            batch = vessel_names[i:i + batch_size]
            logger.debug(
                f"Processing vessel batch {i // batch_size + 1}: "
                f"vessels {i + 1}-{i + len(batch)}/{len(vessel_names)}"
            )
            all_records.extend(self._fetch_batch(batch, date_start, date_end))

            if len(all_records) > record_cap:
                logger.warning(
                    f"Reached record limit for memory safety: {len(all_records)} records "
                    f"after {i + len(batch)}/{len(vessel_names)} vessels"
                )
                break

        logger.info(f"Loaded {len(all_records)} WSF records")
        return all_records


__all__ = ["HistoryLoader", "sample_recent_first"]
