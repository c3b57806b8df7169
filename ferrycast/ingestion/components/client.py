"""
WSF Vessels API client for fetching vessel history.

Provides methods to fetch the vessel fleet and per-vessel sailing history
from the Washington State Ferries Vessels REST API.
Documentation: https://www.wsdot.wa.gov/ferries/api/vessels/documentation/
"""

import re
from datetime import date, datetime, timedelta, timezone
from typing import Any
from urllib.parse import quote

import httpx

from ferrycast.utils import logger
from ferrycast.utils.exceptions import (
    WsfApiError,
    RateLimitError,
    APIConnectionError,
    APITimeoutError,
    MissingConfigError,
)
from ferrycast.config import settings
from ferrycast.training.types import VesselHistoryRecord

# WCF-style JSON date, e.g. "/Date(1718900000000-0700)/"
WSF_DATE_PATTERN = re.compile(r"/Date\((-?\d+)([+-]\d{4})?\)/")


def parse_wsf_date(value: str | None) -> datetime | None:
    """
    Parse a WSF "/Date(ms+zzzz)/" value into an aware datetime.

    The millisecond part is always UTC; the offset only selects the
    timezone the datetime is expressed in.

    Returns:
        Aware datetime, or None for empty or unparseable values
    """
    if not value:
        return None
    match = WSF_DATE_PATTERN.search(value)
    if not match:
        return None

    ms = int(match.group(1))
    tz = timezone.utc
    offset = match.group(2)
    if offset:
        sign = -1 if offset[0] == "-" else 1
        tz = timezone(sign * timedelta(hours=int(offset[1:3]), minutes=int(offset[3:5])))
    return datetime.fromtimestamp(ms / 1000, tz=timezone.utc).astimezone(tz)


def parse_retry_after(value: str | None) -> int | None:
    """Retry-After in seconds; None when absent or given as an HTTP date."""
    if value and value.strip().isdigit():
        return int(value.strip())
    return None


def parse_history_record(raw: dict[str, Any]) -> VesselHistoryRecord:
    """Convert a raw VesselHistory JSON object into a record."""
    sailing_date = parse_wsf_date(raw.get("Date"))
    return VesselHistoryRecord(
        vessel=raw.get("Vessel"),
        departing=raw.get("Departing"),
        arriving=raw.get("Arriving"),
        scheduled_depart=parse_wsf_date(raw.get("ScheduledDepart")),
        actual_depart=parse_wsf_date(raw.get("ActualDepart")),
        est_arrival=parse_wsf_date(raw.get("EstArrival")),
        sailing_date=sailing_date.date() if sailing_date else None,
    )


class WsfVesselsClient:
    """
    Client for interacting with the WSF Vessels API.

    Every request carries the API access code as the `apiaccesscode`
    query parameter.
    """

    def __init__(
        self,
        base_url: str | None = None,
        api_access_code: str | None = None,
        timeout: int | None = None,
        transport: httpx.BaseTransport | None = None,
    ):
        """
        Initialize the WSF client.

        Args:
            base_url: API base URL (defaults to settings)
            api_access_code: WSDOT API access code
            timeout: Request timeout in seconds
            transport: Optional httpx transport (used for testing)
        """
        self.base_url = (base_url or settings.wsf.base_url).rstrip("/")
        self.api_access_code = api_access_code or settings.wsf.api_access_code
        self.timeout = timeout or settings.wsf.timeout_seconds
        self._transport = transport

        if not self.api_access_code:
            raise MissingConfigError("WSF_API_ACCESS_CODE")

    def _make_request(
        self,
        endpoint: str,
        params: dict[str, Any] | None = None,
    ) -> dict[str, Any] | list[dict[str, Any]]:
        """
        Make a request to the WSF Vessels API.

        Args:
            endpoint: API endpoint path
            params: Extra query parameters

        Returns:
            Parsed JSON response

        Raises:
            WsfApiError: On API errors
            RateLimitError: When rate limit exceeded
            APIConnectionError: On connection failures
            APITimeoutError: On request timeout
        """
        url = f"{self.base_url}{endpoint}"
        query = {"apiaccesscode": self.api_access_code, **(params or {})}

        try:
            logger.debug(f"Making request to {url}")

            with httpx.Client(timeout=self.timeout, transport=self._transport) as client:
                response = client.get(url, params=query)

            if response.status_code == 429:
                raise RateLimitError(
                    message="WSF API rate limit exceeded",
                    retry_after=parse_retry_after(response.headers.get("Retry-After")),
                )

            if response.status_code != 200:
                raise WsfApiError(
                    message=f"API request failed: {response.status_code}",
                    status_code=response.status_code,
                    response_body=response.text,
                )

            try:
                data = response.json()
            except ValueError as e:
                raise WsfApiError(
                    message=f"Response is not valid JSON: {e}",
                    status_code=response.status_code,
                    response_body=response.text[:500],
                ) from e
            logger.debug(f"Received response with {len(data) if isinstance(data, list) else 'object'} items")
            return data

        except httpx.ConnectError as e:
            raise APIConnectionError(f"Failed to connect to WSF API: {e}")
        except httpx.TimeoutException as e:
            raise APITimeoutError(f"Request to WSF API timed out: {e}")
        except httpx.HTTPError as e:
            raise WsfApiError(f"HTTP error occurred: {e}")

    def get_vessel_basics(self) -> list[dict[str, Any]]:
        """
        Get basic information for every vessel in the fleet.

        Returns:
            List of vessel objects (VesselID, VesselName, ...)
        """
        logger.info("Fetching vessel fleet from WSF API")
        data = self._make_request("/vesselbasics")
        if not isinstance(data, list):
            raise WsfApiError("Unexpected vessel basics payload", response_body=str(data))
        return data

    def get_vessel_history(
        self,
        vessel_name: str,
        date_start: date,
        date_end: date,
    ) -> list[VesselHistoryRecord]:
        """
        Get sailing history for one vessel within a date range.

        Args:
            vessel_name: Vessel name, e.g. "Tacoma"
            date_start: First sailing day (inclusive)
            date_end: Last sailing day (inclusive)

        Returns:
            List of vessel history records
        """
        endpoint = (
            f"/vesselhistory/{quote(vessel_name, safe='')}"
            f"/{date_start.isoformat()}/{date_end.isoformat()}"
        )
        logger.info(f"Fetching history for {vessel_name} from {date_start} to {date_end}")
        data = self._make_request(endpoint)
        if not isinstance(data, list):
            raise WsfApiError("Unexpected vessel history payload", response_body=str(data))
        try:
            return [parse_history_record(item) for item in data]
        except (AttributeError, TypeError) as e:
            raise WsfApiError(
                f"Malformed vessel history item for {vessel_name}: {e}",
                response_body=str(data)[:500],
            ) from e


# Convenience function for quick access
def create_client() -> WsfVesselsClient:
    """Create a new WSF client with default settings."""
    return WsfVesselsClient()


__all__ = [
    "WsfVesselsClient",
    "create_client",
    "parse_wsf_date",
    "parse_history_record",
    "parse_retry_after",
]
