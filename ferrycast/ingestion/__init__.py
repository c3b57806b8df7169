"""
Ingestion of raw vessel history from the WSF Vessels API.

This module provides:
- WSF API client for the vessel fleet and per-vessel history
- History loader that fetches the fleet in fail-fast concurrent batches

Configuration (environment variables):
    WSF_API_ACCESS_CODE: WSDOT API access code (required)
    WSF_DAYS_BACK: History range in days (default: 365)
    WSF_BATCH_SIZE: Vessels fetched concurrently (default: 2)
    WSF_MAX_RECORDS_PER_VESSEL: Sampling cap per vessel (default: 7500)
"""

from ferrycast.ingestion.components import (
    WsfVesselsClient,
    create_client,
    parse_wsf_date,
)
from ferrycast.ingestion.loader import HistoryLoader, sample_recent_first

__all__ = [
    "WsfVesselsClient",
    "create_client",
    "parse_wsf_date",
    "HistoryLoader",
    "sample_recent_first",
]
