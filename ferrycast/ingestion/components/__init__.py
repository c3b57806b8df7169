"""Ingestion components."""

from ferrycast.ingestion.components.client import (
    WsfVesselsClient,
    create_client,
    parse_wsf_date,
)

__all__ = [
    "WsfVesselsClient",
    "create_client",
    "parse_wsf_date",
]
