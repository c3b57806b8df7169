"""
Route bucketing of feature records.

Groups records by route key and keeps the most recent records per route.
"""

from collections import defaultdict

from ferrycast.utils import logger
from ferrycast.training.types import BucketStats, FeatureRecord, RouteBucket


def create_route_buckets(
    records: list[FeatureRecord],
    max_samples_per_route: int,
) -> list[RouteBucket]:
    """
    Group feature records by route with a recency-biased cap.

    Args:
        records: Feature records, any order
        max_samples_per_route: Maximum records kept per route (most recent first)

    Returns:
        Buckets sorted by sampled size (largest first), ties by route key
    """
    grouped: dict[str, list[FeatureRecord]] = defaultdict(list)
    for record in records:
        grouped[record.route_key].append(record)

    buckets = []
    for route_key, route_records in grouped.items():
        newest_first = sorted(route_records, key=lambda r: r.scheduled_departure_ms, reverse=True)
        sampled = newest_first[:max_samples_per_route]
        buckets.append(RouteBucket(
            route_key=route_key,
            records=sampled,
            stats=BucketStats(total_records=len(route_records), sampled_records=len(sampled)),
        ))

    buckets.sort(key=lambda b: (-b.stats.sampled_records, b.route_key))

    capped = sum(1 for b in buckets if b.stats.sampled_records < b.stats.total_records)
    logger.info(f"Created {len(buckets)} route buckets ({capped} capped at {max_samples_per_route})")
    return buckets


__all__ = ["create_route_buckets"]
