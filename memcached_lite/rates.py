#!/usr/bin/env python3
"""
Rate Calculator - turn two stats snapshots into metric samples

Gauges are reported as-is from the current snapshot. Counters are reported
as per-second rates over the time between the two snapshots, and the get
hit/miss counters are combined into a hit rate percentage.
"""

import logging
from typing import Dict, List, NamedTuple, Union

from .snapshot import TIME_KEY

METRIC_PREFIX = 'memcached-lite'

# (metric name, stats key)
CACHE_GAUGES = [
    ('cache-usage-byte.used', 'bytes'),
    ('cache-usage-byte.max', 'limit_maxbytes'),
    ('cache-items.current', 'curr_items'),
]

RATE_COUNTERS = [
    ('req-per-sec.get', 'cmd_get'),
    ('req-per-sec.set', 'cmd_set'),
    ('eviction-per-sec.total', 'evictions'),
    ('eviction-per-sec.unfetched', 'evicted_unfetched'),
]

CONNECTION_GAUGES = [
    ('connections.current', 'curr_connections'),
    ('connections.max', 'maxconns'),
]

logger = logging.getLogger(__name__)


class MetricSample(NamedTuple):
    name: str
    value: Union[int, float]
    timestamp: int


def counter_delta(current: Dict[str, int], previous: Dict[str, int], key: str) -> int:
    """
    Difference of a counter between two snapshots.

    A negative difference means the counter was reset (server restart), in
    which case the current value is taken as the delta.
    """
    value = current.get(key, 0)
    delta = value - previous.get(key, 0)
    if delta < 0:
        return value
    return delta


def hit_rate(current: Dict[str, int], previous: Dict[str, int]) -> float:
    """Percentage of gets that were hits between the two snapshots"""
    hits = counter_delta(current, previous, 'get_hits')
    misses = counter_delta(current, previous, 'get_misses')
    if hits + misses <= 0:
        return 0.0
    return 100.0 * hits / (hits + misses)


def _name(metric: str) -> str:
    return f"{METRIC_PREFIX}.{metric}"


def compute_metrics(current: Dict[str, int], previous: Dict[str, int], now: int) -> List[MetricSample]:
    """
    Compute all metric samples for one poll.

    Rate metrics are left out when the elapsed period is zero or negative,
    since a per-second rate is undefined for it.

    Args:
        current: Snapshot captured by this run
        previous: Snapshot loaded from the last run
        now: Capture time of this run, stamped on every sample

    Returns:
        list: MetricSample entries in a fixed order
    """
    samples = [MetricSample(_name(metric), current.get(key, 0), now) for metric, key in CACHE_GAUGES]

    period = current.get(TIME_KEY, 0) - previous.get(TIME_KEY, 0)
    if period > 0:
        for metric, key in RATE_COUNTERS:
            delta = counter_delta(current, previous, key)
            samples.append(MetricSample(_name(metric), delta / period, now))
    else:
        logger.warning(f"Elapsed period since previous stats is {period}s, skipping rate metrics")

    samples.append(MetricSample(_name('cache-hit.rate'), hit_rate(current, previous), now))
    samples.extend(MetricSample(_name(metric), current.get(key, 0), now) for metric, key in CONNECTION_GAUGES)
    return samples
