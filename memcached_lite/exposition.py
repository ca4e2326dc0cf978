#!/usr/bin/env python3
"""
Metric output formats

``mackerel`` prints one ``name<TAB>value<TAB>timestamp`` line per sample, the
format mackerel-agent reads from plugins. ``prometheus`` renders the same
samples in the Prometheus text exposition format.
"""

import re
from typing import Dict, Iterable, List

from prometheus_client import generate_latest
from prometheus_client.core import CollectorRegistry, GaugeMetricFamily

from .rates import MetricSample

FORMAT_MACKEREL = 'mackerel'
FORMAT_PROMETHEUS = 'prometheus'
FORMATS = (FORMAT_MACKEREL, FORMAT_PROMETHEUS)

_INVALID_NAME_CHARS = re.compile(r'[^a-zA-Z0-9_:]')


def format_value(value) -> str:
    """Integers print as-is, floats with six decimals"""
    if isinstance(value, float):
        return f"{value:f}"
    return str(value)


def format_sample(sample: MetricSample) -> str:
    return f"{sample.name}\t{format_value(sample.value)}\t{sample.timestamp}\n"


def render_mackerel(samples: Iterable[MetricSample]) -> str:
    return ''.join(format_sample(sample) for sample in samples)


def prometheus_name(name: str) -> str:
    """memcached-lite.req-per-sec.get -> memcached_lite_req_per_sec_get"""
    return _INVALID_NAME_CHARS.sub('_', name)


class SampleCollector:
    """Custom collector exposing a fixed list of samples as gauges with default labels"""

    def __init__(self, samples: List[MetricSample], default_labels: Dict[str, str] = None):
        """
        Args:
            samples: Samples computed by this run
            default_labels: Labels applied to every gauge (e.g. the target address)
        """
        self._samples = list(samples)
        self._default_labels = default_labels or {}

    def collect(self):
        labelnames = list(self._default_labels.keys())
        labelvalues = list(self._default_labels.values())
        for sample in self._samples:
            family = GaugeMetricFamily(
                prometheus_name(sample.name),
                f"{sample.name} reported by memcached-lite",
                labels=labelnames
            )
            family.add_metric(labelvalues, float(sample.value), timestamp=sample.timestamp)
            yield family


def render_prometheus(samples: Iterable[MetricSample], default_labels: Dict[str, str] = None) -> str:
    registry = CollectorRegistry()
    registry.register(SampleCollector(list(samples), default_labels))
    return generate_latest(registry).decode('utf-8')


def render(samples: Iterable[MetricSample], output_format: str = FORMAT_MACKEREL,
           default_labels: Dict[str, str] = None) -> str:
    """Render samples in the requested output format"""
    if output_format == FORMAT_MACKEREL:
        return render_mackerel(samples)
    if output_format == FORMAT_PROMETHEUS:
        return render_prometheus(samples, default_labels)
    raise ValueError(f"unknown output format: {output_format}")
