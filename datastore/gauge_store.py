from __future__ import annotations

from threading import Lock
from typing import Dict, Iterable, Iterator, Optional

from prometheus_client import CollectorRegistry
from prometheus_client.core import GaugeMetricFamily
from prometheus_client.exposition import generate_latest
from prometheus_client.registry import Collector

from models.prices import PriceSeries


class GaugeStore(Collector):
    """Thread-safe current value per metric name, exported as gauges.

    Metrics are declared up front from the configured series. A declared
    metric that was never set is left out of the exposition instead of
    being reported as zero.
    """

    def __init__(self, series: Iterable[PriceSeries]) -> None:
        self._descriptions: Dict[str, str] = {}
        for item in series:
            if item.metric_name in self._descriptions:
                raise ValueError(f"Duplicate metric name {item.metric_name!r}.")
            self._descriptions[item.metric_name] = item.description
        self._values: Dict[str, float] = {}
        self._lock = Lock()
        self.registry = CollectorRegistry(auto_describe=False)
        self.registry.register(self)

    @property
    def metric_names(self) -> list[str]:
        return list(self._descriptions)

    def set(self, metric_name: str, value: float) -> None:
        if metric_name not in self._descriptions:
            raise KeyError(f"Metric {metric_name!r} is not registered.")
        with self._lock:
            self._values[metric_name] = float(value)

    def get(self, metric_name: str) -> Optional[float]:
        with self._lock:
            return self._values.get(metric_name)

    def snapshot(self) -> Dict[str, float]:
        """Return a consistent copy of every metric that has a value."""

        with self._lock:
            return dict(self._values)

    def describe(self) -> Iterator[GaugeMetricFamily]:
        for name, description in self._descriptions.items():
            yield GaugeMetricFamily(name, description)

    def collect(self) -> Iterator[GaugeMetricFamily]:
        values = self.snapshot()
        for name, description in self._descriptions.items():
            if name not in values:
                continue
            yield GaugeMetricFamily(name, description, value=values[name])

    def render(self) -> bytes:
        """Render the text exposition of the current values."""
        return generate_latest(self.registry)

