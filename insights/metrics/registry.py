"""Process-wide store of the aggregation and report metrics."""
from __future__ import annotations

from contextlib import contextmanager
from operator import attrgetter
from threading import Lock
from typing import Iterable, Iterator, Mapping, Tuple, Type, TypeVar

from .base import CounterMetric, DistributionMetric, Metric, track_duration

M = TypeVar("M", bound=Metric)


class MetricsRegistry:
    """Named counters and distributions shared by the analytics and report services.

    A name stays bound to the type it was first registered with; asking for
    it as another type raises ``TypeError``.
    """

    def __init__(self) -> None:
        self._metrics: dict[str, Metric] = {}
        self._lock = Lock()

    def counter(
        self, name: str, *, description: str = "", label_names: Iterable[str] | None = None
    ) -> CounterMetric:
        return self._register(CounterMetric, name, description, label_names)

    def distribution(
        self, name: str, *, description: str = "", label_names: Iterable[str] | None = None
    ) -> DistributionMetric:
        return self._register(DistributionMetric, name, description, label_names)

    def metrics(self) -> Tuple[Metric, ...]:
        """Registered metrics ordered by name, so exports are stable."""

        with self._lock:
            return tuple(sorted(self._metrics.values(), key=attrgetter("name")))

    @contextmanager
    def time_distribution(self, name: str, *, labels: Mapping[str, str] | None = None) -> Iterator[None]:
        """Observe the wall time of the block into distribution ``name``."""

        with track_duration(self.distribution(name), labels=labels):
            yield

    def _register(
        self, kind: Type[M], name: str, description: str, label_names: Iterable[str] | None
    ) -> M:
        with self._lock:
            metric = self._metrics.get(name)
            if metric is None:
                metric = self._metrics[name] = kind(name, description=description, label_names=label_names)
        if not isinstance(metric, kind):
            raise TypeError(f"Metric '{name}' is a {type(metric).__name__}, not a {kind.__name__}")
        return metric
