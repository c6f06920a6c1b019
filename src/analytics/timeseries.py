"""Day-bucketed time series."""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Iterator, Mapping, Sequence

from analytics.aggregates import AggregateQueryEngine
from analytics.exceptions import MetricUnavailable
from analytics.metrics import MetricSpec
from analytics.periods import Window

logger = logging.getLogger("salesops")

DEFAULT_MAX_CONCURRENCY = 16


@dataclass(frozen=True)
class TimeBucket:
    day: date
    values: Mapping[str, object] = field(default_factory=dict)

    def __getitem__(self, metric: str):
        return self.values[metric]

    def as_dict(self) -> dict:
        return {"date": self.day.isoformat(), **self.values}


class TimeSeries:
    """One bucket per day of ``window``, always in ascending date order.

    Values are indexed by ``(day, metric)`` so the order in which they were
    fetched has no bearing on the order of the buckets. Iterating again walks
    the index again. A missing value is reported as ``None`` (unavailable).
    """

    def __init__(self, window: Window, metrics: Sequence[str], values: Mapping[tuple[date, str], object]) -> None:
        self.window = window
        self.metrics = tuple(metrics)
        self._values = dict(values)

    def __iter__(self) -> Iterator[TimeBucket]:
        for day in self.window.iter_days():
            yield TimeBucket(day, {name: self._values.get((day, name)) for name in self.metrics})

    def __len__(self) -> int:
        return self.window.days

    def as_list(self) -> list[dict]:
        return [bucket.as_dict() for bucket in self]


class TimeSeriesBuilder:
    """Fan out one aggregate read per day and metric, then index by day."""

    def __init__(self, engine: AggregateQueryEngine, max_concurrency: int = DEFAULT_MAX_CONCURRENCY) -> None:
        self.engine = engine
        self.max_concurrency = max_concurrency

    async def build(self, window: Window, metrics: Sequence[MetricSpec]) -> TimeSeries:
        metrics = tuple(metrics)
        semaphore = asyncio.Semaphore(self.max_concurrency)
        jobs = [(day, metric) for day in window.iter_days() for metric in metrics]
        results = await asyncio.gather(*(self._fetch(semaphore, day, metric) for day, metric in jobs))

        values = {}
        for (day, metric), value in zip(jobs, results):
            values[(day, metric.name)] = value
        logger.debug(
            "Built time series %s..%s for %s (%d reads)",
            window.start,
            window.end,
            ", ".join(metric.name for metric in metrics),
            len(jobs),
        )
        return TimeSeries(window, [metric.name for metric in metrics], values)

    async def _fetch(self, semaphore: asyncio.Semaphore, day: date, metric: MetricSpec):
        async with semaphore:
            try:
                return await self.engine.evaluate(metric, Window(day, day))
            except MetricUnavailable as exc:
                logger.warning("Time series %s unavailable on %s: %s", metric.name, day, exc.reason)
                return None
