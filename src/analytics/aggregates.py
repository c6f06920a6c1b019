"""Aggregate query engine: counts and sums per metric and window."""
from __future__ import annotations

import asyncio
import logging
from typing import Iterable

from analytics.deltas import KpiValue
from analytics.exceptions import MetricUnavailable
from analytics.metrics import SUM, MetricSpec
from analytics.periods import PeriodWindows, Window
from analytics.stores import BaseReadStore

logger = logging.getLogger("salesops")


class AggregateQueryEngine:
    """Evaluate metric specs against a read store.

    Store failures never leave this class as anything but
    ``MetricUnavailable`` (from ``evaluate``) or an unavailable ``KpiValue``
    (from everything else), so one bad read cannot blank a whole report.
    """

    def __init__(self, store: BaseReadStore) -> None:
        self.store = store

    async def evaluate(self, metric: MetricSpec, window: Window | None = None):
        predicate = metric.scoped(window)
        try:
            if metric.aggregate == SUM:
                return await self.store.sum(metric.entity, metric.field, predicate)
            return await self.store.count(metric.entity, predicate)
        except Exception as exc:
            raise MetricUnavailable(metric.name, str(exc) or exc.__class__.__name__) from exc

    async def compare(self, metric: MetricSpec, period: PeriodWindows) -> KpiValue:
        """Current and previous window, read concurrently."""
        current, previous = await asyncio.gather(
            self.evaluate(metric, period.current),
            self.evaluate(metric, period.previous),
            return_exceptions=True,
        )
        for result in (current, previous):
            if isinstance(result, MetricUnavailable):
                logger.warning(
                    "KPI %s unavailable for %s..%s: %s",
                    metric.name,
                    period.current.start,
                    period.current.end,
                    result.reason,
                )
                return KpiValue.unavailable(result.reason)
            if isinstance(result, BaseException):
                raise result
        return KpiValue.compare(current, previous)

    async def kpis(self, period: PeriodWindows, metrics: Iterable[MetricSpec]) -> dict[str, KpiValue]:
        metrics = tuple(metrics)
        results = await asyncio.gather(*(self.compare(metric, period) for metric in metrics))
        return {metric.name: result for metric, result in zip(metrics, results)}

    async def snapshot(self, metrics: Iterable[MetricSpec], window: Window | None = None) -> dict[str, KpiValue]:
        """Single-window values without a comparison."""
        metrics = tuple(metrics)
        results = await asyncio.gather(
            *(self.evaluate(metric, window) for metric in metrics),
            return_exceptions=True,
        )
        values = {}
        for metric, result in zip(metrics, results):
            if isinstance(result, MetricUnavailable):
                logger.warning("Metric %s unavailable: %s", metric.name, result.reason)
                values[metric.name] = KpiValue.unavailable(result.reason)
            elif isinstance(result, BaseException):
                raise result
            else:
                values[metric.name] = KpiValue.single(result)
        return values
