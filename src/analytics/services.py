"""Pipeline analytics service layer.

``PipelineAnalyticsService`` is the single entry point used by the API and
by background jobs. Every operation reads through one ``BaseReadStore`` so the
same code runs against the database or against in-memory fixtures.
"""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Awaitable, Iterable, Mapping, Sequence

from django.conf import settings
from django.utils import timezone

from analytics.aggregates import AggregateQueryEngine
from analytics.deltas import KpiValue
from analytics.exceptions import MetricUnavailable
from analytics.funnel import FunnelReport, build_funnel
from analytics.generations import GenerationGuard
from analytics.goals import goal_progress
from analytics.leads import LeadStats, build_lead_stats
from analytics.margins import LineItem, MarginReport, compute_margins, load_line_items
from analytics.metrics import (
    KPI_METRICS,
    OVERVIEW_METRICS,
    ROBOTS_SOLD_YTD,
    TIME_SERIES_METRICS,
    MetricSpec,
    get_metrics,
)
from analytics.periods import PeriodWindows, Preset, Window, resolve_period
from analytics.predicates import And, Eq, In
from analytics.pricing import load_pricing_snapshot
from analytics.ranking import Leaderboard, PerformanceRanker, SortMetric
from analytics.stores import BaseReadStore, DjangoReadStore
from analytics.timeseries import TimeSeries, TimeSeriesBuilder

logger = logging.getLogger("salesops")

USER_FIELDS = ("id", "first_name", "last_name", "email")


@dataclass(frozen=True)
class KpiReport:
    period: PeriodWindows
    values: Mapping[str, KpiValue]

    def as_dict(self) -> dict:
        return {
            "period": self.period.as_dict(),
            "kpis": {name: value.as_dict() for name, value in self.values.items()},
        }


def _metrics(names: Iterable[str] | None, default: Sequence[MetricSpec]) -> tuple[MetricSpec, ...]:
    if not names:
        return tuple(default)
    return get_metrics(list(names))


class PipelineAnalyticsService:
    """Funnel, KPIs, time series, margins, leaderboard and goal progress."""

    def __init__(
        self,
        store: BaseReadStore | None = None,
        *,
        thresholds: Mapping[str, float] | None = None,
        leaderboard_roles: Sequence[str] | None = None,
    ) -> None:
        self.store = store if store is not None else DjangoReadStore()
        self.engine = AggregateQueryEngine(self.store)
        self.time_series_builder = TimeSeriesBuilder(self.engine)
        self.ranker = PerformanceRanker(self.store, thresholds=thresholds)
        self.leaderboard_roles = tuple(
            leaderboard_roles
            if leaderboard_roles is not None
            else getattr(settings, "LEADERBOARD_ROLES", ("SALES", "MANAGER"))
        )

    async def _read(self, metric: str, read: Awaitable[Any]) -> Any:
        """Await a store read, reporting any failure as ``MetricUnavailable``."""
        try:
            return await read
        except Exception as exc:
            logger.warning("%s unavailable: %s", metric, exc)
            raise MetricUnavailable(metric, str(exc) or exc.__class__.__name__) from exc

    # ------------------------------------------------------------------
    # Pipeline
    # ------------------------------------------------------------------

    async def get_funnel(self, window: Window | None) -> FunnelReport:
        """Stage counts for ``window``; ``None`` covers all time."""
        return await self._read("funnel", build_funnel(self.store, window))

    async def get_kpis(
        self,
        preset: Preset | str = Preset.THIS_MONTH,
        *,
        now: date | datetime | None = None,
        date_from: date | None = None,
        date_to: date | None = None,
        metrics: Iterable[str] | None = None,
    ) -> KpiReport:
        period = resolve_period(preset, now=now, date_from=date_from, date_to=date_to)
        values = await self.engine.kpis(period, _metrics(metrics, KPI_METRICS))
        logger.info(
            "KPIs computed for %s (%s..%s): %d unavailable",
            period.preset.value,
            period.current.start,
            period.current.end,
            sum(1 for value in values.values() if not value.is_available),
        )
        return KpiReport(period=period, values=values)

    async def get_time_series(self, window: Window, metrics: Iterable[str] | None = None) -> TimeSeries:
        return await self.time_series_builder.build(window, _metrics(metrics, TIME_SERIES_METRICS))

    async def get_overview(self, now: date | datetime | None = None) -> dict[str, KpiValue]:
        """All-time dashboard counters plus robots sold year to date."""
        ytd = resolve_period(Preset.YTD, now=now).current
        all_time, year_to_date = await asyncio.gather(
            self.engine.snapshot(OVERVIEW_METRICS),
            self.engine.snapshot((ROBOTS_SOLD_YTD,), ytd),
        )
        return {**all_time, **year_to_date}

    async def get_lead_stats(self, today: date | None = None, lead_statuses: Iterable[str] | None = None) -> LeadStats:
        return await self._read(
            "lead_stats",
            build_lead_stats(self.store, today or timezone.localdate(), lead_statuses),
        )

    # ------------------------------------------------------------------
    # Margins
    # ------------------------------------------------------------------

    async def compute_margins(
        self,
        items: Iterable[LineItem] | None = None,
        *,
        offer_ids: Iterable[Any] | None = None,
    ) -> MarginReport:
        """Margins for ``items``, or for every line of ``offer_ids``.

        The pricing tiers are read once and shared by every line.
        """
        if items is None:
            if offer_ids is None:
                raise ValueError("Pass line items or offer ids.")
            items, pricing = await self._read(
                "margins",
                asyncio.gather(load_line_items(self.store, offer_ids), load_pricing_snapshot(self.store)),
            )
        else:
            pricing = await self._read("margins", load_pricing_snapshot(self.store))
        return compute_margins(list(items), pricing)

    # ------------------------------------------------------------------
    # Team performance
    # ------------------------------------------------------------------

    async def leaderboard_candidates(self) -> list[dict]:
        predicate = And.of(In("role", self.leaderboard_roles), Eq("is_active", True))
        return await self._read(
            "leaderboard",
            self.store.list("users", predicate, order_by=("date_joined", "email"), fields=USER_FIELDS),
        )

    async def get_leaderboard(
        self,
        sort_metric: SortMetric | str = SortMetric.REVENUE,
        *,
        window: Window | None = None,
        users: Sequence[Mapping[str, Any]] | None = None,
    ) -> Leaderboard:
        metric = SortMetric.parse(sort_metric)
        if users is None:
            users = await self.leaderboard_candidates()
        return await self.ranker.leaderboard(users, metric, window=window)

    @staticmethod
    def get_goal_progress(current, target) -> int:
        return goal_progress(current, target)


# ---------------------------------------------------------------------------
# Filter-driven dashboard
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class DashboardState:
    period: PeriodWindows
    kpis: Mapping[str, KpiValue]
    funnel: FunnelReport | None
    time_series: TimeSeries

    def as_dict(self) -> dict:
        return {
            "period": self.period.as_dict(),
            "kpis": {name: value.as_dict() for name, value in self.kpis.items()},
            "funnel": self.funnel.as_dict() if self.funnel is not None else {"status": "unavailable"},
            "timeSeries": self.time_series.as_list(),
        }


class DashboardSession:
    """Dashboard state that follows the latest filter selection.

    Each ``apply_filter`` call starts a refresh; a refresh that completes
    after a newer one was started is dropped instead of overwriting the newer
    state.
    """

    def __init__(self, service: PipelineAnalyticsService) -> None:
        self.service = service
        self.guard = GenerationGuard()
        self.state: DashboardState | None = None

    async def apply_filter(
        self,
        preset: Preset | str,
        *,
        now: date | datetime | None = None,
        date_from: date | None = None,
        date_to: date | None = None,
    ) -> bool:
        period = resolve_period(preset, now=now, date_from=date_from, date_to=date_to)
        return await self.guard.run(self._refresh(period), self._publish)

    async def _refresh(self, period: PeriodWindows) -> DashboardState:
        kpis, funnel, series = await asyncio.gather(
            self.service.engine.kpis(period, KPI_METRICS),
            self._funnel_or_none(period.current),
            self.service.get_time_series(period.current),
        )
        return DashboardState(period=period, kpis=kpis, funnel=funnel, time_series=series)

    async def _funnel_or_none(self, window: Window) -> FunnelReport | None:
        try:
            return await self.service.get_funnel(window)
        except MetricUnavailable:
            return None

    def _publish(self, state: DashboardState) -> None:
        self.state = state
