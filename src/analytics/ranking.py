"""Team performance leaderboard."""
from __future__ import annotations

import asyncio
import dataclasses
import logging
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Any, Iterable, Mapping, Sequence

from django.conf import settings

from analytics.periods import Window
from analytics.predicates import And, Eq, Range
from analytics.stores import BaseReadStore

logger = logging.getLogger("salesops")

ZERO = Decimal("0")

DEFAULT_ACHIEVEMENT_THRESHOLDS = {
    "conversion_rate": 50.0,
    "total_revenue": 100000.0,
    "won_offers": 10,
    "completed_tasks": 20,
    "active_clients": 5,
}

ACHIEVEMENT_LABELS = {
    "conversion_rate": "High Converter",
    "total_revenue": "Revenue Star",
    "won_offers": "Deal Maker",
    "completed_tasks": "Task Master",
    "active_clients": "Client Champion",
}


class SortMetric(str, Enum):
    REVENUE = "revenue"
    CONVERSION_RATE = "conversionRate"
    DEALS_WON = "dealsWon"
    TASKS_COMPLETED = "tasksCompleted"

    @classmethod
    def parse(cls, value: "SortMetric | str | None") -> "SortMetric":
        if value is None or value == "":
            return cls.REVENUE
        if isinstance(value, cls):
            return value
        try:
            return _SORT_ALIASES[str(value)]
        except KeyError:
            choices = ", ".join(member.value for member in cls)
            raise ValueError(f"Unknown sort metric {value!r} (expected one of: {choices}).") from None

    @property
    def attribute(self) -> str:
        return _SORT_ATTRIBUTES[self]


_SORT_ATTRIBUTES = {
    SortMetric.REVENUE: "total_revenue",
    SortMetric.CONVERSION_RATE: "conversion_rate",
    SortMetric.DEALS_WON: "won_offers",
    SortMetric.TASKS_COMPLETED: "completed_tasks",
}

_SORT_ALIASES = {
    **{member.value: member for member in SortMetric},
    **{attribute: member for member, attribute in _SORT_ATTRIBUTES.items()},
    "conversion": SortMetric.CONVERSION_RATE,
    "deals": SortMetric.DEALS_WON,
    "tasks": SortMetric.TASKS_COMPLETED,
}


@dataclass(frozen=True)
class PerformanceRecord:
    user_id: Any
    full_name: str
    email: str
    total_offers: int = 0
    won_offers: int = 0
    conversion_rate: float = 0.0
    total_revenue: Decimal = ZERO
    average_deal_size: Decimal = ZERO
    completed_tasks: int = 0
    active_clients: int = 0
    achievements: tuple[str, ...] = ()
    rank: int = 0
    badge: str | None = None

    def as_dict(self) -> dict:
        return {
            "userId": self.user_id,
            "fullName": self.full_name,
            "email": self.email,
            "totalOffers": self.total_offers,
            "wonOffers": self.won_offers,
            "conversionRate": round(self.conversion_rate, 1),
            "totalRevenue": self.total_revenue,
            "averageDealSize": self.average_deal_size,
            "completedTasks": self.completed_tasks,
            "activeClients": self.active_clients,
            "achievements": list(self.achievements),
            "rank": self.rank,
            "badge": self.badge,
        }


def achievement_thresholds() -> dict:
    configured = getattr(settings, "LEADERBOARD_ACHIEVEMENT_THRESHOLDS", None) or {}
    return {**DEFAULT_ACHIEVEMENT_THRESHOLDS, **configured}


def achievements_for(record: PerformanceRecord, thresholds: Mapping[str, float] | None = None) -> tuple[str, ...]:
    thresholds = thresholds or DEFAULT_ACHIEVEMENT_THRESHOLDS
    return tuple(
        label
        for key, label in ACHIEVEMENT_LABELS.items()
        if key in thresholds and getattr(record, key) >= Decimal(str(thresholds[key]))
    )


def rank_badge(rank: int) -> str | None:
    if rank == 1:
        return "Top Performer"
    if rank == 2:
        return "Runner Up"
    if rank == 3:
        return "Third Place"
    if 1 <= rank <= 5:
        return "Top 5"
    return None


def _full_name(user: Mapping[str, Any]) -> str:
    name = user.get("full_name")
    if name:
        return name
    return f"{user.get('first_name') or ''} {user.get('last_name') or ''}".strip()


def build_performance_record(
    user: Mapping[str, Any],
    offers: Iterable[Mapping[str, Any]],
    completed_tasks: int = 0,
    active_clients: int = 0,
    thresholds: Mapping[str, float] | None = None,
) -> PerformanceRecord:
    """Aggregate one salesperson's offers (``stage``, ``total_price``)."""
    offers = list(offers)
    total_offers = len(offers)
    won = [offer for offer in offers if offer.get("stage") == "closed_won"]
    won_offers = len(won)
    total_revenue = sum(
        (Decimal(str(offer["total_price"])) for offer in won if offer.get("total_price") is not None),
        ZERO,
    )
    record = PerformanceRecord(
        user_id=user.get("id"),
        full_name=_full_name(user),
        email=user.get("email") or "",
        total_offers=total_offers,
        won_offers=won_offers,
        conversion_rate=won_offers / total_offers * 100 if total_offers else 0.0,
        total_revenue=total_revenue,
        average_deal_size=total_revenue / won_offers if won_offers else ZERO,
        completed_tasks=completed_tasks,
        active_clients=active_clients,
    )
    return dataclasses.replace(record, achievements=achievements_for(record, thresholds))


def rank_performances(records: Iterable[PerformanceRecord], metric: SortMetric | str = SortMetric.REVENUE) -> list[PerformanceRecord]:
    """Sort descending on ``metric`` and number the positions from 1.

    The sort is stable, so equal values keep their input order and still get
    distinct consecutive ranks.
    """
    attribute = SortMetric.parse(metric).attribute
    ordered = sorted(records, key=lambda record: getattr(record, attribute), reverse=True)
    return [
        dataclasses.replace(record, rank=position, badge=rank_badge(position))
        for position, record in enumerate(ordered, start=1)
    ]


@dataclass(frozen=True)
class Leaderboard:
    sort_metric: SortMetric
    records: tuple[PerformanceRecord, ...]
    unavailable: tuple[Any, ...] = field(default_factory=tuple)

    def as_dict(self) -> dict:
        return {
            "sortBy": self.sort_metric.value,
            "results": [record.as_dict() for record in self.records],
            "unavailable": list(self.unavailable),
        }


class PerformanceRanker:
    """Read each candidate's activity and rank the resulting records.

    Offers are scoped to the window by creation date and completed tasks by
    completion date; active clients are a current-state count. A candidate
    whose reads fail is left off the board and listed as unavailable.
    """

    def __init__(self, store: BaseReadStore, thresholds: Mapping[str, float] | None = None) -> None:
        self.store = store
        self.thresholds = thresholds

    async def _record_for(self, user: Mapping[str, Any], window: Window | None) -> PerformanceRecord:
        user_id = user["id"]
        offers_filter = Eq("created_by", user_id)
        tasks_filter = And.of(Eq("assigned_to", user_id), Eq("status", "completed"))
        if window is not None:
            offers_filter = offers_filter & Range("created_at", window.start, window.end)
            tasks_filter = tasks_filter & Range("completed_at", window.start, window.end)
        clients_filter = And.of(Eq("assigned_salesperson", user_id), Eq("status", "active"))

        offers, completed_tasks, active_clients = await asyncio.gather(
            self.store.list("offers", offers_filter, fields=("stage", "total_price")),
            self.store.count("tasks", tasks_filter),
            self.store.count("clients", clients_filter),
        )
        return build_performance_record(
            user,
            offers,
            completed_tasks=completed_tasks,
            active_clients=active_clients,
            thresholds=self.thresholds or achievement_thresholds(),
        )

    async def leaderboard(
        self,
        users: Sequence[Mapping[str, Any]],
        metric: SortMetric | str = SortMetric.REVENUE,
        window: Window | None = None,
    ) -> Leaderboard:
        metric = SortMetric.parse(metric)
        results = await asyncio.gather(
            *(self._record_for(user, window) for user in users),
            return_exceptions=True,
        )
        records = []
        unavailable = []
        for user, result in zip(users, results):
            if isinstance(result, Exception):
                logger.warning("Leaderboard stats unavailable for user=%s: %s", user.get("id"), result)
                unavailable.append(user.get("id"))
            elif isinstance(result, BaseException):
                raise result
            else:
                records.append(result)
        return Leaderboard(
            sort_metric=metric,
            records=tuple(rank_performances(records, metric)),
            unavailable=tuple(unavailable),
        )
