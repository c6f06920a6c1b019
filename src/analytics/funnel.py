"""Pipeline funnel: opportunities bucketed by stage."""
from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable, Mapping

from analytics.metrics import OPEN_STAGES
from analytics.periods import Window
from analytics.predicates import And, In, Range
from analytics.stores import BaseReadStore

PIPELINE_STAGES = (*OPEN_STAGES, "closed_won", "closed_lost")

ZERO = Decimal("0")


@dataclass(frozen=True)
class StageTotals:
    count: int = 0
    value: Decimal = ZERO

    def as_dict(self) -> dict:
        return {"count": self.count, "value": self.value}


@dataclass(frozen=True)
class FunnelReport:
    stages: Mapping[str, StageTotals]
    total_pipeline: Decimal
    win_rate: float

    @property
    def total_count(self) -> int:
        return sum(totals.count for totals in self.stages.values())

    def as_dict(self) -> dict:
        return {
            "stages": {stage: totals.as_dict() for stage, totals in self.stages.items()},
            "totalPipeline": self.total_pipeline,
            "winRate": round(self.win_rate, 1),
            "totalCount": self.total_count,
        }


def win_rate(won: int, lost: int) -> float:
    closed = won + lost
    if closed == 0:
        return 0.0
    return won / closed * 100


def aggregate_funnel(records: Iterable[Mapping], stages: Iterable[str] = PIPELINE_STAGES) -> FunnelReport:
    """Count and value per stage over ``records`` (``stage``, ``total_price``).

    Records whose stage is not in ``stages`` are ignored. A missing price
    counts as zero value.
    """
    stages = tuple(stages)
    counts = {stage: 0 for stage in stages}
    values = {stage: ZERO for stage in stages}
    for record in records:
        stage = record.get("stage")
        if stage not in counts:
            continue
        counts[stage] += 1
        price = record.get("total_price")
        if price is not None:
            values[stage] += Decimal(str(price))

    totals = {stage: StageTotals(counts[stage], values[stage]) for stage in stages}
    total_pipeline = sum((values[stage] for stage in stages if stage in OPEN_STAGES), ZERO)
    return FunnelReport(
        stages=totals,
        total_pipeline=total_pipeline,
        win_rate=win_rate(counts.get("closed_won", 0), counts.get("closed_lost", 0)),
    )


async def build_funnel(
    store: BaseReadStore,
    window: Window | None,
    stages: Iterable[str] = PIPELINE_STAGES,
) -> FunnelReport:
    """Read the window's opportunities once and bucket them.

    ``window=None`` counts every opportunity ever created.
    """
    stages = tuple(stages)
    created = Range("created_at", window.start, window.end) if window is not None else None
    predicate = And.of(In("stage", stages), created)
    records = await store.list("offers", predicate, fields=("stage", "total_price"))
    return aggregate_funnel(records, stages)
