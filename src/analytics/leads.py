"""Lead list statistics."""
from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Iterable, Mapping

from django.utils import timezone

from analytics.periods import month_bounds
from analytics.predicates import And, Eq, In
from analytics.stores import BaseReadStore

LEAD_STAGE = "leads"
LEAD_FIELDS = ("lead_status", "total_price", "created_at", "next_action_date")


@dataclass(frozen=True)
class LeadStats:
    total_leads: int
    total_value: Decimal
    created_this_month: int
    overdue_follow_ups: int

    def as_dict(self) -> dict:
        return {
            "totalLeads": self.total_leads,
            "totalValue": self.total_value,
            "thisMonth": self.created_this_month,
            "overdueFollowUps": self.overdue_follow_ups,
        }


def _to_date(value) -> date | None:
    if value is None:
        return None
    if isinstance(value, datetime):
        return timezone.localtime(value).date() if timezone.is_aware(value) else value.date()
    return value


def summarize_leads(leads: Iterable[Mapping], today: date) -> LeadStats:
    """Totals over the lead list; a follow-up is overdue once its date has passed."""
    month_start, _ = month_bounds(today)
    total = 0
    value = Decimal("0")
    this_month = 0
    overdue = 0
    for lead in leads:
        total += 1
        if lead.get("total_price") is not None:
            value += Decimal(str(lead["total_price"]))
        created = _to_date(lead.get("created_at"))
        if created and created >= month_start:
            this_month += 1
        next_action = _to_date(lead.get("next_action_date"))
        if next_action and next_action < today:
            overdue += 1
    return LeadStats(total, value, this_month, overdue)


async def build_lead_stats(
    store: BaseReadStore,
    today: date | None = None,
    lead_statuses: Iterable[str] | None = None,
) -> LeadStats:
    """Statistics over opportunities still in the leads stage."""
    predicate = Eq("stage", LEAD_STAGE)
    if lead_statuses:
        predicate = And.of(predicate, In("lead_status", tuple(lead_statuses)))
    leads = await store.list("offers", predicate, fields=LEAD_FIELDS)
    return summarize_leads(leads, today or timezone.localdate())
