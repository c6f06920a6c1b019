"""Metric definitions read by the aggregate engine."""
from __future__ import annotations

from dataclasses import dataclass

from analytics.periods import Window
from analytics.predicates import And, Eq, In, IsNull, Predicate, Range

COUNT = "count"
SUM = "sum"

OPEN_STAGES = ("leads", "qualified", "proposal_sent", "negotiation")
OPEN_TICKET_STATUSES = ("open", "in_progress")
CLOSED_TICKET_STATUSES = ("resolved", "closed")


@dataclass(frozen=True)
class MetricSpec:
    """What to aggregate, over which entity, scoped by which date field.

    ``date_field=None`` marks an all-time counter that ignores windows.
    """

    name: str
    entity: str
    aggregate: str = COUNT
    field: str | None = None
    date_field: str | None = "created_at"
    predicate: Predicate | None = None
    label: str = ""

    def __post_init__(self) -> None:
        if self.aggregate not in (COUNT, SUM):
            raise ValueError(f"Unsupported aggregate {self.aggregate!r} for metric {self.name!r}.")
        if self.aggregate == SUM and not self.field:
            raise ValueError(f"Metric {self.name!r} sums nothing: set a field.")

    def scoped(self, window: Window | None = None) -> Predicate:
        date_range = None
        if window is not None and self.date_field:
            date_range = Range(self.date_field, window.start, window.end)
        return And.of(self.predicate, date_range)


# ---------------------------------------------------------------------------
# Dashboard KPIs (compared against the previous window)
# ---------------------------------------------------------------------------

NEW_OPPORTUNITIES = MetricSpec(
    name="new_opportunities",
    entity="offers",
    label="New opportunities",
)
WON_DEALS = MetricSpec(
    name="won_deals",
    entity="offers",
    predicate=Eq("stage", "closed_won"),
    label="Won deals",
)
WON_REVENUE = MetricSpec(
    name="won_revenue",
    entity="offers",
    aggregate=SUM,
    field="total_price",
    predicate=Eq("stage", "closed_won"),
    label="Won revenue",
)
ROBOTS_SOLD = MetricSpec(
    name="robots_sold",
    entity="robots",
    date_field="delivery_date",
    predicate=IsNull("client", False),
    label="Robots sold",
)
ROBOTS_DELIVERED = MetricSpec(
    name="robots_delivered",
    entity="robots",
    date_field="delivery_date",
    predicate=Eq("status", "delivered"),
    label="Robots delivered",
)
SERVICE_TICKETS = MetricSpec(
    name="service_tickets",
    entity="service_tickets",
    label="Service tickets opened",
)
TASKS_COMPLETED = MetricSpec(
    name="tasks_completed",
    entity="tasks",
    date_field="completed_at",
    predicate=Eq("status", "completed"),
    label="Tasks completed",
)

KPI_METRICS = (
    NEW_OPPORTUNITIES,
    WON_DEALS,
    WON_REVENUE,
    ROBOTS_SOLD,
    SERVICE_TICKETS,
    TASKS_COMPLETED,
)

TIME_SERIES_METRICS = (
    NEW_OPPORTUNITIES,
    ROBOTS_SOLD,
    ROBOTS_DELIVERED,
    SERVICE_TICKETS,
)

# ---------------------------------------------------------------------------
# All-time overview counters
# ---------------------------------------------------------------------------

OVERVIEW_METRICS = (
    MetricSpec(
        name="open_opportunities",
        entity="offers",
        date_field=None,
        predicate=In("stage", OPEN_STAGES),
    ),
    MetricSpec(
        name="total_robots_sold",
        entity="robots",
        date_field=None,
        predicate=IsNull("client", False),
    ),
    MetricSpec(
        name="deployed_robots",
        entity="robots",
        date_field=None,
        predicate=Eq("status", "delivered"),
    ),
    MetricSpec(
        name="implemented_robots",
        entity="robots",
        date_field=None,
        predicate=In("status", ("delivered", "in_service")),
    ),
    MetricSpec(
        name="awaiting_implementation",
        entity="robots",
        date_field=None,
        predicate=And.of(Eq("status", "in_warehouse"), IsNull("client", False)),
    ),
    MetricSpec(name="total_service_tickets", entity="service_tickets", date_field=None),
    MetricSpec(
        name="open_tickets",
        entity="service_tickets",
        date_field=None,
        predicate=In("status", OPEN_TICKET_STATUSES),
    ),
    MetricSpec(
        name="closed_tickets",
        entity="service_tickets",
        date_field=None,
        predicate=In("status", CLOSED_TICKET_STATUSES),
    ),
)

# Windowed counter shown on the overview next to the all-time ones.
ROBOTS_SOLD_YTD = MetricSpec(
    name="robots_sold_ytd",
    entity="robots",
    date_field="delivery_date",
    predicate=IsNull("client", False),
)

REGISTRY = {
    metric.name: metric
    for metric in (*KPI_METRICS, *TIME_SERIES_METRICS, *OVERVIEW_METRICS, ROBOTS_SOLD_YTD)
}


def get_metrics(names) -> tuple[MetricSpec, ...]:
    """Look up registered metrics by name, in the order given."""
    missing = [name for name in names if name not in REGISTRY]
    if missing:
        raise ValueError(f"Unknown metric(s): {', '.join(missing)}.")
    return tuple(REGISTRY[name] for name in names)
