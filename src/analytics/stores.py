"""Relational read collaborators for the analytics engine.

The engine only ever talks to a store through three coroutines:

- ``count(entity, predicate)``
- ``sum(entity, field, predicate)``
- ``list(entity, predicate, order_by, fields)``

``DjangoReadStore`` answers them with the Django async ORM.
``InMemoryReadStore`` answers them from pre-loaded record mappings.
"""
from __future__ import annotations

from collections import defaultdict
from decimal import Decimal
from typing import Any, Iterable, Mapping, Sequence

from django.apps import apps
from django.conf import settings
from django.db.models import Sum

from analytics.exceptions import UnknownEntity
from analytics.predicates import Predicate

ENTITY_MODELS = {
    "offers": "sales.Offer",
    "offer_items": "sales.OfferItem",
    "clients": "customers.Client",
    "robots": "catalog.Robot",
    "robot_pricing": "catalog.RobotPricing",
    "lease_pricing": "catalog.LeasePricing",
    "tasks": "service.Task",
    "service_tickets": "service.ServiceTicket",
    "goals": "objectives.PerformanceGoal",
    "users": settings.AUTH_USER_MODEL,
}


def _to_decimal(value) -> Decimal:
    if value is None:
        return Decimal("0")
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


class BaseReadStore:
    """Interface every read store implements."""

    async def count(self, entity: str, predicate: Predicate | None = None) -> int:
        raise NotImplementedError

    async def sum(self, entity: str, field: str, predicate: Predicate | None = None) -> Decimal:
        raise NotImplementedError

    async def list(
        self,
        entity: str,
        predicate: Predicate | None = None,
        order_by: Sequence[str] = (),
        fields: Sequence[str] | None = None,
    ) -> list[dict]:
        raise NotImplementedError


# ---------------------------------------------------------------------------
# Django ORM
# ---------------------------------------------------------------------------

class DjangoReadStore(BaseReadStore):
    """Read-only access to the project's models through the async ORM."""

    def __init__(self, entities: Mapping[str, str] | None = None, using: str | None = None) -> None:
        self.entities = dict(ENTITY_MODELS if entities is None else entities)
        self.using = using

    def _model(self, entity: str):
        try:
            label = self.entities[entity]
        except KeyError:
            raise UnknownEntity(entity) from None
        return apps.get_model(label)

    def _queryset(self, entity: str, predicate: Predicate | None):
        model = self._model(entity)
        qs = model._default_manager.all()
        if self.using:
            qs = qs.using(self.using)
        if predicate is not None:
            qs = qs.filter(predicate.to_q(model))
        return qs

    async def count(self, entity, predicate=None) -> int:
        return await self._queryset(entity, predicate).acount()

    async def sum(self, entity, field, predicate=None) -> Decimal:
        result = await self._queryset(entity, predicate).aaggregate(total=Sum(field))
        return _to_decimal(result["total"])

    async def list(self, entity, predicate=None, order_by=(), fields=None) -> list[dict]:
        qs = self._queryset(entity, predicate)
        if order_by:
            qs = qs.order_by(*order_by)
        qs = qs.values(*fields) if fields else qs.values()
        return [row async for row in qs]


# ---------------------------------------------------------------------------
# In memory
# ---------------------------------------------------------------------------

def _sort_key(field: str):
    def key(record):
        value = record.get(field)
        return (value is None, value)
    return key


class InMemoryReadStore(BaseReadStore):
    """Store over plain record mappings, keyed by entity name.

    Only entities passed at construction time (or through ``add``) exist;
    anything else raises ``UnknownEntity`` like the ORM store does.
    """

    def __init__(self, records: Mapping[str, Iterable[Mapping[str, Any]]] | None = None) -> None:
        self._records: dict[str, list[dict]] = defaultdict(list)
        for entity, rows in (records or {}).items():
            self.add(entity, *rows)

    def add(self, entity: str, *rows: Mapping[str, Any]) -> None:
        self._records[entity].extend(dict(row) for row in rows)

    def _select(self, entity: str, predicate: Predicate | None) -> list[dict]:
        if entity not in self._records:
            raise UnknownEntity(entity)
        rows = self._records[entity]
        if predicate is None:
            return list(rows)
        return [row for row in rows if predicate.matches(row)]

    async def count(self, entity, predicate=None) -> int:
        return len(self._select(entity, predicate))

    async def sum(self, entity, field, predicate=None) -> Decimal:
        return sum((_to_decimal(row.get(field)) for row in self._select(entity, predicate)), Decimal("0"))

    async def list(self, entity, predicate=None, order_by=(), fields=None) -> list[dict]:
        rows = self._select(entity, predicate)
        # Stable sorts applied from the last key to the first.
        for term in reversed(list(order_by)):
            descending = term.startswith("-")
            field = term.lstrip("-")
            rows.sort(key=_sort_key(field), reverse=descending)
        if fields:
            rows = [{name: row.get(name) for name in fields} for row in rows]
        else:
            rows = [dict(row) for row in rows]
        return rows


__all__ = [
    "BaseReadStore",
    "DjangoReadStore",
    "ENTITY_MODELS",
    "InMemoryReadStore",
]
