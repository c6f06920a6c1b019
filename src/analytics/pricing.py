"""Cost-basis lookups over the purchase and lease pricing tiers.

The evidence price is the internal cost of a robot. Purchase rows are keyed
by robot model. Lease rows are keyed by (purchase row, months) and hold a
monthly cost. When several purchase rows exist for one model the most
recently created one is used, together with its own lease rows only.
"""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Iterable, Mapping

from analytics.stores import BaseReadStore

logger = logging.getLogger("salesops")

CURRENCIES = ("PLN", "USD", "EUR")


def evidence_column(currency: str) -> str:
    return f"evidence_price_{currency.lower()}_net"


EVIDENCE_COLUMNS = tuple(evidence_column(currency) for currency in CURRENCIES)
PURCHASE_FIELDS = ("id", "robot_model", "created_at", *EVIDENCE_COLUMNS)
LEASE_FIELDS = ("robot_pricing", "months", "created_at", *EVIDENCE_COLUMNS)


def _prices(row: Mapping[str, Any]) -> dict[str, Decimal | None]:
    prices = {}
    for currency in CURRENCIES:
        value = row.get(evidence_column(currency))
        prices[currency] = None if value is None else Decimal(str(value))
    return prices


def _created_key(row: Mapping[str, Any]):
    value = row.get("created_at")
    return (value is None, value)


@dataclass(frozen=True)
class PricingSnapshot:
    """Read-only view of both pricing tiers, built once per computation."""

    purchase: Mapping[str, tuple[Any, Mapping[str, Decimal | None]]] = field(default_factory=dict)
    lease: Mapping[tuple[Any, int], Mapping[str, Decimal | None]] = field(default_factory=dict)

    @classmethod
    def from_rows(cls, purchase_rows: Iterable[Mapping], lease_rows: Iterable[Mapping] = ()) -> "PricingSnapshot":
        """Index raw rows; later ``created_at`` wins among duplicates."""
        purchase: dict[str, tuple[Any, dict]] = {}
        # Rows without a timestamp sort last, so they win over dated duplicates.
        for row in sorted(purchase_rows, key=_created_key):
            purchase[row["robot_model"]] = (row.get("id"), _prices(row))

        lease: dict[tuple[Any, int], dict] = {}
        for row in sorted(lease_rows, key=_created_key):
            lease[(row["robot_pricing"], int(row["months"]))] = _prices(row)
        return cls(purchase=purchase, lease=lease)

    def lookup_purchase_price(self, robot_model: str, currency: str = "PLN") -> Decimal | None:
        entry = self.purchase.get(robot_model)
        if entry is None:
            return None
        return entry[1].get(currency.upper())

    def lookup_lease_price(self, robot_model: str, months: int, currency: str = "PLN") -> Decimal | None:
        entry = self.purchase.get(robot_model)
        if entry is None or months is None:
            return None
        prices = self.lease.get((entry[0], int(months)))
        if prices is None:
            return None
        return prices.get(currency.upper())


async def load_pricing_snapshot(store: BaseReadStore) -> PricingSnapshot:
    purchase_rows, lease_rows = await asyncio.gather(
        store.list("robot_pricing", fields=PURCHASE_FIELDS),
        store.list("lease_pricing", fields=LEASE_FIELDS),
    )
    logger.debug(
        "Loaded pricing snapshot: %d purchase rows, %d lease rows",
        len(purchase_rows),
        len(lease_rows),
    )
    return PricingSnapshot.from_rows(purchase_rows, lease_rows)
