"""Profit margin per offer line item.

Purchase line: ``(unit_price - cost) * quantity``.
Lease line: ``(monthly unit_price - monthly cost) * quantity * months``, with
the cost taken from the exact tenor only.
A line without a cost basis contributes 0.
"""
from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Iterable, Mapping

from analytics.predicates import In
from analytics.pricing import PricingSnapshot
from analytics.stores import BaseReadStore

PURCHASE = "purchase"
LEASE = "lease"
ZERO = Decimal("0")

ITEM_FIELDS = (
    "id",
    "offer",
    "robot_model",
    "quantity",
    "unit_price",
    "contract_type",
    "lease_months",
    "offer__currency",
)


@dataclass(frozen=True)
class LineItem:
    robot_model: str
    quantity: int
    unit_price: Decimal
    contract_type: str = PURCHASE
    lease_months: int | None = None
    currency: str = "PLN"
    offer_id: Any = None
    item_id: Any = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "unit_price", Decimal(str(self.unit_price)))
        if isinstance(self.quantity, bool) or not isinstance(self.quantity, int):
            raise ValueError("Line item quantity must be a whole number.")
        if self.quantity <= 0:
            raise ValueError("Line item quantity must be positive.")
        if self.unit_price < 0:
            raise ValueError("Line item unit price cannot be negative.")
        if self.contract_type not in (PURCHASE, LEASE):
            raise ValueError(f"Unknown contract type {self.contract_type!r}.")
        if self.contract_type == LEASE and not self.lease_months:
            raise ValueError("A lease line item needs a lease duration.")
        if self.contract_type == PURCHASE and self.lease_months:
            raise ValueError("Only lease line items carry a lease duration.")

    @classmethod
    def from_record(cls, record: Mapping[str, Any], currency: str | None = None) -> "LineItem":
        return cls(
            robot_model=record["robot_model"],
            quantity=int(record["quantity"]),
            unit_price=record["unit_price"],
            contract_type=record.get("contract_type") or PURCHASE,
            lease_months=record.get("lease_months"),
            currency=currency or record.get("offer__currency") or record.get("currency") or "PLN",
            offer_id=record.get("offer"),
            item_id=record.get("id"),
        )


@dataclass(frozen=True)
class ItemMargin:
    item: LineItem
    cost_price: Decimal | None
    margin: Decimal

    @property
    def has_cost_basis(self) -> bool:
        return self.cost_price is not None

    def as_dict(self) -> dict:
        return {
            "itemId": self.item.item_id,
            "offerId": self.item.offer_id,
            "robotModel": self.item.robot_model,
            "contractType": self.item.contract_type,
            "costPrice": self.cost_price,
            "margin": self.margin,
            "hasCostBasis": self.has_cost_basis,
        }


@dataclass(frozen=True)
class MarginReport:
    items: tuple[ItemMargin, ...]
    total: Decimal

    @property
    def by_offer(self) -> dict[Any, Decimal]:
        totals: dict[Any, Decimal] = defaultdict(lambda: ZERO)
        for entry in self.items:
            totals[entry.item.offer_id] += entry.margin
        return dict(totals)

    def as_dict(self) -> dict:
        return {
            "items": [entry.as_dict() for entry in self.items],
            "total": self.total,
            "byOffer": {str(offer_id): total for offer_id, total in self.by_offer.items()},
        }


def item_margin(item: LineItem, pricing: PricingSnapshot) -> ItemMargin:
    if item.contract_type == LEASE:
        cost = pricing.lookup_lease_price(item.robot_model, item.lease_months, item.currency)
        if cost is None:
            return ItemMargin(item, None, ZERO)
        return ItemMargin(item, cost, (item.unit_price - cost) * item.quantity * item.lease_months)

    cost = pricing.lookup_purchase_price(item.robot_model, item.currency)
    if cost is None:
        return ItemMargin(item, None, ZERO)
    return ItemMargin(item, cost, (item.unit_price - cost) * item.quantity)


def compute_margins(items: Iterable[LineItem], pricing: PricingSnapshot) -> MarginReport:
    margins = tuple(item_margin(item, pricing) for item in items)
    return MarginReport(items=margins, total=sum((entry.margin for entry in margins), ZERO))


async def load_line_items(store: BaseReadStore, offer_ids: Iterable[Any]) -> list[LineItem]:
    rows = await store.list(
        "offer_items",
        In("offer", tuple(offer_ids)),
        order_by=("created_at",),
        fields=ITEM_FIELDS,
    )
    return [LineItem.from_record(row) for row in rows]
