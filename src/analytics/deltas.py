"""Period-over-period deltas and the KPI value carrying them."""
from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Union

Number = Union[int, float, Decimal]

STATUS_OK = "ok"
STATUS_UNAVAILABLE = "unavailable"


def percent_change(current: Number, previous: Number) -> float:
    """Signed percentage change from ``previous`` to ``current``.

    With no previous activity the change is 100 when there is current activity
    and 0 otherwise.
    """
    current = float(current)
    previous = float(previous)
    if previous == 0:
        return 100.0 if current > 0 else 0.0
    return (current - previous) / previous * 100


@dataclass(frozen=True)
class KpiValue:
    """One displayed figure.

    An unavailable figure keeps ``value`` as ``None``; zero always means a
    genuine zero.
    """

    value: Number | None
    previous_value: Number | None = None
    percent_change: float | None = None
    status: str = STATUS_OK
    error: str = ""

    @classmethod
    def compare(cls, current: Number, previous: Number) -> "KpiValue":
        return cls(
            value=current,
            previous_value=previous,
            percent_change=percent_change(current, previous),
        )

    @classmethod
    def single(cls, value: Number) -> "KpiValue":
        return cls(value=value)

    @classmethod
    def unavailable(cls, reason: str = "") -> "KpiValue":
        return cls(value=None, status=STATUS_UNAVAILABLE, error=reason)

    @property
    def is_available(self) -> bool:
        return self.status == STATUS_OK

    def as_dict(self) -> dict:
        return {
            "value": self.value,
            "previousValue": self.previous_value,
            "percentChange": self.percent_change,
            "status": self.status,
        }


def compare(current: Number, previous: Number) -> KpiValue:
    return KpiValue.compare(current, previous)
