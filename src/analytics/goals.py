"""Goal progress."""
from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal

HUNDRED = Decimal("100")
ZERO = Decimal("0")


def goal_progress(current, target) -> int:
    """Percentage of ``target`` reached by ``current``, clamped to 0..100.

    A zero target reports 0. Halves round up.
    """
    current = Decimal(str(current or 0))
    target = Decimal(str(target or 0))
    if target == 0:
        return 0
    percent = max(min(current / target * HUNDRED, HUNDRED), ZERO)
    return int(percent.quantize(Decimal("1"), rounding=ROUND_HALF_UP))
