from decimal import Decimal

import pytest

from analytics.deltas import KpiValue, compare, percent_change
from analytics.goals import goal_progress


class TestPercentChange:
    def test_new_activity_from_zero_is_100(self):
        assert percent_change(5, 0) == 100.0

    def test_zero_to_zero_is_0(self):
        assert percent_change(0, 0) == 0.0

    def test_signed_change(self):
        assert percent_change(150, 100) == pytest.approx(50.0)
        assert percent_change(50, 100) == pytest.approx(-50.0)
        assert percent_change(0, 40) == pytest.approx(-100.0)

    def test_accepts_decimals(self):
        assert percent_change(Decimal("120.50"), Decimal("100.00")) == pytest.approx(20.5)

    @pytest.mark.parametrize("current,previous", [(1, 3), (7, 9), (1000, 1), (3, 7)])
    def test_matches_formula(self, current, previous):
        assert percent_change(current, previous) == pytest.approx((current - previous) / previous * 100)


class TestKpiValue:
    def test_compare(self):
        value = compare(12, 10)
        assert value.value == 12
        assert value.previous_value == 10
        assert value.percent_change == pytest.approx(20.0)
        assert value.is_available

    def test_unavailable_is_not_zero(self):
        value = KpiValue.unavailable("connection refused")
        assert value.value is None
        assert value.percent_change is None
        assert not value.is_available
        assert value.as_dict() == {
            "value": None,
            "previousValue": None,
            "percentChange": None,
            "status": "unavailable",
        }


class TestGoalProgress:
    def test_clamped_at_100(self):
        assert goal_progress(150, 100) == 100

    def test_clamped_at_zero(self):
        assert goal_progress(-50, 100) == 0
        assert goal_progress(Decimal("-0.4"), 100) == 0

    def test_zero_target(self):
        assert goal_progress(50, 0) == 0

    def test_rounds_half_up(self):
        assert goal_progress(Decimal("49.5"), 100) == 50
        assert goal_progress(Decimal("50.5"), 100) == 51
        assert goal_progress(1, 3) == 33

    def test_decimal_values(self):
        assert goal_progress(Decimal("25000.00"), Decimal("100000.00")) == 25

    def test_idempotent(self):
        assert goal_progress(2, 3) == goal_progress(2, 3) == 67
