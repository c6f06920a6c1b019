from decimal import Decimal

import pytest
from django.core.exceptions import ValidationError

from catalog.models import Robot
from sales.models import Offer, OfferItem


@pytest.mark.django_db
class TestOfferItem:
    def test_line_total_for_purchase_and_lease(self, priced_offer):
        purchase, lease = sorted(priced_offer.items.all(), key=lambda item: item.contract_type, reverse=True)
        assert purchase.line_total == Decimal("300.00")
        assert lease.line_total == Decimal("1200.00")

    def test_recalculate_total(self, priced_offer):
        assert priced_offer.recalculate_total() == Decimal("1500.00")
        priced_offer.refresh_from_db()
        assert priced_offer.total_price == Decimal("1500.00")

    @pytest.mark.parametrize(
        "fields",
        [
            {"quantity": 0},
            {"unit_price": Decimal("-1.00")},
            {"contract_type": OfferItem.ContractType.LEASE},
            {"lease_months": 12},
        ],
    )
    def test_invalid_lines(self, make_offer, fields):
        values = {"robot_model": "BellaBot", "quantity": 1, "unit_price": Decimal("10.00")}
        values.update(fields)
        item = OfferItem(offer=make_offer(), **values)
        with pytest.raises(ValidationError):
            item.full_clean()


@pytest.mark.django_db
class TestOffer:
    def test_terminal_stages(self, make_offer):
        assert make_offer(stage=Offer.Stage.CLOSED_LOST).is_closed
        assert not make_offer(stage=Offer.Stage.NEGOTIATION).is_closed


@pytest.mark.django_db
def test_delivered_robot_needs_client():
    robot = Robot(serial_number="SN-100", robot_model="BellaBot", status=Robot.Status.DELIVERED)
    with pytest.raises(ValidationError):
        robot.full_clean()
