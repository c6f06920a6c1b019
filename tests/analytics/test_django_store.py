"""DjangoReadStore and the service facade against real models."""
from datetime import date, datetime, timedelta
from decimal import Decimal

import pytest
from asgiref.sync import async_to_sync
from django.utils import timezone

from analytics.exceptions import UnknownEntity
from analytics.metrics import NEW_OPPORTUNITIES, WON_REVENUE
from analytics.periods import Window
from analytics.predicates import Eq, In, IsNull, Range
from analytics.services import PipelineAnalyticsService
from analytics.stores import DjangoReadStore
from catalog.models import RobotPricing, Robot
from sales.models import Offer
from service.models import ServiceTicket, Task


def _aware(day, hour=12):
    return timezone.make_aware(datetime(day.year, day.month, day.day, hour))


@pytest.mark.django_db
class TestDjangoReadStore:
    def test_count_sum_and_list(self, make_offer):
        make_offer(stage=Offer.Stage.CLOSED_WON, total_price=Decimal("1000.00"))
        make_offer(stage=Offer.Stage.CLOSED_WON, total_price=Decimal("250.50"))
        make_offer(stage=Offer.Stage.LEADS, total_price=None)
        store = DjangoReadStore()

        assert async_to_sync(store.count)("offers") == 3
        assert async_to_sync(store.count)("offers", Eq("stage", "closed_won")) == 2
        assert async_to_sync(store.sum)("offers", "total_price", Eq("stage", "closed_won")) == Decimal("1250.50")
        assert async_to_sync(store.sum)("offers", "total_price", Eq("stage", "negotiation")) == Decimal("0")

        rows = async_to_sync(store.list)(
            "offers",
            In("stage", ["closed_won"]),
            order_by=("-total_price",),
            fields=("stage", "total_price"),
        )
        assert rows == [
            {"stage": "closed_won", "total_price": Decimal("1000.00")},
            {"stage": "closed_won", "total_price": Decimal("250.50")},
        ]

    def test_date_range_on_datetime_field(self, make_offer):
        inside = make_offer()
        outside = make_offer()
        Offer.objects.filter(pk=inside.pk).update(created_at=_aware(date(2026, 3, 31), hour=23))
        Offer.objects.filter(pk=outside.pk).update(created_at=_aware(date(2026, 4, 1), hour=0))

        rows = async_to_sync(DjangoReadStore().list)(
            "offers",
            Range("created_at", date(2026, 3, 1), date(2026, 3, 31)),
            fields=("id",),
        )
        assert rows == [{"id": inside.pk}]

    def test_is_null_on_foreign_key(self, customer):
        Robot.objects.create(serial_number="SN-1", robot_model="BellaBot", client=customer)
        Robot.objects.create(serial_number="SN-2", robot_model="BellaBot")
        assert async_to_sync(DjangoReadStore().count)("robots", IsNull("client", False)) == 1

    def test_unknown_entity(self):
        with pytest.raises(UnknownEntity):
            async_to_sync(DjangoReadStore().count)("invoices")


@pytest.mark.django_db
class TestServiceWithDatabase:
    def test_kpis_compare_windows(self, make_offer):
        today = timezone.localdate()
        this_month_start = today.replace(day=1)
        last_month_day = this_month_start - timedelta(days=1)

        won = make_offer(stage=Offer.Stage.CLOSED_WON, total_price=Decimal("500.00"))
        make_offer()
        old = make_offer()
        Offer.objects.filter(pk=old.pk).update(created_at=_aware(last_month_day))
        Offer.objects.filter(pk=won.pk).update(created_at=_aware(today, hour=9))

        report = async_to_sync(PipelineAnalyticsService().get_kpis)(
            "this_month",
            metrics=[NEW_OPPORTUNITIES.name, WON_REVENUE.name],
        )

        assert report.values["new_opportunities"].value == 2
        assert report.values["new_opportunities"].previous_value == 1
        assert report.values["new_opportunities"].percent_change == pytest.approx(100.0)
        assert report.values["won_revenue"].value == Decimal("500.00")
        assert report.values["won_revenue"].percent_change == 100.0

    def test_funnel(self, make_offer):
        make_offer(stage=Offer.Stage.NEGOTIATION, total_price=Decimal("700.00"))
        make_offer(stage=Offer.Stage.CLOSED_WON, total_price=Decimal("900.00"))
        make_offer(stage=Offer.Stage.CLOSED_LOST, total_price=Decimal("100.00"))
        today = timezone.localdate()

        report = async_to_sync(PipelineAnalyticsService().get_funnel)(Window(today, today))

        assert report.total_count == 3
        assert report.total_pipeline == Decimal("700.00")
        assert report.win_rate == pytest.approx(50.0)

    def test_offer_margins(self, priced_offer):
        report = async_to_sync(PipelineAnalyticsService().compute_margins)(offer_ids=[priced_offer.pk])
        assert report.total == Decimal("600.00")
        assert report.by_offer == {priced_offer.pk: Decimal("600.00")}

    def test_offer_margins_in_euro(self, make_offer, robot_pricing):
        offer = make_offer(currency=Offer.Currency.EUR)
        offer.items.create(robot_model="BellaBot", quantity=1, unit_price=Decimal("20.00"))
        report = async_to_sync(PipelineAnalyticsService().compute_margins)(offer_ids=[offer.pk])
        assert report.total == Decimal("6.00")

    def test_most_recent_pricing_wins(self, make_offer, robot_pricing):
        newer = RobotPricing.objects.create(robot_model="BellaBot", evidence_price_pln_net=Decimal("90.00"))
        RobotPricing.objects.filter(pk=newer.pk).update(created_at=robot_pricing.created_at + timedelta(days=1))
        offer = make_offer()
        offer.items.create(robot_model="BellaBot", quantity=1, unit_price=Decimal("100.00"))

        report = async_to_sync(PipelineAnalyticsService().compute_margins)(offer_ids=[offer.pk])
        assert report.total == Decimal("10.00")

    def test_leaderboard(self, make_offer, sales_user, manager_user, service_user, customer):
        make_offer(stage=Offer.Stage.CLOSED_WON, total_price=Decimal("300000.00"))
        make_offer(stage=Offer.Stage.CLOSED_WON, total_price=Decimal("500000.00"), created_by=manager_user)
        Task.objects.create(
            title="Demo",
            assigned_to=sales_user,
            status=Task.Status.COMPLETED,
            completed_at=timezone.now(),
        )

        board = async_to_sync(PipelineAnalyticsService().get_leaderboard)("revenue")

        assert [record.user_id for record in board.records] == [manager_user.pk, sales_user.pk]
        assert board.records[0].badge == "Top Performer"
        sales_record = board.records[1]
        assert sales_record.completed_tasks == 1
        assert sales_record.active_clients == 1
        assert "Revenue Star" in sales_record.achievements

    def test_overview(self, customer):
        Robot.objects.create(
            serial_number="SN-9",
            robot_model="BellaBot",
            client=customer,
            status=Robot.Status.DELIVERED,
            delivery_date=timezone.localdate(),
        )
        robot = Robot.objects.get(serial_number="SN-9")
        ServiceTicket.objects.create(ticket_number="T-1", robot=robot, client=customer)
        ServiceTicket.objects.create(
            ticket_number="T-2", robot=robot, client=customer, status=ServiceTicket.Status.CLOSED,
        )

        overview = async_to_sync(PipelineAnalyticsService().get_overview)()

        assert overview["deployed_robots"].value == 1
        assert overview["robots_sold_ytd"].value == 1
        assert overview["open_tickets"].value == 1
        assert overview["closed_tickets"].value == 1

    def test_lead_stats(self, make_offer):
        make_offer(total_price=Decimal("100.00"), next_action_date=timezone.localdate() - timedelta(days=2))
        make_offer(total_price=Decimal("50.00"))
        make_offer(stage=Offer.Stage.QUALIFIED, total_price=Decimal("999.00"))

        stats = async_to_sync(PipelineAnalyticsService().get_lead_stats)()

        assert stats.total_leads == 2
        assert stats.total_value == Decimal("150.00")
        assert stats.created_this_month == 2
        assert stats.overdue_follow_ups == 1
