from datetime import date, datetime, timezone as dt_timezone

from django.db.models import Q

from analytics.predicates import And, Eq, In, IsNull, Range
from sales.models import Offer
from catalog.models import Robot


def test_eq_and_in_match_records():
    record = {"stage": "closed_won", "currency": "PLN"}
    assert Eq("stage", "closed_won").matches(record)
    assert not Eq("stage", "leads").matches(record)
    assert In("currency", ["PLN", "EUR"]).matches(record)
    assert not In("currency", ("USD",)).matches(record)


def test_is_null():
    assert IsNull("client").matches({"client": None})
    assert IsNull("client").matches({})
    assert IsNull("client", False).matches({"client": 7})
    assert IsNull("client", False).to_q() == Q(client__isnull=False)


def test_range_bounds():
    inclusive = Range("day", date(2026, 3, 1), date(2026, 3, 31))
    exclusive = Range("day", date(2026, 3, 1), date(2026, 3, 31), end_inclusive=False)

    assert inclusive.matches({"day": date(2026, 3, 1)})
    assert inclusive.matches({"day": date(2026, 3, 31)})
    assert not exclusive.matches({"day": date(2026, 3, 31)})
    assert not inclusive.matches({"day": date(2026, 4, 1)})
    assert not inclusive.matches({"day": None})


def test_open_ended_range():
    assert Range("day", start=date(2026, 3, 1)).matches({"day": date(2030, 1, 1)})
    assert Range("day", end=date(2026, 3, 1)).matches({"day": date(2020, 1, 1)})


def test_date_bounds_compare_datetimes_on_local_calendar_day(settings):
    settings.TIME_ZONE = "Europe/Warsaw"
    predicate = Range("created_at", date(2026, 3, 1), date(2026, 3, 31))
    # 31 March 23:30 UTC is 1 April in Warsaw.
    late = datetime(2026, 3, 31, 23, 30, tzinfo=dt_timezone.utc)
    early = datetime(2026, 3, 31, 12, 0, tzinfo=dt_timezone.utc)
    assert not predicate.matches({"created_at": late})
    assert predicate.matches({"created_at": early})


def test_date_range_on_datetime_field_renders_date_lookup():
    q = Range("created_at", date(2026, 3, 1), date(2026, 3, 31)).to_q(Offer)
    assert q == Q(created_at__date__gte=date(2026, 3, 1)) & Q(created_at__date__lte=date(2026, 3, 31))


def test_date_range_on_date_field_renders_plain_lookup():
    q = Range("delivery_date", date(2026, 3, 1), date(2026, 3, 31), end_inclusive=False).to_q(Robot)
    assert q == Q(delivery_date__gte=date(2026, 3, 1)) & Q(delivery_date__lt=date(2026, 3, 31))


def test_conjunction_flattens_and_skips_none():
    combined = Eq("stage", "leads") & In("currency", ["PLN"]) & Range("day", start=date(2026, 1, 1))
    assert isinstance(combined, And)
    assert len(combined.parts) == 3
    assert And.of(None, Eq("a", 1)).parts == (Eq("a", 1),)

    record = {"stage": "leads", "currency": "PLN", "day": date(2026, 2, 1)}
    assert combined.matches(record)
    assert not combined.matches({**record, "currency": "USD"})


def test_empty_conjunction_matches_everything():
    assert And().matches({})
    assert And().to_q() == Q()
