"""REST API endpoints for the pipeline analytics module."""
from datetime import date
from decimal import Decimal, InvalidOperation

from asgiref.sync import async_to_sync
from django.core.exceptions import ValidationError
from django.shortcuts import get_object_or_404
from rest_framework import status
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from analytics.exceptions import InvalidRange, MetricUnavailable
from analytics.periods import Preset, resolve_period
from analytics.services import PipelineAnalyticsService
from api.v1.permissions import IsManagerOrAdmin
from sales.models import Offer

MAX_TIME_SERIES_DAYS = 366

# Funnel-only selection: no window and no comparison period.
ALL_TIME = "all"


def _parse_date(params, name):
    value = params.get(name)
    if not value:
        return None
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise ValueError(f"{name} must be a date in YYYY-MM-DD format.") from None


def _parse_decimal(value):
    try:
        number = Decimal(str(value))
    except (InvalidOperation, TypeError, ValueError):
        number = None
    if number is None or not number.is_finite():
        raise ValueError(f"{value!r} is not a number.")
    return number


def _parse_list(value):
    if not value:
        return []
    return [part.strip() for part in value.split(",") if part.strip()]


def _requested_preset(params, default_preset=None):
    """The preset asked for, or ``custom`` when both bounds come without one."""
    if params.get("preset"):
        return params["preset"]
    if params.get("date_from") and params.get("date_to"):
        return Preset.CUSTOM
    return default_preset


def _resolve_period(request, default_preset=Preset.THIS_MONTH):
    params = request.query_params
    return resolve_period(
        _requested_preset(params, default_preset),
        date_from=_parse_date(params, "date_from"),
        date_to=_parse_date(params, "date_to"),
    )


def _bad_request(exc):
    return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)


def _unavailable(exc):
    return Response(
        {"status": "unavailable", "detail": str(exc)},
        status=status.HTTP_503_SERVICE_UNAVAILABLE,
    )


class FunnelAPIView(APIView):
    """Opportunities per pipeline stage with win rate and open pipeline value.

    ``?preset=all`` counts every opportunity regardless of creation date.
    """

    permission_classes = [IsAuthenticated]

    def get(self, request):
        all_time = request.query_params.get("preset") == ALL_TIME
        try:
            period = None if all_time else _resolve_period(request)
        except (InvalidRange, ValueError) as exc:
            return _bad_request(exc)
        try:
            report = async_to_sync(PipelineAnalyticsService().get_funnel)(
                period.current if period is not None else None
            )
        except MetricUnavailable as exc:
            return _unavailable(exc)
        period_data = period.as_dict() if period is not None else {"preset": ALL_TIME}
        return Response({"period": period_data, **report.as_dict()})


class KpiAPIView(APIView):
    """Dashboard KPIs with previous-period comparison."""

    permission_classes = [IsAuthenticated]

    def get(self, request):
        params = request.query_params
        try:
            report = async_to_sync(PipelineAnalyticsService().get_kpis)(
                _requested_preset(params, Preset.THIS_MONTH),
                date_from=_parse_date(params, "date_from"),
                date_to=_parse_date(params, "date_to"),
                metrics=_parse_list(params.get("metrics")) or None,
            )
        except (InvalidRange, ValueError) as exc:
            return _bad_request(exc)
        return Response(report.as_dict())


class TimeSeriesAPIView(APIView):
    """One bucket per day of the selected window."""

    permission_classes = [IsAuthenticated]

    def get(self, request):
        try:
            period = _resolve_period(request)
            if period.current.days > MAX_TIME_SERIES_DAYS:
                raise InvalidRange(f"Time series windows are limited to {MAX_TIME_SERIES_DAYS} days.")
            series = async_to_sync(PipelineAnalyticsService().get_time_series)(
                period.current,
                _parse_list(request.query_params.get("metrics")) or None,
            )
        except (InvalidRange, ValueError) as exc:
            return _bad_request(exc)
        return Response({
            "period": period.as_dict(),
            "metrics": list(series.metrics),
            "buckets": series.as_list(),
        })


class OverviewAPIView(APIView):
    """All-time dashboard counters."""

    permission_classes = [IsAuthenticated]

    def get(self, request):
        values = async_to_sync(PipelineAnalyticsService().get_overview)()
        return Response({name: value.as_dict() for name, value in values.items()})


class LeadStatsAPIView(APIView):
    """Totals over the lead list, optionally filtered by lead status."""

    permission_classes = [IsAuthenticated]

    def get(self, request):
        statuses = _parse_list(request.query_params.get("lead_status"))
        try:
            stats = async_to_sync(PipelineAnalyticsService().get_lead_stats)(lead_statuses=statuses or None)
        except MetricUnavailable as exc:
            return _unavailable(exc)
        return Response(stats.as_dict())


class OfferMarginsAPIView(APIView):
    """Per-line and total margin of one offer."""

    permission_classes = [IsAuthenticated]

    def get(self, request, offer_id):
        offer = get_object_or_404(Offer, pk=offer_id)
        try:
            report = async_to_sync(PipelineAnalyticsService().compute_margins)(offer_ids=[offer.pk])
        except MetricUnavailable as exc:
            return _unavailable(exc)
        return Response({"offer": str(offer.pk), "offerNumber": offer.offer_number, **report.as_dict()})


class MarginsAPIView(APIView):
    """Margins across several offers: ``?offers=<id>,<id>``."""

    permission_classes = [IsAuthenticated]

    def get(self, request):
        offer_ids = _parse_list(request.query_params.get("offers"))
        if not offer_ids:
            return _bad_request("Pass at least one offer id in ?offers=.")
        try:
            offer_ids = list(Offer.objects.filter(pk__in=offer_ids).values_list("pk", flat=True))
        except ValidationError:
            return _bad_request("Offer ids must be UUIDs.")
        try:
            report = async_to_sync(PipelineAnalyticsService().compute_margins)(offer_ids=offer_ids)
        except MetricUnavailable as exc:
            return _unavailable(exc)
        return Response(report.as_dict())


class LeaderboardAPIView(APIView):
    """Ranked team performance; managers and admins only."""

    permission_classes = [IsManagerOrAdmin]

    def get(self, request):
        params = request.query_params
        try:
            window = _resolve_period(request).current if _requested_preset(params) else None
            leaderboard = async_to_sync(PipelineAnalyticsService().get_leaderboard)(
                params.get("sort") or "revenue",
                window=window,
            )
        except MetricUnavailable as exc:
            return _unavailable(exc)
        except (InvalidRange, ValueError) as exc:
            return _bad_request(exc)
        return Response(leaderboard.as_dict())


class GoalProgressAPIView(APIView):
    """Clamped progress percentage for an arbitrary current/target pair."""

    permission_classes = [IsAuthenticated]

    def get(self, request):
        params = request.query_params
        try:
            current = _parse_decimal(params.get("current", "0"))
            target = _parse_decimal(params.get("target", "0"))
        except ValueError as exc:
            return _bad_request(exc)
        return Response({
            "current": current,
            "target": target,
            "progress": PipelineAnalyticsService.get_goal_progress(current, target),
        })
