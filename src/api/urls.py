"""Main API URL router for /api/v1/."""
from django.urls import include, path
from rest_framework.routers import DefaultRouter

from api.v1 import analytics_views
from objectives import objective_views

router = DefaultRouter()
router.register(r"goals", objective_views.PerformanceGoalViewSet, basename="goal")

analytics_urlpatterns = [
    path("funnel/", analytics_views.FunnelAPIView.as_view(), name="analytics-funnel"),
    path("kpis/", analytics_views.KpiAPIView.as_view(), name="analytics-kpis"),
    path("time-series/", analytics_views.TimeSeriesAPIView.as_view(), name="analytics-time-series"),
    path("overview/", analytics_views.OverviewAPIView.as_view(), name="analytics-overview"),
    path("leads/", analytics_views.LeadStatsAPIView.as_view(), name="analytics-leads"),
    path("margins/", analytics_views.MarginsAPIView.as_view(), name="analytics-margins"),
    path(
        "offers/<uuid:offer_id>/margins/",
        analytics_views.OfferMarginsAPIView.as_view(),
        name="analytics-offer-margins",
    ),
    path("leaderboard/", analytics_views.LeaderboardAPIView.as_view(), name="analytics-leaderboard"),
    path("goal-progress/", analytics_views.GoalProgressAPIView.as_view(), name="analytics-goal-progress"),
    path("", include(router.urls)),
]

urlpatterns = [
    path("analytics/", include(analytics_urlpatterns)),
]
