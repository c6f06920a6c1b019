"""API views for the performance goals module."""
from __future__ import annotations

import logging

from django.db.models import Q
from django_filters.rest_framework import DjangoFilterBackend
from rest_framework import filters, viewsets

from api.v1.permissions import IsManagerOrAdminForWrites
from objectives.models import PerformanceGoal
from objectives.objective_serializers import PerformanceGoalSerializer

logger = logging.getLogger(__name__)


class PerformanceGoalViewSet(viewsets.ModelViewSet):
    """Goals with their computed progress.

    Managers and admins see and edit every goal. Other users see team goals
    and the goals assigned to them.
    """

    serializer_class = PerformanceGoalSerializer
    permission_classes = [IsManagerOrAdminForWrites]
    filter_backends = [DjangoFilterBackend, filters.OrderingFilter]
    filterset_fields = ["status", "goal_type", "period_type", "is_team_goal", "assigned_user"]
    ordering_fields = ["end_date", "start_date", "created_at"]

    def get_queryset(self):
        qs = PerformanceGoal.objects.select_related("assigned_user")
        user = self.request.user
        if getattr(user, "can_view_team_analytics", False):
            return qs
        return qs.filter(Q(is_team_goal=True) | Q(assigned_user=user))

    def perform_create(self, serializer):
        goal = serializer.save()
        logger.info(
            "Performance goal created: id=%s type=%s by=%s",
            goal.pk,
            goal.goal_type,
            self.request.user.pk,
        )
