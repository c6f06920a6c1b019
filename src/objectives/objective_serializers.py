"""DRF serializers for the performance goals module."""
from __future__ import annotations

from rest_framework import serializers

from objectives.models import PerformanceGoal


class PerformanceGoalSerializer(serializers.ModelSerializer):
    progress = serializers.IntegerField(read_only=True)
    assigned_user_name = serializers.SerializerMethodField()

    class Meta:
        model = PerformanceGoal
        fields = [
            "id", "title", "description", "goal_type", "target_value",
            "current_value", "period_type", "start_date", "end_date",
            "is_team_goal", "assigned_user", "assigned_user_name", "status",
            "progress", "created_at", "updated_at",
        ]
        read_only_fields = ["id", "progress", "created_at", "updated_at"]

    def get_assigned_user_name(self, obj):
        if obj.assigned_user_id is None:
            return None
        return obj.assigned_user.get_full_name() or obj.assigned_user.email

    def validate(self, attrs):
        start = attrs.get("start_date", getattr(self.instance, "start_date", None))
        end = attrs.get("end_date", getattr(self.instance, "end_date", None))
        if start and end and end < start:
            raise serializers.ValidationError({"end_date": "The end date must not precede the start date."})

        is_team_goal = attrs.get("is_team_goal", getattr(self.instance, "is_team_goal", False))
        assigned_user = attrs.get("assigned_user", getattr(self.instance, "assigned_user", None))
        if not is_team_goal and assigned_user is None:
            raise serializers.ValidationError({"assigned_user": "Individual goals need an assigned user."})
        return attrs
