"""Tests for the performance goals API and model validation."""
from datetime import date
from decimal import Decimal

import pytest
from django.core.exceptions import ValidationError
from django.urls import reverse

from objectives.models import PerformanceGoal
from objectives.objective_serializers import PerformanceGoalSerializer


def _goal(**kwargs):
    defaults = {
        "title": "Q1 revenue",
        "goal_type": PerformanceGoal.GoalType.REVENUE,
        "target_value": Decimal("200000.00"),
        "current_value": Decimal("50000.00"),
        "period_type": PerformanceGoal.PeriodType.QUARTERLY,
        "start_date": date(2026, 1, 1),
        "end_date": date(2026, 3, 31),
        "is_team_goal": True,
    }
    defaults.update(kwargs)
    return PerformanceGoal.objects.create(**defaults)


@pytest.mark.django_db
class TestPerformanceGoalModel:
    def test_progress_is_derived(self):
        assert _goal().progress == 25
        assert _goal(current_value=Decimal("250000.00")).progress == 100
        assert _goal(target_value=Decimal("0.00")).progress == 0

    def test_end_before_start_is_invalid(self):
        goal = PerformanceGoal(
            title="Backwards",
            goal_type=PerformanceGoal.GoalType.DEALS_WON,
            target_value=Decimal("5"),
            period_type=PerformanceGoal.PeriodType.MONTHLY,
            start_date=date(2026, 3, 31),
            end_date=date(2026, 3, 1),
            is_team_goal=True,
        )
        with pytest.raises(ValidationError):
            goal.full_clean()

    def test_individual_goal_needs_user(self):
        goal = PerformanceGoal(
            title="Mine",
            goal_type=PerformanceGoal.GoalType.DEALS_WON,
            target_value=Decimal("5"),
            period_type=PerformanceGoal.PeriodType.MONTHLY,
            start_date=date(2026, 3, 1),
            end_date=date(2026, 3, 31),
        )
        with pytest.raises(ValidationError):
            goal.full_clean()


@pytest.mark.django_db
class TestPerformanceGoalSerializer:
    def test_rejects_reversed_dates(self):
        serializer = PerformanceGoalSerializer(data={
            "title": "Backwards",
            "goal_type": "deals_won",
            "target_value": "5",
            "period_type": "monthly",
            "start_date": "2026-03-31",
            "end_date": "2026-03-01",
            "is_team_goal": True,
        })
        assert not serializer.is_valid()
        assert "end_date" in serializer.errors

    def test_assigned_user_name(self, sales_user):
        data = PerformanceGoalSerializer(_goal(is_team_goal=False, assigned_user=sales_user)).data
        assert data["assigned_user_name"] == "Sales User"
        assert data["progress"] == 25


@pytest.mark.django_db
class TestPerformanceGoalAPI:
    def test_list_includes_progress(self, manager_client):
        _goal()
        response = manager_client.get(reverse("goal-list"))

        assert response.status_code == 200
        assert response.data["count"] == 1
        assert response.data["results"][0]["progress"] == 25

    def test_sales_sees_team_goals_and_own_goals(self, sales_client, sales_user, service_user):
        team = _goal(title="Team")
        own = _goal(title="Own", is_team_goal=False, assigned_user=sales_user)
        _goal(title="Someone else", is_team_goal=False, assigned_user=service_user)

        response = sales_client.get(reverse("goal-list"))

        assert response.status_code == 200
        assert {row["id"] for row in response.data["results"]} == {str(team.pk), str(own.pk)}

    def test_manager_sees_every_goal(self, manager_client, service_user):
        _goal(title="Team")
        _goal(title="Someone else", is_team_goal=False, assigned_user=service_user)
        response = manager_client.get(reverse("goal-list"))
        assert response.data["count"] == 2

    def test_filter_by_status(self, manager_client):
        _goal(title="Done", status=PerformanceGoal.Status.COMPLETED)
        _goal(title="Open")
        response = manager_client.get(reverse("goal-list"), {"status": "completed"})
        assert [row["title"] for row in response.data["results"]] == ["Done"]

    def test_manager_can_create(self, manager_client, sales_user):
        payload = {
            "title": "March deals",
            "goal_type": "deals_won",
            "target_value": "8",
            "current_value": "1",
            "period_type": "monthly",
            "start_date": "2026-03-01",
            "end_date": "2026-03-31",
            "is_team_goal": False,
            "assigned_user": str(sales_user.pk),
        }
        response = manager_client.post(reverse("goal-list"), payload, format="json")

        assert response.status_code == 201, response.data
        assert response.data["progress"] == 13
        assert PerformanceGoal.objects.get().assigned_user == sales_user

    def test_sales_cannot_write(self, sales_client):
        goal = _goal()
        create = sales_client.post(reverse("goal-list"), {"title": "Nope"}, format="json")
        update = sales_client.patch(reverse("goal-detail", args=[goal.pk]), {"current_value": "1"}, format="json")

        assert create.status_code == 403
        assert update.status_code == 403

    def test_manager_updates_current_value(self, manager_client):
        goal = _goal()
        response = manager_client.patch(
            reverse("goal-detail", args=[goal.pk]), {"current_value": "100000.00"}, format="json",
        )
        assert response.status_code == 200
        assert response.data["progress"] == 50
