"""Models for the performance goals module."""
from __future__ import annotations

from decimal import Decimal

from django.conf import settings
from django.core.exceptions import ValidationError
from django.core.validators import MinValueValidator
from django.db import models

from core.models import TimeStampedModel


class PerformanceGoal(TimeStampedModel):
    """Target set by a manager for a salesperson or the whole team.

    ``current_value`` is maintained outside this module; progress is never
    stored, only derived on read.
    """

    class GoalType(models.TextChoices):
        REVENUE = "revenue", "Total revenue"
        DEALS_WON = "deals_won", "Deals won"
        CONVERSION_RATE = "conversion_rate", "Conversion rate"
        TASKS_COMPLETED = "tasks_completed", "Tasks completed"
        CLIENTS_ACQUIRED = "clients_acquired", "Clients acquired"
        AVERAGE_DEAL_SIZE = "average_deal_size", "Average deal size"

    class PeriodType(models.TextChoices):
        WEEKLY = "weekly", "Weekly"
        MONTHLY = "monthly", "Monthly"
        QUARTERLY = "quarterly", "Quarterly"
        YEARLY = "yearly", "Yearly"

    class Status(models.TextChoices):
        ACTIVE = "active", "Active"
        COMPLETED = "completed", "Completed"
        CANCELLED = "cancelled", "Cancelled"

    title = models.CharField("title", max_length=255)
    description = models.TextField("description", blank=True, default="")
    goal_type = models.CharField("goal type", max_length=30, choices=GoalType.choices)
    target_value = models.DecimalField(
        "target value",
        max_digits=14,
        decimal_places=2,
        validators=[MinValueValidator(Decimal("0.00"))],
    )
    current_value = models.DecimalField(
        "current value",
        max_digits=14,
        decimal_places=2,
        default=Decimal("0.00"),
    )
    period_type = models.CharField("period type", max_length=20, choices=PeriodType.choices)
    start_date = models.DateField("start date")
    end_date = models.DateField("end date")
    is_team_goal = models.BooleanField("team goal", default=False)
    assigned_user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        null=True,
        blank=True,
        on_delete=models.CASCADE,
        related_name="performance_goals",
        verbose_name="assigned user",
    )
    status = models.CharField(
        "status",
        max_length=20,
        choices=Status.choices,
        default=Status.ACTIVE,
        db_index=True,
    )

    class Meta:
        verbose_name = "performance goal"
        verbose_name_plural = "performance goals"
        ordering = ["-created_at"]

    def __str__(self) -> str:
        return self.title

    def clean(self) -> None:
        if self.start_date and self.end_date and self.end_date < self.start_date:
            raise ValidationError("The end date must not precede the start date.")
        if not self.is_team_goal and not self.assigned_user_id:
            raise ValidationError({"assigned_user": "Individual goals need an assigned user."})

    @property
    def progress(self) -> int:
        from analytics.goals import goal_progress

        return goal_progress(self.current_value, self.target_value)
