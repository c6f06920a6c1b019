"""Models for the service app (salesperson tasks and robot service tickets)."""
from django.conf import settings
from django.db import models

from core.models import TimeStampedModel


class Task(TimeStampedModel):
    """A to-do assigned to one user, optionally tied to a client or offer."""

    class Status(models.TextChoices):
        PENDING = "pending", "Pending"
        IN_PROGRESS = "in_progress", "In progress"
        COMPLETED = "completed", "Completed"
        CANCELLED = "cancelled", "Cancelled"

    class Priority(models.TextChoices):
        LOW = "low", "Low"
        MEDIUM = "medium", "Medium"
        HIGH = "high", "High"

    title = models.CharField("title", max_length=255)
    description = models.TextField("description", blank=True, default="")
    assigned_to = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="tasks",
        verbose_name="assigned to",
    )
    client = models.ForeignKey(
        "customers.Client",
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="tasks",
        verbose_name="client",
    )
    offer = models.ForeignKey(
        "sales.Offer",
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="tasks",
        verbose_name="offer",
    )
    status = models.CharField(
        "status",
        max_length=20,
        choices=Status.choices,
        default=Status.PENDING,
        db_index=True,
    )
    priority = models.CharField("priority", max_length=10, choices=Priority.choices, default=Priority.MEDIUM)
    due_date = models.DateField("due date", null=True, blank=True)
    completed_at = models.DateTimeField("completed at", null=True, blank=True)

    class Meta:
        verbose_name = "task"
        verbose_name_plural = "tasks"
        ordering = ["status", "due_date"]
        indexes = [
            models.Index(fields=["assigned_to", "status"], name="task_assignee_status_idx"),
        ]

    def __str__(self):
        return self.title


class ServiceTicket(TimeStampedModel):
    """A support ticket raised against a delivered robot."""

    class Status(models.TextChoices):
        OPEN = "open", "Open"
        IN_PROGRESS = "in_progress", "In progress"
        RESOLVED = "resolved", "Resolved"
        CLOSED = "closed", "Closed"

    OPEN_STATUSES = (Status.OPEN, Status.IN_PROGRESS)
    CLOSED_STATUSES = (Status.RESOLVED, Status.CLOSED)

    ticket_number = models.CharField("ticket number", max_length=40, unique=True)
    robot = models.ForeignKey(
        "catalog.Robot",
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="service_tickets",
        verbose_name="robot",
    )
    client = models.ForeignKey(
        "customers.Client",
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="service_tickets",
        verbose_name="client",
    )
    status = models.CharField(
        "status",
        max_length=20,
        choices=Status.choices,
        default=Status.OPEN,
        db_index=True,
    )
    description = models.TextField("description", blank=True, default="")

    class Meta:
        verbose_name = "service ticket"
        verbose_name_plural = "service tickets"
        ordering = ["-created_at"]

    def __str__(self):
        return self.ticket_number
