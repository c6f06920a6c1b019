"""Models for the customers app."""
from django.conf import settings
from django.db import models

from core.models import TimeStampedModel


class Client(TimeStampedModel):
    """A company buying or leasing robots, owned by one salesperson."""

    class Status(models.TextChoices):
        PROSPECT = "prospect", "Prospect"
        ACTIVE = "active", "Active"
        INACTIVE = "inactive", "Inactive"

    name = models.CharField("name", max_length=255)
    nip = models.CharField("tax id", max_length=20, blank=True, default="", db_index=True)
    primary_contact_email = models.EmailField("contact e-mail", blank=True, default="")
    primary_contact_phone = models.CharField("contact phone", max_length=30, blank=True, default="")
    status = models.CharField(
        "status",
        max_length=20,
        choices=Status.choices,
        default=Status.PROSPECT,
        db_index=True,
    )
    assigned_salesperson = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="clients",
        verbose_name="salesperson",
    )

    class Meta:
        verbose_name = "client"
        verbose_name_plural = "clients"
        ordering = ["name"]
        indexes = [
            models.Index(fields=["assigned_salesperson", "status"], name="client_owner_status_idx"),
        ]

    def __str__(self):
        return self.name
