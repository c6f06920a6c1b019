"""Abstract base models shared by every app."""
import uuid

from django.db import models
from django.utils import timezone


class TimeStampedModel(models.Model):
    """UUID primary key plus creation / modification timestamps.

    ``created_at`` defaults to now instead of ``auto_now_add`` so imports and
    fixtures can backdate records; pipeline windows are computed on it.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    created_at = models.DateTimeField("created at", default=timezone.now, db_index=True)
    updated_at = models.DateTimeField("updated at", auto_now=True)

    class Meta:
        abstract = True
        ordering = ["-created_at"]
