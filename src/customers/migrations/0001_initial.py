import uuid

import django.db.models.deletion
import django.utils.timezone
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Client",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                (
                    "created_at",
                    models.DateTimeField(db_index=True, default=django.utils.timezone.now, verbose_name="created at"),
                ),
                ("updated_at", models.DateTimeField(auto_now=True, verbose_name="updated at")),
                ("name", models.CharField(max_length=255, verbose_name="name")),
                ("nip", models.CharField(blank=True, db_index=True, default="", max_length=20, verbose_name="tax id")),
                (
                    "primary_contact_email",
                    models.EmailField(blank=True, default="", max_length=254, verbose_name="contact e-mail"),
                ),
                (
                    "primary_contact_phone",
                    models.CharField(blank=True, default="", max_length=30, verbose_name="contact phone"),
                ),
                (
                    "status",
                    models.CharField(
                        choices=[("prospect", "Prospect"), ("active", "Active"), ("inactive", "Inactive")],
                        db_index=True,
                        default="prospect",
                        max_length=20,
                        verbose_name="status",
                    ),
                ),
                (
                    "assigned_salesperson",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="clients",
                        to=settings.AUTH_USER_MODEL,
                        verbose_name="salesperson",
                    ),
                ),
            ],
            options={
                "verbose_name": "client",
                "verbose_name_plural": "clients",
                "ordering": ["name"],
                "indexes": [
                    models.Index(fields=["assigned_salesperson", "status"], name="client_owner_status_idx"),
                ],
            },
        ),
    ]
