import uuid
from decimal import Decimal

import django.core.validators
import django.db.models.deletion
import django.utils.timezone
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("customers", "0001_initial"),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Offer",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                (
                    "created_at",
                    models.DateTimeField(db_index=True, default=django.utils.timezone.now, verbose_name="created at"),
                ),
                ("updated_at", models.DateTimeField(auto_now=True, verbose_name="updated at")),
                ("offer_number", models.CharField(max_length=40, unique=True, verbose_name="offer number")),
                (
                    "stage",
                    models.CharField(
                        choices=[
                            ("leads", "Leads"),
                            ("qualified", "Qualified"),
                            ("proposal_sent", "Proposal sent"),
                            ("negotiation", "In negotiation"),
                            ("closed_won", "Closed won"),
                            ("closed_lost", "Closed lost"),
                        ],
                        db_index=True,
                        default="leads",
                        max_length=20,
                        verbose_name="stage",
                    ),
                ),
                (
                    "total_price",
                    models.DecimalField(
                        blank=True, decimal_places=2, max_digits=14, null=True, verbose_name="total price",
                    ),
                ),
                (
                    "currency",
                    models.CharField(
                        choices=[("PLN", "PLN"), ("USD", "USD"), ("EUR", "EUR")],
                        default="PLN",
                        max_length=3,
                        verbose_name="currency",
                    ),
                ),
                (
                    "lead_status",
                    models.CharField(
                        choices=[
                            ("new", "New"),
                            ("contacted", "Contacted"),
                            ("qualified", "Qualified"),
                            ("nurturing", "Nurturing"),
                            ("follow_up_scheduled", "Follow-up scheduled"),
                            ("closed_won", "Closed won"),
                            ("closed_lost", "Closed lost"),
                        ],
                        db_index=True,
                        default="new",
                        max_length=30,
                        verbose_name="lead status",
                    ),
                ),
                (
                    "person_contact",
                    models.CharField(blank=True, default="", max_length=255, verbose_name="contact person"),
                ),
                (
                    "next_action_date",
                    models.DateField(blank=True, db_index=True, null=True, verbose_name="next action date"),
                ),
                ("follow_up_notes", models.TextField(blank=True, default="", verbose_name="follow-up notes")),
                (
                    "client",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="offers",
                        to="customers.client",
                        verbose_name="client",
                    ),
                ),
                (
                    "created_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="offers",
                        to=settings.AUTH_USER_MODEL,
                        verbose_name="salesperson",
                    ),
                ),
            ],
            options={
                "verbose_name": "offer",
                "verbose_name_plural": "offers",
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(fields=["stage", "created_at"], name="offer_stage_created_idx"),
                    models.Index(fields=["created_by", "stage"], name="offer_owner_stage_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="OfferItem",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                (
                    "created_at",
                    models.DateTimeField(db_index=True, default=django.utils.timezone.now, verbose_name="created at"),
                ),
                ("updated_at", models.DateTimeField(auto_now=True, verbose_name="updated at")),
                ("robot_model", models.CharField(max_length=120, verbose_name="robot model")),
                (
                    "quantity",
                    models.PositiveIntegerField(
                        default=1,
                        validators=[django.core.validators.MinValueValidator(1)],
                        verbose_name="quantity",
                    ),
                ),
                (
                    "unit_price",
                    models.DecimalField(
                        decimal_places=2,
                        help_text="Monthly rate for lease lines.",
                        max_digits=12,
                        validators=[django.core.validators.MinValueValidator(Decimal("0.00"))],
                        verbose_name="unit price",
                    ),
                ),
                (
                    "contract_type",
                    models.CharField(
                        choices=[("purchase", "Purchase"), ("lease", "Lease")],
                        default="purchase",
                        max_length=10,
                        verbose_name="contract type",
                    ),
                ),
                ("lease_months", models.PositiveSmallIntegerField(blank=True, null=True, verbose_name="lease months")),
                (
                    "offer",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="items",
                        to="sales.offer",
                        verbose_name="offer",
                    ),
                ),
            ],
            options={
                "verbose_name": "offer item",
                "verbose_name_plural": "offer items",
                "ordering": ["created_at"],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(("quantity__gt", 0)),
                        name="offer_item_quantity_positive",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(
                            models.Q(("contract_type", "lease"), ("lease_months__isnull", False)),
                            models.Q(("contract_type", "purchase"), ("lease_months__isnull", True)),
                            _connector="OR",
                        ),
                        name="offer_item_lease_months_iff_lease",
                    ),
                ],
            },
        ),
    ]
