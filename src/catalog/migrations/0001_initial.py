import uuid
from decimal import Decimal

import django.core.validators
import django.db.models.deletion
import django.utils.timezone
from django.db import migrations, models


def price(label, null=False):
    return models.DecimalField(
        blank=null,
        decimal_places=2,
        default=None if null else Decimal("0.00"),
        max_digits=14,
        null=null,
        validators=[django.core.validators.MinValueValidator(Decimal("0.00"))],
        verbose_name=label,
    )


def timestamps():
    return [
        ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
        (
            "created_at",
            models.DateTimeField(db_index=True, default=django.utils.timezone.now, verbose_name="created at"),
        ),
        ("updated_at", models.DateTimeField(auto_now=True, verbose_name="updated at")),
    ]


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("customers", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="RobotPricing",
            fields=timestamps() + [
                ("robot_model", models.CharField(db_index=True, max_length=120, verbose_name="robot model")),
                ("sale_price_pln_net", price("sale price PLN (net)")),
                ("sale_price_usd_net", price("sale price USD (net)")),
                ("sale_price_eur_net", price("sale price EUR (net)")),
                ("promo_price_pln_net", price("promo price PLN (net)", null=True)),
                ("promo_price_usd_net", price("promo price USD (net)", null=True)),
                ("promo_price_eur_net", price("promo price EUR (net)", null=True)),
                ("lowest_price_pln_net", price("lowest price PLN (net)", null=True)),
                ("lowest_price_usd_net", price("lowest price USD (net)", null=True)),
                ("lowest_price_eur_net", price("lowest price EUR (net)", null=True)),
                ("evidence_price_pln_net", price("evidence price PLN (net)", null=True)),
                ("evidence_price_usd_net", price("evidence price USD (net)", null=True)),
                ("evidence_price_eur_net", price("evidence price EUR (net)", null=True)),
            ],
            options={
                "verbose_name": "robot pricing",
                "verbose_name_plural": "robot pricing",
                "ordering": ["robot_model", "-created_at"],
            },
        ),
        migrations.CreateModel(
            name="LeasePricing",
            fields=timestamps() + [
                (
                    "months",
                    models.PositiveSmallIntegerField(
                        validators=[django.core.validators.MinValueValidator(1)],
                        verbose_name="lease months",
                    ),
                ),
                ("price_pln_net", price("monthly price PLN (net)")),
                ("price_usd_net", price("monthly price USD (net)")),
                ("price_eur_net", price("monthly price EUR (net)")),
                ("evidence_price_pln_net", price("monthly evidence price PLN (net)", null=True)),
                ("evidence_price_usd_net", price("monthly evidence price USD (net)", null=True)),
                ("evidence_price_eur_net", price("monthly evidence price EUR (net)", null=True)),
                (
                    "robot_pricing",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="lease_prices",
                        to="catalog.robotpricing",
                        verbose_name="robot pricing",
                    ),
                ),
            ],
            options={
                "verbose_name": "lease pricing",
                "verbose_name_plural": "lease pricing",
                "ordering": ["robot_pricing", "months"],
                "constraints": [
                    models.UniqueConstraint(fields=("robot_pricing", "months"), name="uniq_lease_pricing_tenor"),
                ],
            },
        ),
        migrations.CreateModel(
            name="Robot",
            fields=timestamps() + [
                ("serial_number", models.CharField(max_length=80, unique=True, verbose_name="serial number")),
                ("robot_model", models.CharField(db_index=True, max_length=120, verbose_name="robot model")),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("in_warehouse", "In warehouse"),
                            ("in_transit", "In transit"),
                            ("delivered", "Delivered"),
                            ("in_service", "In service"),
                        ],
                        db_index=True,
                        default="in_warehouse",
                        max_length=20,
                        verbose_name="status",
                    ),
                ),
                ("delivery_date", models.DateField(blank=True, db_index=True, null=True, verbose_name="delivery date")),
                (
                    "client",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="robots",
                        to="customers.client",
                        verbose_name="client",
                    ),
                ),
            ],
            options={
                "verbose_name": "robot",
                "verbose_name_plural": "robots",
                "ordering": ["serial_number"],
            },
        ),
    ]
