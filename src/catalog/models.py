"""Models for the catalog app (robot pricing tiers and robot units)."""
from decimal import Decimal

from django.core.exceptions import ValidationError
from django.core.validators import MinValueValidator
from django.db import models

from core.models import TimeStampedModel


def _price_field(label, *, null=False):
    return models.DecimalField(
        label,
        max_digits=14,
        decimal_places=2,
        null=null,
        blank=null,
        default=None if null else Decimal("0.00"),
        validators=[MinValueValidator(Decimal("0.00"))],
    )


# ---------------------------------------------------------------------------
# Purchase tier
# ---------------------------------------------------------------------------

class RobotPricing(TimeStampedModel):
    """Purchase price list for one robot model.

    ``evidence_price_*`` is the internal cost basis used for margin
    computation; it is never shown to clients. Several rows may exist for the
    same model (re-imports); the most recently created one wins.
    """

    robot_model = models.CharField("robot model", max_length=120, db_index=True)
    sale_price_pln_net = _price_field("sale price PLN (net)")
    sale_price_usd_net = _price_field("sale price USD (net)")
    sale_price_eur_net = _price_field("sale price EUR (net)")
    promo_price_pln_net = _price_field("promo price PLN (net)", null=True)
    promo_price_usd_net = _price_field("promo price USD (net)", null=True)
    promo_price_eur_net = _price_field("promo price EUR (net)", null=True)
    lowest_price_pln_net = _price_field("lowest price PLN (net)", null=True)
    lowest_price_usd_net = _price_field("lowest price USD (net)", null=True)
    lowest_price_eur_net = _price_field("lowest price EUR (net)", null=True)
    evidence_price_pln_net = _price_field("evidence price PLN (net)", null=True)
    evidence_price_usd_net = _price_field("evidence price USD (net)", null=True)
    evidence_price_eur_net = _price_field("evidence price EUR (net)", null=True)

    class Meta:
        verbose_name = "robot pricing"
        verbose_name_plural = "robot pricing"
        ordering = ["robot_model", "-created_at"]

    def __str__(self):
        return self.robot_model


# ---------------------------------------------------------------------------
# Lease tier
# ---------------------------------------------------------------------------

class LeasePricing(TimeStampedModel):
    """Monthly lease rate for a robot model at one tenor (``months``)."""

    robot_pricing = models.ForeignKey(
        RobotPricing,
        on_delete=models.CASCADE,
        related_name="lease_prices",
        verbose_name="robot pricing",
    )
    months = models.PositiveSmallIntegerField("lease months", validators=[MinValueValidator(1)])
    price_pln_net = _price_field("monthly price PLN (net)")
    price_usd_net = _price_field("monthly price USD (net)")
    price_eur_net = _price_field("monthly price EUR (net)")
    evidence_price_pln_net = _price_field("monthly evidence price PLN (net)", null=True)
    evidence_price_usd_net = _price_field("monthly evidence price USD (net)", null=True)
    evidence_price_eur_net = _price_field("monthly evidence price EUR (net)", null=True)

    class Meta:
        verbose_name = "lease pricing"
        verbose_name_plural = "lease pricing"
        ordering = ["robot_pricing", "months"]
        constraints = [
            models.UniqueConstraint(
                fields=["robot_pricing", "months"],
                name="uniq_lease_pricing_tenor",
            ),
        ]

    def __str__(self):
        return f"{self.robot_pricing.robot_model} / {self.months} months"


# ---------------------------------------------------------------------------
# Robot units
# ---------------------------------------------------------------------------

class Robot(TimeStampedModel):
    """A physical robot unit, sold once it is assigned to a client."""

    class Status(models.TextChoices):
        IN_WAREHOUSE = "in_warehouse", "In warehouse"
        IN_TRANSIT = "in_transit", "In transit"
        DELIVERED = "delivered", "Delivered"
        IN_SERVICE = "in_service", "In service"

    serial_number = models.CharField("serial number", max_length=80, unique=True)
    robot_model = models.CharField("robot model", max_length=120, db_index=True)
    client = models.ForeignKey(
        "customers.Client",
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="robots",
        verbose_name="client",
    )
    status = models.CharField(
        "status",
        max_length=20,
        choices=Status.choices,
        default=Status.IN_WAREHOUSE,
        db_index=True,
    )
    delivery_date = models.DateField("delivery date", null=True, blank=True, db_index=True)

    class Meta:
        verbose_name = "robot"
        verbose_name_plural = "robots"
        ordering = ["serial_number"]

    def __str__(self):
        return f"{self.robot_model} #{self.serial_number}"

    def clean(self):
        if self.status == self.Status.DELIVERED and not self.client_id:
            raise ValidationError({"client": "A delivered robot must be assigned to a client."})

