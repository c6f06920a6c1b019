"""Models for the sales app (offers / opportunities and their line items)."""
from decimal import Decimal

from django.conf import settings
from django.core.exceptions import ValidationError
from django.core.validators import MinValueValidator
from django.db import models

from core.models import TimeStampedModel


# ---------------------------------------------------------------------------
# Offer (pipeline opportunity)
# ---------------------------------------------------------------------------

class Offer(TimeStampedModel):
    """A sales opportunity moving through the pipeline stages.

    Stage transitions are free-form: any stage can be reached from any
    other. ``closed_won`` and ``closed_lost`` are terminal for reporting.
    """

    class Stage(models.TextChoices):
        LEADS = "leads", "Leads"
        QUALIFIED = "qualified", "Qualified"
        PROPOSAL_SENT = "proposal_sent", "Proposal sent"
        NEGOTIATION = "negotiation", "In negotiation"
        CLOSED_WON = "closed_won", "Closed won"
        CLOSED_LOST = "closed_lost", "Closed lost"

    class LeadStatus(models.TextChoices):
        NEW = "new", "New"
        CONTACTED = "contacted", "Contacted"
        QUALIFIED = "qualified", "Qualified"
        NURTURING = "nurturing", "Nurturing"
        FOLLOW_UP_SCHEDULED = "follow_up_scheduled", "Follow-up scheduled"
        CLOSED_WON = "closed_won", "Closed won"
        CLOSED_LOST = "closed_lost", "Closed lost"

    class Currency(models.TextChoices):
        PLN = "PLN", "PLN"
        USD = "USD", "USD"
        EUR = "EUR", "EUR"

    offer_number = models.CharField("offer number", max_length=40, unique=True)
    client = models.ForeignKey(
        "customers.Client",
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="offers",
        verbose_name="client",
    )
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="offers",
        verbose_name="salesperson",
    )
    stage = models.CharField(
        "stage",
        max_length=20,
        choices=Stage.choices,
        default=Stage.LEADS,
        db_index=True,
    )
    total_price = models.DecimalField(
        "total price",
        max_digits=14,
        decimal_places=2,
        null=True,
        blank=True,
    )
    currency = models.CharField(
        "currency",
        max_length=3,
        choices=Currency.choices,
        default=Currency.PLN,
    )
    lead_status = models.CharField(
        "lead status",
        max_length=30,
        choices=LeadStatus.choices,
        default=LeadStatus.NEW,
        db_index=True,
    )
    person_contact = models.CharField("contact person", max_length=255, blank=True, default="")
    next_action_date = models.DateField("next action date", null=True, blank=True, db_index=True)
    follow_up_notes = models.TextField("follow-up notes", blank=True, default="")

    TERMINAL_STAGES = (Stage.CLOSED_WON, Stage.CLOSED_LOST)

    class Meta:
        verbose_name = "offer"
        verbose_name_plural = "offers"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["stage", "created_at"], name="offer_stage_created_idx"),
            models.Index(fields=["created_by", "stage"], name="offer_owner_stage_idx"),
        ]

    def __str__(self):
        return self.offer_number

    @property
    def is_closed(self) -> bool:
        return self.stage in self.TERMINAL_STAGES

    def recalculate_total(self):
        """Recompute ``total_price`` from the line items and save it."""
        total = Decimal("0.00")
        for item in self.items.all():
            total += item.line_total
        self.total_price = total
        self.save(update_fields=["total_price", "updated_at"])
        return total


# ---------------------------------------------------------------------------
# OfferItem
# ---------------------------------------------------------------------------

class OfferItem(TimeStampedModel):
    """One robot model line on an offer, sold outright or leased."""

    class ContractType(models.TextChoices):
        PURCHASE = "purchase", "Purchase"
        LEASE = "lease", "Lease"

    offer = models.ForeignKey(
        Offer,
        on_delete=models.CASCADE,
        related_name="items",
        verbose_name="offer",
    )
    robot_model = models.CharField("robot model", max_length=120)
    quantity = models.PositiveIntegerField(
        "quantity",
        default=1,
        validators=[MinValueValidator(1)],
    )
    unit_price = models.DecimalField(
        "unit price",
        max_digits=12,
        decimal_places=2,
        validators=[MinValueValidator(Decimal("0.00"))],
        help_text="Monthly rate for lease lines.",
    )
    contract_type = models.CharField(
        "contract type",
        max_length=10,
        choices=ContractType.choices,
        default=ContractType.PURCHASE,
    )
    lease_months = models.PositiveSmallIntegerField("lease months", null=True, blank=True)

    class Meta:
        verbose_name = "offer item"
        verbose_name_plural = "offer items"
        ordering = ["created_at"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(quantity__gt=0),
                name="offer_item_quantity_positive",
            ),
            models.CheckConstraint(
                condition=(
                    models.Q(contract_type="lease", lease_months__isnull=False)
                    | models.Q(contract_type="purchase", lease_months__isnull=True)
                ),
                name="offer_item_lease_months_iff_lease",
            ),
        ]

    def __str__(self):
        return f"{self.robot_model} x{self.quantity}"

    @property
    def line_total(self) -> Decimal:
        total = self.unit_price * self.quantity
        if self.contract_type == self.ContractType.LEASE and self.lease_months:
            total *= self.lease_months
        return total

    def clean(self):
        if self.quantity is not None and self.quantity <= 0:
            raise ValidationError({"quantity": "Quantity must be positive."})
        if self.unit_price is not None and self.unit_price < 0:
            raise ValidationError({"unit_price": "Unit price cannot be negative."})
        if self.contract_type == self.ContractType.LEASE and not self.lease_months:
            raise ValidationError({"lease_months": "A lease line needs a lease duration."})
        if self.contract_type == self.ContractType.PURCHASE and self.lease_months:
            raise ValidationError({"lease_months": "Only lease lines carry a lease duration."})
