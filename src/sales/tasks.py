"""Celery tasks for the sales app."""
import logging
from collections import defaultdict
from datetime import timedelta

from celery import shared_task
from django.conf import settings
from django.utils import timezone

logger = logging.getLogger("salesops")


def collect_lead_reminders(today=None, horizon_days=None):
    """Group open leads whose next action is overdue or due soon, per owner.

    Returns ``{owner: {"overdue": [...], "due_soon": [...]}}`` where both lists
    are ordered by next action date. Leads without an owner, a client or a
    next action date are skipped.
    """
    from sales.models import Offer

    today = today or timezone.localdate()
    if horizon_days is None:
        horizon_days = getattr(settings, "LEAD_REMINDER_HORIZON_DAYS", 3)
    horizon = today + timedelta(days=horizon_days)

    leads = (
        Offer.objects
        .filter(
            stage=Offer.Stage.LEADS,
            next_action_date__isnull=False,
            next_action_date__lte=horizon,
            created_by__isnull=False,
            created_by__is_active=True,
            client__isnull=False,
        )
        .exclude(lead_status__in=[Offer.LeadStatus.CLOSED_WON, Offer.LeadStatus.CLOSED_LOST])
        .select_related("created_by", "client")
        .order_by("next_action_date", "offer_number")
    )

    grouped = defaultdict(lambda: {"overdue": [], "due_soon": []})
    for lead in leads:
        bucket = "overdue" if lead.next_action_date < today else "due_soon"
        grouped[lead.created_by][bucket].append(lead)
    return dict(grouped)


@shared_task(name="sales.tasks.send_lead_reminders")
def send_lead_reminders():
    """Email each salesperson the follow-ups that are overdue or due soon.

    The horizon is ``settings.LEAD_REMINDER_HORIZON_DAYS`` (default 3). A failed
    send for one salesperson is logged and does not stop the others.
    """
    from core.email import frontend_url, send_branded_email

    today = timezone.localdate()
    reminders = collect_lead_reminders(today)
    if not reminders:
        logger.info("send_lead_reminders: no leads with upcoming follow-ups.")
        return {"emails_sent": 0, "failed": 0}

    sent = 0
    failed = 0
    for owner, buckets in reminders.items():
        overdue = buckets["overdue"]
        due_soon = buckets["due_soon"]
        try:
            sent += send_branded_email(
                subject=f"Lead follow-up reminders: {len(overdue)} overdue, {len(due_soon)} due soon",
                template_name="emails/lead_reminders",
                context={
                    "owner_name": owner.get_full_name() or owner.email,
                    "overdue": overdue,
                    "due_soon": due_soon,
                    "today": today,
                    "leads_url": frontend_url("leads"),
                },
                recipient_list=[owner.email],
            )
        except Exception as exc:
            failed += 1
            logger.warning("Lead reminder email failed for user=%s: %s", owner.pk, exc)

    logger.info("send_lead_reminders completed: %d sent, %d failed.", sent, failed)
    return {"emails_sent": sent, "failed": failed}
