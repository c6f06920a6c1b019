"""Email utilities for sending branded HTML emails with plain-text fallback."""

from __future__ import annotations

import logging
from typing import Sequence

from django.conf import settings
from django.core.mail import EmailMultiAlternatives
from django.template.loader import render_to_string

logger = logging.getLogger("salesops")


def frontend_url(path: str) -> str:
    """Join *path* onto ``settings.FRONTEND_URL`` for links inside emails."""
    base = getattr(settings, "FRONTEND_URL", "").rstrip("/")
    return f"{base}/{path.lstrip('/')}"


def send_branded_email(
    *,
    subject: str,
    template_name: str,
    context: dict,
    recipient_list: Sequence[str],
    from_email: str | None = None,
    fail_silently: bool = False,
) -> int:
    """Render ``<template_name>.txt`` / ``.html`` and send them as one message.

    Returns the number of emails sent (0 or 1). Empty recipient lists are
    skipped without touching the mail backend.
    """
    recipients = [address for address in recipient_list if address]
    if not recipients:
        logger.debug("Email %r skipped: no recipients.", subject)
        return 0

    sender = from_email or getattr(settings, "DEFAULT_FROM_EMAIL", None)
    context = {"frontend_url": getattr(settings, "FRONTEND_URL", ""), **context}

    text_body = render_to_string(f"{template_name}.txt", context).strip()
    html_body = render_to_string(f"{template_name}.html", context)

    msg = EmailMultiAlternatives(
        subject=subject,
        body=text_body,
        from_email=sender,
        to=recipients,
    )
    msg.attach_alternative(html_body, "text/html")
    sent = msg.send(fail_silently=fail_silently)
    logger.info("Email %r sent to %s (sent=%d).", subject, ", ".join(recipients), sent)
    return sent
