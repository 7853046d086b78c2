"""Transactional email rendering and delivery."""

import logging

from django.conf import settings
from django.core.mail import send_mail
from django.template.loader import render_to_string

logger = logging.getLogger(__name__)


def send_templated_email(*, to: str, subject: str, template: str, context: dict) -> bool:
    """
    Render ``notifications/emails/<template>.txt`` and send it.

    Delivery failures are logged and reported through the return value so
    callers running after commit never break the request that triggered them.

    Args:
        to: Recipient address
        subject: Subject line
        template: Template base name
        context: Template context

    Returns:
        True if the backend accepted the message
    """
    body = render_to_string(f'notifications/emails/{template}.txt', context)
    try:
        sent = send_mail(
            subject=subject,
            message=body,
            from_email=settings.DEFAULT_FROM_EMAIL,
            recipient_list=[to],
        )
    except Exception:
        logger.exception("Failed to send '%s' email to %s", template, to)
        return False

    logger.info("Sent '%s' email to %s", template, to)
    return bool(sent)
