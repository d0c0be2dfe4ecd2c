"""Program notifications: owner broadcasts and the customer feed.

Read state is a single timestamp per customer (last_notification_read_at).
Marking as read covers every notification created up to that moment.
"""

import logging
from datetime import datetime

from django.utils import timezone

from clubman.conf import clubman_settings
from clubman.exceptions import ClubmanError
from clubman.models import Customer, Notification, Program
from clubman.signals import notification_sent

logger = logging.getLogger(__name__)


def send(program_id: int, title: str, message: str) -> Notification:
    """
    Broadcast a notification to every customer of a program.

    Raises:
        ClubmanError: PROGRAM_NOT_FOUND, NOTIFICATION_REQUIRED
    """
    title = (title or "").strip()
    message = (message or "").strip()
    if not title or not message:
        raise ClubmanError("NOTIFICATION_REQUIRED")

    if not Program.objects.filter(pk=program_id).exists():
        raise ClubmanError("PROGRAM_NOT_FOUND", program_id=program_id)

    notification = Notification.objects.create(
        program_id=program_id,
        title=title,
        message=message,
    )
    logger.info("Notification %s sent to program %s", notification.pk, program_id)
    notification_sent.send(sender=Notification, notification=notification)
    return notification


def feed(program_id: int, customer_id: int) -> dict:
    """
    Latest notifications of a program as seen by one customer.

    Returns:
        Dict with ``notifications`` (newest first, at most
        NOTIFICATION_FEED_LIMIT) and ``unread_count``. The count is not
        capped by the limit.

    Raises:
        ClubmanError: CUSTOMER_NOT_FOUND
    """
    try:
        customer = Customer.objects.get(pk=customer_id, program_id=program_id)
    except Customer.DoesNotExist:
        raise ClubmanError("CUSTOMER_NOT_FOUND", customer_id=customer_id)

    qs = Notification.objects.filter(program_id=program_id)
    latest = qs.order_by("-created_at", "-pk")[: clubman_settings.NOTIFICATION_FEED_LIMIT]

    read_at = customer.last_notification_read_at
    unread = qs.filter(created_at__gt=read_at).count() if read_at else 0

    return {
        "notifications": [
            {
                "id": n.pk,
                "title": n.title,
                "message": n.message,
                "created_at": n.created_at,
            }
            for n in latest
        ],
        "unread_count": unread,
    }


def mark_read(customer_id: int) -> datetime:
    """
    Mark every notification created so far as read.

    Raises:
        ClubmanError: CUSTOMER_NOT_FOUND
    """
    now = timezone.now()
    if not Customer.objects.filter(pk=customer_id).update(last_notification_read_at=now):
        raise ClubmanError("CUSTOMER_NOT_FOUND", customer_id=customer_id)
    return now
