"""
Notification service used by the booking, payment and listing flows.
"""
import logging
from typing import Optional

from .models import Notification

logger = logging.getLogger(__name__)


def notify(
    user,
    type: str = Notification.Type.SYSTEM,
    title: str = "",
    message: str = "",
    related_id=None,
    important: bool = False
) -> Optional[Notification]:
    """
    Create an in-app notification for a user.

    Args:
        user: Recipient
        type: Notification type (booking_created, payment_received, etc.)
        title: Short headline
        message: Body text
        related_id: Id of the object the notification is about
        important: Highlight in the client

    Returns:
        Notification instance or None if creation failed
    """
    if user is None:
        return None

    try:
        notification = Notification.objects.create(
            user=user,
            type=type,
            title=title or Notification.Type(type).label,
            message=message,
            related_id=str(related_id) if related_id else '',
            important=important
        )
        logger.info(f"Notification {notification.type} sent to {user.email}")
        return notification

    except Exception as e:
        logger.exception(f"Failed to create notification for {user.email}: {e}")
        return None
