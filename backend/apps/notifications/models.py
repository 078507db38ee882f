"""
Notification models for in-app user notifications.
"""
import uuid
from django.conf import settings
from django.db import models


class Notification(models.Model):
    """
    In-app notification for a single user.
    """
    class Type(models.TextChoices):
        BOOKING_CREATED = 'booking_created', 'Booking Created'
        BOOKING_CONFIRMED = 'booking_confirmed', 'Booking Confirmed'
        BOOKING_CANCELLED = 'booking_cancelled', 'Booking Cancelled'
        BOOKING_COMPLETED = 'booking_completed', 'Booking Completed'
        PAYMENT_RECEIVED = 'payment_received', 'Payment Received'
        PAYMENT_FAILED = 'payment_failed', 'Payment Failed'
        REFUND_ISSUED = 'refund_issued', 'Refund Issued'
        INQUIRY_RECEIVED = 'inquiry_received', 'Inquiry Received'
        INQUIRY_RESPONDED = 'inquiry_responded', 'Inquiry Responded'
        AGENT_VERIFIED = 'agent_verified', 'Agent Verified'
        SYSTEM = 'system', 'System'

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='notifications'
    )
    type = models.CharField(
        max_length=30,
        choices=Type.choices,
        default=Type.SYSTEM
    )
    title = models.CharField(max_length=255)
    message = models.TextField()

    # Id of the booking/payment/inquiry this is about
    related_id = models.CharField(max_length=64, blank=True)

    read = models.BooleanField(default=False)
    important = models.BooleanField(default=False)
    read_at = models.DateTimeField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'notifications'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['user', 'read'], name='notif_user_read_idx'),
            models.Index(fields=['user', '-created_at'], name='notif_user_created_idx'),
        ]

    def __str__(self):
        return f"{self.get_type_display()} for {self.user.email}: {self.title}"
