"""
Payment models - payments for bookings and the gateway webhook log.
"""
import random
import string
import uuid
from decimal import Decimal
from django.conf import settings
from django.db import models


class Payment(models.Model):
    """
    Payment for a booking, backed by a gateway payment intent.
    """
    class Method(models.TextChoices):
        CREDIT_CARD = 'credit_card', 'Credit Card'
        DEBIT_CARD = 'debit_card', 'Debit Card'
        PAYPAL = 'paypal', 'PayPal'
        BANK_TRANSFER = 'bank_transfer', 'Bank Transfer'
        CRYPTO = 'crypto', 'Crypto'
        WALLET = 'wallet', 'Wallet'

    class Status(models.TextChoices):
        PENDING = 'pending', 'Pending'
        PROCESSING = 'processing', 'Processing'
        COMPLETED = 'completed', 'Completed'
        FAILED = 'failed', 'Failed'
        CANCELLED = 'cancelled', 'Cancelled'
        REFUNDED = 'refunded', 'Refunded'
        PARTIALLY_REFUNDED = 'partially_refunded', 'Partially Refunded'

    # Statuses that still hold collected money
    COLLECTED_STATUSES = [Status.COMPLETED, Status.PARTIALLY_REFUNDED]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    payment_number = models.CharField(max_length=20, unique=True)
    booking = models.ForeignKey(
        'bookings.Booking',
        on_delete=models.PROTECT,
        related_name='payments'
    )
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name='payments'
    )

    amount = models.DecimalField(max_digits=12, decimal_places=2)
    currency = models.CharField(max_length=3, default='USD')
    payment_method = models.CharField(
        max_length=20,
        choices=Method.choices,
        default=Method.CREDIT_CARD
    )

    # Gateway
    gateway = models.CharField(max_length=20, default='stripe')
    gateway_payment_id = models.CharField(max_length=255, blank=True, db_index=True)
    client_secret = models.CharField(max_length=255, blank=True)

    status = models.CharField(
        max_length=20,
        choices=Status.choices,
        default=Status.PENDING
    )
    refunded_amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    failure_reason = models.TextField(blank=True)

    completed_at = models.DateTimeField(null=True, blank=True)
    refunded_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'payments'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['booking', 'status'], name='payment_booking_status_idx'),
            models.Index(fields=['user', 'status'], name='payment_user_status_idx'),
        ]

    def __str__(self):
        return f"{self.payment_number} - {self.amount} {self.currency} ({self.status})"

    def save(self, *args, **kwargs):
        # Generate payment number if not set
        if not self.payment_number:
            self.payment_number = self._generate_payment_number()
        super().save(*args, **kwargs)

    def _generate_payment_number(self):
        """Generate a unique payment number."""
        prefix = 'PAY'
        while True:
            code = prefix + ''.join(random.choices(string.ascii_uppercase + string.digits, k=8))
            if not Payment.objects.filter(payment_number=code).exists():
                return code

    @property
    def refundable_amount(self):
        if self.status not in self.COLLECTED_STATUSES:
            return Decimal('0.00')
        return self.amount - self.refunded_amount


class PaymentWebhookLog(models.Model):
    """
    Log of incoming payment gateway webhook events.
    """
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    event_id = models.CharField(max_length=255, blank=True, db_index=True)
    event_type = models.CharField(max_length=100, blank=True)

    # Payload
    headers = models.JSONField(default=dict)
    payload = models.JSONField(default=dict)

    # Processing status
    is_processed = models.BooleanField(default=False)
    error_message = models.TextField(blank=True)

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'payment_webhook_logs'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['event_type', 'created_at'], name='webhook_type_created_idx'),
        ]

    def __str__(self):
        return f"{self.event_type} ({self.event_id})"
