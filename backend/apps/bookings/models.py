"""
Booking models - reservations of rental properties.
"""
import random
import string
import uuid
from decimal import Decimal
from django.conf import settings
from django.core.validators import MinValueValidator
from django.db import models

from apps.realestate.models import CancellationPolicy


class Booking(models.Model):
    """
    Reservation of a property for a date range.
    Nights are [start_date, end_date): the guest checks out on end_date.
    """
    class Status(models.TextChoices):
        PENDING = 'pending', 'Pending'
        CONFIRMED = 'confirmed', 'Confirmed'
        CANCELLED = 'cancelled', 'Cancelled'
        COMPLETED = 'completed', 'Completed'
        REFUNDED = 'refunded', 'Refunded'
        EXPIRED = 'expired', 'Expired'

    class PaymentStatus(models.TextChoices):
        PENDING = 'pending', 'Pending'
        PAID = 'paid', 'Paid'
        PARTIALLY_REFUNDED = 'partially_refunded', 'Partially Refunded'
        REFUNDED = 'refunded', 'Refunded'
        FAILED = 'failed', 'Failed'

    # Statuses that hold the property's dates
    ACTIVE_STATUSES = [Status.PENDING, Status.CONFIRMED]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    booking_number = models.CharField(max_length=20, unique=True)
    property = models.ForeignKey(
        'realestate.Property',
        on_delete=models.PROTECT,
        related_name='bookings'
    )
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name='bookings'
    )

    # Stay
    start_date = models.DateField()
    end_date = models.DateField()
    nights = models.PositiveIntegerField()
    guests = models.PositiveIntegerField(default=1, validators=[MinValueValidator(1)])

    # Guest information
    guest_name = models.CharField(max_length=255)
    guest_email = models.EmailField()
    guest_phone = models.CharField(max_length=20, blank=True)
    special_requests = models.TextField(blank=True)

    # Pricing
    nightly_total = models.DecimalField(max_digits=12, decimal_places=2)
    cleaning_fee = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal('0.00'))
    service_fee = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal('0.00'))
    tax_amount = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal('0.00'))
    total_amount = models.DecimalField(max_digits=12, decimal_places=2)
    currency = models.CharField(max_length=3, default='USD')

    # Status
    status = models.CharField(
        max_length=20,
        choices=Status.choices,
        default=Status.PENDING
    )
    payment_status = models.CharField(
        max_length=20,
        choices=PaymentStatus.choices,
        default=PaymentStatus.PENDING
    )

    # Policy in force when the booking was made
    cancellation_policy = models.CharField(
        max_length=20,
        choices=CancellationPolicy.choices,
        default=CancellationPolicy.STRICT
    )

    # Confirmation
    confirmed_at = models.DateTimeField(null=True, blank=True)

    # Cancellation
    cancelled_at = models.DateTimeField(null=True, blank=True)
    cancelled_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='cancelled_bookings'
    )
    cancellation_reason = models.TextField(blank=True)
    refund_percentage = models.PositiveIntegerField(null=True, blank=True)
    refund_amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))

    completed_at = models.DateTimeField(null=True, blank=True)

    # Timestamps
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'bookings'
        ordering = ['-created_at']
        verbose_name = 'Booking'
        verbose_name_plural = 'Bookings'
        indexes = [
            models.Index(fields=['property', 'status', 'start_date'], name='booking_prop_status_start_idx'),
            models.Index(fields=['user', 'status'], name='booking_user_status_idx'),
            models.Index(fields=['booking_number'], name='booking_number_idx'),
        ]

    def __str__(self):
        return f"{self.booking_number} - {self.property.title} ({self.start_date} to {self.end_date})"

    def save(self, *args, **kwargs):
        # Generate booking number if not set
        if not self.booking_number:
            self.booking_number = self._generate_booking_number()
        super().save(*args, **kwargs)

    def _generate_booking_number(self):
        """Generate a unique booking number."""
        prefix = 'BK'
        while True:
            code = prefix + ''.join(random.choices(string.ascii_uppercase + string.digits, k=8))
            if not Booking.objects.filter(booking_number=code).exists():
                return code

    def is_active(self):
        return self.status in self.ACTIVE_STATUSES

    def amount_paid(self):
        """Net amount collected for this booking (completed payments less refunds)."""
        total = Decimal('0.00')
        for payment in self.payments.filter(
            status__in=['completed', 'partially_refunded', 'refunded']
        ):
            total += payment.amount - payment.refunded_amount
        return total
