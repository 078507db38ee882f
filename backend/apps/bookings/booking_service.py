"""
Booking Service - booking lifecycle for rental properties.

Creates bookings after checking availability and stay rules, confirms them
(blocking the booked nights), cancels them (refunding according to the
cancellation policy snapshotted on the booking) and completes them after
check-out. Every transition runs inside a transaction on a locked row.
"""
import logging
from datetime import date, timedelta
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional, Dict, Any, List

from django.conf import settings
from django.db import transaction
from django.utils import timezone

from apps.notifications.models import Notification
from apps.notifications.services import notify
from apps.realestate.models import Property, Availability
from .exceptions import BookingError
from .models import Booking
from .policies import days_until_check_in, refund_percentage, calculate_refund

logger = logging.getLogger(__name__)

CENTS = Decimal('0.01')


def _rate(name: str, default: str) -> Decimal:
    return Decimal(str(getattr(settings, name, default)))


def _nights(start_date: date, end_date: date) -> List[date]:
    """Dates of the nights in [start_date, end_date)."""
    return [start_date + timedelta(days=i) for i in range((end_date - start_date).days)]


class BookingService:
    """
    Service for the booking lifecycle.
    `user` is the acting user, recorded on cancellations.
    """

    def __init__(self, user=None):
        self.user = user

    # Availability & pricing

    def quote(self, property_obj: Property, start_date: date, end_date: date) -> Dict[str, Any]:
        """
        Price a stay. Per-date price overrides replace the base nightly rate.
        """
        nights = _nights(start_date, end_date)
        base_price = property_obj.nightly_rate
        overrides = dict(
            Availability.objects.filter(
                property=property_obj,
                date__in=nights,
                price__isnull=False
            ).values_list('date', 'price')
        )

        nightly_total = sum((overrides.get(night, base_price) for night in nights), Decimal('0.00'))
        nightly_total = Decimal(nightly_total).quantize(CENTS)
        cleaning_fee = (property_obj.cleaning_fee or Decimal('0.00')).quantize(CENTS)
        service_fee = (nightly_total * _rate('BOOKING_SERVICE_FEE_RATE', '0.01')).quantize(
            CENTS, rounding=ROUND_HALF_UP
        )
        tax_amount = (nightly_total * _rate('BOOKING_TAX_RATE', '0.08')).quantize(
            CENTS, rounding=ROUND_HALF_UP
        )

        return {
            'nights': len(nights),
            'base_price': base_price,
            'nightly_total': nightly_total,
            'cleaning_fee': cleaning_fee,
            'service_fee': service_fee,
            'tax_amount': tax_amount,
            'total_amount': nightly_total + cleaning_fee + service_fee + tax_amount,
            'currency': property_obj.currency or settings.DEFAULT_CURRENCY,
        }

    def check_availability(
        self,
        property_obj: Property,
        start_date: date,
        end_date: date,
        exclude_booking: Optional[Booking] = None
    ) -> Dict[str, Any]:
        """
        Check whether a property can be booked for [start_date, end_date).

        Returns:
            Dict with the available flag, stay rule flags, pricing quote,
            conflicting bookings, blocked dates and a human readable message.
        """
        if end_date <= start_date:
            raise BookingError('End date must be after start date')

        conflicting = Booking.objects.filter(
            property=property_obj,
            status__in=Booking.ACTIVE_STATUSES,
            start_date__lt=end_date,
            end_date__gt=start_date
        )
        blocked = Availability.objects.filter(
            property=property_obj,
            date__gte=start_date,
            date__lt=end_date,
            available=False
        )
        if exclude_booking is not None:
            conflicting = conflicting.exclude(pk=exclude_booking.pk)
            blocked = blocked.exclude(booking=exclude_booking)

        conflicting = list(conflicting)
        blocked_dates = list(blocked.values_list('date', flat=True))

        pricing = self.quote(property_obj, start_date, end_date)
        nights = pricing['nights']

        is_available = not conflicting and not blocked_dates
        meets_min_stay = not property_obj.min_stay or nights >= property_obj.min_stay
        meets_max_stay = not property_obj.max_stay or nights <= property_obj.max_stay

        if not is_available:
            message = 'Property is not available for the selected dates'
        elif not meets_min_stay:
            message = f"Minimum stay requirement not met ({property_obj.min_stay} nights required)"
        elif not meets_max_stay:
            message = f"Maximum stay exceeded ({property_obj.max_stay} nights maximum)"
        else:
            message = 'Property is available for the selected dates'

        return {
            'is_available': is_available,
            'can_book': is_available and meets_min_stay and meets_max_stay,
            'meets_min_stay': meets_min_stay,
            'meets_max_stay': meets_max_stay,
            'nights': nights,
            'pricing': pricing,
            'conflicting_bookings': conflicting,
            'blocked_dates': blocked_dates,
            'message': message,
        }

    # Lifecycle

    def create_booking(
        self,
        property_obj: Property,
        start_date: date,
        end_date: date,
        guests: int = 1,
        guest_name: str = '',
        guest_email: str = '',
        guest_phone: str = '',
        special_requests: str = ''
    ) -> Booking:
        """
        Create a booking for the acting user.
        Auto-confirms when the property allows instant booking.
        """
        if self.user is None:
            raise BookingError('A user is required to create a booking')

        with transaction.atomic():
            # Serialize bookings on the same property
            property_obj = Property.objects.select_for_update().get(pk=property_obj.pk)

            if not property_obj.is_bookable:
                raise BookingError('Property is not available for booking')
            if end_date <= start_date:
                raise BookingError('End date must be after start date')
            if start_date < timezone.localdate():
                raise BookingError('Check-in date cannot be in the past')
            if guests < 1:
                raise BookingError('At least one guest is required')

            result = self.check_availability(property_obj, start_date, end_date)
            if not result['can_book']:
                raise BookingError(result['message'])

            pricing = result['pricing']
            booking = Booking.objects.create(
                property=property_obj,
                user=self.user,
                start_date=start_date,
                end_date=end_date,
                nights=pricing['nights'],
                guests=guests,
                guest_name=guest_name or self.user.full_name,
                guest_email=guest_email or self.user.email,
                guest_phone=guest_phone or self.user.phone or '',
                special_requests=special_requests,
                nightly_total=pricing['nightly_total'],
                cleaning_fee=pricing['cleaning_fee'],
                service_fee=pricing['service_fee'],
                tax_amount=pricing['tax_amount'],
                total_amount=pricing['total_amount'],
                currency=pricing['currency'],
                cancellation_policy=property_obj.cancellation_policy,
                status=Booking.Status.PENDING
            )

            if property_obj.instant_book:
                self._confirm(booking)
                logger.info(f"Booking auto-confirmed: {booking.booking_number}")

        logger.info(
            f"Booking created: {booking.booking_number} - {property_obj.title}, "
            f"{booking.nights} nights from {start_date}, total {booking.total_amount} {booking.currency}"
        )

        notify(
            property_obj.owner,
            Notification.Type.BOOKING_CREATED,
            'New booking',
            f"{booking.guest_name} booked {property_obj.title} from {start_date} to {end_date}.",
            related_id=booking.id
        )
        if booking.status == Booking.Status.CONFIRMED:
            self._notify_confirmed(booking)

        return booking

    def confirm(self, booking: Booking) -> Booking:
        """Confirm a pending booking and block its nights."""
        with transaction.atomic():
            booking = Booking.objects.select_for_update().select_related('property').get(pk=booking.pk)

            if booking.status == Booking.Status.CONFIRMED:
                raise BookingError('Booking is already confirmed')
            if booking.status == Booking.Status.CANCELLED:
                raise BookingError('Cannot confirm a cancelled booking')
            if booking.status != Booking.Status.PENDING:
                raise BookingError(f"Cannot confirm a {booking.get_status_display().lower()} booking")

            result = self.check_availability(
                booking.property, booking.start_date, booking.end_date, exclude_booking=booking
            )
            if not result['is_available']:
                raise BookingError('Some of the booked dates are no longer available')

            self._confirm(booking)

        logger.info(f"Booking confirmed: {booking.booking_number}")
        self._notify_confirmed(booking)
        return booking

    def _confirm(self, booking: Booking):
        for night in _nights(booking.start_date, booking.end_date):
            Availability.objects.update_or_create(
                property=booking.property,
                date=night,
                defaults={'available': False, 'booking': booking}
            )

        booking.status = Booking.Status.CONFIRMED
        booking.confirmed_at = timezone.now()
        booking.save(update_fields=['status', 'confirmed_at', 'updated_at'])

    def _notify_confirmed(self, booking: Booking):
        notify(
            booking.user,
            Notification.Type.BOOKING_CONFIRMED,
            'Booking confirmed',
            f"Your booking {booking.booking_number} at {booking.property.title} is confirmed.",
            related_id=booking.id,
            important=True
        )

    def refund_quote(self, booking: Booking, today: Optional[date] = None) -> Dict[str, Any]:
        """Preview the refund a cancellation would yield right now."""
        days = days_until_check_in(booking.start_date, today)
        paid = booking.amount_paid()
        cancellable = booking.status in Booking.ACTIVE_STATUSES

        return {
            'booking_id': str(booking.id),
            'booking_number': booking.booking_number,
            'cancellation_policy': booking.cancellation_policy,
            'days_until_check_in': days,
            'refund_percentage': refund_percentage(booking.cancellation_policy, days) if cancellable else 0,
            'total_amount': booking.total_amount,
            'amount_paid': paid,
            'refund_amount': calculate_refund(booking.cancellation_policy, paid, days) if cancellable else Decimal('0.00'),
            'cancellable': cancellable,
        }

    def cancel(self, booking: Booking, reason: str = '') -> Booking:
        """
        Cancel a booking, refunding the paid amount per the booking's policy.

        The cancellation is committed before any money moves. Refunds are
        then recorded payment by payment, and the booking keeps the total the
        gateway actually refunded.
        """
        from apps.payments.payment_service import PaymentService

        payment_service = PaymentService()

        with transaction.atomic():
            booking = Booking.objects.select_for_update().select_related('property', 'user').get(pk=booking.pk)

            if booking.status == Booking.Status.CANCELLED:
                raise BookingError('Booking is already cancelled')
            if booking.status == Booking.Status.COMPLETED:
                raise BookingError('Cannot cancel a completed booking')
            if booking.status not in Booking.ACTIVE_STATUSES:
                raise BookingError(f"Cannot cancel a {booking.get_status_display().lower()} booking")

            days = days_until_check_in(booking.start_date)
            percentage = refund_percentage(booking.cancellation_policy, days)
            paid = booking.amount_paid()
            refund_due = calculate_refund(booking.cancellation_policy, paid, days)

            payment_service.cancel_pending_for_booking(booking)

            # Release the booked nights
            Availability.objects.filter(booking=booking).update(available=True, booking=None)

            booking.status = Booking.Status.CANCELLED
            booking.cancelled_at = timezone.now()
            booking.cancelled_by = self.user
            booking.cancellation_reason = reason
            booking.refund_percentage = percentage
            booking.refund_amount = Decimal('0.00')
            booking.save(update_fields=[
                'status', 'cancelled_at', 'cancelled_by',
                'cancellation_reason', 'refund_percentage', 'refund_amount', 'updated_at'
            ])

        refund = Decimal('0.00')
        if refund_due > Decimal('0.00'):
            refund = payment_service.refund_booking(booking, refund_due)
            if refund > Decimal('0.00'):
                if refund >= paid:
                    booking.payment_status = Booking.PaymentStatus.REFUNDED
                else:
                    booking.payment_status = Booking.PaymentStatus.PARTIALLY_REFUNDED
                booking.refund_amount = refund
                booking.save(update_fields=['payment_status', 'refund_amount', 'updated_at'])
            if refund < refund_due:
                logger.error(
                    f"Booking {booking.booking_number} cancelled with an incomplete refund: "
                    f"{refund} of {refund_due} {booking.currency} refunded"
                )

        logger.info(
            f"Booking cancelled: {booking.booking_number} ({days} days before check-in, "
            f"{booking.cancellation_policy} policy, refund {refund} = {percentage}% of {paid})"
        )

        message = f"Booking {booking.booking_number} at {booking.property.title} was cancelled."
        notify(booking.user, Notification.Type.BOOKING_CANCELLED, 'Booking cancelled', message, related_id=booking.id)
        if booking.property.owner_id != booking.user_id:
            notify(
                booking.property.owner, Notification.Type.BOOKING_CANCELLED,
                'Booking cancelled', message, related_id=booking.id
            )
        if refund > Decimal('0.00'):
            notify(
                booking.user,
                Notification.Type.REFUND_ISSUED,
                'Refund issued',
                f"A refund of {refund} {booking.currency} ({percentage}%) was issued for {booking.booking_number}.",
                related_id=booking.id,
                important=True
            )

        return booking

    def complete(self, booking: Booking, today: Optional[date] = None) -> Booking:
        """Complete a confirmed booking once check-out has been reached."""
        today = today or timezone.localdate()

        with transaction.atomic():
            booking = Booking.objects.select_for_update().select_related('property').get(pk=booking.pk)

            if booking.status != Booking.Status.CONFIRMED:
                raise BookingError('Only confirmed bookings can be completed')
            if booking.end_date > today:
                raise BookingError('Booking cannot be completed before check-out')

            booking.status = Booking.Status.COMPLETED
            booking.completed_at = timezone.now()
            booking.save(update_fields=['status', 'completed_at', 'updated_at'])

        logger.info(f"Booking completed: {booking.booking_number}")
        notify(
            booking.user,
            Notification.Type.BOOKING_COMPLETED,
            'Stay completed',
            f"Thanks for staying at {booking.property.title}.",
            related_id=booking.id
        )
        return booking

    # Housekeeping

    def expire_stale_bookings(self, now=None) -> int:
        """
        Expire unpaid pending bookings older than BOOKING_PENDING_TTL_HOURS,
        or whose check-in date has passed.
        """
        from apps.payments.payment_service import PaymentService

        now = now or timezone.now()
        ttl = timedelta(hours=getattr(settings, 'BOOKING_PENDING_TTL_HOURS', 48))
        stale = Booking.objects.filter(status=Booking.Status.PENDING).exclude(
            payment_status=Booking.PaymentStatus.PAID
        )
        stale = stale.filter(created_at__lt=now - ttl) | stale.filter(
            start_date__lt=timezone.localdate(now)
        )

        expired = 0
        payment_service = PaymentService()
        for booking in stale.distinct():
            with transaction.atomic():
                locked = Booking.objects.select_for_update().get(pk=booking.pk)
                if locked.status != Booking.Status.PENDING:
                    continue
                payment_service.cancel_pending_for_booking(locked)
                locked.status = Booking.Status.EXPIRED
                locked.save(update_fields=['status', 'updated_at'])
            expired += 1
            logger.info(f"Booking expired: {locked.booking_number}")

        return expired

    def complete_finished_bookings(self, today: Optional[date] = None) -> int:
        """Complete confirmed bookings whose check-out date has been reached."""
        today = today or timezone.localdate()
        completed = 0
        for booking in Booking.objects.filter(status=Booking.Status.CONFIRMED, end_date__lte=today):
            try:
                self.complete(booking, today=today)
                completed += 1
            except BookingError as e:
                logger.warning(f"Could not complete booking {booking.booking_number}: {e.detail}")
        return completed
