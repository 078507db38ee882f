"""
Payment Service - payments for bookings.
"""
import logging
from decimal import Decimal
from typing import Optional, Dict, Any

from django.db import transaction
from django.utils import timezone

from apps.bookings.models import Booking
from apps.notifications.models import Notification
from apps.notifications.services import notify
from .exceptions import PaymentError
from .gateway import StripeGateway
from .models import Payment

logger = logging.getLogger(__name__)


class PaymentService:
    """
    Creates payments through the gateway and applies their outcome to bookings.
    """

    def __init__(self, gateway: Optional[StripeGateway] = None):
        self.gateway = gateway or StripeGateway()

    def initiate(
        self,
        booking: Booking,
        amount,
        payment_method: str = Payment.Method.CREDIT_CARD,
        currency: Optional[str] = None,
        user=None
    ) -> Payment:
        """Create a pending payment with a gateway payment intent."""
        amount = Decimal(str(amount))

        if booking.payment_status == Booking.PaymentStatus.PAID:
            raise PaymentError('Booking is already paid')
        if booking.status not in Booking.ACTIVE_STATUSES:
            raise PaymentError(f"Cannot pay for a {booking.get_status_display().lower()} booking")
        if amount != booking.total_amount:
            raise PaymentError('Payment amount does not match booking total')

        currency = (currency or booking.currency).upper()
        intent = self.gateway.create_payment_intent(amount, currency, metadata={
            'booking_id': booking.id,
            'booking_number': booking.booking_number,
        })

        payment = Payment.objects.create(
            booking=booking,
            user=user or booking.user,
            amount=amount,
            currency=currency,
            payment_method=payment_method,
            gateway=self.gateway.name,
            gateway_payment_id=intent['payment_intent_id'],
            client_secret=intent['client_secret'],
            status=Payment.Status.PENDING
        )
        logger.info(f"Payment initiated: {payment.payment_number} for booking {booking.booking_number} ({amount} {currency})")
        return payment

    def confirm_with_gateway(self, payment: Payment) -> Payment:
        """Complete a payment after checking the intent succeeded at the gateway."""
        intent_status = self.gateway.retrieve_payment_intent_status(payment.gateway_payment_id)
        if intent_status != 'succeeded':
            raise PaymentError(f"Payment has not succeeded yet (status: {intent_status})")
        return self.mark_completed(payment)

    def mark_completed(self, payment: Payment) -> Payment:
        """Mark a payment completed and the booking paid."""
        with transaction.atomic():
            payment = Payment.objects.select_for_update().select_related('booking').get(pk=payment.pk)

            if payment.status == Payment.Status.COMPLETED:
                logger.info(f"Payment already completed: {payment.payment_number}")
                return payment
            if payment.status not in [Payment.Status.PENDING, Payment.Status.PROCESSING]:
                raise PaymentError(f"Cannot complete a {payment.get_status_display().lower()} payment")

            payment.status = Payment.Status.COMPLETED
            payment.completed_at = timezone.now()
            payment.failure_reason = ''
            payment.save(update_fields=['status', 'completed_at', 'failure_reason', 'updated_at'])

            booking = Booking.objects.select_for_update().get(pk=payment.booking_id)
            booking.payment_status = Booking.PaymentStatus.PAID
            booking.save(update_fields=['payment_status', 'updated_at'])
            payment.booking = booking

        if booking.status not in Booking.ACTIVE_STATUSES:
            logger.warning(f"Payment {payment.payment_number} completed for {booking.status} booking {booking.booking_number}")
        logger.info(f"Payment completed: {payment.payment_number}")

        notify(
            payment.user,
            Notification.Type.PAYMENT_RECEIVED,
            'Payment received',
            f"We received your payment of {payment.amount} {payment.currency} for {booking.booking_number}.",
            related_id=payment.id
        )
        return payment

    def mark_failed(self, payment: Payment, reason: str = '') -> Payment:
        """Mark a payment failed."""
        with transaction.atomic():
            payment = Payment.objects.select_for_update().get(pk=payment.pk)
            if payment.status not in [Payment.Status.PENDING, Payment.Status.PROCESSING]:
                raise PaymentError(f"Cannot fail a {payment.get_status_display().lower()} payment")

            payment.status = Payment.Status.FAILED
            payment.failure_reason = reason
            payment.save(update_fields=['status', 'failure_reason', 'updated_at'])

            booking = Booking.objects.select_for_update().get(pk=payment.booking_id)
            if booking.payment_status == Booking.PaymentStatus.PENDING:
                booking.payment_status = Booking.PaymentStatus.FAILED
                booking.save(update_fields=['payment_status', 'updated_at'])

        logger.warning(f"Payment failed: {payment.payment_number} - {reason}")
        notify(
            payment.user,
            Notification.Type.PAYMENT_FAILED,
            'Payment failed',
            f"Your payment for {booking.booking_number} failed. {reason}".strip(),
            related_id=payment.id,
            important=True
        )
        return payment

    def mark_cancelled(self, payment: Payment, cancel_at_gateway: bool = True) -> Payment:
        """
        Cancel a pending payment.

        The payment intent is cancelled at the gateway unless the gateway
        already reported the cancellation (payment_intent.canceled webhook).
        """
        with transaction.atomic():
            payment = Payment.objects.select_for_update().get(pk=payment.pk)
            if payment.status == Payment.Status.CANCELLED:
                return payment
            if payment.status not in [Payment.Status.PENDING, Payment.Status.PROCESSING]:
                raise PaymentError(f"Cannot cancel a {payment.get_status_display().lower()} payment")

            if cancel_at_gateway:
                self.gateway.cancel_payment_intent(payment.gateway_payment_id)
            payment.status = Payment.Status.CANCELLED
            payment.save(update_fields=['status', 'updated_at'])

        logger.info(f"Payment cancelled: {payment.payment_number}")
        return payment

    def cancel_pending_for_booking(self, booking: Booking) -> int:
        """Cancel every pending payment of a booking."""
        pending = Payment.objects.filter(
            booking=booking,
            status__in=[Payment.Status.PENDING, Payment.Status.PROCESSING]
        )
        cancelled = 0
        for payment in pending:
            self.mark_cancelled(payment)
            cancelled += 1
        return cancelled

    def refund_booking(self, booking: Booking, amount) -> Decimal:
        """
        Refund up to `amount` across the booking's collected payments.

        Each payment's refund is committed as soon as the gateway accepts it.
        A gateway failure stops the run and is logged; refunds already made
        stay recorded.

        Returns:
            The amount actually refunded
        """
        remaining = Decimal(str(amount))
        refunded = Decimal('0.00')

        payment_ids = list(Payment.objects.filter(
            booking=booking,
            status__in=Payment.COLLECTED_STATUSES
        ).order_by('completed_at').values_list('pk', flat=True))

        for payment_id in payment_ids:
            if remaining <= Decimal('0.00'):
                break

            try:
                with transaction.atomic():
                    payment = Payment.objects.select_for_update().get(pk=payment_id)
                    portion = min(payment.refundable_amount, remaining)
                    if portion <= Decimal('0.00'):
                        continue

                    self.gateway.refund(payment.gateway_payment_id, portion)
                    payment.refunded_amount += portion
                    payment.refunded_at = timezone.now()
                    if payment.refunded_amount >= payment.amount:
                        payment.status = Payment.Status.REFUNDED
                    else:
                        payment.status = Payment.Status.PARTIALLY_REFUNDED
                    payment.save(update_fields=['refunded_amount', 'refunded_at', 'status', 'updated_at'])
            except PaymentError:
                logger.error(
                    f"Refund stopped for booking {booking.booking_number}: "
                    f"refunded {refunded}, {remaining} still owed"
                )
                break

            remaining -= portion
            refunded += portion
            logger.info(f"Payment refunded: {payment.payment_number} - {portion} {payment.currency}")

        return refunded

    def handle_webhook_event(self, event: Dict[str, Any]) -> bool:
        """
        Apply a gateway webhook event.

        Returns:
            True if the event was handled or safely ignored
        """
        event_type = event.get('type', '')
        intent = event.get('data', {}).get('object', {}) or {}
        handlers = {
            'payment_intent.succeeded': lambda p: self.mark_completed(p),
            'payment_intent.payment_failed': lambda p: self.mark_failed(
                p, (intent.get('last_payment_error') or {}).get('message', 'Payment failed')
            ),
            'payment_intent.canceled': lambda p: self.mark_cancelled(p, cancel_at_gateway=False),
        }

        handler = handlers.get(event_type)
        if handler is None:
            logger.info(f"Unhandled webhook event type: {event_type}")
            return True

        payment = Payment.objects.filter(gateway_payment_id=intent.get('id', '')).first()
        if payment is None:
            logger.warning(f"No payment found for payment intent {intent.get('id')} ({event_type})")
            return False

        handler(payment)
        logger.info(f"Webhook {event_type} applied to payment {payment.payment_number}")
        return True
