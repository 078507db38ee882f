"""
Tests for payments: service, gateway client, webhook and API
"""
import json
import time
from datetime import timedelta
from decimal import Decimal
from unittest import mock

import requests
from django.test import TestCase, override_settings
from django.utils import timezone
from rest_framework import status
from rest_framework.test import APIClient

from apps.accounts.models import User
from apps.bookings.booking_service import BookingService
from apps.bookings.exceptions import BookingError
from apps.bookings.models import Booking
from apps.notifications.models import Notification
from apps.payments.exceptions import PaymentError
from apps.payments.gateway import StripeGateway, sign_webhook_payload
from apps.payments.models import Payment, PaymentWebhookLog
from apps.payments.payment_service import PaymentService
from apps.realestate.models import Property, CancellationPolicy

PASSWORD = 'Sunny-Harbor-2931'
WEBHOOK_SECRET = 'whsec_test_secret'


def make_user(email, role=User.Role.USER):
    return User.objects.create_user(
        email=email, username=email.split('@')[0], password=PASSWORD, role=role
    )


class PaymentTestMixin:
    def setUp(self):
        self.owner = make_user('owner@example.com', User.Role.OWNER)
        self.guest = make_user('guest@example.com')
        self.rental = Property.objects.create(
            owner=self.owner,
            title='Downtown Loft',
            description='Bright loft',
            category=Property.Category.RENT,
            rent_price=Decimal('100.00'),
            address='1 Main St',
            city='Austin',
            state='TX',
            country='USA',
            area=Decimal('800.00'),
            status=Property.Status.PUBLISHED,
        )
        start = timezone.localdate() + timedelta(days=10)
        self.booking = BookingService(self.guest).create_booking(
            self.rental, start, start + timedelta(days=2)
        )
        self.service = PaymentService(StripeGateway(secret_key=''))


class PaymentServiceTest(PaymentTestMixin, TestCase):
    """Test PaymentService"""

    def test_initiate_creates_pending_payment(self):
        payment = self.service.initiate(self.booking, self.booking.total_amount)

        self.assertEqual(payment.status, Payment.Status.PENDING)
        self.assertTrue(payment.payment_number.startswith('PAY'))
        self.assertTrue(payment.gateway_payment_id.startswith('pi_sim_'))
        self.assertTrue(payment.client_secret)
        self.assertEqual(payment.gateway, 'simulated')
        self.assertEqual(payment.user, self.guest)

    def test_initiate_rejects_wrong_amount(self):
        with self.assertRaises(PaymentError) as ctx:
            self.service.initiate(self.booking, Decimal('1.00'))
        self.assertEqual(str(ctx.exception.detail), 'Payment amount does not match booking total')

    def test_initiate_rejects_cancelled_booking(self):
        BookingService(self.guest).cancel(self.booking)
        self.booking.refresh_from_db()

        with self.assertRaises(PaymentError) as ctx:
            self.service.initiate(self.booking, self.booking.total_amount)
        self.assertEqual(str(ctx.exception.detail), 'Cannot pay for a cancelled booking')

    def test_mark_completed_is_idempotent(self):
        payment = self.service.initiate(self.booking, self.booking.total_amount)

        self.service.mark_completed(payment)
        payment = self.service.mark_completed(payment)

        self.assertEqual(payment.status, Payment.Status.COMPLETED)
        self.booking.refresh_from_db()
        self.assertEqual(self.booking.payment_status, Booking.PaymentStatus.PAID)
        self.assertEqual(self.booking.amount_paid(), self.booking.total_amount)
        self.assertEqual(Notification.objects.filter(
            user=self.guest, type=Notification.Type.PAYMENT_RECEIVED
        ).count(), 1)

        with self.assertRaises(PaymentError):
            self.service.initiate(self.booking, self.booking.total_amount)

    def test_mark_failed(self):
        payment = self.service.initiate(self.booking, self.booking.total_amount)

        payment = self.service.mark_failed(payment, 'Card declined')

        self.assertEqual(payment.status, Payment.Status.FAILED)
        self.assertEqual(payment.failure_reason, 'Card declined')
        self.booking.refresh_from_db()
        self.assertEqual(self.booking.payment_status, Booking.PaymentStatus.FAILED)

        with self.assertRaises(PaymentError):
            self.service.mark_completed(payment)

    def test_refund_booking_caps_at_collected(self):
        payment = self.service.initiate(self.booking, self.booking.total_amount)
        self.service.mark_completed(payment)

        refunded = self.service.refund_booking(self.booking, self.booking.total_amount + Decimal('50.00'))

        self.assertEqual(refunded, self.booking.total_amount)
        payment.refresh_from_db()
        self.assertEqual(payment.status, Payment.Status.REFUNDED)
        self.assertEqual(payment.refundable_amount, Decimal('0.00'))

    def test_cancel_pending_for_booking(self):
        self.service.initiate(self.booking, self.booking.total_amount)
        self.service.initiate(self.booking, self.booking.total_amount)

        self.assertEqual(self.service.cancel_pending_for_booking(self.booking), 2)
        self.assertEqual(Payment.objects.filter(status=Payment.Status.CANCELLED).count(), 2)


class StripeGatewayTest(TestCase):
    """Test the Stripe client against a mocked HTTP layer"""

    def test_create_payment_intent_posts_minor_units(self):
        response = mock.Mock()
        response.json.return_value = {'id': 'pi_123', 'client_secret': 'pi_123_secret', 'status': 'requires_payment_method'}
        response.raise_for_status.return_value = None

        with mock.patch('apps.payments.gateway.requests.request', return_value=response) as request:
            intent = StripeGateway(secret_key='sk_test_123').create_payment_intent(
                Decimal('377.50'), 'USD', metadata={'booking_number': 'BK1'}
            )

        self.assertEqual(intent['payment_intent_id'], 'pi_123')
        args, kwargs = request.call_args
        self.assertEqual(args[0], 'POST')
        self.assertTrue(args[1].endswith('/payment_intents'))
        self.assertEqual(kwargs['data']['amount'], 37750)
        self.assertEqual(kwargs['data']['currency'], 'usd')
        self.assertEqual(kwargs['data']['metadata[booking_number]'], 'BK1')
        self.assertEqual(kwargs['auth'], ('sk_test_123', ''))

    def test_http_error_raises_payment_error(self):
        with mock.patch(
            'apps.payments.gateway.requests.request',
            side_effect=requests.exceptions.ConnectionError('down')
        ):
            with self.assertRaises(PaymentError):
                StripeGateway(secret_key='sk_test_123').refund('pi_123', Decimal('10.00'))

    @override_settings(STRIPE_WEBHOOK_SECRET=WEBHOOK_SECRET)
    def test_verify_webhook_signature(self):
        gateway = StripeGateway(secret_key='')
        payload = b'{"id": "evt_1"}'
        now = int(time.time())

        self.assertTrue(gateway.verify_webhook_signature(payload, sign_webhook_payload(payload, WEBHOOK_SECRET, now)))
        self.assertFalse(gateway.verify_webhook_signature(payload, sign_webhook_payload(payload, 'wrong', now)))
        self.assertFalse(gateway.verify_webhook_signature(b'{"id": "evt_2"}', sign_webhook_payload(payload, WEBHOOK_SECRET, now)))
        self.assertFalse(gateway.verify_webhook_signature(payload, 'garbage'))

        old = sign_webhook_payload(payload, WEBHOOK_SECRET, now - 600)
        self.assertFalse(gateway.verify_webhook_signature(payload, old))

    @override_settings(STRIPE_WEBHOOK_SECRET='')
    def test_signature_skipped_without_secret(self):
        self.assertTrue(StripeGateway(secret_key='').verify_webhook_signature(b'{}', ''))


@override_settings(STRIPE_SECRET_KEY='', STRIPE_WEBHOOK_SECRET=WEBHOOK_SECRET)
class StripeWebhookTest(PaymentTestMixin, TestCase):
    """Test the webhook endpoint"""

    def setUp(self):
        super().setUp()
        self.client = APIClient()
        self.payment = self.service.initiate(self.booking, self.booking.total_amount)

    def _post(self, event, secret=WEBHOOK_SECRET):
        body = json.dumps(event).encode('utf-8')
        return self.client.generic(
            'POST',
            '/api/payments/webhook/',
            body,
            content_type='application/json',
            HTTP_STRIPE_SIGNATURE=sign_webhook_payload(body, secret)
        )

    def _event(self, event_type, **intent):
        intent.setdefault('id', self.payment.gateway_payment_id)
        return {'id': 'evt_1', 'type': event_type, 'data': {'object': intent}}

    def test_succeeded_event_completes_payment(self):
        response = self._post(self._event('payment_intent.succeeded'))

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), {'received': True})
        self.payment.refresh_from_db()
        self.assertEqual(self.payment.status, Payment.Status.COMPLETED)
        self.booking.refresh_from_db()
        self.assertEqual(self.booking.payment_status, Booking.PaymentStatus.PAID)
        self.assertTrue(PaymentWebhookLog.objects.get(event_id='evt_1').is_processed)

    def test_failed_event_records_reason(self):
        self._post(self._event(
            'payment_intent.payment_failed',
            last_payment_error={'message': 'Insufficient funds'}
        ))

        self.payment.refresh_from_db()
        self.assertEqual(self.payment.status, Payment.Status.FAILED)
        self.assertEqual(self.payment.failure_reason, 'Insufficient funds')

    def test_invalid_signature_rejected(self):
        response = self._post(self._event('payment_intent.succeeded'), secret='wrong')

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json(), {'error': 'Invalid signature'})
        self.payment.refresh_from_db()
        self.assertEqual(self.payment.status, Payment.Status.PENDING)
        self.assertEqual(PaymentWebhookLog.objects.get().error_message, 'Webhook signature verification failed')

    def test_unknown_payment_logged(self):
        self._post(self._event('payment_intent.succeeded', id='pi_unknown'))

        log = PaymentWebhookLog.objects.get()
        self.assertFalse(log.is_processed)
        self.assertEqual(log.error_message, 'No matching payment')

    def test_unhandled_event_type_acknowledged(self):
        response = self._post(self._event('charge.refunded'))

        self.assertEqual(response.status_code, 200)
        self.assertTrue(PaymentWebhookLog.objects.get().is_processed)

    def test_invalid_json(self):
        response = self.client.generic('POST', '/api/payments/webhook/', b'not json', content_type='application/json')
        self.assertEqual(response.status_code, 400)


@override_settings(STRIPE_SECRET_KEY='')
class PaymentAPITest(PaymentTestMixin, TestCase):
    """Test payment endpoints"""

    def setUp(self):
        super().setUp()
        self.client = APIClient()
        self.client.force_authenticate(self.guest)

    def _create(self, **extra):
        payload = {
            'booking_id': str(self.booking.id),
            'amount': str(self.booking.total_amount),
            'payment_method': 'credit_card',
        }
        payload.update(extra)
        return self.client.post('/api/payments/', payload, format='json')

    def test_create_payment_returns_client_secret(self):
        response = self._create()

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertIn('client_secret', response.data)
        self.assertEqual(response.data['status'], Payment.Status.PENDING)

    def test_create_for_someone_elses_booking_forbidden(self):
        self.client.force_authenticate(make_user('stranger@example.com'))
        response = self._create()
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_create_for_missing_booking(self):
        response = self._create(booking_id='00000000-0000-0000-0000-000000000000')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_create_with_wrong_amount(self):
        response = self._create(amount='1.00')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_success_completes_pending_payment(self):
        self._create()

        response = self.client.post('/api/payments/success/', {'booking_id': str(self.booking.id)}, format='json')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['payment']['status'], Payment.Status.COMPLETED)
        self.assertEqual(response.data['booking']['payment_status'], Booking.PaymentStatus.PAID)

    def test_success_lookup_by_payment_intent(self):
        intent_id = self._create().data['gateway_payment_id']

        response = self.client.get('/api/payments/success/', {'payment_intent': intent_id})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['payment']['gateway_payment_id'], intent_id)

        response = self.client.get('/api/payments/success/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

        response = self.client.get('/api/payments/success/', {'payment_intent': 'pi_missing'})
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_cancel_pending_payments_of_booking(self):
        self._create()

        response = self.client.post('/api/payments/cancel/', {'booking_id': str(self.booking.id)}, format='json')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['cancelled'], 1)

    def test_action_requires_payment_or_booking(self):
        response = self.client.post('/api/payments/cancel/', {}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_list_is_scoped(self):
        self._create()

        response = self.client.get('/api/payments/')
        self.assertEqual(response.data['count'], 1)

        self.client.force_authenticate(self.owner)
        response = self.client.get('/api/payments/')
        self.assertEqual(response.data['count'], 1)

        self.client.force_authenticate(make_user('stranger@example.com'))
        response = self.client.get('/api/payments/')
        self.assertEqual(response.data['count'], 0)

    def test_malformed_booking_filter_rejected(self):
        response = self.client.get('/api/payments/', {'booking': 'not-a-uuid'})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('booking', response.data)

        response = self.client.get('/api/payments/success/', {'booking_id': 'not-a-uuid'})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)


def stripe_response(payload, status_code=200):
    response = mock.Mock()
    response.status_code = status_code
    response.json.return_value = payload
    if status_code >= 400:
        response.raise_for_status.side_effect = requests.exceptions.HTTPError(
            f'{status_code} Client Error', response=response
        )
    else:
        response.raise_for_status.return_value = None
    return response


@override_settings(STRIPE_SECRET_KEY='sk_test_123', STRIPE_WEBHOOK_SECRET=WEBHOOK_SECRET)
class StripeLiveModeTest(PaymentTestMixin, TestCase):
    """Test payment state against a mocked live Stripe API"""

    def setUp(self):
        super().setUp()
        self.client = APIClient()

    def _payment(self, intent_id, amount, status=Payment.Status.PENDING, completed_minutes_ago=None):
        completed_at = None
        if completed_minutes_ago is not None:
            completed_at = timezone.now() - timedelta(minutes=completed_minutes_ago)
        return Payment.objects.create(
            booking=self.booking,
            user=self.guest,
            amount=amount,
            currency='USD',
            gateway='stripe',
            gateway_payment_id=intent_id,
            status=status,
            completed_at=completed_at,
        )

    def _paid_in_two_parts(self):
        Booking.objects.filter(pk=self.booking.pk).update(
            cancellation_policy=CancellationPolicy.FLEXIBLE,
            payment_status=Booking.PaymentStatus.PAID
        )
        self.booking.refresh_from_db()
        first = self._payment('pi_1', Decimal('50.00'), Payment.Status.COMPLETED, completed_minutes_ago=10)
        second = self._payment('pi_2', Decimal('50.00'), Payment.Status.COMPLETED, completed_minutes_ago=5)
        return first, second

    def test_canceled_event_records_cancellation_without_gateway_call(self):
        payment = self._payment('pi_live_1', self.booking.total_amount)
        body = json.dumps({
            'id': 'evt_cancel',
            'type': 'payment_intent.canceled',
            'data': {'object': {'id': 'pi_live_1', 'status': 'canceled'}},
        }).encode('utf-8')
        already_canceled = stripe_response({'error': {'message': 'This PaymentIntent is already canceled'}}, 400)

        with mock.patch('apps.payments.gateway.requests.request', return_value=already_canceled) as request:
            response = self.client.generic(
                'POST',
                '/api/payments/webhook/',
                body,
                content_type='application/json',
                HTTP_STRIPE_SIGNATURE=sign_webhook_payload(body, WEBHOOK_SECRET)
            )

        self.assertEqual(response.status_code, 200)
        request.assert_not_called()
        payment.refresh_from_db()
        self.assertEqual(payment.status, Payment.Status.CANCELLED)
        self.assertTrue(PaymentWebhookLog.objects.get(event_id='evt_cancel').is_processed)

    def test_cancelling_pending_payment_cancels_intent(self):
        self._payment('pi_live_2', self.booking.total_amount)

        with mock.patch(
            'apps.payments.gateway.requests.request',
            return_value=stripe_response({'id': 'pi_live_2', 'status': 'canceled'})
        ) as request:
            self.assertEqual(PaymentService().cancel_pending_for_booking(self.booking), 1)

        args, _ = request.call_args
        self.assertEqual(args[0], 'POST')
        self.assertTrue(args[1].endswith('/payment_intents/pi_live_2/cancel'))

    def test_refund_keeps_refunds_made_before_gateway_failure(self):
        first, second = self._paid_in_two_parts()

        with mock.patch('apps.payments.gateway.requests.request', side_effect=[
            stripe_response({'id': 're_1'}),
            stripe_response({'error': {'message': 'Refund failed'}}, 402),
        ]) as request:
            refunded = PaymentService().refund_booking(self.booking, Decimal('100.00'))

        self.assertEqual(refunded, Decimal('50.00'))
        self.assertEqual(request.call_count, 2)
        first.refresh_from_db()
        self.assertEqual(first.status, Payment.Status.REFUNDED)
        self.assertEqual(first.refunded_amount, Decimal('50.00'))
        second.refresh_from_db()
        self.assertEqual(second.status, Payment.Status.COMPLETED)
        self.assertEqual(second.refunded_amount, Decimal('0.00'))

    def test_cancel_records_refund_actually_made(self):
        self._paid_in_two_parts()

        with mock.patch('apps.payments.gateway.requests.request', side_effect=[
            stripe_response({'id': 're_1'}),
            stripe_response({'error': {'message': 'Refund failed'}}, 402),
        ]):
            booking = BookingService(self.guest).cancel(self.booking, 'Plans changed')

        booking.refresh_from_db()
        self.assertEqual(booking.status, Booking.Status.CANCELLED)
        self.assertEqual(booking.refund_percentage, 100)
        self.assertEqual(booking.refund_amount, Decimal('50.00'))
        self.assertEqual(booking.payment_status, Booking.PaymentStatus.PARTIALLY_REFUNDED)
        self.assertEqual(booking.amount_paid(), Decimal('50.00'))

        with mock.patch('apps.payments.gateway.requests.request') as request:
            with self.assertRaises(BookingError):
                BookingService(self.guest).cancel(booking)
        request.assert_not_called()
