"""
Tests for bookings: cancellation policies, the booking lifecycle and the API
"""
from datetime import timedelta
from decimal import Decimal
from io import StringIO

from django.core.management import call_command
from django.test import TestCase, override_settings
from django.utils import timezone
from rest_framework import status
from rest_framework.test import APIClient

from apps.accounts.models import User
from apps.bookings.booking_service import BookingService
from apps.bookings.exceptions import BookingError
from apps.bookings.models import Booking
from apps.bookings.policies import refund_percentage, calculate_refund, days_until_check_in
from apps.notifications.models import Notification
from apps.payments.models import Payment
from apps.payments.payment_service import PaymentService
from apps.realestate.models import Property, Availability, CancellationPolicy

PASSWORD = 'Sunny-Harbor-2931'


def make_user(email, role=User.Role.USER):
    return User.objects.create_user(
        email=email, username=email.split('@')[0], password=PASSWORD, role=role
    )


def make_rental(owner, **extra):
    fields = {
        'title': 'Downtown Loft',
        'description': 'Bright loft',
        'category': Property.Category.RENT,
        'rent_price': Decimal('100.00'),
        'cleaning_fee': Decimal('50.00'),
        'address': '1 Main St',
        'city': 'Austin',
        'state': 'TX',
        'country': 'USA',
        'area': Decimal('800.00'),
        'status': Property.Status.PUBLISHED,
        'cancellation_policy': CancellationPolicy.FLEXIBLE,
    }
    fields.update(extra)
    return Property.objects.create(owner=owner, **fields)


def in_days(days):
    return timezone.localdate() + timedelta(days=days)


class CancellationPolicyTest(TestCase):
    """Test refund percentages per policy and lead time"""

    def test_refund_table(self):
        cases = [
            (CancellationPolicy.FLEXIBLE, 10, 100),
            (CancellationPolicy.FLEXIBLE, 2, 100),
            (CancellationPolicy.FLEXIBLE, 1, 50),
            (CancellationPolicy.FLEXIBLE, 0, 0),
            (CancellationPolicy.MODERATE, 6, 100),
            (CancellationPolicy.MODERATE, 5, 50),
            (CancellationPolicy.MODERATE, 1, 50),
            (CancellationPolicy.MODERATE, 0, 0),
            (CancellationPolicy.STRICT, 8, 50),
            (CancellationPolicy.STRICT, 7, 0),
            (CancellationPolicy.SUPER_STRICT, 30, 50),
            (CancellationPolicy.SUPER_STRICT, 3, 0),
            (CancellationPolicy.FLEXIBLE, -2, 0),
        ]
        for policy, days, expected in cases:
            with self.subTest(policy=policy, days=days):
                self.assertEqual(refund_percentage(policy, days), expected)

    def test_unknown_policy(self):
        with self.assertRaises(ValueError):
            refund_percentage('lenient', 10)

    def test_calculate_refund_rounds_to_cents(self):
        self.assertEqual(calculate_refund(CancellationPolicy.STRICT, Decimal('100.01'), 10), Decimal('50.01'))
        self.assertEqual(calculate_refund(CancellationPolicy.FLEXIBLE, Decimal('80.00'), 1), Decimal('40.00'))
        self.assertEqual(calculate_refund(CancellationPolicy.STRICT, Decimal('80.00'), 3), Decimal('0.00'))

    def test_days_until_check_in(self):
        today = timezone.localdate()
        self.assertEqual(days_until_check_in(today + timedelta(days=3), today), 3)
        self.assertEqual(days_until_check_in(today - timedelta(days=1), today), -1)


class BookingServiceTest(TestCase):
    """Test the booking lifecycle"""

    def setUp(self):
        self.owner = make_user('owner@example.com', User.Role.OWNER)
        self.guest = make_user('guest@example.com')
        self.other_guest = make_user('other@example.com')
        self.rental = make_rental(self.owner, min_stay=2, max_stay=14)
        self.service = BookingService(self.guest)

    def test_quote_uses_price_overrides(self):
        start = in_days(10)
        Availability.objects.create(property=self.rental, date=start + timedelta(days=1), price=Decimal('160.00'))

        quote = self.service.quote(self.rental, start, start + timedelta(days=3))

        self.assertEqual(quote['nights'], 3)
        self.assertEqual(quote['nightly_total'], Decimal('360.00'))
        self.assertEqual(quote['cleaning_fee'], Decimal('50.00'))
        self.assertEqual(quote['service_fee'], Decimal('3.60'))
        self.assertEqual(quote['tax_amount'], Decimal('28.80'))
        self.assertEqual(quote['total_amount'], Decimal('442.40'))

    @override_settings(BOOKING_SERVICE_FEE_RATE='0.10', BOOKING_TAX_RATE='0')
    def test_quote_rates_from_settings(self):
        start = in_days(10)
        quote = self.service.quote(self.rental, start, start + timedelta(days=2))
        self.assertEqual(quote['service_fee'], Decimal('20.00'))
        self.assertEqual(quote['tax_amount'], Decimal('0.00'))

    def test_create_pending_booking(self):
        start = in_days(10)
        booking = self.service.create_booking(self.rental, start, start + timedelta(days=3), guests=2)

        self.assertEqual(booking.status, Booking.Status.PENDING)
        self.assertEqual(booking.payment_status, Booking.PaymentStatus.PENDING)
        self.assertTrue(booking.booking_number.startswith('BK'))
        self.assertEqual(booking.nights, 3)
        self.assertEqual(booking.total_amount, Decimal('377.00'))
        self.assertEqual(booking.guest_email, 'guest@example.com')
        self.assertEqual(booking.cancellation_policy, CancellationPolicy.FLEXIBLE)
        self.assertFalse(Availability.objects.filter(property=self.rental).exists())
        self.assertTrue(Notification.objects.filter(
            user=self.owner, type=Notification.Type.BOOKING_CREATED
        ).exists())

    def test_instant_book_confirms_and_blocks_nights(self):
        self.rental.instant_book = True
        self.rental.save()
        start = in_days(10)

        booking = self.service.create_booking(self.rental, start, start + timedelta(days=3))

        self.assertEqual(booking.status, Booking.Status.CONFIRMED)
        self.assertIsNotNone(booking.confirmed_at)
        blocked = Availability.objects.filter(property=self.rental, available=False, booking=booking)
        self.assertEqual(sorted(blocked.values_list('date', flat=True)), [start + timedelta(days=i) for i in range(3)])
        self.assertTrue(Notification.objects.filter(
            user=self.guest, type=Notification.Type.BOOKING_CONFIRMED
        ).exists())

    def test_overlapping_booking_rejected(self):
        start = in_days(10)
        self.service.create_booking(self.rental, start, start + timedelta(days=3))

        with self.assertRaises(BookingError) as ctx:
            BookingService(self.other_guest).create_booking(
                self.rental, start + timedelta(days=2), start + timedelta(days=5)
            )
        self.assertEqual(str(ctx.exception.detail), 'Property is not available for the selected dates')

    def test_back_to_back_bookings_allowed(self):
        start = in_days(10)
        self.service.create_booking(self.rental, start, start + timedelta(days=3))
        booking = BookingService(self.other_guest).create_booking(
            self.rental, start + timedelta(days=3), start + timedelta(days=5)
        )
        self.assertEqual(booking.status, Booking.Status.PENDING)

    def test_blocked_date_rejected(self):
        start = in_days(10)
        Availability.objects.create(property=self.rental, date=start + timedelta(days=1), available=False)

        result = self.service.check_availability(self.rental, start, start + timedelta(days=3))
        self.assertFalse(result['is_available'])
        self.assertEqual(result['blocked_dates'], [start + timedelta(days=1)])

        with self.assertRaises(BookingError):
            self.service.create_booking(self.rental, start, start + timedelta(days=3))

    def test_stay_rules(self):
        start = in_days(10)

        result = self.service.check_availability(self.rental, start, start + timedelta(days=1))
        self.assertTrue(result['is_available'])
        self.assertFalse(result['can_book'])
        self.assertEqual(result['message'], 'Minimum stay requirement not met (2 nights required)')

        result = self.service.check_availability(self.rental, start, start + timedelta(days=15))
        self.assertFalse(result['meets_max_stay'])
        self.assertEqual(result['message'], 'Maximum stay exceeded (14 nights maximum)')

        with self.assertRaises(BookingError):
            self.service.create_booking(self.rental, start, start + timedelta(days=1))

    def test_invalid_requests(self):
        start = in_days(10)
        with self.assertRaises(BookingError):
            self.service.check_availability(self.rental, start, start)
        with self.assertRaises(BookingError):
            self.service.create_booking(self.rental, in_days(-1), in_days(2))
        with self.assertRaises(BookingError):
            self.service.create_booking(self.rental, start, start + timedelta(days=3), guests=0)
        with self.assertRaises(BookingError):
            BookingService().create_booking(self.rental, start, start + timedelta(days=3))

    def test_unpublished_or_sale_property_not_bookable(self):
        draft = make_rental(self.owner, title='Draft', status=Property.Status.DRAFT)
        sale = make_rental(self.owner, title='Sale', category=Property.Category.SALE, price=Decimal('90000.00'))
        start = in_days(10)

        for listing in [draft, sale]:
            with self.assertRaises(BookingError) as ctx:
                self.service.create_booking(listing, start, start + timedelta(days=3))
            self.assertEqual(str(ctx.exception.detail), 'Property is not available for booking')

    def test_confirm(self):
        start = in_days(10)
        booking = self.service.create_booking(self.rental, start, start + timedelta(days=3))

        booking = BookingService(self.owner).confirm(booking)

        self.assertEqual(booking.status, Booking.Status.CONFIRMED)
        self.assertEqual(booking.blocked_dates.count(), 3)
        with self.assertRaises(BookingError) as ctx:
            BookingService(self.owner).confirm(booking)
        self.assertEqual(str(ctx.exception.detail), 'Booking is already confirmed')

    def test_confirm_fails_when_date_blocked_meanwhile(self):
        start = in_days(10)
        booking = self.service.create_booking(self.rental, start, start + timedelta(days=3))
        Availability.objects.create(property=self.rental, date=start, available=False)

        with self.assertRaises(BookingError):
            BookingService(self.owner).confirm(booking)

    def _paid_booking(self, start, nights=3):
        booking = self.service.create_booking(self.rental, start, start + timedelta(days=nights))
        booking = BookingService(self.owner).confirm(booking)
        payments = PaymentService()
        payment = payments.initiate(booking, booking.total_amount)
        payments.mark_completed(payment)
        booking.refresh_from_db()
        return booking

    def test_cancel_paid_booking_full_refund(self):
        booking = self._paid_booking(in_days(10))
        self.assertEqual(booking.payment_status, Booking.PaymentStatus.PAID)

        booking = self.service.cancel(booking, reason='Change of plans')

        self.assertEqual(booking.status, Booking.Status.CANCELLED)
        self.assertEqual(booking.payment_status, Booking.PaymentStatus.REFUNDED)
        self.assertEqual(booking.refund_percentage, 100)
        self.assertEqual(booking.refund_amount, booking.total_amount)
        self.assertEqual(booking.cancelled_by, self.guest)
        self.assertEqual(booking.cancellation_reason, 'Change of plans')
        self.assertEqual(Payment.objects.get(booking=booking).status, Payment.Status.REFUNDED)
        self.assertFalse(Availability.objects.filter(property=self.rental, available=False).exists())
        self.assertTrue(Notification.objects.filter(
            user=self.guest, type=Notification.Type.REFUND_ISSUED
        ).exists())

    def test_cancel_strict_booking_partial_refund(self):
        self.rental.cancellation_policy = CancellationPolicy.STRICT
        self.rental.save()
        booking = self._paid_booking(in_days(10))

        # Policy changes after booking do not apply
        self.rental.cancellation_policy = CancellationPolicy.FLEXIBLE
        self.rental.save()

        booking = self.service.cancel(booking)

        self.assertEqual(booking.refund_percentage, 50)
        self.assertEqual(booking.refund_amount, (booking.total_amount / 2).quantize(Decimal('0.01')))
        self.assertEqual(booking.payment_status, Booking.PaymentStatus.PARTIALLY_REFUNDED)
        payment = Payment.objects.get(booking=booking)
        self.assertEqual(payment.status, Payment.Status.PARTIALLY_REFUNDED)
        self.assertEqual(payment.refunded_amount, booking.refund_amount)

    def test_cancel_strict_booking_close_to_check_in_no_refund(self):
        self.rental.cancellation_policy = CancellationPolicy.STRICT
        self.rental.save()
        booking = self._paid_booking(in_days(3))

        booking = self.service.cancel(booking)

        self.assertEqual(booking.refund_percentage, 0)
        self.assertEqual(booking.refund_amount, Decimal('0.00'))
        self.assertEqual(booking.payment_status, Booking.PaymentStatus.PAID)

    def test_cancel_unpaid_booking(self):
        start = in_days(10)
        booking = self.service.create_booking(self.rental, start, start + timedelta(days=3))
        payment = PaymentService().initiate(booking, booking.total_amount)

        booking = self.service.cancel(booking)

        self.assertEqual(booking.status, Booking.Status.CANCELLED)
        self.assertEqual(booking.refund_amount, Decimal('0.00'))
        self.assertEqual(booking.refund_percentage, 100)
        payment.refresh_from_db()
        self.assertEqual(payment.status, Payment.Status.CANCELLED)

    def test_cancel_twice_rejected(self):
        start = in_days(10)
        booking = self.service.create_booking(self.rental, start, start + timedelta(days=3))
        self.service.cancel(booking)

        with self.assertRaises(BookingError) as ctx:
            self.service.cancel(booking)
        self.assertEqual(str(ctx.exception.detail), 'Booking is already cancelled')

    def test_cancelled_dates_can_be_rebooked(self):
        start = in_days(10)
        booking = self._paid_booking(start)
        self.service.cancel(booking)

        rebooked = BookingService(self.other_guest).create_booking(self.rental, start, start + timedelta(days=3))
        self.assertEqual(rebooked.status, Booking.Status.PENDING)

    def test_refund_quote(self):
        booking = self._paid_booking(in_days(10))

        quote = self.service.refund_quote(booking)

        self.assertEqual(quote['days_until_check_in'], 10)
        self.assertEqual(quote['refund_percentage'], 100)
        self.assertEqual(quote['amount_paid'], booking.total_amount)
        self.assertEqual(quote['refund_amount'], booking.total_amount)
        self.assertTrue(quote['cancellable'])

    def test_refund_quote_for_cancelled_booking_is_zero(self):
        booking = self._paid_booking(in_days(10))
        booking = self.service.cancel(booking)

        quote = self.service.refund_quote(booking)

        self.assertFalse(quote['cancellable'])
        self.assertEqual(quote['refund_percentage'], 0)
        self.assertEqual(quote['refund_amount'], Decimal('0.00'))

    def test_complete(self):
        start = in_days(2)
        booking = self.service.create_booking(self.rental, start, start + timedelta(days=3))
        booking = BookingService(self.owner).confirm(booking)

        with self.assertRaises(BookingError) as ctx:
            BookingService(self.owner).complete(booking)
        self.assertEqual(str(ctx.exception.detail), 'Booking cannot be completed before check-out')

        booking = BookingService(self.owner).complete(booking, today=start + timedelta(days=3))
        self.assertEqual(booking.status, Booking.Status.COMPLETED)
        self.assertIsNotNone(booking.completed_at)

        with self.assertRaises(BookingError) as ctx:
            self.service.cancel(booking)
        self.assertEqual(str(ctx.exception.detail), 'Cannot cancel a completed booking')

    def test_complete_requires_confirmed(self):
        start = in_days(2)
        booking = self.service.create_booking(self.rental, start, start + timedelta(days=3))
        with self.assertRaises(BookingError):
            BookingService(self.owner).complete(booking, today=start + timedelta(days=5))


class BookingHousekeepingTest(TestCase):
    """Test expiry of stale bookings and completion of finished stays"""

    def setUp(self):
        self.owner = make_user('owner@example.com', User.Role.OWNER)
        self.guest = make_user('guest@example.com')
        self.rental = make_rental(self.owner)
        self.service = BookingService(self.guest)

    @override_settings(BOOKING_PENDING_TTL_HOURS=48)
    def test_expire_stale_pending_bookings(self):
        stale = self.service.create_booking(self.rental, in_days(10), in_days(12))
        fresh = self.service.create_booking(self.rental, in_days(20), in_days(22))
        payment = PaymentService().initiate(stale, stale.total_amount)
        Booking.objects.filter(pk=stale.pk).update(created_at=timezone.now() - timedelta(hours=49))

        expired = self.service.expire_stale_bookings()

        self.assertEqual(expired, 1)
        stale.refresh_from_db()
        fresh.refresh_from_db()
        payment.refresh_from_db()
        self.assertEqual(stale.status, Booking.Status.EXPIRED)
        self.assertEqual(fresh.status, Booking.Status.PENDING)
        self.assertEqual(payment.status, Payment.Status.CANCELLED)

    def test_pending_booking_past_check_in_expires(self):
        booking = self.service.create_booking(self.rental, in_days(1), in_days(3))
        Booking.objects.filter(pk=booking.pk).update(start_date=in_days(-1))

        self.assertEqual(self.service.expire_stale_bookings(), 1)

    def test_process_bookings_command(self):
        booking = self.service.create_booking(self.rental, in_days(1), in_days(3))
        BookingService(self.owner).confirm(booking)
        Booking.objects.filter(pk=booking.pk).update(start_date=in_days(-4), end_date=in_days(-1))

        out = StringIO()
        call_command('process_bookings', stdout=out)

        self.assertIn('Expired 0 booking(s), completed 1 booking(s)', out.getvalue())
        booking.refresh_from_db()
        self.assertEqual(booking.status, Booking.Status.COMPLETED)

    def test_process_bookings_skip_flags(self):
        booking = self.service.create_booking(self.rental, in_days(1), in_days(3))
        Booking.objects.filter(pk=booking.pk).update(start_date=in_days(-1))

        out = StringIO()
        call_command('process_bookings', '--skip-expire', '--skip-complete', stdout=out)

        self.assertIn('Expired 0 booking(s), completed 0 booking(s)', out.getvalue())
        booking.refresh_from_db()
        self.assertEqual(booking.status, Booking.Status.PENDING)


class BookingAPITest(TestCase):
    """Test booking endpoints"""

    def setUp(self):
        self.client = APIClient()
        self.owner = make_user('owner@example.com', User.Role.OWNER)
        self.guest = make_user('guest@example.com')
        self.stranger = make_user('stranger@example.com')
        self.admin = make_user('admin@example.com', User.Role.ADMIN)
        self.rental = make_rental(self.owner)
        self.start = in_days(10)

    def _create(self, **extra):
        payload = {
            'property': str(self.rental.id),
            'start_date': self.start.isoformat(),
            'end_date': (self.start + timedelta(days=3)).isoformat(),
            'guests': 2,
        }
        payload.update(extra)
        return self.client.post('/api/bookings/', payload, format='json')

    def test_create_booking(self):
        self.client.force_authenticate(self.guest)
        response = self._create()

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['status'], Booking.Status.PENDING)
        self.assertEqual(response.data['nights'], 3)
        self.assertEqual(response.data['total_amount'], '377.00')
        self.assertEqual(response.data['payments'], [])

    def test_create_requires_authentication(self):
        response = self._create()
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_create_validation(self):
        self.client.force_authenticate(self.guest)

        response = self._create(end_date=self.start.isoformat())
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('end_date', response.data)

        response = self._create(start_date=in_days(-1).isoformat())
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('start_date', response.data)

    def test_overlap_returns_400(self):
        self.client.force_authenticate(self.guest)
        self._create()

        self.client.force_authenticate(self.stranger)
        response = self._create()
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['detail'], 'Property is not available for the selected dates')

    def test_list_is_scoped(self):
        self.client.force_authenticate(self.guest)
        self._create()

        response = self.client.get('/api/bookings/')
        self.assertEqual(response.data['count'], 1)

        self.client.force_authenticate(self.owner)
        response = self.client.get('/api/bookings/', {'status': 'pending'})
        self.assertEqual(response.data['count'], 1)

        self.client.force_authenticate(self.stranger)
        response = self.client.get('/api/bookings/')
        self.assertEqual(response.data['count'], 0)

    def test_owner_confirms_guest_cannot(self):
        self.client.force_authenticate(self.guest)
        booking_id = self._create().data['id']

        response = self.client.post(f'/api/bookings/{booking_id}/confirm/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

        self.client.force_authenticate(self.owner)
        response = self.client.post(f'/api/bookings/{booking_id}/confirm/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['status'], Booking.Status.CONFIRMED)

    def test_stranger_cannot_see_booking(self):
        self.client.force_authenticate(self.guest)
        booking_id = self._create().data['id']

        self.client.force_authenticate(self.stranger)
        response = self.client.get(f'/api/bookings/{booking_id}/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_cancel_and_refund_quote(self):
        self.client.force_authenticate(self.guest)
        booking_id = self._create().data['id']

        response = self.client.get(f'/api/bookings/{booking_id}/refund_quote/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['refund_percentage'], 100)

        response = self.client.post(f'/api/bookings/{booking_id}/cancel/', {'reason': 'Sick'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['status'], Booking.Status.CANCELLED)
        self.assertEqual(response.data['cancellation_reason'], 'Sick')

        response = self.client.post(f'/api/bookings/{booking_id}/cancel/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_guest_edits_pending_booking(self):
        self.client.force_authenticate(self.guest)
        booking_id = self._create().data['id']

        response = self.client.patch(f'/api/bookings/{booking_id}/', {'special_requests': 'Crib please'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['special_requests'], 'Crib please')

        self.client.force_authenticate(self.owner)
        response = self.client.patch(f'/api/bookings/{booking_id}/', {'guests': 5}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_only_admin_deletes_unpaid_booking(self):
        self.client.force_authenticate(self.guest)
        booking_id = self._create().data['id']

        response = self.client.delete(f'/api/bookings/{booking_id}/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

        self.client.force_authenticate(self.admin)
        response = self.client.delete(f'/api/bookings/{booking_id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(Booking.objects.filter(pk=booking_id).exists())

    def test_public_availability_check(self):
        Availability.objects.create(property=self.rental, date=self.start, price=Decimal('200.00'))

        response = self.client.post('/api/bookings/availability/', {
            'property': str(self.rental.id),
            'start_date': self.start.isoformat(),
            'end_date': (self.start + timedelta(days=2)).isoformat(),
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(response.data['is_available'])
        self.assertTrue(response.data['can_book'])
        self.assertEqual(response.data['check_in']['nights'], 2)
        self.assertEqual(response.data['pricing']['nightly_total'], Decimal('300.00'))
        self.assertEqual(response.data['conflicts']['existing_bookings'], 0)

    def test_malformed_filters_rejected(self):
        self.client.force_authenticate(self.guest)

        response = self.client.get('/api/bookings/', {'property': 'not-a-uuid', 'user': '42'})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('property', response.data)
        self.assertIn('user', response.data)

        response = self.client.get('/api/bookings/', {'start_date': 'tomorrow'})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
