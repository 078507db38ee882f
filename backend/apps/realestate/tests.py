"""
Tests for listings, availability, favorites and inquiries
"""
from datetime import timedelta
from decimal import Decimal

from django.core.management import call_command
from django.test import TestCase
from django.utils import timezone
from rest_framework import status
from rest_framework.test import APIClient

from apps.accounts.models import User, AgentProfile
from apps.bookings.booking_service import BookingService
from apps.bookings.models import Booking
from apps.notifications.models import Notification
from apps.payments.models import Payment
from apps.realestate.models import Property, Availability, Favorite, Inquiry, CancellationPolicy

PASSWORD = 'Sunny-Harbor-2931'


def make_user(email, role=User.Role.USER):
    return User.objects.create_user(
        email=email, username=email.split('@')[0], password=PASSWORD, role=role
    )


def make_property(owner, **extra):
    fields = {
        'title': 'Downtown Loft',
        'description': 'Bright loft',
        'category': Property.Category.RENT,
        'rent_price': Decimal('100.00'),
        'address': '1 Main St',
        'city': 'Austin',
        'state': 'TX',
        'country': 'USA',
        'area': Decimal('800.00'),
        'status': Property.Status.PUBLISHED,
    }
    fields.update(extra)
    return Property.objects.create(owner=owner, **fields)


class PropertyModelTest(TestCase):
    """Test Property model"""

    def setUp(self):
        self.owner = make_user('owner@example.com', User.Role.OWNER)

    def test_slug_is_unique(self):
        first = make_property(self.owner)
        second = make_property(self.owner)
        self.assertEqual(first.slug, 'downtown-loft')
        self.assertNotEqual(first.slug, second.slug)
        self.assertTrue(second.slug.startswith('downtown-loft-'))

    def test_published_at_set_on_publish(self):
        listing = make_property(self.owner, status=Property.Status.DRAFT)
        self.assertIsNone(listing.published_at)
        self.assertFalse(listing.is_bookable)

        listing.publish()
        listing.refresh_from_db()
        self.assertEqual(listing.status, Property.Status.PUBLISHED)
        self.assertIsNotNone(listing.published_at)
        self.assertTrue(listing.is_bookable)

    def test_sale_listing_is_not_bookable(self):
        listing = make_property(
            self.owner, category=Property.Category.SALE, rent_price=None, price=Decimal('250000.00')
        )
        self.assertFalse(listing.is_bookable)
        self.assertEqual(listing.nightly_rate, Decimal('250000.00'))

    def test_full_address(self):
        listing = make_property(self.owner, zip_code='78701')
        self.assertEqual(listing.full_address, '1 Main St, Austin, TX 78701, USA')


class PropertyAPITest(TestCase):
    """Test property endpoints"""

    def setUp(self):
        self.client = APIClient()
        self.owner = make_user('owner@example.com', User.Role.OWNER)
        self.guest = make_user('guest@example.com')
        self.admin = make_user('admin@example.com', User.Role.ADMIN)

    def _payload(self, **extra):
        payload = {
            'title': 'Lake House',
            'description': 'House by the lake',
            'property_type': 'house',
            'category': 'rent',
            'rent_price': '120.00',
            'cleaning_fee': '40.00',
            'address': '9 Shore Rd',
            'city': 'Austin',
            'state': 'TX',
            'country': 'USA',
            'area': '1500.00',
            'bedrooms': 3,
            'min_stay': 2,
            'max_stay': 30,
        }
        payload.update(extra)
        return payload

    def test_owner_creates_property(self):
        self.client.force_authenticate(self.owner)
        response = self.client.post('/api/properties/', self._payload(), format='json')

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['owner'], self.owner.id)
        self.assertEqual(response.data['slug'], 'lake-house')
        self.assertEqual(response.data['status'], Property.Status.DRAFT)

    def test_agent_is_assigned_automatically(self):
        agent_user = make_user('agent@example.com', User.Role.AGENT)
        profile = AgentProfile.objects.create(user=agent_user, license_number='LIC-1')
        self.client.force_authenticate(agent_user)

        response = self.client.post('/api/properties/', self._payload(), format='json')

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['agent'], profile.id)

    def test_guest_cannot_create_property(self):
        self.client.force_authenticate(self.guest)
        response = self.client.post('/api/properties/', self._payload(), format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_price_required_for_category(self):
        self.client.force_authenticate(self.owner)

        response = self.client.post('/api/properties/', self._payload(rent_price=None), format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('rent_price', response.data)

        response = self.client.post('/api/properties/', self._payload(category='sale'), format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('price', response.data)

    def test_min_stay_cannot_exceed_max_stay(self):
        self.client.force_authenticate(self.owner)
        response = self.client.post('/api/properties/', self._payload(min_stay=10, max_stay=3), format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('max_stay', response.data)

    def test_public_sees_only_published(self):
        make_property(self.owner, title='Public')
        make_property(self.owner, title='Draft', status=Property.Status.DRAFT)
        make_property(self.owner, title='Hidden', is_active=False)

        response = self.client.get('/api/properties/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([p['title'] for p in response.data['results']], ['Public'])

        self.client.force_authenticate(self.owner)
        response = self.client.get('/api/properties/')
        self.assertEqual(response.data['count'], 3)

    def test_filters_and_ordering(self):
        make_property(self.owner, title='Cheap', rent_price=Decimal('50.00'), bedrooms=1)
        make_property(self.owner, title='Mid', rent_price=Decimal('150.00'), bedrooms=2, furnished=True)
        make_property(self.owner, title='Pricey', rent_price=Decimal('400.00'), bedrooms=4, city='Dallas')

        response = self.client.get('/api/properties/', {'min_rent': '100', 'max_rent': '200'})
        self.assertEqual([p['title'] for p in response.data['results']], ['Mid'])

        response = self.client.get('/api/properties/', {'bedrooms': '2', 'ordering': 'rent_price'})
        self.assertEqual([p['title'] for p in response.data['results']], ['Mid', 'Pricey'])

        response = self.client.get('/api/properties/', {'city': 'dallas'})
        self.assertEqual(response.data['count'], 1)

        response = self.client.get('/api/properties/', {'furnished': 'true'})
        self.assertEqual(response.data['results'][0]['title'], 'Mid')

        response = self.client.get('/api/properties/', {'search': 'chea'})
        self.assertEqual(response.data['results'][0]['title'], 'Cheap')

    def test_retrieve_counts_views(self):
        listing = make_property(self.owner)

        self.client.get(f'/api/properties/{listing.id}/')
        response = self.client.get(f'/api/properties/{listing.id}/')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['views'], 2)
        self.assertFalse(response.data['is_favorite'])

    def test_draft_hidden_from_public_detail(self):
        listing = make_property(self.owner, status=Property.Status.DRAFT)
        response = self.client.get(f'/api/properties/{listing.id}/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_only_manager_updates(self):
        listing = make_property(self.owner)

        self.client.force_authenticate(self.guest)
        response = self.client.patch(f'/api/properties/{listing.id}/', {'title': 'Mine'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

        self.client.force_authenticate(self.owner)
        response = self.client.patch(f'/api/properties/{listing.id}/', {'title': 'Renamed'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        listing.refresh_from_db()
        self.assertEqual(listing.title, 'Renamed')

    def test_publish_and_toggle_featured(self):
        listing = make_property(self.owner, status=Property.Status.DRAFT)

        self.client.force_authenticate(self.owner)
        response = self.client.post(f'/api/properties/{listing.id}/publish/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['status'], Property.Status.PUBLISHED)

        response = self.client.post(f'/api/properties/{listing.id}/toggle_featured/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

        self.client.force_authenticate(self.admin)
        response = self.client.post(f'/api/properties/{listing.id}/toggle_featured/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(response.data['featured'])

        self.client.force_authenticate(None)
        response = self.client.get('/api/properties/featured/')
        self.assertEqual(len(response.data), 1)

    def test_delete_by_owner(self):
        listing = make_property(self.owner)
        self.client.force_authenticate(self.owner)

        response = self.client.delete(f'/api/properties/{listing.id}/')

        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(Property.objects.filter(pk=listing.pk).exists())


class AvailabilityAPITest(TestCase):
    """Test the availability calendar of a property"""

    def setUp(self):
        self.client = APIClient()
        self.owner = make_user('owner@example.com', User.Role.OWNER)
        self.guest = make_user('guest@example.com')
        self.listing = make_property(self.owner, instant_book=True)
        self.day = timezone.localdate() + timedelta(days=20)

    def test_owner_sets_price_override(self):
        self.client.force_authenticate(self.owner)
        url = f'/api/properties/{self.listing.id}/availability/'

        response = self.client.post(url, {'date': self.day.isoformat(), 'price': '180.00'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)

        response = self.client.post(url, {'date': self.day.isoformat(), 'available': False}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        record = Availability.objects.get(property=self.listing, date=self.day)
        self.assertFalse(record.available)
        self.assertIsNone(record.price)

    def test_guest_cannot_edit_availability(self):
        self.client.force_authenticate(self.guest)
        response = self.client.post(
            f'/api/properties/{self.listing.id}/availability/',
            {'date': self.day.isoformat(), 'available': False},
            format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_booked_date_cannot_be_reopened(self):
        booking = BookingService(self.guest).create_booking(
            self.listing, self.day, self.day + timedelta(days=2)
        )
        self.assertEqual(booking.status, Booking.Status.CONFIRMED)

        self.client.force_authenticate(self.owner)
        url = f'/api/properties/{self.listing.id}/availability/'
        response = self.client.post(url, {'date': self.day.isoformat(), 'available': True}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

        response = self.client.get(url, {
            'start_date': self.day.isoformat(),
            'end_date': (self.day + timedelta(days=5)).isoformat(),
        })
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data['availability']), 2)
        self.assertEqual(response.data['bookings'][0]['booking_number'], booking.booking_number)

    def test_visitors_see_booked_dates_only(self):
        BookingService(self.guest).create_booking(
            self.listing, self.day, self.day + timedelta(days=2), guest_name='Alice Private'
        )
        url = f'/api/properties/{self.listing.id}/availability/'

        for user in [None, make_user('visitor@example.com')]:
            self.client.force_authenticate(user)
            response = self.client.get(url)

            self.assertEqual(response.status_code, status.HTTP_200_OK)
            self.assertEqual(response.data['bookings'], [{
                'start_date': self.day.isoformat(),
                'end_date': (self.day + timedelta(days=2)).isoformat(),
                'nights': 2,
            }])
            self.assertEqual(len(response.data['availability']), 2)
            self.assertNotIn('booking', response.data['availability'][0])
            self.assertNotIn('Alice Private', str(response.data))


class FavoriteAPITest(TestCase):
    """Test favorites"""

    def setUp(self):
        self.client = APIClient()
        self.owner = make_user('owner@example.com', User.Role.OWNER)
        self.guest = make_user('guest@example.com')
        self.listing = make_property(self.owner)
        self.client.force_authenticate(self.guest)

    def test_favorite_is_idempotent(self):
        url = f'/api/properties/{self.listing.id}/favorite/'

        response = self.client.post(url)
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        response = self.client.post(url)
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(Favorite.objects.filter(user=self.guest).count(), 1)

        response = self.client.get('/api/favorites/')
        self.assertEqual(response.data['count'], 1)
        self.assertEqual(response.data['results'][0]['property_detail']['title'], 'Downtown Loft')

        response = self.client.get(f'/api/properties/{self.listing.id}/')
        self.assertTrue(response.data['is_favorite'])

    def test_remove_favorite(self):
        url = f'/api/properties/{self.listing.id}/favorite/'
        Favorite.objects.create(user=self.guest, property=self.listing)

        response = self.client.delete(url)
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)

        response = self.client.delete(url)
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_favorite_requires_authentication(self):
        self.client.force_authenticate(None)
        response = self.client.post(f'/api/properties/{self.listing.id}/favorite/')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)


class InquiryAPITest(TestCase):
    """Test inquiries"""

    def setUp(self):
        self.client = APIClient()
        self.owner = make_user('owner@example.com', User.Role.OWNER)
        self.guest = make_user('guest@example.com')
        self.listing = make_property(self.owner)

    def _send(self):
        return self.client.post('/api/inquiries/', {
            'property': str(self.listing.id),
            'name': 'Grace Guest',
            'email': 'guest@example.com',
            'message': 'Is parking included?',
        }, format='json')

    def test_anonymous_inquiry_notifies_owner(self):
        response = self._send()

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertIsNone(response.data['user'])
        self.assertTrue(Notification.objects.filter(
            user=self.owner, type=Notification.Type.INQUIRY_RECEIVED
        ).exists())

    def test_inquiry_on_draft_rejected(self):
        self.listing.status = Property.Status.DRAFT
        self.listing.save()
        response = self._send()
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_owner_responds_and_guest_is_notified(self):
        self.client.force_authenticate(self.guest)
        inquiry_id = self._send().data['id']

        response = self.client.post(f'/api/inquiries/{inquiry_id}/respond/', {'response': 'Yes'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

        self.client.force_authenticate(self.owner)
        response = self.client.get('/api/inquiries/')
        self.assertEqual(response.data['count'], 1)

        response = self.client.post(f'/api/inquiries/{inquiry_id}/respond/', {'response': 'Yes'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['status'], Inquiry.Status.RESPONDED)
        self.assertTrue(Notification.objects.filter(
            user=self.guest, type=Notification.Type.INQUIRY_RESPONDED
        ).exists())

    def test_closed_inquiry_cannot_be_answered(self):
        self.client.force_authenticate(self.guest)
        inquiry_id = self._send().data['id']

        response = self.client.post(f'/api/inquiries/{inquiry_id}/close/')
        self.assertEqual(response.data['status'], Inquiry.Status.CLOSED)

        self.client.force_authenticate(self.owner)
        response = self.client.post(f'/api/inquiries/{inquiry_id}/respond/', {'response': 'Late'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_listing_inquiries_route(self):
        self._send()
        other_listing = make_property(self.owner, title='Other')
        Inquiry.objects.create(property=other_listing, name='Sam', email='sam@example.com', message='Hi')

        self.client.force_authenticate(self.owner)
        response = self.client.get(f'/api/properties/{self.listing.id}/inquiries/')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['count'], 1)
        self.assertEqual(response.data['results'][0]['property_title'], 'Downtown Loft')

    def test_strangers_do_not_see_inquiries(self):
        self._send()
        self.client.force_authenticate(make_user('stranger@example.com'))
        response = self.client.get('/api/inquiries/')
        self.assertEqual(response.data['count'], 0)


class SeedMarketplaceCommandTest(TestCase):
    """Test the demo data command"""

    def test_seed_is_idempotent(self):
        call_command('seed_marketplace', verbosity=0)
        call_command('seed_marketplace', verbosity=0)

        self.assertEqual(User.objects.filter(email__endswith='@marketplace.test').count(), 5)
        self.assertEqual(Property.objects.filter(slug__startswith='demo-').count(), 2)

        booking = Booking.objects.get()
        self.assertEqual(booking.status, Booking.Status.CONFIRMED)
        self.assertEqual(booking.payment_status, Booking.PaymentStatus.PAID)
        self.assertEqual(booking.cancellation_policy, CancellationPolicy.STRICT)
        self.assertEqual(Payment.objects.filter(status=Payment.Status.COMPLETED).count(), 1)
        self.assertEqual(Favorite.objects.count(), 1)
        self.assertEqual(Inquiry.objects.count(), 1)
