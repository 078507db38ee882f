"""
Create demo marketplace data: users for each role, agent/developer profiles,
a rental and a sale listing, availability, a paid booking, a favorite,
an inquiry and notifications.

Safe to run repeatedly.

    python manage.py seed_marketplace
"""
import logging
from datetime import timedelta
from decimal import Decimal

from django.core.management.base import BaseCommand
from django.db import transaction
from django.utils import timezone

from apps.accounts.models import User, AgentProfile, DeveloperProfile
from apps.bookings.booking_service import BookingService
from apps.bookings.models import Booking
from apps.notifications.models import Notification
from apps.notifications.services import notify
from apps.payments.payment_service import PaymentService
from apps.realestate.models import Property, Availability, Favorite, Inquiry, CancellationPolicy

logger = logging.getLogger(__name__)

DEMO_PASSWORD = 'password123'

DEMO_USERS = [
    ('admin@marketplace.test', 'admin', 'Ada', 'Admin', User.Role.ADMIN),
    ('owner@marketplace.test', 'owner', 'Oscar', 'Owner', User.Role.OWNER),
    ('agent@marketplace.test', 'agent', 'Alice', 'Agent', User.Role.AGENT),
    ('developer@marketplace.test', 'developer', 'Dan', 'Developer', User.Role.DEVELOPER),
    ('guest@marketplace.test', 'guest', 'Grace', 'Guest', User.Role.USER),
]


class Command(BaseCommand):
    help = 'Seed the database with demo marketplace data.'

    def handle(self, *args, **options):
        with transaction.atomic():
            users = self._create_users()
            agent, developer = self._create_profiles(users)
            rental, sale = self._create_properties(users['owner'], agent, developer)
            self._create_availability(rental)

        booking = self._create_booking(users['guest'], rental)

        Favorite.objects.get_or_create(user=users['guest'], property=sale)
        inquiry, created = Inquiry.objects.get_or_create(
            property=sale,
            email=users['guest'].email,
            defaults={
                'user': users['guest'],
                'name': users['guest'].full_name,
                'phone': '+1 555 0100',
                'message': 'Is the price negotiable? I would like to schedule a viewing.',
            }
        )
        if created:
            notify(
                users['owner'],
                Notification.Type.INQUIRY_RECEIVED,
                'New inquiry',
                f"{inquiry.name} sent an inquiry about {sale.title}.",
                related_id=inquiry.id
            )
            notify(
                users['guest'],
                Notification.Type.SYSTEM,
                'Welcome to the marketplace',
                'Browse listings, save favorites and book your next stay.'
            )

        self.stdout.write(self.style.SUCCESS(
            f"Demo data ready: {len(users)} users, 2 properties, booking {booking.booking_number} "
            f"(password for all demo users: {DEMO_PASSWORD})"
        ))

    def _create_users(self):
        users = {}
        for email, username, first_name, last_name, role in DEMO_USERS:
            user, created = User.objects.get_or_create(
                email=email,
                defaults={
                    'username': username,
                    'first_name': first_name,
                    'last_name': last_name,
                    'role': role,
                    'is_staff': role == User.Role.ADMIN,
                }
            )
            if created:
                user.set_password(DEMO_PASSWORD)
                user.save(update_fields=['password'])
                logger.info(f"Created demo user: {email}")
            users[username] = user
        return users

    def _create_profiles(self, users):
        agent, _ = AgentProfile.objects.get_or_create(
            user=users['agent'],
            defaults={
                'company': 'Sunset Realty',
                'license_number': 'LIC-DEMO-0001',
                'experience_years': 8,
                'bio': 'Residential rentals and sales specialist.',
                'specialties': ['rentals', 'luxury'],
                'languages': ['English', 'Spanish'],
                'verified': True,
                'verified_at': timezone.now(),
            }
        )
        developer, _ = DeveloperProfile.objects.get_or_create(
            user=users['developer'],
            defaults={
                'company_name': 'Skyline Developments',
                'description': 'Mixed-use residential projects.',
                'established_year': 2005,
                'completed_projects': 12,
                'email': users['developer'].email,
                'verified': True,
                'verified_at': timezone.now(),
            }
        )
        return agent, developer

    def _create_properties(self, owner, agent, developer):
        rental, _ = Property.objects.get_or_create(
            slug='demo-downtown-loft',
            defaults={
                'owner': owner,
                'agent': agent,
                'title': 'Downtown Loft',
                'description': 'Bright two bedroom loft close to restaurants and transit.',
                'property_type': Property.PropertyType.APARTMENT,
                'category': Property.Category.RENT,
                'rent_price': Decimal('150.00'),
                'cleaning_fee': Decimal('75.00'),
                'security_deposit': Decimal('500.00'),
                'address': '12 Market Street',
                'city': 'Austin',
                'state': 'TX',
                'country': 'USA',
                'zip_code': '78701',
                'bedrooms': 2,
                'bathrooms': 1,
                'area': Decimal('950.00'),
                'furnished': True,
                'amenities': ['wifi', 'air_conditioning', 'washer'],
                'min_stay': 2,
                'max_stay': 365,
                'instant_book': True,
                'cancellation_policy': CancellationPolicy.STRICT,
                'status': Property.Status.PUBLISHED,
                'featured': True,
                'verified': True,
            }
        )
        sale, _ = Property.objects.get_or_create(
            slug='demo-skyline-villa',
            defaults={
                'owner': owner,
                'agent': agent,
                'developer': developer,
                'title': 'Skyline Villa',
                'description': 'Four bedroom villa with pool in a new development.',
                'property_type': Property.PropertyType.VILLA,
                'category': Property.Category.SALE,
                'price': Decimal('850000.00'),
                'address': '400 Hilltop Drive',
                'city': 'Austin',
                'state': 'TX',
                'country': 'USA',
                'zip_code': '78746',
                'bedrooms': 4,
                'bathrooms': 3,
                'area': Decimal('3200.00'),
                'year_built': 2024,
                'parking_spaces': 2,
                'amenities': ['pool', 'garden', 'garage'],
                'status': Property.Status.PUBLISHED,
            }
        )
        return rental, sale

    def _create_availability(self, rental):
        # Weekend pricing for the coming month
        today = timezone.localdate()
        for offset in range(1, 31):
            day = today + timedelta(days=offset)
            if day.weekday() in [4, 5]:
                Availability.objects.get_or_create(
                    property=rental,
                    date=day,
                    defaults={'available': True, 'price': Decimal('180.00')}
                )

    def _create_booking(self, guest, rental):
        existing = Booking.objects.filter(user=guest, property=rental).first()
        if existing:
            return existing

        start_date = timezone.localdate() + timedelta(days=45)
        booking = BookingService(guest).create_booking(
            rental,
            start_date,
            start_date + timedelta(days=7),
            guests=2,
            special_requests='Late check-in please.'
        )
        payment_service = PaymentService()
        payment = payment_service.initiate(booking, booking.total_amount, user=guest)
        payment_service.mark_completed(payment)
        booking.refresh_from_db()
        return booking
