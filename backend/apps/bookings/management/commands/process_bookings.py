"""
Booking housekeeping: expire stale pending bookings and complete finished stays.
Meant to run from cron, e.g. hourly:

    python manage.py process_bookings
"""
import logging

from django.core.management.base import BaseCommand

from apps.bookings.booking_service import BookingService

logger = logging.getLogger(__name__)


class Command(BaseCommand):
    help = 'Expire stale pending bookings and complete bookings past check-out.'

    def add_arguments(self, parser):
        parser.add_argument('--skip-expire', action='store_true', help='Do not expire pending bookings')
        parser.add_argument('--skip-complete', action='store_true', help='Do not complete finished bookings')

    def handle(self, *args, **options):
        service = BookingService()

        expired = 0
        if not options['skip_expire']:
            expired = service.expire_stale_bookings()

        completed = 0
        if not options['skip_complete']:
            completed = service.complete_finished_bookings()

        logger.info(f"Booking housekeeping done: {expired} expired, {completed} completed")
        self.stdout.write(self.style.SUCCESS(f'Expired {expired} booking(s), completed {completed} booking(s)'))
