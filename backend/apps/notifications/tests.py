"""
Tests for notifications
"""
from django.test import TestCase
from rest_framework import status
from rest_framework.test import APIClient

from apps.accounts.models import User
from apps.notifications.models import Notification
from apps.notifications.services import notify

PASSWORD = 'Sunny-Harbor-2931'


def make_user(email, role=User.Role.USER):
    return User.objects.create_user(
        email=email, username=email.split('@')[0], password=PASSWORD, role=role
    )


class NotifyServiceTest(TestCase):
    """Test the notify helper"""

    def test_notify_creates_notification(self):
        user = make_user('guest@example.com')

        notification = notify(user, Notification.Type.BOOKING_CONFIRMED, message='Confirmed', related_id=42)

        self.assertEqual(notification.title, 'Booking Confirmed')
        self.assertEqual(notification.related_id, '42')
        self.assertFalse(notification.read)

    def test_notify_without_user(self):
        self.assertIsNone(notify(None, title='Nobody'))


class NotificationAPITest(TestCase):
    """Test notification endpoints"""

    def setUp(self):
        self.client = APIClient()
        self.user = make_user('guest@example.com')
        self.other = make_user('other@example.com')
        notify(self.user, Notification.Type.BOOKING_CREATED, 'One', 'First')
        notify(self.user, Notification.Type.PAYMENT_RECEIVED, 'Two', 'Second', important=True)
        notify(self.other, Notification.Type.SYSTEM, 'Other', 'Not yours')
        self.client.force_authenticate(self.user)

    def test_list_with_stats(self):
        response = self.client.get('/api/notifications/')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['count'], 2)
        self.assertEqual(response.data['stats'], {'total': 2, 'unread': 2, 'read': 0})

        response = self.client.get('/api/notifications/', {'important': 'true'})
        self.assertEqual([n['title'] for n in response.data['results']], ['Two'])

    def test_mark_one_read(self):
        notification = Notification.objects.get(user=self.user, title='One')

        response = self.client.patch(f'/api/notifications/{notification.id}/', {'read': True}, format='json')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(response.data['read'])
        self.assertIsNotNone(response.data['read_at'])

    def test_cannot_touch_others_notifications(self):
        notification = Notification.objects.get(user=self.other)
        response = self.client.patch(f'/api/notifications/{notification.id}/', {'read': True}, format='json')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_mark_all_and_clear_read(self):
        response = self.client.post('/api/notifications/mark_all/', {'read': True}, format='json')
        self.assertEqual(response.data['updated'], 2)
        self.assertEqual(response.data['stats']['unread'], 0)

        notify(self.user, Notification.Type.SYSTEM, 'Three', 'Unread one')
        response = self.client.post('/api/notifications/clear/', {'read': True}, format='json')

        self.assertEqual(response.data['deleted'], 2)
        self.assertEqual(response.data['stats'], {'total': 1, 'unread': 1, 'read': 0})
        self.assertEqual(Notification.objects.filter(user=self.other).count(), 1)

    def test_clear_all(self):
        response = self.client.delete('/api/notifications/clear/')
        self.assertEqual(response.data['deleted'], 2)

    def test_only_admin_creates(self):
        payload = {
            'user': str(self.other.id),
            'type': 'system',
            'title': 'Maintenance',
            'message': 'Downtime tonight',
        }
        response = self.client.post('/api/notifications/', payload, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

        self.client.force_authenticate(make_user('admin@example.com', User.Role.ADMIN))
        response = self.client.post('/api/notifications/', payload, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(Notification.objects.filter(user=self.other).count(), 2)
