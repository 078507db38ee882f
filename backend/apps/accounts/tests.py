"""
Tests for accounts: registration, JWT auth, agent and developer profiles
"""
from django.test import TestCase
from rest_framework import status
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import AccessToken

from apps.accounts.models import User, AgentProfile, DeveloperProfile
from apps.accounts.permissions import is_property_manager
from apps.notifications.models import Notification
from apps.realestate.models import Property

PASSWORD = 'Sunny-Harbor-2931'


def make_user(email, role=User.Role.USER, **extra):
    return User.objects.create_user(
        email=email,
        username=email.split('@')[0],
        password=PASSWORD,
        role=role,
        **extra
    )


class UserModelTest(TestCase):
    """Test User model"""

    def test_roles(self):
        owner = make_user('owner@example.com', User.Role.OWNER)
        guest = make_user('guest@example.com')
        admin = make_user('admin@example.com', User.Role.ADMIN)

        self.assertTrue(owner.can_list_properties)
        self.assertFalse(guest.can_list_properties)
        self.assertTrue(admin.is_admin_role)
        self.assertFalse(owner.is_admin_role)

    def test_full_name_falls_back_to_email(self):
        user = make_user('noname@example.com')
        self.assertEqual(user.full_name, 'noname@example.com')
        user.first_name = 'Nora'
        user.last_name = 'Name'
        self.assertEqual(user.full_name, 'Nora Name')
        self.assertEqual(str(user), 'noname@example.com')

    def test_superuser_is_admin_role(self):
        user = make_user('root@example.com', is_superuser=True)
        self.assertTrue(user.is_admin_role)

    def test_is_property_manager(self):
        owner = make_user('owner@example.com', User.Role.OWNER)
        agent_user = make_user('agent@example.com', User.Role.AGENT)
        stranger = make_user('stranger@example.com')
        agent = AgentProfile.objects.create(user=agent_user, license_number='LIC-1')
        listing = Property.objects.create(
            owner=owner, agent=agent, title='Loft', description='Loft',
            rent_price=100, address='1 Main St', city='Austin', state='TX',
            country='USA', area=500
        )

        self.assertTrue(is_property_manager(owner, listing))
        self.assertTrue(is_property_manager(agent_user, listing))
        self.assertFalse(is_property_manager(stranger, listing))


class AuthAPITest(TestCase):
    """Test registration, login, current user and logout"""

    def setUp(self):
        self.client = APIClient()

    def test_register_returns_tokens(self):
        response = self.client.post('/api/auth/register/', {
            'email': 'new@example.com',
            'username': 'newbie',
            'first_name': 'New',
            'last_name': 'User',
            'role': 'owner',
            'password': PASSWORD,
            'password_confirm': PASSWORD,
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['user']['role'], 'owner')
        self.assertIn('access', response.data['tokens'])
        self.assertIn('refresh', response.data['tokens'])
        self.assertTrue(User.objects.get(email='new@example.com').check_password(PASSWORD))

    def test_register_rejects_mismatched_passwords(self):
        response = self.client.post('/api/auth/register/', {
            'email': 'new@example.com',
            'username': 'newbie',
            'password': PASSWORD,
            'password_confirm': PASSWORD + 'x',
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('password_confirm', response.data)

    def test_register_cannot_choose_admin_role(self):
        response = self.client.post('/api/auth/register/', {
            'email': 'sneaky@example.com',
            'username': 'sneaky',
            'role': 'admin',
            'password': PASSWORD,
            'password_confirm': PASSWORD,
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertFalse(User.objects.filter(email='sneaky@example.com').exists())

    def test_login_and_me(self):
        make_user('login@example.com', first_name='Lou')

        response = self.client.post('/api/auth/login/', {
            'email': 'login@example.com',
            'password': PASSWORD,
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)

        self.client.credentials(HTTP_AUTHORIZATION=f"Bearer {response.data['access']}")
        response = self.client.get('/api/auth/me/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['email'], 'login@example.com')
        self.assertIsNone(response.data['agent_profile_id'])

    def test_me_requires_authentication(self):
        response = self.client.get('/api/auth/me/')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_update_me_keeps_role(self):
        user = make_user('me@example.com')
        self.client.force_authenticate(user)

        response = self.client.patch('/api/auth/me/', {'city': 'Denver', 'role': 'admin'}, format='json')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        user.refresh_from_db()
        self.assertEqual(user.city, 'Denver')
        self.assertEqual(user.role, User.Role.USER)

    def test_logout_blacklists_refresh_token(self):
        make_user('bye@example.com')
        tokens = self.client.post('/api/auth/login/', {
            'email': 'bye@example.com',
            'password': PASSWORD,
        }, format='json').data

        self.client.credentials(HTTP_AUTHORIZATION=f"Bearer {tokens['access']}")
        response = self.client.post('/api/auth/logout/', {'refresh': tokens['refresh']}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)

        self.client.credentials()
        response = self.client.post('/api/auth/refresh/', {'refresh': tokens['refresh']}, format='json')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_register_agent_gets_onboarding_steps(self):
        response = self.client.post('/api/auth/register/', {
            'email': 'agent@example.com',
            'username': 'agent',
            'role': 'agent',
            'password': PASSWORD,
            'password_confirm': PASSWORD,
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(
            [step['step'] for step in response.data['onboarding']],
            ['agent_profile', 'first_listing']
        )
        self.assertEqual(AccessToken(response.data['tokens']['access'])['role'], 'agent')

    def test_login_returns_user_and_role_claim(self):
        make_user('dev@example.com', User.Role.DEVELOPER)

        response = self.client.post('/api/auth/login/', {
            'email': 'dev@example.com',
            'password': PASSWORD,
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['user']['email'], 'dev@example.com')
        self.assertEqual(response.data['onboarding'], [
            {'step': 'developer_profile', 'endpoint': '/api/developers/'}
        ])
        self.assertEqual(AccessToken(response.data['access'])['role'], 'developer')

    def test_onboarding_clears_once_profile_and_listing_exist(self):
        user = make_user('ready@example.com', User.Role.AGENT)
        AgentProfile.objects.create(user=user, company='Sunset Realty', license_number='LIC-9')
        Property.objects.create(
            owner=user,
            title='Lake House',
            description='On the water',
            category=Property.Category.SALE,
            price='450000.00',
            address='9 Shore Rd',
            city='Austin',
            state='TX',
            country='USA',
            area='1500.00',
        )
        self.client.force_authenticate(user)

        response = self.client.get('/api/auth/me/')

        self.assertEqual(response.data['onboarding'], [])
        self.assertIsNotNone(response.data['agent_profile_id'])

    def test_logout_requires_refresh_token(self):
        self.client.force_authenticate(make_user('bye@example.com'))
        response = self.client.post('/api/auth/logout/', {}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)


class AgentProfileAPITest(TestCase):
    """Test agent profile endpoints"""

    def setUp(self):
        self.client = APIClient()
        self.agent_user = make_user('agent@example.com', User.Role.AGENT, first_name='Alice', last_name='Agent')
        self.admin = make_user('admin@example.com', User.Role.ADMIN)

    def test_agent_creates_own_profile(self):
        self.client.force_authenticate(self.agent_user)
        response = self.client.post('/api/agents/', {
            'company': 'Sunset Realty',
            'license_number': 'LIC-100',
            'experience_years': 5,
            'languages': ['English'],
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['user'], self.agent_user.id)
        self.assertFalse(response.data['verified'])

        response = self.client.post('/api/agents/', {'license_number': 'LIC-101'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_regular_user_cannot_create_agent_profile(self):
        self.client.force_authenticate(make_user('guest@example.com'))
        response = self.client.post('/api/agents/', {'license_number': 'LIC-200'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_agent_list_is_public_and_filterable(self):
        AgentProfile.objects.create(user=self.agent_user, license_number='LIC-1', experience_years=10, verified=True)
        other = make_user('junior@example.com', User.Role.AGENT)
        AgentProfile.objects.create(user=other, license_number='LIC-2', experience_years=1)

        response = self.client.get('/api/agents/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['count'], 2)

        response = self.client.get('/api/agents/', {'experience': '5'})
        self.assertEqual(response.data['count'], 1)

        response = self.client.get('/api/agents/', {'verified': 'false'})
        self.assertEqual(response.data['results'][0]['license_number'], 'LIC-2')

    def test_admin_verifies_agent_and_agent_is_notified(self):
        profile = AgentProfile.objects.create(user=self.agent_user, license_number='LIC-1')

        self.client.force_authenticate(self.agent_user)
        response = self.client.post(f'/api/agents/{profile.id}/verify/', {'verified': True}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

        self.client.force_authenticate(self.admin)
        response = self.client.post(
            f'/api/agents/{profile.id}/verify/',
            {'verified': True, 'notes': 'License checked.'},
            format='json'
        )

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(response.data['verified'])
        self.assertIsNotNone(response.data['verified_at'])
        self.assertTrue(Notification.objects.filter(
            user=self.agent_user, type=Notification.Type.AGENT_VERIFIED
        ).exists())

    def test_other_user_cannot_edit_profile(self):
        profile = AgentProfile.objects.create(user=self.agent_user, license_number='LIC-1')
        self.client.force_authenticate(make_user('other@example.com', User.Role.AGENT))

        response = self.client.patch(f'/api/agents/{profile.id}/', {'bio': 'Hacked'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_agent_properties(self):
        profile = AgentProfile.objects.create(user=self.agent_user, license_number='LIC-1')
        owner = make_user('owner@example.com', User.Role.OWNER)
        Property.objects.create(
            owner=owner, agent=profile, title='Loft', description='Loft',
            rent_price=100, address='1 Main St', city='Austin', state='TX',
            country='USA', area=500, status=Property.Status.PUBLISHED
        )

        response = self.client.get(f'/api/agents/{profile.id}/properties/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['count'], 1)
        self.assertEqual(response.data['results'][0]['title'], 'Loft')


class DeveloperProfileAPITest(TestCase):
    """Test developer profile endpoints"""

    def setUp(self):
        self.client = APIClient()
        self.developer_user = make_user('dev@example.com', User.Role.DEVELOPER)

    def test_developer_creates_profile(self):
        self.client.force_authenticate(self.developer_user)
        response = self.client.post('/api/developers/', {
            'company_name': 'Skyline Developments',
            'established_year': 2005,
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(DeveloperProfile.objects.get().user, self.developer_user)

    def test_projects_include_counts(self):
        developer = DeveloperProfile.objects.create(user=self.developer_user, company_name='Skyline')
        Property.objects.create(
            owner=self.developer_user, developer=developer, title='Tower', description='Tower',
            category=Property.Category.SALE, price=500000, address='2 Main St',
            city='Austin', state='TX', country='USA', area=1200,
            status=Property.Status.PUBLISHED
        )

        response = self.client.get(f'/api/developers/{developer.id}/projects/')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        project = response.data['results'][0]
        self.assertEqual(project['title'], 'Tower')
        self.assertEqual(project['confirmed_bookings'], 0)
        self.assertEqual(project['favorites_count'], 0)
