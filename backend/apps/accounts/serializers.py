"""
Accounts serializers for API.
"""
from rest_framework import serializers
from rest_framework_simplejwt.serializers import TokenObtainPairSerializer
from django.contrib.auth import get_user_model
from django.contrib.auth.password_validation import validate_password
from .models import AgentProfile, DeveloperProfile

User = get_user_model()


def onboarding_steps(user):
    """
    Next steps for a new marketplace member, by role.
    Agents and developers need a public profile before they can be assigned
    listings; owners and agents are pointed at their first listing.
    """
    steps = []
    if user.role == User.Role.AGENT and not AgentProfile.objects.filter(user=user).exists():
        steps.append({'step': 'agent_profile', 'endpoint': '/api/agents/'})
    if user.role == User.Role.DEVELOPER and not DeveloperProfile.objects.filter(user=user).exists():
        steps.append({'step': 'developer_profile', 'endpoint': '/api/developers/'})
    if user.role in [User.Role.OWNER, User.Role.AGENT] and not user.properties.exists():
        steps.append({'step': 'first_listing', 'endpoint': '/api/properties/'})
    if user.role == User.Role.USER:
        steps.append({'step': 'browse_listings', 'endpoint': '/api/properties/'})
    return steps


class UserSerializer(serializers.ModelSerializer):
    """Serializer for User model."""
    role_display = serializers.CharField(source='get_role_display', read_only=True)

    class Meta:
        model = User
        fields = [
            'id', 'email', 'username', 'first_name', 'last_name', 'phone',
            'role', 'role_display', 'date_joined'
        ]
        read_only_fields = ['id', 'role', 'date_joined']


class UserCreateSerializer(serializers.ModelSerializer):
    """Serializer for user registration."""
    password = serializers.CharField(write_only=True, validators=[validate_password])
    password_confirm = serializers.CharField(write_only=True)
    role = serializers.ChoiceField(
        choices=[
            User.Role.USER, User.Role.OWNER,
            User.Role.AGENT, User.Role.DEVELOPER
        ],
        default=User.Role.USER
    )

    class Meta:
        model = User
        fields = [
            'email', 'username', 'first_name', 'last_name', 'phone',
            'role', 'password', 'password_confirm'
        ]

    def validate(self, attrs):
        if attrs['password'] != attrs['password_confirm']:
            raise serializers.ValidationError({'password_confirm': 'Passwords do not match.'})
        return attrs

    def create(self, validated_data):
        validated_data.pop('password_confirm')
        password = validated_data.pop('password')
        user = User.objects.create_user(
            email=validated_data['email'],
            username=validated_data['username'],
            password=password,
            first_name=validated_data.get('first_name', ''),
            last_name=validated_data.get('last_name', ''),
            phone=validated_data.get('phone', ''),
            role=validated_data.get('role', User.Role.USER)
        )
        return user


class CurrentUserSerializer(serializers.ModelSerializer):
    """Serializer for current authenticated user with attached profiles."""
    agent_profile_id = serializers.SerializerMethodField()
    developer_profile_id = serializers.SerializerMethodField()

    class Meta:
        model = User
        fields = [
            'id', 'email', 'username', 'first_name', 'last_name', 'phone',
            'role', 'bio', 'city', 'state', 'country', 'date_joined',
            'agent_profile_id', 'developer_profile_id'
        ]
        read_only_fields = ['id', 'email', 'role', 'date_joined']

    def get_agent_profile_id(self, obj):
        profile = AgentProfile.objects.filter(user=obj).only('id').first()
        return profile.id if profile else None

    def get_developer_profile_id(self, obj):
        profile = DeveloperProfile.objects.filter(user=obj).only('id').first()
        return profile.id if profile else None


class AgentProfileSerializer(serializers.ModelSerializer):
    """Serializer for AgentProfile."""
    name = serializers.CharField(source='user.full_name', read_only=True)
    email = serializers.EmailField(source='user.email', read_only=True)
    phone = serializers.CharField(source='user.phone', read_only=True, allow_null=True)
    city = serializers.CharField(source='user.city', read_only=True)
    properties_count = serializers.SerializerMethodField()

    class Meta:
        model = AgentProfile
        fields = [
            'id', 'user', 'name', 'email', 'phone', 'city',
            'company', 'license_number', 'experience_years', 'bio',
            'specialties', 'languages', 'office_address', 'website',
            'verified', 'verified_at', 'featured', 'properties_count',
            'created_at', 'updated_at'
        ]
        read_only_fields = [
            'id', 'user', 'verified', 'verified_at', 'featured',
            'created_at', 'updated_at'
        ]

    def get_properties_count(self, obj):
        return obj.properties.count()


class AgentVerificationSerializer(serializers.Serializer):
    """Serializer for the admin verification action."""
    verified = serializers.BooleanField()
    notes = serializers.CharField(required=False, allow_blank=True, default='')


class DeveloperProfileSerializer(serializers.ModelSerializer):
    """Serializer for DeveloperProfile."""
    owner_name = serializers.CharField(source='user.full_name', read_only=True)
    projects_count = serializers.SerializerMethodField()

    class Meta:
        model = DeveloperProfile
        fields = [
            'id', 'user', 'owner_name', 'company_name', 'description',
            'established_year', 'completed_projects', 'website', 'phone',
            'email', 'address', 'verified', 'verified_at', 'featured',
            'projects_count', 'created_at', 'updated_at'
        ]
        read_only_fields = [
            'id', 'user', 'verified', 'verified_at', 'featured',
            'created_at', 'updated_at'
        ]

    def get_projects_count(self, obj):
        return obj.projects.count()


class MarketplaceTokenObtainPairSerializer(TokenObtainPairSerializer):
    """Email/password login; tokens carry the user's role."""

    @classmethod
    def get_token(cls, user):
        token = super().get_token(user)
        token['role'] = user.role
        token['email'] = user.email
        return token

    def validate(self, attrs):
        data = super().validate(attrs)
        data['user'] = UserSerializer(self.user).data
        data['onboarding'] = onboarding_steps(self.user)
        return data
