"""
Accounts models - User, AgentProfile, DeveloperProfile
"""
import uuid
from django.conf import settings
from django.contrib.auth.models import AbstractUser
from django.db import models


class User(AbstractUser):
    """Custom user model with UUID primary key and a marketplace role."""

    class Role(models.TextChoices):
        USER = 'user', 'User'
        OWNER = 'owner', 'Property Owner'
        AGENT = 'agent', 'Agent'
        DEVELOPER = 'developer', 'Developer'
        ADMIN = 'admin', 'Admin'
        SUPER_ADMIN = 'super_admin', 'Super Admin'

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    email = models.EmailField(unique=True, verbose_name='email address')
    phone = models.CharField(max_length=20, blank=True, null=True)
    role = models.CharField(
        max_length=20,
        choices=Role.choices,
        default=Role.USER
    )

    # Profile
    bio = models.TextField(blank=True)
    city = models.CharField(max_length=100, blank=True)
    state = models.CharField(max_length=100, blank=True)
    country = models.CharField(max_length=100, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    # Use email as username
    USERNAME_FIELD = 'email'
    REQUIRED_FIELDS = ['username', 'first_name', 'last_name']

    class Meta:
        db_table = 'users'
        verbose_name = 'user'
        verbose_name_plural = 'users'

    def __str__(self):
        return self.email

    @property
    def full_name(self):
        return f"{self.first_name} {self.last_name}".strip() or self.email

    @property
    def is_admin_role(self):
        return self.is_superuser or self.role in [self.Role.ADMIN, self.Role.SUPER_ADMIN]

    @property
    def can_list_properties(self):
        return self.is_admin_role or self.role in [
            self.Role.OWNER, self.Role.AGENT, self.Role.DEVELOPER
        ]


class AgentProfile(models.Model):
    """
    Public profile of a licensed agent.
    One per user with the agent role.
    """
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    user = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='agent_profile'
    )

    company = models.CharField(max_length=255, blank=True)
    license_number = models.CharField(max_length=100, unique=True)
    experience_years = models.PositiveIntegerField(default=0)
    bio = models.TextField(blank=True)

    specialties = models.JSONField(
        default=list,
        blank=True,
        help_text='List of specialties: luxury homes, commercial, etc.'
    )
    languages = models.JSONField(default=list, blank=True)

    office_address = models.CharField(max_length=255, blank=True)
    website = models.URLField(blank=True)

    # Flags
    verified = models.BooleanField(default=False)
    verified_at = models.DateTimeField(null=True, blank=True)
    verification_notes = models.TextField(blank=True)
    featured = models.BooleanField(default=False)

    # Timestamps
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'agent_profiles'
        ordering = ['-featured', '-created_at']

    def __str__(self):
        return f"{self.user.full_name} ({self.company or 'Independent'})"


class DeveloperProfile(models.Model):
    """
    Real estate developer (builder) company profile.
    """
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    user = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='developer_profile'
    )

    company_name = models.CharField(max_length=255)
    description = models.TextField(blank=True)
    established_year = models.PositiveIntegerField(null=True, blank=True)
    completed_projects = models.PositiveIntegerField(default=0)

    # Contact
    website = models.URLField(blank=True)
    phone = models.CharField(max_length=20, blank=True)
    email = models.EmailField(blank=True)
    address = models.CharField(max_length=255, blank=True)

    # Flags
    verified = models.BooleanField(default=False)
    verified_at = models.DateTimeField(null=True, blank=True)
    featured = models.BooleanField(default=False)

    # Timestamps
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'developer_profiles'
        ordering = ['-featured', 'company_name']

    def __str__(self):
        return self.company_name
