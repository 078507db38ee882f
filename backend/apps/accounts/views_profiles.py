"""
Agent and developer profile views for API.
"""
import logging

from django.db.models import Count, Q
from django.utils import timezone
from rest_framework import permissions, status
from rest_framework.decorators import action
from rest_framework.exceptions import PermissionDenied, ValidationError
from rest_framework.response import Response
from rest_framework.viewsets import ModelViewSet

from apps.notifications.models import Notification
from apps.notifications.services import notify
from apps.realestate.serializers import PropertyListSerializer, DeveloperProjectSerializer
from .models import User, AgentProfile, DeveloperProfile
from .permissions import IsAdminRole, IsProfileOwnerOrReadOnly
from .serializers import (
    AgentProfileSerializer,
    AgentVerificationSerializer,
    DeveloperProfileSerializer,
)

logger = logging.getLogger(__name__)


class AgentProfileViewSet(ModelViewSet):
    """
    ViewSet for agent profiles.
    Listing and detail are public; agents manage their own profile.
    """
    serializer_class = AgentProfileSerializer
    permission_classes = [permissions.IsAuthenticatedOrReadOnly, IsProfileOwnerOrReadOnly]

    def get_queryset(self):
        queryset = AgentProfile.objects.select_related('user')

        # Filter by verification status
        verified = self.request.query_params.get('verified')
        if verified:
            queryset = queryset.filter(verified=verified.lower() == 'true')

        # Filter by featured
        featured = self.request.query_params.get('featured')
        if featured:
            queryset = queryset.filter(featured=featured.lower() == 'true')

        # Filter by minimum experience
        experience = self.request.query_params.get('experience')
        if experience and experience.isdigit():
            queryset = queryset.filter(experience_years__gte=int(experience))

        # Filter by city (from the user profile)
        city = self.request.query_params.get('city')
        if city:
            queryset = queryset.filter(user__city__icontains=city)

        # Search
        search = self.request.query_params.get('search')
        if search:
            queryset = queryset.filter(
                Q(user__first_name__icontains=search) |
                Q(user__last_name__icontains=search) |
                Q(company__icontains=search) |
                Q(bio__icontains=search)
            )

        return queryset

    def perform_create(self, serializer):
        user = self.request.user
        if user.role != User.Role.AGENT and not user.is_admin_role:
            raise PermissionDenied('Only users with the agent role can create an agent profile.')
        if AgentProfile.objects.filter(user=user).exists():
            raise ValidationError({'user': 'You already have an agent profile.'})
        profile = serializer.save(user=user)
        logger.info(f"Agent profile created: {profile.license_number} for {user.email}")

    @action(detail=True, methods=['post'], permission_classes=[IsAdminRole])
    def verify(self, request, pk=None):
        """Verify or revoke an agent (admin only)."""
        agent = self.get_object()
        serializer = AgentVerificationSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        verified = serializer.validated_data['verified']

        agent.verified = verified
        agent.verified_at = timezone.now() if verified else None
        agent.verification_notes = serializer.validated_data['notes']
        agent.save(update_fields=['verified', 'verified_at', 'verification_notes', 'updated_at'])

        if verified:
            message = f"Your agent profile has been verified. {agent.verification_notes}".strip()
        else:
            message = f"Your agent verification has been revoked. {agent.verification_notes}".strip()
        notify(
            agent.user,
            Notification.Type.AGENT_VERIFIED,
            'Agent verification updated',
            message,
            related_id=agent.id,
            important=True
        )
        logger.info(f"Agent {agent.id} {'verified' if verified else 'unverified'} by {request.user.email}")

        return Response(AgentProfileSerializer(agent).data)

    @action(detail=True, methods=['get'], permission_classes=[permissions.AllowAny])
    def properties(self, request, pk=None):
        """Listings handled by this agent."""
        agent = self.get_object()
        queryset = agent.properties.filter(is_active=True)
        status_filter = request.query_params.get('status')
        if status_filter:
            queryset = queryset.filter(status=status_filter)

        page = self.paginate_queryset(queryset)
        if page is not None:
            return self.get_paginated_response(PropertyListSerializer(page, many=True).data)
        return Response(PropertyListSerializer(queryset, many=True).data)


class DeveloperProfileViewSet(ModelViewSet):
    """
    ViewSet for developer profiles.
    """
    serializer_class = DeveloperProfileSerializer
    permission_classes = [permissions.IsAuthenticatedOrReadOnly, IsProfileOwnerOrReadOnly]

    def get_queryset(self):
        queryset = DeveloperProfile.objects.select_related('user')

        verified = self.request.query_params.get('verified')
        if verified:
            queryset = queryset.filter(verified=verified.lower() == 'true')

        featured = self.request.query_params.get('featured')
        if featured:
            queryset = queryset.filter(featured=featured.lower() == 'true')

        search = self.request.query_params.get('search')
        if search:
            queryset = queryset.filter(
                Q(company_name__icontains=search) |
                Q(description__icontains=search)
            )

        return queryset

    def perform_create(self, serializer):
        user = self.request.user
        if user.role != User.Role.DEVELOPER and not user.is_admin_role:
            raise PermissionDenied('Only users with the developer role can create a developer profile.')
        if DeveloperProfile.objects.filter(user=user).exists():
            raise ValidationError({'user': 'You already have a developer profile.'})
        profile = serializer.save(user=user)
        logger.info(f"Developer profile created: {profile.company_name} for {user.email}")

    @action(detail=True, methods=['post'], permission_classes=[IsAdminRole])
    def verify(self, request, pk=None):
        """Verify or revoke a developer (admin only)."""
        developer = self.get_object()
        serializer = AgentVerificationSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        verified = serializer.validated_data['verified']

        developer.verified = verified
        developer.verified_at = timezone.now() if verified else None
        developer.save(update_fields=['verified', 'verified_at', 'updated_at'])
        return Response(DeveloperProfileSerializer(developer).data)

    @action(detail=True, methods=['get'], permission_classes=[permissions.AllowAny])
    def projects(self, request, pk=None):
        """Properties built by this developer, with booking counts."""
        from apps.bookings.models import Booking

        developer = self.get_object()
        queryset = developer.projects.annotate(
            confirmed_bookings=Count(
                'bookings',
                filter=Q(bookings__status=Booking.Status.CONFIRMED),
                distinct=True
            ),
            favorites_count=Count('favorites', distinct=True)
        )

        for param, field in [('status', 'status'), ('category', 'category'), ('type', 'property_type')]:
            value = request.query_params.get(param)
            if value:
                queryset = queryset.filter(**{field: value})

        city = request.query_params.get('city')
        if city:
            queryset = queryset.filter(city__icontains=city)

        page = self.paginate_queryset(queryset)
        if page is not None:
            return self.get_paginated_response(DeveloperProjectSerializer(page, many=True).data)
        return Response(DeveloperProjectSerializer(queryset, many=True).data, status=status.HTTP_200_OK)
