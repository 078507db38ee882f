"""
Booking views.
"""
import logging

from rest_framework import viewsets, status, permissions
from rest_framework.decorators import action
from rest_framework.exceptions import PermissionDenied
from rest_framework.response import Response
from django.db.models import Q
from django.shortcuts import get_object_or_404

from apps.accounts.permissions import IsBookingParticipant, is_property_manager
from apps.realestate.models import Property
from .booking_service import BookingService
from .models import Booking
from .serializers import (
    BookingSerializer, BookingListSerializer, BookingCreateSerializer,
    BookingUpdateSerializer, BookingCancelSerializer, AvailabilityCheckSerializer,
    BookingFilterSerializer
)

logger = logging.getLogger(__name__)


class BookingViewSet(viewsets.ModelViewSet):
    """
    ViewSet for bookings.
    Guests see their own bookings, owners/agents see bookings of their properties.
    """
    http_method_names = ['get', 'post', 'patch', 'delete', 'head', 'options']

    def get_permissions(self):
        if self.action == 'availability':
            return [permissions.AllowAny()]
        return [permissions.IsAuthenticated(), IsBookingParticipant()]

    def get_queryset(self):
        user = self.request.user
        queryset = Booking.objects.select_related('property', 'property__owner', 'user')

        if not user.is_admin_role:
            queryset = queryset.filter(
                Q(user=user) |
                Q(property__owner=user) |
                Q(property__agent__user=user)
            ).distinct()

        filters = BookingFilterSerializer(data=self.request.query_params)
        filters.is_valid(raise_exception=True)
        params = filters.validated_data

        # Filter by status
        if params.get('status'):
            queryset = queryset.filter(status=params['status'])

        # Filter by payment status
        if params.get('payment_status'):
            queryset = queryset.filter(payment_status=params['payment_status'])

        # Filter by property
        if params.get('property'):
            queryset = queryset.filter(property_id=params['property'])

        # Filter by guest (admins and owners)
        if params.get('user'):
            queryset = queryset.filter(user_id=params['user'])

        # Filter by date range (bookings overlapping the window)
        if params.get('start_date'):
            queryset = queryset.filter(end_date__gt=params['start_date'])
        if params.get('end_date'):
            queryset = queryset.filter(start_date__lt=params['end_date'])

        return queryset

    def get_serializer_class(self):
        if self.action == 'list':
            return BookingListSerializer
        if self.action == 'create':
            return BookingCreateSerializer
        if self.action == 'partial_update':
            return BookingUpdateSerializer
        return BookingSerializer

    def create(self, request, *args, **kwargs):
        serializer = BookingCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        property_obj = get_object_or_404(Property, pk=data.pop('property'))
        booking = BookingService(request.user).create_booking(property_obj, **data)
        return Response(BookingSerializer(booking).data, status=status.HTTP_201_CREATED)

    def partial_update(self, request, *args, **kwargs):
        booking = self.get_object()
        if booking.user_id != request.user.id and not request.user.is_admin_role:
            raise PermissionDenied('Only the guest can edit booking details.')
        serializer = BookingUpdateSerializer(booking, data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        serializer.save()
        return Response(BookingSerializer(booking).data)

    def destroy(self, request, *args, **kwargs):
        booking = self.get_object()
        if not request.user.is_admin_role:
            raise PermissionDenied('Only admins can delete bookings.')
        if booking.payments.exists():
            return Response(
                {'error': 'Bookings with payments cannot be deleted. Cancel the booking instead.'},
                status=status.HTTP_400_BAD_REQUEST
            )
        logger.info(f"Booking deleted: {booking.booking_number} by {request.user.email}")
        booking.blocked_dates.update(available=True, booking=None)
        booking.delete()
        return Response(status=status.HTTP_204_NO_CONTENT)

    @action(detail=True, methods=['post'])
    def confirm(self, request, pk=None):
        """Confirm a pending booking (property owner, agent or admin)."""
        booking = self.get_object()
        if not is_property_manager(request.user, booking.property):
            raise PermissionDenied('Only the property owner can confirm bookings.')
        booking = BookingService(request.user).confirm(booking)
        return Response(BookingSerializer(booking).data)

    @action(detail=True, methods=['post'])
    def cancel(self, request, pk=None):
        """Cancel a booking with a refund per its cancellation policy."""
        booking = self.get_object()
        serializer = BookingCancelSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        booking = BookingService(request.user).cancel(booking, reason=serializer.validated_data['reason'])
        return Response(BookingSerializer(booking).data)

    @action(detail=True, methods=['post'])
    def complete(self, request, pk=None):
        """Mark a booking completed after check-out."""
        booking = self.get_object()
        if not is_property_manager(request.user, booking.property):
            raise PermissionDenied('Only the property owner can complete bookings.')
        booking = BookingService(request.user).complete(booking)
        return Response(BookingSerializer(booking).data)

    @action(detail=True, methods=['get'])
    def refund_quote(self, request, pk=None):
        """Preview the refund a cancellation would yield now."""
        booking = self.get_object()
        return Response(BookingService(request.user).refund_quote(booking))

    @action(detail=False, methods=['post'])
    def availability(self, request):
        """Check availability and price for a property and date range."""
        serializer = AvailabilityCheckSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        property_obj = get_object_or_404(
            Property,
            pk=data['property'],
            status=Property.Status.PUBLISHED,
            is_active=True
        )
        result = BookingService().check_availability(property_obj, data['start_date'], data['end_date'])

        return Response({
            'is_available': result['is_available'],
            'can_book': result['can_book'],
            'property': {
                'id': str(property_obj.id),
                'title': property_obj.title,
                'base_price': property_obj.nightly_rate,
                'min_stay': property_obj.min_stay,
                'max_stay': property_obj.max_stay,
                'instant_book': property_obj.instant_book,
                'cancellation_policy': property_obj.cancellation_policy,
            },
            'check_in': {
                'start_date': data['start_date'],
                'end_date': data['end_date'],
                'nights': result['nights'],
                'meets_min_stay': result['meets_min_stay'],
                'meets_max_stay': result['meets_max_stay'],
            },
            'pricing': result['pricing'],
            'conflicts': {
                'existing_bookings': len(result['conflicting_bookings']),
                'blocked_dates': result['blocked_dates'],
            },
            'message': result['message'],
        })
