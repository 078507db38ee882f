"""
Real Estate Marketplace Views.
"""
import logging

from rest_framework import viewsets, status, permissions
from rest_framework.decorators import action
from rest_framework.exceptions import PermissionDenied, ValidationError
from rest_framework.response import Response
from django.db.models import F, Q

from apps.accounts.models import AgentProfile
from apps.accounts.permissions import (
    IsAdminRole, IsOwnerOrAgentRole, IsPropertyManagerOrReadOnly, is_property_manager
)
from apps.notifications.models import Notification
from apps.notifications.services import notify
from .models import Property, Availability, Favorite, Inquiry
from .serializers import (
    PropertySerializer, PropertyCreateSerializer, PropertyListSerializer,
    AvailabilitySerializer, AvailabilityUpdateSerializer, AvailabilityQuerySerializer,
    PublicAvailabilitySerializer,
    FavoriteSerializer, InquirySerializer, InquiryResponseSerializer
)

logger = logging.getLogger(__name__)

ORDERING_FIELDS = ['price', 'rent_price', 'area', 'created_at', 'views']


class PropertyViewSet(viewsets.ModelViewSet):
    """
    ViewSet for property listings.
    Anyone can browse published listings; owners, agents and admins manage them.
    """

    def get_permissions(self):
        if self.action == 'create':
            return [IsOwnerOrAgentRole()]
        if self.action == 'toggle_featured':
            return [IsAdminRole()]
        if self.action in ['favorite']:
            return [permissions.IsAuthenticated()]
        return [permissions.IsAuthenticatedOrReadOnly(), IsPropertyManagerOrReadOnly()]

    def get_queryset(self):
        user = self.request.user
        queryset = Property.objects.select_related('owner', 'agent__user', 'developer')

        # Visibility: public sees published listings, managers also see their own
        public = Q(status=Property.Status.PUBLISHED, is_active=True)
        if not user.is_authenticated:
            queryset = queryset.filter(public)
        elif not user.is_admin_role:
            queryset = queryset.filter(public | Q(owner=user) | Q(agent__user=user))

        params = self.request.query_params

        # Exact-match filters
        for param, field in [
            ('type', 'property_type'),
            ('property_type', 'property_type'),
            ('category', 'category'),
            ('purpose', 'purpose'),
            ('status', 'status'),
            ('owner', 'owner_id'),
            ('agent', 'agent_id'),
            ('developer', 'developer_id'),
        ]:
            value = params.get(param)
            if value:
                queryset = queryset.filter(**{field: value})

        # Filter by location
        for field in ['city', 'state', 'country']:
            value = params.get(field)
            if value:
                queryset = queryset.filter(**{f'{field}__icontains': value})

        # Filter by price range
        price_min = params.get('min_price')
        price_max = params.get('max_price')
        if price_min:
            queryset = queryset.filter(price__gte=price_min)
        if price_max:
            queryset = queryset.filter(price__lte=price_max)

        # Filter by rent range
        rent_min = params.get('min_rent')
        rent_max = params.get('max_rent')
        if rent_min:
            queryset = queryset.filter(rent_price__gte=rent_min)
        if rent_max:
            queryset = queryset.filter(rent_price__lte=rent_max)

        # Filter by rooms
        bedrooms = params.get('bedrooms')
        if bedrooms:
            queryset = queryset.filter(bedrooms__gte=bedrooms)
        bathrooms = params.get('bathrooms')
        if bathrooms:
            queryset = queryset.filter(bathrooms__gte=bathrooms)

        # Filter by area range
        area_min = params.get('min_area')
        area_max = params.get('max_area')
        if area_min:
            queryset = queryset.filter(area__gte=area_min)
        if area_max:
            queryset = queryset.filter(area__lte=area_max)

        # Boolean flags
        for flag in ['furnished', 'pet_friendly', 'featured', 'verified', 'instant_book']:
            value = params.get(flag)
            if value:
                queryset = queryset.filter(**{flag: value.lower() == 'true'})

        # Search
        search = params.get('search')
        if search:
            queryset = queryset.filter(
                Q(title__icontains=search) |
                Q(description__icontains=search) |
                Q(address__icontains=search) |
                Q(city__icontains=search) |
                Q(neighborhood__icontains=search)
            )

        # Ordering
        ordering = params.get('ordering')
        if ordering and ordering.lstrip('-') in ORDERING_FIELDS:
            queryset = queryset.order_by(ordering)

        return queryset

    def get_serializer_class(self):
        if self.action in ['list', 'featured']:
            return PropertyListSerializer
        if self.action in ['create', 'update', 'partial_update']:
            return PropertyCreateSerializer
        return PropertySerializer

    def retrieve(self, request, *args, **kwargs):
        instance = self.get_object()
        Property.objects.filter(pk=instance.pk).update(views=F('views') + 1)
        instance.refresh_from_db(fields=['views'])
        return Response(self.get_serializer(instance).data)

    def create(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        self.perform_create(serializer)
        return Response(
            PropertySerializer(serializer.instance, context={'request': request}).data,
            status=status.HTTP_201_CREATED
        )

    def perform_create(self, serializer):
        user = self.request.user
        extra = {'owner': user}
        if not serializer.validated_data.get('agent'):
            agent = AgentProfile.objects.filter(user=user).first()
            if agent:
                extra['agent'] = agent
        listing = serializer.save(**extra)
        logger.info(f"Property created: {listing.title} ({listing.id}) by {user.email}")

    def perform_destroy(self, instance):
        user = self.request.user
        if not (user.is_admin_role or instance.owner_id == user.id):
            raise PermissionDenied('Only the owner or an admin can delete this property.')
        logger.info(f"Property deleted: {instance.id} by {user.email}")
        instance.delete()

    @action(detail=True, methods=['post'])
    def publish(self, request, pk=None):
        """Publish a draft listing."""
        listing = self.get_object()
        if not listing.is_active:
            raise ValidationError({'error': 'Inactive properties cannot be published.'})
        listing.publish()
        logger.info(f"Property published: {listing.id}")
        return Response(PropertySerializer(listing, context={'request': request}).data)

    @action(detail=True, methods=['post'])
    def toggle_featured(self, request, pk=None):
        """Toggle featured status."""
        listing = self.get_object()
        listing.featured = not listing.featured
        listing.save(update_fields=['featured', 'updated_at'])
        return Response(PropertySerializer(listing, context={'request': request}).data)

    @action(detail=False, methods=['get'])
    def featured(self, request):
        """Get featured published listings."""
        queryset = Property.objects.filter(
            featured=True,
            status=Property.Status.PUBLISHED,
            is_active=True
        )
        limit = request.query_params.get('limit', '6')
        queryset = queryset[:int(limit) if limit.isdigit() else 6]
        return Response(PropertyListSerializer(queryset, many=True).data)

    @action(detail=True, methods=['get', 'post'])
    def availability(self, request, pk=None):
        """
        GET: availability records and active bookings for a date window.
        POST: upsert one date (owner, agent or admin).
        """
        from apps.bookings.models import Booking
        from apps.bookings.serializers import BookingListSerializer, BookedRangeSerializer

        listing = self.get_object()

        if request.method == 'POST':
            if not is_property_manager(request.user, listing):
                raise PermissionDenied('Only the property owner or an admin can edit availability.')
            serializer = AvailabilityUpdateSerializer(data=request.data)
            serializer.is_valid(raise_exception=True)
            data = serializer.validated_data

            existing = Availability.objects.filter(property=listing, date=data['date']).first()
            if (
                existing and existing.booking_id and data['available'] and
                existing.booking.status in Booking.ACTIVE_STATUSES
            ):
                return Response(
                    {'error': 'This date is blocked by an active booking.'},
                    status=status.HTTP_400_BAD_REQUEST
                )

            record, created = Availability.objects.update_or_create(
                property=listing,
                date=data['date'],
                defaults={
                    'available': data['available'],
                    'price': data.get('price'),
                }
            )
            return Response(
                AvailabilitySerializer(record).data,
                status=status.HTTP_201_CREATED if created else status.HTTP_200_OK
            )

        query = AvailabilityQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)
        start_date = query.validated_data.get('start_date')
        end_date = query.validated_data.get('end_date')

        records = listing.availabilities.select_related('booking')
        bookings = listing.bookings.filter(status__in=Booking.ACTIVE_STATUSES)
        if start_date:
            records = records.filter(date__gte=start_date)
            bookings = bookings.filter(end_date__gt=start_date)
        if end_date:
            records = records.filter(date__lte=end_date)
            bookings = bookings.filter(start_date__lte=end_date)

        # Guest and payment details are for the listing's managers only
        if is_property_manager(request.user, listing):
            return Response({
                'property': str(listing.id),
                'availability': AvailabilitySerializer(records, many=True).data,
                'bookings': BookingListSerializer(bookings, many=True).data,
            })

        return Response({
            'property': str(listing.id),
            'availability': PublicAvailabilitySerializer(records, many=True).data,
            'bookings': BookedRangeSerializer(bookings, many=True).data,
        })

    @action(detail=True, methods=['post', 'delete'])
    def favorite(self, request, pk=None):
        """Add (idempotent) or remove the current user's favorite."""
        listing = self.get_object()

        if request.method == 'DELETE':
            deleted, _ = Favorite.objects.filter(user=request.user, property=listing).delete()
            if not deleted:
                return Response({'error': 'Favorite not found.'}, status=status.HTTP_404_NOT_FOUND)
            return Response(status=status.HTTP_204_NO_CONTENT)

        favorite, created = Favorite.objects.get_or_create(user=request.user, property=listing)
        return Response(
            FavoriteSerializer(favorite).data,
            status=status.HTTP_201_CREATED if created else status.HTTP_200_OK
        )


class FavoriteViewSet(viewsets.ReadOnlyModelViewSet):
    """Current user's favorites."""
    serializer_class = FavoriteSerializer
    permission_classes = [permissions.IsAuthenticated]

    def get_queryset(self):
        return Favorite.objects.filter(
            user=self.request.user
        ).select_related('property')


class InquiryViewSet(viewsets.ModelViewSet):
    """
    ViewSet for property inquiries.
    Anyone can send one; guests see their own, managers see those for their listings.
    """
    serializer_class = InquirySerializer
    http_method_names = ['get', 'post', 'delete', 'head', 'options']

    def get_permissions(self):
        if self.action == 'create':
            return [permissions.AllowAny()]
        return [permissions.IsAuthenticated()]

    def get_queryset(self):
        user = self.request.user
        queryset = Inquiry.objects.select_related('property', 'user', 'responded_by')

        if not user.is_admin_role:
            queryset = queryset.filter(
                Q(user=user) |
                Q(property__owner=user) |
                Q(property__agent__user=user)
            ).distinct()

        # Filter by status
        status_filter = self.request.query_params.get('status')
        if status_filter:
            queryset = queryset.filter(status=status_filter)

        # Filter by property (nested route or query param)
        property_id = self.kwargs.get('property_pk') or self.request.query_params.get('property')
        if property_id:
            queryset = queryset.filter(property_id=property_id)

        return queryset

    def perform_create(self, serializer):
        user = self.request.user if self.request.user.is_authenticated else None
        inquiry = serializer.save(user=user)
        listing = inquiry.property
        logger.info(f"Inquiry {inquiry.id} received for property {listing.id}")

        recipients = [listing.owner]
        if listing.agent and listing.agent.user_id != listing.owner_id:
            recipients.append(listing.agent.user)
        for recipient in recipients:
            notify(
                recipient,
                Notification.Type.INQUIRY_RECEIVED,
                'New inquiry',
                f"{inquiry.name} sent an inquiry about {listing.title}.",
                related_id=inquiry.id
            )

    def perform_destroy(self, instance):
        if not (self.request.user.is_admin_role or instance.user_id == self.request.user.id):
            raise PermissionDenied('You cannot delete this inquiry.')
        instance.delete()

    @action(detail=True, methods=['post'])
    def respond(self, request, pk=None):
        """Respond to an inquiry (property owner, agent or admin)."""
        inquiry = self.get_object()
        if not is_property_manager(request.user, inquiry.property):
            raise PermissionDenied('Only the property owner or agent can respond.')
        if inquiry.status == Inquiry.Status.CLOSED:
            return Response(
                {'error': 'Cannot respond to a closed inquiry.'},
                status=status.HTTP_400_BAD_REQUEST
            )

        serializer = InquiryResponseSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        inquiry.respond(request.user, serializer.validated_data['response'])

        if inquiry.user:
            notify(
                inquiry.user,
                Notification.Type.INQUIRY_RESPONDED,
                'Your inquiry was answered',
                f"You have a response about {inquiry.property.title}.",
                related_id=inquiry.id
            )
        return Response(InquirySerializer(inquiry).data)

    @action(detail=True, methods=['post'])
    def close(self, request, pk=None):
        """Close an inquiry."""
        inquiry = self.get_object()
        if not (inquiry.user_id == request.user.id or is_property_manager(request.user, inquiry.property)):
            raise PermissionDenied('You cannot close this inquiry.')
        inquiry.close()
        return Response(InquirySerializer(inquiry).data)
