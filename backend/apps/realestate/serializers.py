"""
Real Estate Marketplace Serializers.
"""
from rest_framework import serializers
from decimal import Decimal

from .models import Property, Availability, Favorite, Inquiry


class PropertySerializer(serializers.ModelSerializer):
    """Serializer for Property detail."""
    full_address = serializers.CharField(read_only=True)
    category_display = serializers.CharField(source='get_category_display', read_only=True)
    property_type_display = serializers.CharField(source='get_property_type_display', read_only=True)
    status_display = serializers.CharField(source='get_status_display', read_only=True)
    cancellation_policy_display = serializers.CharField(
        source='get_cancellation_policy_display', read_only=True
    )
    owner_name = serializers.CharField(source='owner.full_name', read_only=True)
    agent_name = serializers.SerializerMethodField()
    developer_name = serializers.CharField(
        source='developer.company_name', read_only=True, allow_null=True
    )
    favorites_count = serializers.SerializerMethodField()
    is_favorite = serializers.SerializerMethodField()

    class Meta:
        model = Property
        fields = [
            'id', 'owner', 'owner_name', 'agent', 'agent_name',
            'developer', 'developer_name',
            'title', 'slug', 'description',
            'property_type', 'property_type_display',
            'category', 'category_display', 'purpose',
            'price', 'rent_price', 'cleaning_fee', 'security_deposit', 'currency',
            'address', 'city', 'state', 'country', 'zip_code', 'neighborhood',
            'full_address', 'latitude', 'longitude',
            'bedrooms', 'bathrooms', 'area', 'area_unit',
            'year_built', 'parking_spaces', 'furnished', 'pet_friendly',
            'amenities', 'images',
            'min_stay', 'max_stay', 'instant_book',
            'check_in_time', 'check_out_time',
            'cancellation_policy', 'cancellation_policy_display',
            'status', 'status_display', 'featured', 'verified', 'is_active',
            'views', 'favorites_count', 'is_favorite',
            'published_at', 'created_at', 'updated_at'
        ]
        read_only_fields = [
            'id', 'owner', 'slug', 'views', 'featured', 'verified',
            'published_at', 'created_at', 'updated_at'
        ]

    def get_agent_name(self, obj):
        if obj.agent:
            return obj.agent.user.full_name
        return None

    def get_favorites_count(self, obj):
        return obj.favorites.count()

    def get_is_favorite(self, obj):
        request = self.context.get('request')
        if request and request.user.is_authenticated:
            return obj.favorites.filter(user=request.user).exists()
        return False


class PropertyCreateSerializer(serializers.ModelSerializer):
    """Serializer for creating/updating properties."""

    class Meta:
        model = Property
        fields = [
            'id', 'agent', 'developer', 'title', 'description',
            'property_type', 'category', 'purpose',
            'price', 'rent_price', 'cleaning_fee', 'security_deposit', 'currency',
            'address', 'city', 'state', 'country', 'zip_code', 'neighborhood',
            'latitude', 'longitude',
            'bedrooms', 'bathrooms', 'area', 'area_unit',
            'year_built', 'parking_spaces', 'furnished', 'pet_friendly',
            'amenities', 'images',
            'min_stay', 'max_stay', 'instant_book',
            'check_in_time', 'check_out_time', 'cancellation_policy',
            'status', 'is_active'
        ]
        read_only_fields = ['id']

    def validate(self, data):
        instance = self.instance

        def current(field):
            if field in data:
                return data[field]
            return getattr(instance, field, None) if instance else None

        category = current('category') or Property.Category.RENT
        if category == Property.Category.RENT:
            rent_price = current('rent_price')
            if rent_price is None or rent_price <= Decimal('0.00'):
                raise serializers.ValidationError({
                    'rent_price': 'Price is required for this category.'
                })
        else:
            price = current('price')
            if price is None or price <= Decimal('0.00'):
                raise serializers.ValidationError({
                    'price': 'Price is required for this category.'
                })

        min_stay = current('min_stay')
        max_stay = current('max_stay')
        if min_stay and max_stay and min_stay > max_stay:
            raise serializers.ValidationError({
                'max_stay': 'Maximum stay cannot be shorter than minimum stay.'
            })

        return data


class PropertyListSerializer(serializers.ModelSerializer):
    """Lightweight serializer for listing properties."""
    category_display = serializers.CharField(source='get_category_display', read_only=True)
    property_type_display = serializers.CharField(source='get_property_type_display', read_only=True)
    status_display = serializers.CharField(source='get_status_display', read_only=True)
    primary_image = serializers.SerializerMethodField()

    class Meta:
        model = Property
        fields = [
            'id', 'title', 'slug', 'category', 'category_display',
            'property_type', 'property_type_display',
            'price', 'rent_price', 'currency', 'city', 'state', 'country',
            'bedrooms', 'bathrooms', 'area', 'area_unit',
            'instant_book', 'cancellation_policy',
            'status', 'status_display', 'featured', 'verified',
            'primary_image', 'views', 'created_at'
        ]

    def get_primary_image(self, obj):
        if obj.images and len(obj.images) > 0:
            return obj.images[0]
        return None


class DeveloperProjectSerializer(PropertyListSerializer):
    """Developer project with booking and favorite counts (annotated)."""
    confirmed_bookings = serializers.IntegerField(read_only=True)
    favorites_count = serializers.IntegerField(read_only=True)

    class Meta(PropertyListSerializer.Meta):
        fields = PropertyListSerializer.Meta.fields + ['confirmed_bookings', 'favorites_count']


class AvailabilitySerializer(serializers.ModelSerializer):
    """Serializer for Availability records."""
    booking_number = serializers.CharField(
        source='booking.booking_number', read_only=True, allow_null=True
    )

    class Meta:
        model = Availability
        fields = [
            'id', 'property', 'date', 'available', 'price',
            'booking', 'booking_number', 'created_at', 'updated_at'
        ]
        read_only_fields = ['id', 'property', 'booking', 'created_at', 'updated_at']


class PublicAvailabilitySerializer(serializers.ModelSerializer):
    """Availability records as shown to visitors."""

    class Meta:
        model = Availability
        fields = ['date', 'available', 'price']


class AvailabilityUpdateSerializer(serializers.Serializer):
    """Serializer for upserting one date of availability."""
    date = serializers.DateField()
    available = serializers.BooleanField(default=True)
    price = serializers.DecimalField(
        max_digits=12, decimal_places=2, required=False, allow_null=True,
        min_value=Decimal('0.00')
    )


class AvailabilityQuerySerializer(serializers.Serializer):
    """Query params for the availability calendar."""
    start_date = serializers.DateField(required=False)
    end_date = serializers.DateField(required=False)

    def validate(self, data):
        start_date = data.get('start_date')
        end_date = data.get('end_date')
        if start_date and end_date and end_date < start_date:
            raise serializers.ValidationError({
                'end_date': 'End date must be on or after start date.'
            })
        return data


class FavoriteSerializer(serializers.ModelSerializer):
    """Serializer for Favorite."""
    property_detail = PropertyListSerializer(source='property', read_only=True)

    class Meta:
        model = Favorite
        fields = ['id', 'property', 'property_detail', 'created_at']
        read_only_fields = ['id', 'property', 'created_at']


class InquirySerializer(serializers.ModelSerializer):
    """Serializer for Inquiry."""
    status_display = serializers.CharField(source='get_status_display', read_only=True)
    property_title = serializers.CharField(source='property.title', read_only=True)
    responded_by_name = serializers.SerializerMethodField()

    class Meta:
        model = Inquiry
        fields = [
            'id', 'property', 'property_title', 'user',
            'name', 'email', 'phone', 'message',
            'status', 'status_display', 'response',
            'responded_by', 'responded_by_name', 'responded_at',
            'created_at', 'updated_at'
        ]
        read_only_fields = [
            'id', 'user', 'status', 'response', 'responded_by',
            'responded_at', 'created_at', 'updated_at'
        ]

    def get_responded_by_name(self, obj):
        if obj.responded_by:
            return obj.responded_by.full_name
        return None

    def validate_property(self, value):
        if not value.is_active or value.status != Property.Status.PUBLISHED:
            raise serializers.ValidationError('Property is not available for inquiries.')
        return value


class InquiryResponseSerializer(serializers.Serializer):
    """Serializer for responding to an inquiry."""
    response = serializers.CharField()
