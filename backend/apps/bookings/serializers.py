"""
Booking serializers.
"""
from rest_framework import serializers
from django.utils import timezone

from .models import Booking


class BookingListSerializer(serializers.ModelSerializer):
    """Lightweight serializer for listing bookings."""
    status_display = serializers.CharField(source='get_status_display', read_only=True)
    payment_status_display = serializers.CharField(source='get_payment_status_display', read_only=True)
    property_title = serializers.CharField(source='property.title', read_only=True)

    class Meta:
        model = Booking
        fields = [
            'id', 'booking_number', 'property', 'property_title', 'user',
            'start_date', 'end_date', 'nights', 'guests', 'guest_name',
            'total_amount', 'currency',
            'status', 'status_display', 'payment_status', 'payment_status_display',
            'created_at'
        ]


class BookedRangeSerializer(serializers.ModelSerializer):
    """Dates taken by a booking, without guest or payment details."""

    class Meta:
        model = Booking
        fields = ['start_date', 'end_date', 'nights']


class BookingSerializer(serializers.ModelSerializer):
    """Serializer for Booking detail."""
    status_display = serializers.CharField(source='get_status_display', read_only=True)
    payment_status_display = serializers.CharField(source='get_payment_status_display', read_only=True)
    cancellation_policy_display = serializers.CharField(
        source='get_cancellation_policy_display', read_only=True
    )
    property_title = serializers.CharField(source='property.title', read_only=True)
    property_address = serializers.CharField(source='property.full_address', read_only=True)
    owner_email = serializers.EmailField(source='property.owner.email', read_only=True)
    payments = serializers.SerializerMethodField()

    class Meta:
        model = Booking
        fields = [
            'id', 'booking_number', 'property', 'property_title', 'property_address',
            'owner_email', 'user',
            'start_date', 'end_date', 'nights', 'guests',
            'guest_name', 'guest_email', 'guest_phone', 'special_requests',
            'nightly_total', 'cleaning_fee', 'service_fee', 'tax_amount',
            'total_amount', 'currency',
            'status', 'status_display', 'payment_status', 'payment_status_display',
            'cancellation_policy', 'cancellation_policy_display',
            'cancellation_reason', 'refund_percentage', 'refund_amount',
            'confirmed_at', 'cancelled_at', 'completed_at',
            'payments', 'created_at', 'updated_at'
        ]
        read_only_fields = fields

    def get_payments(self, obj):
        from apps.payments.serializers import PaymentSerializer
        return PaymentSerializer(obj.payments.all(), many=True).data


class BookingCreateSerializer(serializers.Serializer):
    """Serializer for creating a booking."""
    property = serializers.UUIDField()
    start_date = serializers.DateField()
    end_date = serializers.DateField()
    guests = serializers.IntegerField(min_value=1, default=1)
    guest_name = serializers.CharField(max_length=255, required=False, allow_blank=True)
    guest_email = serializers.EmailField(required=False, allow_blank=True)
    guest_phone = serializers.CharField(max_length=20, required=False, allow_blank=True)
    special_requests = serializers.CharField(required=False, allow_blank=True)

    def validate(self, data):
        if data['end_date'] <= data['start_date']:
            raise serializers.ValidationError({'end_date': 'End date must be after start date.'})
        if data['start_date'] < timezone.localdate():
            raise serializers.ValidationError({'start_date': 'Check-in date cannot be in the past.'})
        return data


class BookingUpdateSerializer(serializers.ModelSerializer):
    """Guest details that may change while a booking is pending."""

    class Meta:
        model = Booking
        fields = ['guest_name', 'guest_email', 'guest_phone', 'special_requests', 'guests']

    def validate(self, data):
        if self.instance and self.instance.status != Booking.Status.PENDING:
            raise serializers.ValidationError('Only pending bookings can be edited.')
        return data


class BookingCancelSerializer(serializers.Serializer):
    reason = serializers.CharField(required=False, allow_blank=True, default='')


class AvailabilityCheckSerializer(serializers.Serializer):
    """Serializer for checking property availability."""
    property = serializers.UUIDField()
    start_date = serializers.DateField()
    end_date = serializers.DateField()

    def validate(self, data):
        if data['end_date'] <= data['start_date']:
            raise serializers.ValidationError({'end_date': 'End date must be after start date.'})
        return data


class BookingFilterSerializer(serializers.Serializer):
    """Query params for the booking list."""
    status = serializers.ChoiceField(choices=Booking.Status.choices, required=False)
    payment_status = serializers.ChoiceField(choices=Booking.PaymentStatus.choices, required=False)
    property = serializers.UUIDField(required=False)
    user = serializers.UUIDField(required=False)
    start_date = serializers.DateField(required=False)
    end_date = serializers.DateField(required=False)
