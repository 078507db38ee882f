"""
Payment serializers.
"""
from decimal import Decimal
from rest_framework import serializers

from .models import Payment


class PaymentSerializer(serializers.ModelSerializer):
    """Serializer for Payment."""
    status_display = serializers.CharField(source='get_status_display', read_only=True)
    payment_method_display = serializers.CharField(source='get_payment_method_display', read_only=True)
    booking_number = serializers.CharField(source='booking.booking_number', read_only=True)

    class Meta:
        model = Payment
        fields = [
            'id', 'payment_number', 'booking', 'booking_number', 'user',
            'amount', 'currency', 'payment_method', 'payment_method_display',
            'gateway', 'gateway_payment_id',
            'status', 'status_display', 'refunded_amount', 'failure_reason',
            'completed_at', 'refunded_at', 'created_at', 'updated_at'
        ]
        read_only_fields = fields


class PaymentIntentSerializer(PaymentSerializer):
    """Payment with the client secret, returned only to the payer on creation."""

    class Meta(PaymentSerializer.Meta):
        fields = PaymentSerializer.Meta.fields + ['client_secret']
        read_only_fields = fields


class PaymentCreateSerializer(serializers.Serializer):
    """Serializer for creating a payment for a booking."""
    booking_id = serializers.UUIDField()
    amount = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=Decimal('0.01'))
    payment_method = serializers.ChoiceField(
        choices=Payment.Method.choices,
        default=Payment.Method.CREDIT_CARD
    )
    currency = serializers.CharField(max_length=3, min_length=3, required=False)


class PaymentActionSerializer(serializers.Serializer):
    """Body of the success/cancel actions: a payment or a booking."""
    payment_id = serializers.UUIDField(required=False)
    booking_id = serializers.UUIDField(required=False)

    def validate(self, data):
        if not data.get('payment_id') and not data.get('booking_id'):
            raise serializers.ValidationError('payment_id or booking_id is required.')
        return data


class PaymentFilterSerializer(serializers.Serializer):
    """Query params for the payment list and lookups."""
    status = serializers.ChoiceField(choices=Payment.Status.choices, required=False)
    payment_method = serializers.ChoiceField(choices=Payment.Method.choices, required=False)
    booking = serializers.UUIDField(required=False)
    booking_id = serializers.UUIDField(required=False)
    payment_intent = serializers.CharField(required=False)
