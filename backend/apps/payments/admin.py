"""
Admin configuration for payments.
"""
from django.contrib import admin
from .models import Payment, PaymentWebhookLog


@admin.register(Payment)
class PaymentAdmin(admin.ModelAdmin):
    list_display = [
        'payment_number', 'booking', 'user', 'amount', 'currency',
        'payment_method', 'status', 'refunded_amount', 'created_at'
    ]
    list_filter = ['status', 'payment_method', 'gateway']
    search_fields = ['payment_number', 'gateway_payment_id', 'booking__booking_number', 'user__email']
    ordering = ['-created_at']
    readonly_fields = [
        'payment_number', 'gateway_payment_id', 'client_secret',
        'completed_at', 'refunded_at', 'created_at', 'updated_at'
    ]


@admin.register(PaymentWebhookLog)
class PaymentWebhookLogAdmin(admin.ModelAdmin):
    list_display = ['event_type', 'event_id', 'is_processed', 'created_at']
    list_filter = ['event_type', 'is_processed']
    search_fields = ['event_id']
    readonly_fields = ['headers', 'payload', 'created_at']
