"""
Admin configuration for bookings.
"""
from django.contrib import admin
from .models import Booking


@admin.register(Booking)
class BookingAdmin(admin.ModelAdmin):
    list_display = [
        'booking_number', 'property', 'guest_name', 'start_date', 'end_date',
        'nights', 'total_amount', 'status', 'payment_status'
    ]
    list_filter = ['status', 'payment_status', 'cancellation_policy', 'start_date']
    search_fields = ['booking_number', 'guest_name', 'guest_email', 'property__title']
    ordering = ['-created_at']
    readonly_fields = [
        'booking_number', 'nights', 'nightly_total', 'service_fee', 'tax_amount',
        'total_amount', 'cancellation_policy', 'refund_percentage', 'refund_amount',
        'confirmed_at', 'cancelled_at', 'completed_at', 'created_at', 'updated_at'
    ]

    fieldsets = (
        ('Booking', {
            'fields': ('booking_number', 'property', 'user', 'start_date', 'end_date', 'nights', 'guests')
        }),
        ('Guest', {
            'fields': ('guest_name', 'guest_email', 'guest_phone', 'special_requests')
        }),
        ('Pricing', {
            'fields': (
                'nightly_total', 'cleaning_fee', 'service_fee', 'tax_amount',
                'total_amount', 'currency'
            )
        }),
        ('Status', {
            'fields': ('status', 'payment_status', 'confirmed_at', 'completed_at')
        }),
        ('Cancellation', {
            'fields': (
                'cancellation_policy', 'cancelled_at', 'cancelled_by',
                'cancellation_reason', 'refund_percentage', 'refund_amount'
            ),
            'classes': ('collapse',)
        }),
        ('Timestamps', {
            'fields': ('created_at', 'updated_at'),
            'classes': ('collapse',)
        }),
    )
