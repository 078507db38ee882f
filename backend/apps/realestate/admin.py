"""
Real Estate Marketplace Admin Configuration.
"""
from django.contrib import admin
from .models import Property, Availability, Favorite, Inquiry


class AvailabilityInline(admin.TabularInline):
    model = Availability
    extra = 0
    fields = ['date', 'available', 'price', 'booking']
    readonly_fields = ['booking']


@admin.register(Property)
class PropertyAdmin(admin.ModelAdmin):
    list_display = [
        'title', 'category', 'property_type', 'price', 'rent_price',
        'city', 'status', 'cancellation_policy', 'featured', 'verified'
    ]
    list_filter = [
        'status', 'category', 'property_type', 'cancellation_policy',
        'instant_book', 'featured', 'verified', 'is_active'
    ]
    search_fields = ['title', 'slug', 'address', 'city', 'owner__email']
    ordering = ['-created_at']
    readonly_fields = ['slug', 'views', 'published_at', 'created_at', 'updated_at']
    inlines = [AvailabilityInline]

    fieldsets = (
        ('Basic Info', {
            'fields': (
                'owner', 'agent', 'developer', 'title', 'slug', 'description',
                'property_type', 'category', 'purpose'
            )
        }),
        ('Pricing', {
            'fields': ('price', 'rent_price', 'cleaning_fee', 'security_deposit', 'currency')
        }),
        ('Location', {
            'fields': (
                'address', 'city', 'state', 'country', 'zip_code',
                'neighborhood', 'latitude', 'longitude'
            )
        }),
        ('Property Details', {
            'fields': (
                'bedrooms', 'bathrooms', 'area', 'area_unit', 'year_built',
                'parking_spaces', 'furnished', 'pet_friendly', 'amenities', 'images'
            )
        }),
        ('Booking Rules', {
            'fields': (
                'min_stay', 'max_stay', 'instant_book',
                'check_in_time', 'check_out_time', 'cancellation_policy'
            )
        }),
        ('Status', {
            'fields': ('status', 'featured', 'verified', 'is_active', 'views', 'published_at')
        }),
        ('Timestamps', {
            'fields': ('created_at', 'updated_at'),
            'classes': ('collapse',)
        }),
    )


@admin.register(Favorite)
class FavoriteAdmin(admin.ModelAdmin):
    list_display = ['user', 'property', 'created_at']
    search_fields = ['user__email', 'property__title']


@admin.register(Inquiry)
class InquiryAdmin(admin.ModelAdmin):
    list_display = ['name', 'email', 'property', 'status', 'responded_at', 'created_at']
    list_filter = ['status']
    search_fields = ['name', 'email', 'property__title']
    ordering = ['-created_at']
    readonly_fields = ['responded_by', 'responded_at', 'created_at', 'updated_at']
