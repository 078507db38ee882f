"""
Real Estate Marketplace Models.

Models for the listing side of the marketplace:
- Property: Listings for rent or sale, with booking rules for rentals
- Availability: Per-date availability record for a property
- Favorite: User bookmarks
- Inquiry: Messages from prospective guests/buyers to the listing's owner/agent
"""
import random
import string
import uuid
from decimal import Decimal
from django.conf import settings
from django.core.validators import MinValueValidator
from django.db import models
from django.utils import timezone
from django.utils.text import slugify


class CancellationPolicy(models.TextChoices):
    """How much of a booking is refundable depending on lead time."""
    FLEXIBLE = 'flexible', 'Flexible'
    MODERATE = 'moderate', 'Moderate'
    STRICT = 'strict', 'Strict'
    SUPER_STRICT = 'super_strict', 'Super Strict'


class Property(models.Model):
    """
    Marketplace property listing.
    """
    class PropertyType(models.TextChoices):
        APARTMENT = 'apartment', 'Apartment'
        HOUSE = 'house', 'House'
        VILLA = 'villa', 'Villa'
        CONDO = 'condo', 'Condo'
        TOWNHOUSE = 'townhouse', 'Townhouse'
        OFFICE = 'office', 'Office'
        RETAIL = 'retail', 'Retail'
        INDUSTRIAL = 'industrial', 'Industrial'
        LAND = 'land', 'Land'
        OTHER = 'other', 'Other'

    class Category(models.TextChoices):
        RENT = 'rent', 'For Rent'
        SALE = 'sale', 'For Sale'

    class Purpose(models.TextChoices):
        RESIDENTIAL = 'residential', 'Residential'
        COMMERCIAL = 'commercial', 'Commercial'
        INDUSTRIAL = 'industrial', 'Industrial'
        AGRICULTURAL = 'agricultural', 'Agricultural'

    class AreaUnit(models.TextChoices):
        SQFT = 'sqft', 'Square Feet'
        SQM = 'sqm', 'Square Meters'
        ACRES = 'acres', 'Acres'

    class Status(models.TextChoices):
        DRAFT = 'draft', 'Draft'
        PUBLISHED = 'published', 'Published'
        UNAVAILABLE = 'unavailable', 'Unavailable'
        SOLD = 'sold', 'Sold'
        RENTED = 'rented', 'Rented'

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    owner = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='properties'
    )
    agent = models.ForeignKey(
        'accounts.AgentProfile',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='properties'
    )
    developer = models.ForeignKey(
        'accounts.DeveloperProfile',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='projects'
    )

    # Basic Info
    title = models.CharField(max_length=200)
    slug = models.SlugField(max_length=220, unique=True)
    description = models.TextField()
    property_type = models.CharField(
        max_length=20,
        choices=PropertyType.choices,
        default=PropertyType.APARTMENT
    )
    category = models.CharField(
        max_length=10,
        choices=Category.choices,
        default=Category.RENT
    )
    purpose = models.CharField(
        max_length=20,
        choices=Purpose.choices,
        default=Purpose.RESIDENTIAL
    )

    # Pricing
    price = models.DecimalField(
        max_digits=15,
        decimal_places=2,
        null=True,
        blank=True,
        validators=[MinValueValidator(Decimal('0.00'))],
        help_text='Sale price'
    )
    rent_price = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        null=True,
        blank=True,
        validators=[MinValueValidator(Decimal('0.00'))],
        help_text='Nightly rate for bookings'
    )
    cleaning_fee = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        default=Decimal('0.00'),
        validators=[MinValueValidator(Decimal('0.00'))]
    )
    security_deposit = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        null=True,
        blank=True
    )
    currency = models.CharField(max_length=3, default='USD')

    # Location
    address = models.CharField(max_length=255)
    city = models.CharField(max_length=100)
    state = models.CharField(max_length=100)
    country = models.CharField(max_length=100)
    zip_code = models.CharField(max_length=20, blank=True)
    neighborhood = models.CharField(max_length=100, blank=True)
    latitude = models.DecimalField(max_digits=10, decimal_places=8, null=True, blank=True)
    longitude = models.DecimalField(max_digits=11, decimal_places=8, null=True, blank=True)

    # Property Details
    bedrooms = models.PositiveIntegerField(null=True, blank=True)
    bathrooms = models.PositiveIntegerField(null=True, blank=True)
    area = models.DecimalField(max_digits=12, decimal_places=2)
    area_unit = models.CharField(
        max_length=10,
        choices=AreaUnit.choices,
        default=AreaUnit.SQFT
    )
    year_built = models.PositiveIntegerField(null=True, blank=True)
    parking_spaces = models.PositiveIntegerField(null=True, blank=True)
    furnished = models.BooleanField(default=False)
    pet_friendly = models.BooleanField(default=False)
    amenities = models.JSONField(
        default=list,
        blank=True,
        help_text='List of amenities: wifi, pool, gym, etc.'
    )
    images = models.JSONField(
        default=list,
        blank=True,
        help_text='List of image URLs'
    )

    # Booking rules (rentals)
    min_stay = models.PositiveIntegerField(null=True, blank=True, help_text='Minimum nights')
    max_stay = models.PositiveIntegerField(null=True, blank=True, help_text='Maximum nights')
    instant_book = models.BooleanField(
        default=False,
        help_text='Confirm bookings without owner approval'
    )
    check_in_time = models.TimeField(null=True, blank=True)
    check_out_time = models.TimeField(null=True, blank=True)
    cancellation_policy = models.CharField(
        max_length=20,
        choices=CancellationPolicy.choices,
        default=CancellationPolicy.STRICT
    )

    # Status
    status = models.CharField(
        max_length=20,
        choices=Status.choices,
        default=Status.DRAFT
    )
    featured = models.BooleanField(default=False)
    verified = models.BooleanField(default=False)
    is_active = models.BooleanField(default=True)
    views = models.PositiveIntegerField(default=0)

    # Timestamps
    published_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'realestate_properties'
        ordering = ['-created_at']
        verbose_name = 'Property'
        verbose_name_plural = 'Properties'
        indexes = [
            models.Index(fields=['status', 'category', 'is_active'], name='prop_status_cat_active_idx'),
            models.Index(fields=['city', 'property_type'], name='prop_city_type_idx'),
            models.Index(fields=['owner', 'status'], name='prop_owner_status_idx'),
            models.Index(fields=['rent_price'], name='prop_rent_price_idx'),
            models.Index(fields=['price'], name='prop_price_idx'),
        ]

    def __str__(self):
        return f"{self.title} ({self.get_category_display()})"

    def save(self, *args, **kwargs):
        if not self.slug:
            self.slug = self._generate_slug()
        if self.status == self.Status.PUBLISHED and not self.published_at:
            self.published_at = timezone.now()
        super().save(*args, **kwargs)

    def _generate_slug(self):
        """Generate a unique slug from the title."""
        base = slugify(self.title)[:200] or 'property'
        slug = base
        while Property.objects.filter(slug=slug).exists():
            slug = f"{base}-{''.join(random.choices(string.ascii_lowercase + string.digits, k=6))}"
        return slug

    @property
    def nightly_rate(self):
        """Base nightly rate used for booking quotes."""
        return self.rent_price or self.price or Decimal('0.00')

    @property
    def full_address(self):
        parts = [self.address, f"{self.city}, {self.state} {self.zip_code}".strip(), self.country]
        return ', '.join(p for p in parts if p)

    @property
    def is_bookable(self):
        return (
            self.is_active and
            self.status == self.Status.PUBLISHED and
            self.category == self.Category.RENT
        )

    def publish(self):
        """Publish the listing."""
        self.status = self.Status.PUBLISHED
        if not self.published_at:
            self.published_at = timezone.now()
        self.save(update_fields=['status', 'published_at', 'updated_at'])


class Availability(models.Model):
    """
    Availability record for one property on one date.
    A record with available=False blocks the date, either manually or by a booking.
    """
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    property = models.ForeignKey(
        Property,
        on_delete=models.CASCADE,
        related_name='availabilities'
    )
    date = models.DateField()
    available = models.BooleanField(default=True)
    price = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        null=True,
        blank=True,
        help_text='Overrides the nightly rate for this date'
    )
    booking = models.ForeignKey(
        'bookings.Booking',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='blocked_dates',
        help_text='Booking that blocked this date'
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'realestate_availability'
        ordering = ['date']
        verbose_name = 'Availability'
        verbose_name_plural = 'Availability'
        unique_together = ['property', 'date']

    def __str__(self):
        state = 'available' if self.available else 'blocked'
        return f"{self.property.title} - {self.date} ({state})"


class Favorite(models.Model):
    """User bookmark of a property."""
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='favorites'
    )
    property = models.ForeignKey(
        Property,
        on_delete=models.CASCADE,
        related_name='favorites'
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'realestate_favorites'
        ordering = ['-created_at']
        unique_together = ['user', 'property']

    def __str__(self):
        return f"{self.user.email} - {self.property.title}"


class Inquiry(models.Model):
    """
    Message from a prospective guest or buyer about a property.
    """
    class Status(models.TextChoices):
        PENDING = 'pending', 'Pending'
        RESPONDED = 'responded', 'Responded'
        CLOSED = 'closed', 'Closed'

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    property = models.ForeignKey(
        Property,
        on_delete=models.CASCADE,
        related_name='inquiries'
    )
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='inquiries'
    )

    # Contact Information
    name = models.CharField(max_length=255)
    email = models.EmailField()
    phone = models.CharField(max_length=20, blank=True)
    message = models.TextField()

    status = models.CharField(
        max_length=20,
        choices=Status.choices,
        default=Status.PENDING
    )
    response = models.TextField(blank=True)
    responded_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='answered_inquiries'
    )
    responded_at = models.DateTimeField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'realestate_inquiries'
        ordering = ['-created_at']
        verbose_name = 'Inquiry'
        verbose_name_plural = 'Inquiries'
        indexes = [
            models.Index(fields=['property', 'status'], name='inquiry_property_status_idx'),
        ]

    def __str__(self):
        return f"{self.name} - {self.property.title} ({self.status})"

    def respond(self, user, response):
        """Record a response from the owner/agent."""
        self.status = self.Status.RESPONDED
        self.response = response
        self.responded_by = user
        self.responded_at = timezone.now()
        self.save(update_fields=['status', 'response', 'responded_by', 'responded_at', 'updated_at'])

    def close(self):
        """Close the inquiry."""
        self.status = self.Status.CLOSED
        self.save(update_fields=['status', 'updated_at'])
