"""
Admin configuration for accounts app.
"""
from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin
from .models import User, AgentProfile, DeveloperProfile


@admin.register(User)
class UserAdmin(BaseUserAdmin):
    list_display = ['email', 'username', 'first_name', 'last_name', 'role', 'is_staff', 'date_joined']
    list_filter = ['role', 'is_staff', 'is_superuser', 'is_active']
    search_fields = ['email', 'username', 'first_name', 'last_name']
    ordering = ['-date_joined']
    fieldsets = BaseUserAdmin.fieldsets + (
        ('Marketplace', {'fields': ('role', 'phone', 'bio', 'city', 'state', 'country')}),
    )


@admin.register(AgentProfile)
class AgentProfileAdmin(admin.ModelAdmin):
    list_display = ['user', 'company', 'license_number', 'experience_years', 'verified', 'featured']
    list_filter = ['verified', 'featured']
    search_fields = ['user__email', 'company', 'license_number']
    readonly_fields = ['verified_at', 'created_at', 'updated_at']


@admin.register(DeveloperProfile)
class DeveloperProfileAdmin(admin.ModelAdmin):
    list_display = ['company_name', 'user', 'completed_projects', 'verified', 'featured']
    list_filter = ['verified', 'featured']
    search_fields = ['company_name', 'user__email']
    readonly_fields = ['verified_at', 'created_at', 'updated_at']
