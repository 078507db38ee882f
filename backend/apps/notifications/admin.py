"""
Admin configuration for notifications.
"""
from django.contrib import admin
from .models import Notification


@admin.register(Notification)
class NotificationAdmin(admin.ModelAdmin):
    list_display = ['title', 'user', 'type', 'read', 'important', 'created_at']
    list_filter = ['type', 'read', 'important']
    search_fields = ['title', 'message', 'user__email']
    ordering = ['-created_at']
    readonly_fields = ['read_at', 'created_at']
