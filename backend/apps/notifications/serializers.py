"""
Notification serializers.
"""
from django.contrib.auth import get_user_model
from rest_framework import serializers

from .models import Notification

User = get_user_model()


class NotificationSerializer(serializers.ModelSerializer):
    """Serializer for Notification."""
    type_display = serializers.CharField(source='get_type_display', read_only=True)

    class Meta:
        model = Notification
        fields = [
            'id', 'type', 'type_display', 'title', 'message', 'related_id',
            'read', 'important', 'read_at', 'created_at'
        ]
        read_only_fields = [
            'id', 'type', 'title', 'message', 'related_id', 'read_at', 'created_at'
        ]


class NotificationCreateSerializer(serializers.ModelSerializer):
    """Serializer for admins sending a notification to a user."""
    user = serializers.PrimaryKeyRelatedField(queryset=User.objects.all())

    class Meta:
        model = Notification
        fields = ['id', 'user', 'type', 'title', 'message', 'related_id', 'important']
        read_only_fields = ['id']


class MarkAllSerializer(serializers.Serializer):
    read = serializers.BooleanField(default=True)
