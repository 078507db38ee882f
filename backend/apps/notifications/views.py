"""
Notification views.
"""
import logging

from rest_framework import viewsets, status, permissions
from rest_framework.decorators import action
from rest_framework.response import Response
from django.utils import timezone

from apps.accounts.permissions import IsAdminRole
from .models import Notification
from .serializers import NotificationSerializer, NotificationCreateSerializer, MarkAllSerializer

logger = logging.getLogger(__name__)


class NotificationViewSet(viewsets.ModelViewSet):
    """
    ViewSet for the current user's notifications.
    Admins may also create notifications for any user.
    """
    http_method_names = ['get', 'post', 'patch', 'delete', 'head', 'options']

    def get_permissions(self):
        if self.action == 'create':
            return [IsAdminRole()]
        return [permissions.IsAuthenticated()]

    def get_serializer_class(self):
        if self.action == 'create':
            return NotificationCreateSerializer
        return NotificationSerializer

    def get_queryset(self):
        queryset = Notification.objects.filter(user=self.request.user)

        # Filter by type
        type_filter = self.request.query_params.get('type')
        if type_filter:
            queryset = queryset.filter(type=type_filter)

        # Filter by read state
        read = self.request.query_params.get('read')
        if read:
            queryset = queryset.filter(read=read.lower() == 'true')

        # Filter by importance
        important = self.request.query_params.get('important')
        if important:
            queryset = queryset.filter(important=important.lower() == 'true')

        return queryset

    def _stats(self):
        queryset = Notification.objects.filter(user=self.request.user)
        total = queryset.count()
        unread = queryset.filter(read=False).count()
        return {'total': total, 'unread': unread, 'read': total - unread}

    def list(self, request, *args, **kwargs):
        queryset = self.get_queryset()
        page = self.paginate_queryset(queryset)
        if page is not None:
            response = self.get_paginated_response(NotificationSerializer(page, many=True).data)
            response.data['stats'] = self._stats()
            return response
        return Response({
            'results': NotificationSerializer(queryset, many=True).data,
            'stats': self._stats(),
        })

    def create(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        notification = serializer.save()
        logger.info(f"Admin {request.user.email} sent notification {notification.id} to {notification.user.email}")
        return Response(NotificationSerializer(notification).data, status=status.HTTP_201_CREATED)

    def perform_update(self, serializer):
        read = serializer.validated_data.get('read')
        if read is True and not serializer.instance.read:
            serializer.save(read_at=timezone.now())
        elif read is False:
            serializer.save(read_at=None)
        else:
            serializer.save()

    @action(detail=False, methods=['post'])
    def mark_all(self, request):
        """Mark all notifications as read (or unread)."""
        serializer = MarkAllSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        read = serializer.validated_data['read']

        updated = Notification.objects.filter(user=request.user, read=not read).update(
            read=read,
            read_at=timezone.now() if read else None
        )
        return Response({'updated': updated, 'stats': self._stats()})

    @action(detail=False, methods=['post', 'delete'])
    def clear(self, request):
        """Delete notifications, optionally only the read ones."""
        queryset = Notification.objects.filter(user=request.user)
        read_only = request.query_params.get('read') or request.data.get('read')
        if str(read_only).lower() == 'true':
            queryset = queryset.filter(read=True)

        deleted, _ = queryset.delete()
        return Response({'deleted': deleted, 'stats': self._stats()})
