"""
Custom permissions for the marketplace roles.
"""
from rest_framework import permissions


class IsAdminRole(permissions.BasePermission):
    """
    Check if user is a marketplace admin.
    """
    def has_permission(self, request, view):
        user = request.user
        return bool(user and user.is_authenticated and user.is_admin_role)


class IsOwnerOrAgentRole(permissions.BasePermission):
    """
    Check if user may publish listings (owner, agent, developer or admin).
    """
    def has_permission(self, request, view):
        user = request.user
        return bool(user and user.is_authenticated and user.can_list_properties)


class IsProfileOwnerOrReadOnly(permissions.BasePermission):
    """
    Agent/developer profiles are public; only their user or an admin edits them.
    """
    def has_object_permission(self, request, view, obj):
        if request.method in permissions.SAFE_METHODS:
            return True
        user = request.user
        return bool(user and user.is_authenticated and (user.is_admin_role or obj.user_id == user.id))


class IsPropertyManagerOrReadOnly(permissions.BasePermission):
    """
    Anyone may read a property; only its owner, its agent or an admin may change it.
    """
    def has_object_permission(self, request, view, obj):
        if request.method in permissions.SAFE_METHODS:
            return True
        return is_property_manager(request.user, obj)


class IsBookingParticipant(permissions.BasePermission):
    """
    Check if user is the guest, a manager of the booked property, or an admin.
    """
    def has_object_permission(self, request, view, obj):
        user = request.user
        if not user or not user.is_authenticated:
            return False
        if obj.user_id == user.id:
            return True
        return is_property_manager(user, obj.property)


def is_property_manager(user, property_obj):
    """Check if a user owns, represents or administers a property."""
    if not user or not user.is_authenticated:
        return False
    if user.is_admin_role:
        return True
    if property_obj.owner_id == user.id:
        return True
    agent = getattr(property_obj, 'agent', None)
    return bool(agent and agent.user_id == user.id)
