"""
Agent and developer profile URL patterns.
"""
from django.urls import path, include
from rest_framework.routers import DefaultRouter

from .views_profiles import AgentProfileViewSet, DeveloperProfileViewSet

router = DefaultRouter()
router.register('agents', AgentProfileViewSet, basename='agent')
router.register('developers', DeveloperProfileViewSet, basename='developer')

urlpatterns = [
    path('', include(router.urls)),
]
