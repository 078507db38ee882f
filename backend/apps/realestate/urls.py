"""
Real Estate Marketplace URLs.
"""
from django.urls import path, include
from rest_framework.routers import DefaultRouter
from rest_framework_nested import routers

from .views import PropertyViewSet, FavoriteViewSet, InquiryViewSet

app_name = 'realestate'

router = DefaultRouter()
router.register(r'properties', PropertyViewSet, basename='property')
router.register(r'favorites', FavoriteViewSet, basename='favorite')
router.register(r'inquiries', InquiryViewSet, basename='inquiry')

# Nested router for a listing's inquiries
properties_router = routers.NestedSimpleRouter(router, r'properties', lookup='property')
properties_router.register(r'inquiries', InquiryViewSet, basename='property-inquiries')

urlpatterns = [
    path('', include(router.urls)),
    path('', include(properties_router.urls)),
]
