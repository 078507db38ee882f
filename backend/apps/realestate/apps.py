from django.apps import AppConfig


class RealEstateConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'apps.realestate'
    verbose_name = 'Real Estate Marketplace'
