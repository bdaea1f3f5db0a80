"""Portal app configuration."""
from django.apps import AppConfig


class PortalConfig(AppConfig):
    """Configuration for portal app."""
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'apps.portal'
    verbose_name = 'Patient Portal'
