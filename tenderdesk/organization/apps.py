from django.apps import AppConfig


class OrganizationConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'tenderdesk.organization'

    def ready(self):
        """Import signals when app is ready"""
        import tenderdesk.organization.signals  # noqa: F401
