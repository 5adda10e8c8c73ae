from django.apps import AppConfig


class TendersConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'tenderdesk.tenders'

    def ready(self):
        """Import signals when app is ready"""
        import tenderdesk.tenders.signals  # noqa: F401
