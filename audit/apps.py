from django.apps import AppConfig


class AuditConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'audit'
    verbose_name = 'Log Aktivitas'

    def ready(self):  # pragma: no cover
        from . import signals  # noqa: F401
