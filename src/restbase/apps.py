"""RESTBase update app configuration."""

from django.apps import AppConfig


class RestbaseConfig(AppConfig):
    """Connects the wiki change signals to the job scheduler."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "restbase"
    verbose_name = "RESTBase update"

    def ready(self):
        """Register signal receivers."""
        from . import receivers  # noqa: F401
