# identifiers/apps.py
from django.apps import AppConfig


class IdentifiersConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "identifiers"
    verbose_name = "Order identifiers"

    def ready(self):
        # Registers IdentifierIssued handlers on the domain dispatcher
        import identifiers.handlers  # noqa: F401
