from django.apps import AppConfig
from django.core.exceptions import ImproperlyConfigured


class PageClassifierConfig(AppConfig):
    """Configuration for the page classifier Django app."""

    default_auto_field = 'django.db.models.BigAutoField'
    name = 'pageclassifier'

    def ready(self) -> None:
        from .engine.config import EngineConfigError
        from .services import get_engine_config

        # Surface a broken engine configuration at startup, not per request.
        try:
            get_engine_config()
        except EngineConfigError as exc:
            raise ImproperlyConfigured(f'Invalid topic engine configuration: {exc}') from exc
