"""ASGI entrypoint for the CARD registry."""

from django.core.asgi import get_asgi_application

from config import use_settings_for_env

use_settings_for_env()
application = get_asgi_application()
