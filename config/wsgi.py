"""WSGI entrypoint for the CARD registry, served by gunicorn (see gunicorn.conf.py)."""

from django.core.wsgi import get_wsgi_application

from config import use_settings_for_env

use_settings_for_env()
application = get_wsgi_application()
