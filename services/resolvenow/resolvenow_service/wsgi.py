"""WSGI config for the ResolveNow service (HTTP only, no websockets)."""
import os

from django.core.wsgi import get_wsgi_application

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "resolvenow_service.settings")

application = get_wsgi_application()
