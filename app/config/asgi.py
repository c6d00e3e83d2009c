"""
ASGI config for streamDrop.

Named export for Uvicorn: config.asgi:streamDrop
The alert and donation-watch streams are async views, so production
traffic should be served through this entry point rather than WSGI.
"""
import os

from django.core.asgi import get_asgi_application

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'config.settings')

streamDrop = get_asgi_application()
