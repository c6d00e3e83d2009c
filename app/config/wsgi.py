"""
WSGI config for streamDrop.

Named export for Gunicorn: config.wsgi:streamDrop
"""
import os

from django.core.wsgi import get_wsgi_application

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'config.settings')

streamDrop = get_wsgi_application()
