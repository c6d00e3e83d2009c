"""
Test settings: seeds the environment settings.py insists on and swaps
Postgres for an in-memory SQLite database.
"""
import os

os.environ.setdefault('SECRET_KEY', 'streamdrop-test-secret')
os.environ.setdefault('DEBUG', 'false')

from config.settings import *  # noqa: E402,F401,F403

DATABASES = {
  'default': {
    'ENGINE': 'django.db.backends.sqlite3',
    'NAME': ':memory:',
  }
}

PASSWORD_HASHERS = ['django.contrib.auth.hashers.MD5PasswordHasher']

IRIS_API_URL = 'https://iris.test'
DONATION_POLL_INTERVAL_SECONDS = 0
DONATION_POLL_MAX_ATTEMPTS = 3
ALERT_HEARTBEAT_SECONDS = 0.05
ALERT_STREAM_TIMEOUT_SECONDS = 0.2
RECONCILER_API_TOKEN = ''
RESOLVE_DONOR_ENS = False

LOGGING['loggers']['wide_event']['level'] = 'CRITICAL'  # noqa: F405
