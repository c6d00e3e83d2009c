"""
Django settings for streamDrop.

Follows the vps-orchestration pattern (unhinged_lander).
"""
import os
from pathlib import Path

from dotenv import load_dotenv

load_dotenv(override=True)

# Build paths inside the project like this: BASE_DIR / 'subdir'.
BASE_DIR = Path(__file__).resolve().parent.parent


# ---------------- Security ------------------------------------------------- #

# Fail loud if SECRET_KEY is not set
SECRET_KEY = os.environ['SECRET_KEY']

# Fail loud if DEBUG is not explicitly set
_debug = os.environ.get('DEBUG')
if _debug is None:
  raise ValueError('DEBUG must be explicitly set in environment (true/false)')
DEBUG = _debug.lower() == 'true'

ALLOWED_HOSTS = [
  'streamdrop.localhost',  # remapped for nginx (dev)
  'localhost',
  '127.0.0.1',
  'streamdrop.xyz',        # production
  'www.streamdrop.xyz',    # production (www redirect)
]

CSRF_TRUSTED_ORIGINS = [
  'https://streamdrop.localhost',
  'https://streamdrop.xyz',
]


# ---------------- Application definition ---------------------------------- #

INSTALLED_APPS = [
  'django.contrib.admin',
  'django.contrib.auth',
  'django.contrib.contenttypes',
  'django.contrib.sessions',
  'django.contrib.messages',
  'django.contrib.staticfiles',
  # third-party
  'django_extensions',
  # project apps
  'api',
]

MIDDLEWARE = [
  'django.middleware.security.SecurityMiddleware',
  'django.contrib.sessions.middleware.SessionMiddleware',
  'middleware.wide_event_logging.WideEventLoggingMiddleware',
  'django.middleware.common.CommonMiddleware',
  'django.middleware.csrf.CsrfViewMiddleware',
  'django.contrib.auth.middleware.AuthenticationMiddleware',
  'django.contrib.messages.middleware.MessageMiddleware',
  'django.middleware.clickjacking.XFrameOptionsMiddleware',
]

ROOT_URLCONF = 'config.urls'

TEMPLATES = [
  {
    'BACKEND': 'django.template.backends.django.DjangoTemplates',
    'DIRS': [],
    'APP_DIRS': True,
    'OPTIONS': {
      'context_processors': [
        'django.template.context_processors.request',
        'django.contrib.auth.context_processors.auth',
        'django.contrib.messages.context_processors.messages',
      ],
    },
  },
]

WSGI_APPLICATION = 'config.wsgi.streamDrop'
ASGI_APPLICATION = 'config.asgi.streamDrop'


# ---------------- Database ------------------------------------------------ #

DATABASES = {
  'default': {
    'ENGINE': 'django.db.backends.postgresql',
    'NAME': os.getenv('PG_DATABASE', ''),
    'USER': os.getenv('PG_USER', ''),
    'PASSWORD': os.getenv('PG_PASS', ''),
    'HOST': os.getenv('PG_HOST', ''),
    'PORT': os.getenv('PG_PORT', '5432'),
    'CONN_MAX_AGE': 600,
  }
}

# ---------------- Auth ---------------------------------------------------- #

AUTH_USER_MODEL = 'api.User'

AUTH_PASSWORD_VALIDATORS = [
  {'NAME': 'django.contrib.auth.password_validation.UserAttributeSimilarityValidator'},
  {'NAME': 'django.contrib.auth.password_validation.MinimumLengthValidator'},
  {'NAME': 'django.contrib.auth.password_validation.CommonPasswordValidator'},
  {'NAME': 'django.contrib.auth.password_validation.NumericPasswordValidator'},
]


# ---------------- Internationalization ------------------------------------ #

LANGUAGE_CODE = 'en-us'
TIME_ZONE = 'UTC'
USE_I18N = True
USE_TZ = True


# ---------------- Static files -------------------------------------------- #

STATIC_URL = 'static/'
STATIC_ROOT = BASE_DIR / 'staticfiles'

DEFAULT_AUTO_FIELD = 'django.db.models.BigAutoField'


# ---------------- Logging ------------------------------------------------- #

LOGGING = {
  'version': 1,
  'disable_existing_loggers': False,
  'formatters': {
    'wide_event': {
      'format': '%(message)s',
    },
  },
  'handlers': {
    'wide_event_console': {
      'class': 'logging.StreamHandler',
      'formatter': 'wide_event',
    },
  },
  'loggers': {
    'wide_event': {
      'handlers': ['wide_event_console'],
      'level': os.getenv('WIDE_EVENT_LOG_LEVEL', 'INFO'),
      'propagate': False,
    },
  },
}


# ---------------- Chain RPC ----------------------------------------------- #

# Empty values fall back to the public RPC in api.utils.web3_utils.CHAINS
SEPOLIA_RPC_URL = os.getenv('SEPOLIA_RPC_URL', '')
ARBITRUM_SEPOLIA_RPC_URL = os.getenv('ARBITRUM_SEPOLIA_RPC_URL', '')
AVALANCHE_FUJI_RPC_URL = os.getenv('AVALANCHE_FUJI_RPC_URL', '')
BASE_SEPOLIA_RPC_URL = os.getenv('BASE_SEPOLIA_RPC_URL', '')
OPTIMISM_SEPOLIA_RPC_URL = os.getenv('OPTIMISM_SEPOLIA_RPC_URL', '')
POLYGON_AMOY_RPC_URL = os.getenv('POLYGON_AMOY_RPC_URL', '')

RPC_TIMEOUT_SECONDS = int(os.getenv('RPC_TIMEOUT_SECONDS', '10'))


# ---------------- Bridge attestation (Circle Iris) ------------------------ #

IRIS_API_URL = os.getenv('IRIS_API_URL', 'https://iris-api-sandbox.circle.com')
IRIS_TIMEOUT_SECONDS = int(os.getenv('IRIS_TIMEOUT_SECONDS', '15'))


# ---------------- Reconciliation ------------------------------------------ #

DONATION_POLL_INTERVAL_SECONDS = float(os.getenv('DONATION_POLL_INTERVAL_SECONDS', '5'))
DONATION_POLL_MAX_ATTEMPTS = int(os.getenv('DONATION_POLL_MAX_ATTEMPTS', '120'))
DONATION_SWEEP_LIMIT = int(os.getenv('DONATION_SWEEP_LIMIT', '20'))

# Reverse ENS lookup for donor display names on completion
RESOLVE_DONOR_ENS = os.getenv('RESOLVE_DONOR_ENS', 'true').lower() == 'true'

# Shared secret for PUT /api/donations/<id>/status/ (open when empty)
RECONCILER_API_TOKEN = os.getenv('RECONCILER_API_TOKEN', '')


# ---------------- Live alerts --------------------------------------------- #

ALERT_HEARTBEAT_SECONDS = float(os.getenv('ALERT_HEARTBEAT_SECONDS', '30'))
ALERT_STREAM_TIMEOUT_SECONDS = float(os.getenv('ALERT_STREAM_TIMEOUT_SECONDS', '3600'))
ALERT_QUEUE_SIZE = int(os.getenv('ALERT_QUEUE_SIZE', '100'))
