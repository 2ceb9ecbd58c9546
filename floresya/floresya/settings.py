"""
Base settings for the FloresYa catalog backend.

Values come from the environment (optionally loaded from the file named by
DJANGO_ENV_FILE); production overrides live in production_settings.py.
"""

import os
from pathlib import Path

from dotenv import load_dotenv

BASE_DIR = Path(__file__).resolve().parent.parent

_env_file = os.environ.get('DJANGO_ENV_FILE')
if _env_file:
    load_dotenv(_env_file)


def _env_bool(name, default=False):
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in ('1', 'true', 'yes', 'on')


SECRET_KEY = os.environ.get('SECRET_KEY', 'dev-insecure-floresya-key')
DEBUG = _env_bool('DEBUG', True)

_allowed_hosts_env = os.environ.get('ALLOWED_HOSTS', '').strip()
if _allowed_hosts_env:
    ALLOWED_HOSTS = [h.strip() for h in _allowed_hosts_env.split(',') if h.strip()]
else:
    ALLOWED_HOSTS = ['localhost', '127.0.0.1', 'testserver']

INSTALLED_APPS = [
    'django.contrib.admin',
    'django.contrib.auth',
    'django.contrib.contenttypes',
    'django.contrib.sessions',
    'django.contrib.messages',
    'django.contrib.staticfiles',
    'rest_framework',
    'storefront',
    'productphotos',
    'orders',
]

MIDDLEWARE = [
    'django.middleware.security.SecurityMiddleware',
    'django.contrib.sessions.middleware.SessionMiddleware',
    'django.middleware.common.CommonMiddleware',
    'django.middleware.csrf.CsrfViewMiddleware',
    'django.contrib.auth.middleware.AuthenticationMiddleware',
    'django.contrib.messages.middleware.MessageMiddleware',
    'django.middleware.clickjacking.XFrameOptionsMiddleware',
]

ROOT_URLCONF = 'floresya.urls'

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

WSGI_APPLICATION = 'floresya.wsgi.application'

DATABASES = {
    'default': {
        'ENGINE': 'django.db.backends.sqlite3',
        'NAME': os.environ.get('SQLITE_PATH', str(BASE_DIR / 'db.sqlite3')),
    }
}

DEFAULT_AUTO_FIELD = 'django.db.models.BigAutoField'

LANGUAGE_CODE = 'es'
TIME_ZONE = 'America/Caracas'
USE_I18N = True
USE_TZ = True

STATIC_URL = '/static/'
STATIC_ROOT = BASE_DIR / 'staticfiles'
MEDIA_URL = '/media/'
MEDIA_ROOT = Path(os.environ.get('MEDIA_ROOT', BASE_DIR / 'media'))

# Django REST Framework
REST_FRAMEWORK = {
    'DEFAULT_RENDERER_CLASSES': ['rest_framework.renderers.JSONRenderer'],
    'DEFAULT_PARSER_CLASSES': [
        'rest_framework.parsers.JSONParser',
        'rest_framework.parsers.MultiPartParser',
        'rest_framework.parsers.FormParser',
    ],
    'EXCEPTION_HANDLER': 'floresya.api.photo_set_exception_handler',
}

# Celery
CELERY_BROKER_URL = os.environ.get('CELERY_BROKER_URL', 'memory://')
CELERY_RESULT_BACKEND = os.environ.get('CELERY_RESULT_BACKEND') or None
CELERY_TASK_ALWAYS_EAGER = _env_bool('CELERY_TASK_ALWAYS_EAGER', False)
CELERY_TASK_IGNORE_RESULT = True
CELERY_TIMEZONE = TIME_ZONE
CELERY_BEAT_SCHEDULE = {
    'sweep-orphan-photo-renditions': {
        'task': 'productphotos.tasks.sweep_orphan_renditions_task',
        'schedule': 60 * 60,
    },
}

# Product photos
PHOTO_MAX_PER_PRODUCT = int(os.environ.get('PHOTO_MAX_PER_PRODUCT', '5'))
PHOTO_MAX_UPLOAD_BYTES = int(os.environ.get('PHOTO_MAX_UPLOAD_BYTES', str(5 * 1024 * 1024)))
PHOTO_RENDITION_SIZES = {
    'thumb': 150,
    'small': 300,
    'medium': 600,
    'large': 1200,
}
PHOTO_RENDITION_QUALITY = int(os.environ.get('PHOTO_RENDITION_QUALITY', '85'))
PHOTO_STORAGE_PREFIX = os.environ.get('PHOTO_STORAGE_PREFIX', 'product_photos')
PHOTO_STORAGE_WRITE_ATTEMPTS = int(os.environ.get('PHOTO_STORAGE_WRITE_ATTEMPTS', '3'))
PHOTO_ORPHAN_TTL_SECONDS = int(os.environ.get('PHOTO_ORPHAN_TTL_SECONDS', str(24 * 60 * 60)))
# Delay before renditions of a deleted photo are removed from storage
PHOTO_CLEANUP_GRACE_SECONDS = int(os.environ.get('PHOTO_CLEANUP_GRACE_SECONDS', '300'))

LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO').upper()

LOGGING = {
    'version': 1,
    'disable_existing_loggers': False,
    'formatters': {
        'verbose': {
            'format': '%(asctime)s %(levelname)s %(name)s: %(message)s',
        },
    },
    'handlers': {
        'console': {
            'class': 'logging.StreamHandler',
            'formatter': 'verbose',
        },
    },
    'loggers': {
        'django': {
            'handlers': ['console'],
            'level': 'INFO',
            'propagate': True,
        },
        'productphotos': {
            'handlers': ['console'],
            'level': LOG_LEVEL,
            'propagate': False,
        },
        'storefront': {
            'handlers': ['console'],
            'level': LOG_LEVEL,
            'propagate': False,
        },
    },
}
