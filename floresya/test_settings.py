"""
Test settings: in-memory SQLite, eager Celery, throwaway MEDIA_ROOT.

Usage:
    pytest                                   (pyproject sets DJANGO_SETTINGS_MODULE)
    python manage.py test --settings=test_settings
"""

import tempfile

from floresya.settings import *

DATABASES = {
    'default': {
        'ENGINE': 'django.db.backends.sqlite3',
        'NAME': ':memory:',
    }
}

DEBUG = False

PASSWORD_HASHERS = [
    'django.contrib.auth.hashers.MD5PasswordHasher',
]

CACHES = {
    'default': {
        'BACKEND': 'django.core.cache.backends.dummy.DummyCache',
    }
}

# Tests that write renditions override this again per test case
MEDIA_ROOT = tempfile.mkdtemp(prefix='floresya-test-media-')

CELERY_BROKER_URL = 'memory://'
CELERY_TASK_ALWAYS_EAGER = True
CELERY_TASK_EAGER_PROPAGATES = True

PHOTO_STORAGE_WRITE_ATTEMPTS = 3
PHOTO_CLEANUP_GRACE_SECONDS = 0

LOGGING = {
    'version': 1,
    'disable_existing_loggers': True,
    'handlers': {
        'console': {
            'class': 'logging.StreamHandler',
        },
    },
    'root': {
        'handlers': ['console'],
        'level': 'ERROR',
    },
}
