"""
Django settings for the module catalog.

Values are read from the environment (or a .env file) with python-decouple.
"""

from pathlib import Path

import dj_database_url
from decouple import config

# Build paths inside the project like this: BASE_DIR / 'subdir'.
BASE_DIR = Path(__file__).resolve().parent.parent

# SECURITY WARNING: keep the secret key used in production secret!
SECRET_KEY = config('SECRET_KEY', default='django-insecure-module-catalog-development-key')

# SECURITY WARNING: don't run with debug turned on in production!
DEBUG = config('DEBUG', default=False, cast=bool)

ALLOWED_HOSTS = config('ALLOWED_HOSTS', default='localhost,127.0.0.1', cast=lambda v: [s.strip() for s in v.split(',')])

INSTALLED_APPS = [
    'django.contrib.contenttypes',
    'django.contrib.auth',
    'catalog_core.modules',
]

DATABASES = {
    'default': dj_database_url.parse(
        config('DATABASE_URL', default=f"sqlite:///{BASE_DIR / 'db.sqlite3'}"),
        conn_max_age=config('DB_CONN_MAX_AGE', default=600, cast=int),
    )
}

DEFAULT_AUTO_FIELD = 'django.db.models.BigAutoField'

LANGUAGE_CODE = 'en-us'
TIME_ZONE = 'UTC'
USE_I18N = True
USE_TZ = True

# Module catalog
# Version label stored with every loaded system module. Tied to the deployment.
CATALOG_MODULE_VERSION = config('VERSION', default='')
# Replace rows of the same version instead of rejecting them (local development).
CATALOG_DEV_MODE = config('DEV_MODE', default=False, cast=bool)
# One subdirectory of YAML definitions per namespace.
CATALOG_MODULE_ROOT = config('MODULE_ROOT', default=str(BASE_DIR / 'system_modules'))

LOGGING = {
    'version': 1,
    'disable_existing_loggers': False,
    'formatters': {
        'verbose': {
            'format': '{levelname} {asctime} {module} {process:d} {thread:d} {message}',
            'style': '{',
        },
        'simple': {
            'format': '{levelname} {message}',
            'style': '{',
        },
    },
    'handlers': {
        'console': {
            'level': 'INFO',
            'class': 'logging.StreamHandler',
            'formatter': 'simple',
        },
    },
    'root': {
        'handlers': ['console'],
        'level': 'INFO',
    },
    'loggers': {
        'django': {
            'handlers': ['console'],
            'level': config('DJANGO_LOG_LEVEL', default='INFO'),
            'propagate': False,
        },
        'catalog_core': {
            'handlers': ['console'],
            'level': config('CATALOG_LOG_LEVEL', default='INFO'),
            'propagate': False,
        },
    },
}
