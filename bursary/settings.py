"""
Django settings for the bursary project.

Everything deployment-specific is read from the environment (a local .env
file is honoured through python-dotenv).
"""

import os
import sys
from pathlib import Path

import dj_database_url
from django.core.management.utils import get_random_secret_key
from dotenv import load_dotenv

load_dotenv()

BASE_DIR = Path(__file__).resolve().parent.parent

# Apps live under apps/ and import each other as top-level packages
sys.path.insert(0, str(BASE_DIR / 'apps'))

SECRET_KEY = os.environ.get('DJANGO_SECRET_KEY', get_random_secret_key())

DEBUG = os.environ.get('DJANGO_DEBUG', 'True').lower() == 'true'

ALLOWED_HOSTS = os.environ.get('DJANGO_ALLOWED_HOSTS', '127.0.0.1,localhost,testserver').split(',')


INSTALLED_APPS = [
    'django.contrib.contenttypes',
    'django.contrib.sessions',

    'utils.apps.UtilsConfig',
    'students.apps.StudentsConfig',
    'fees.apps.FeesConfig',
    'finance.apps.FinanceConfig',
]

MIDDLEWARE = [
    'django.middleware.security.SecurityMiddleware',
    'django.contrib.sessions.middleware.SessionMiddleware',
    'django.middleware.common.CommonMiddleware',
    'bursary.middleware.SchoolContextMiddleware',
    'utils.middleware.AuditContextMiddleware',
]

ROOT_URLCONF = 'bursary.urls'

WSGI_APPLICATION = 'bursary.wsgi.application'


local_sqlite_url = 'sqlite:///' + str(BASE_DIR / 'db.sqlite3')

DATABASES = {
    'default': dj_database_url.config(
        default=os.environ.get('DATABASE_URL', local_sqlite_url),
        conn_max_age=int(os.environ.get('DATABASE_CONN_MAX_AGE', '600')),
    )
}

DEFAULT_AUTO_FIELD = 'django.db.models.BigAutoField'


LANGUAGE_CODE = 'en-us'

TIME_ZONE = os.environ.get('TIME_ZONE', 'Africa/Kampala')

USE_I18N = True

USE_TZ = True


# --------------------------
# Ledger configuration
# --------------------------

BURSARY = {
    'DEFAULT_PAGE_SIZE': int(os.environ.get('BURSARY_DEFAULT_PAGE_SIZE', '50')),
    'MAX_PAGE_SIZE': int(os.environ.get('BURSARY_MAX_PAGE_SIZE', '200')),
    'YEAR_MIN': int(os.environ.get('BURSARY_YEAR_MIN', '2020')),
    'YEAR_MAX': int(os.environ.get('BURSARY_YEAR_MAX', '2100')),
    'MAX_INSTALLMENTS': int(os.environ.get('BURSARY_MAX_INSTALLMENTS', '36')),
    'DEFAULT_PAYMENT_METHOD': os.environ.get('BURSARY_DEFAULT_PAYMENT_METHOD', 'Cash'),
}


LOG_LEVEL = os.environ.get('DJANGO_LOG_LEVEL', 'INFO' if DEBUG else 'WARNING')

LOGGING = {
    'version': 1,
    'disable_existing_loggers': False,
    'formatters': {
        'verbose': {
            'format': '{asctime} {levelname} {name} {message}',
            'style': '{',
        },
    },
    'handlers': {
        'console': {
            'class': 'logging.StreamHandler',
            'formatter': 'verbose',
        },
    },
    'root': {
        'handlers': ['console'],
        'level': LOG_LEVEL,
    },
}


if not DEBUG:
    SECURE_CONTENT_TYPE_NOSNIFF = True
    SECURE_PROXY_SSL_HEADER = ('HTTP_X_FORWARDED_PROTO', 'https')
    SESSION_COOKIE_SECURE = True
