# trackwash/settings.py
from pathlib import Path

from decouple import Csv, config

BASE_DIR = Path(__file__).resolve().parent.parent

SECRET_KEY = config('DJANGO_SECRET_KEY', default='django-insecure-trackwash-dev-only')
DEBUG = config('DJANGO_DEBUG', default=True, cast=bool)
ALLOWED_HOSTS = config('DJANGO_ALLOWED_HOSTS', default='*', cast=Csv())

INSTALLED_APPS = [
    'payments',
]

MIDDLEWARE = [
    'django.middleware.security.SecurityMiddleware',
    'django.middleware.common.CommonMiddleware',
]

ROOT_URLCONF = 'trackwash.urls'
WSGI_APPLICATION = 'trackwash.wsgi.application'

# Transactions live in payments.ledger, no database
DATABASES = {}

USE_TZ = True
TIME_ZONE = config('TIME_ZONE', default='Africa/Nairobi')
APPEND_SLASH = False

SERVICE_NAME = config('SERVICE_NAME', default='trackwash-mpesa-api')
PORT = config('PORT', default=3000, cast=int)

# M-Pesa Daraja
MPESA_ENV = config('MPESA_ENV', default='sandbox')
MPESA_CONSUMER_KEY = config('MPESA_CONSUMER_KEY', default='')
MPESA_CONSUMER_SECRET = config('MPESA_CONSUMER_SECRET', default='')
MPESA_SHORTCODE = config('MPESA_SHORTCODE', default='174379')
MPESA_PASSKEY = config('MPESA_PASSKEY', default='')
MPESA_CALLBACK_URL = config('MPESA_CALLBACK_URL', default='')
MPESA_TRANSACTION_TYPE = config('MPESA_TRANSACTION_TYPE', default='CustomerPayBillOnline')
MPESA_TIMEOUT = config('MPESA_TIMEOUT', default=30, cast=int)

MPESA_CALLBACK_TOKEN = config('MPESA_CALLBACK_TOKEN', default='')
MPESA_CALLBACK_ALLOWED_IPS = config('MPESA_CALLBACK_ALLOWED_IPS', default='', cast=Csv())

MPESA_LEDGER_TTL = config('MPESA_LEDGER_TTL', default=0, cast=int)
MPESA_LEDGER_MAX_ENTRIES = config('MPESA_LEDGER_MAX_ENTRIES', default=0, cast=int)

LOG_LEVEL = config('LOG_LEVEL', default='INFO')

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
    'loggers': {
        'payments': {
            'handlers': ['console'],
            'level': LOG_LEVEL,
            'propagate': False,
        },
    },
}
