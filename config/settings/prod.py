"""Production settings.

Secrets must come from the environment; startup fails with
ImproperlyConfigured when one of them is missing.
"""

from .base import *  # noqa: F401,F403
from .base import get_env, get_env_list

DEBUG = False

SECRET_KEY = get_env('DJANGO_SECRET_KEY', required=True)
ENCRYPTION_KEY = get_env('ENCRYPTION_KEY', required=True)
ALLOWED_HOSTS = get_env_list('DJANGO_ALLOWED_HOSTS', '')

STRIPE_SECRET_KEY = get_env('STRIPE_SECRET_KEY', required=True)
STRIPE_WEBHOOK_SECRET = get_env('STRIPE_WEBHOOK_SECRET', required=True)
CRON_SECRET = get_env('CRON_SECRET', required=True)

# Configure secure proxies and cookies
SECURE_PROXY_SSL_HEADER = ('HTTP_X_FORWARDED_PROTO', 'https')
CSRF_COOKIE_SECURE = True
SESSION_COOKIE_SECURE = True
SECURE_SSL_REDIRECT = get_env('SECURE_SSL_REDIRECT', 'True').lower() == 'true'
