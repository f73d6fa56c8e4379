"""ASGI config for the CoworKing Café backend.

Exposes the ASGI callable for servers such as uvicorn or daphne. The API is
plain HTTP, so this mirrors the WSGI entry point.
"""

import os
from django.core.asgi import get_asgi_application  # type: ignore

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'config.settings.dev')

application = get_asgi_application()
