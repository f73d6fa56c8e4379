"""Django project package for the CoworKing Café backend.

Importing the Celery app here registers shared tasks as soon as Django
starts.
"""

from .celery import app as celery_app  # noqa: F401
