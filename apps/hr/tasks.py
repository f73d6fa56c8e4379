"""Celery tasks for HR."""

from __future__ import annotations

import logging

from celery import shared_task  # type: ignore
from django.utils import timezone  # type: ignore

from .services import generate_recurring_tasks as generate_occurrences

logger = logging.getLogger(__name__)


@shared_task(name="hr.generate_recurring_tasks")
def generate_recurring_tasks() -> dict:
    """Tâches du jour issues des modèles récurrents actifs."""
    today = timezone.localdate()
    created = generate_occurrences(today)
    return {"date": today.isoformat(), "created": created}
