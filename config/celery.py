import os

from celery import Celery
from celery.schedules import crontab  # type: ignore

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings.dev")

app = Celery("coworking_cafe")

app.config_from_object("django.conf:settings", namespace="CELERY")
app.autodiscover_tasks()


# ============================================================================
# CELERY BEAT SCHEDULE (Periodic Tasks)
# ============================================================================

app.conf.beat_schedule = {
    # Empreintes bancaires à J-7 pour les réservations avec carte enregistrée
    "create-deposit-holds": {
        "task": "bookings.create_deposit_holds",
        "schedule": crontab(hour=2, minute=0),
    },
    # PaymentIntents différés à J-6 (au-delà de la fenêtre d'autorisation)
    "create-deferred-payment-intents": {
        "task": "bookings.create_deferred_payment_intents",
        "schedule": crontab(hour=2, minute=30),
    },
    # No-show : capture des empreintes non validées la veille
    "check-attendance": {
        "task": "bookings.check_attendance",
        "schedule": crontab(hour=3, minute=0),
    },
    # Rappels pour les réservations du lendemain
    "send-booking-reminders": {
        "task": "bookings.send_booking_reminders",
        "schedule": crontab(hour=10, minute=0),
    },
    # Rapport quotidien pour l'équipe
    "send-daily-report": {
        "task": "bookings.send_daily_report",
        "schedule": crontab(hour=8, minute=0),
    },
    # Tâches du jour issues des modèles récurrents
    "generate-recurring-tasks": {
        "task": "hr.generate_recurring_tasks",
        "schedule": crontab(hour=0, minute=5),
    },
}

app.conf.timezone = "Europe/Paris"
