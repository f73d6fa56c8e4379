"""In-app notification model.

Domain services create notifications for events a user should see in
their dashboard (reservation confirmed, unavailability reviewed...).
Each notification can be marked as read.
"""

from __future__ import annotations

from django.db import models  # type: ignore


class Notification(models.Model):
    """A message shown to a user in their dashboard."""

    class Category(models.TextChoices):
        BOOKING = 'booking', 'Réservation'
        PAYMENT = 'payment', 'Paiement'
        HR = 'hr', 'RH'
        SYSTEM = 'system', 'Système'

    user = models.ForeignKey(
        'users.CustomUser', on_delete=models.CASCADE, related_name='notifications'
    )
    category = models.CharField(max_length=20, choices=Category.choices, default=Category.SYSTEM)
    title = models.CharField(max_length=255)
    message = models.TextField()
    link = models.CharField(max_length=255, blank=True)
    is_read = models.BooleanField(default=False)
    read_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['-created_at']
        indexes = [models.Index(fields=['user', 'is_read'], name='notification_user_read_idx')]

    def __str__(self) -> str:
        return f"Notification to {self.user_id}: {self.title}"
