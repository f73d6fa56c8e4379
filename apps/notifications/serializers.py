"""Serializers for notifications."""

from __future__ import annotations

from rest_framework import serializers  # type: ignore

from .models import Notification


class NotificationSerializer(serializers.ModelSerializer):
    class Meta:
        model = Notification
        fields = ['id', 'category', 'title', 'message', 'link', 'is_read', 'read_at', 'created_at']
        read_only_fields = ['category', 'title', 'message', 'link', 'read_at', 'created_at']
