"""Notifications app: outgoing emails and in-app notifications."""
