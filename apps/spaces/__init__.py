"""Spaces app: bookable space configurations, pricing and booking settings."""
