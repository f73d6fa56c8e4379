"""Catalog app: the café menu, its categories and products."""
