"""Promo app: the current promotional code, its QR-code page and its statistics."""
