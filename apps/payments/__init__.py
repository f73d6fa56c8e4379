"""Payments app: card holds, captures and refunds through Stripe."""
