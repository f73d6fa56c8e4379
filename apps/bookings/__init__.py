"""Bookings app: reservations, cancellations and the scheduled payment jobs."""
