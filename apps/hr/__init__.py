"""HR app: employees, planning, clocking and unavailability requests."""
