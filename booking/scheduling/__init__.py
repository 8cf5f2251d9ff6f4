"""
Availability & scheduling policy

- clock: wall-clock helpers (minutes since midnight, weekday index)
- slots: slot generation from the working calendar
- window: working-day / working-hours validation
- conflicts: overlap and group capacity checks
- retry: bounded retry for racing writes
"""
