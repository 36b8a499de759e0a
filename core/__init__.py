"""
Core business logic

- State machine: every tournament status change
- Managers: tournament lifecycle, roster, schedule and results
- Locks: concurrency helpers
"""
