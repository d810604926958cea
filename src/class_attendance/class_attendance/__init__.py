"""Class Attendance package.

Organized by feature modules (terms, schedules, overrides, tokens, attendance)
with a thin Flask controller layer over service/repository layers.
"""
