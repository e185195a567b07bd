"""School operations engine.

Organized by feature modules (identity, attendance, workshops, notifications)
with a thin Flask controller layer on top of service/repository layers.
"""
