"""
Per-domain repository modules for database access.

Plain functions taking a ``Session``; they commit and refresh. Routers reach
them through the `ordering.db.crud` facade.
"""
