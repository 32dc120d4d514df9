"""SQLite compilation shim for PostgreSQL JSONB columns.

Lets ``Base.metadata.create_all()`` succeed on the in-memory SQLite database
used by the test suite. JSONB operators are not emulated; queries that need
JSON containment are evaluated in Python instead.

Usage: imported for side-effects by ordering.db.models.
"""
from __future__ import annotations

from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.ext.compiler import compiles


@compiles(JSONB, "sqlite")
def _compile_jsonb_sqlite(element, compiler, **kw):  # pragma: no cover - trivial
    return "JSON"
