"""
App assembly entry point.

Re-exports the FastAPI `app` from `ordering.api.main` so `uvicorn app:app`
works from the repository root.
"""

from ordering.api.main import app  # noqa: F401
