"""FastAPI HTTP layer package.

Public re-export so the server can be started with::

    uvicorn backend.api:app --port 3000
"""

from backend.api.app import app

__all__ = ["app"]
