"""
ASGI entry point for calsync.

Re-exports the FastAPI app from calsync/api/main.py for deployment.
"""

from calsync.api.main import app

__all__ = ["app"]
