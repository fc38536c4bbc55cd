"""
calsync API module.

Provides FastAPI HTTP endpoints over the calendar sync core.
"""

from calsync.api.main import app, run_server

__all__ = ["app", "run_server"]
