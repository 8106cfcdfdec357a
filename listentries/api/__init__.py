"""API layer module.

Contains FastAPI routers and request/response schemas.
"""

from listentries.api.health import router as health_router
from listentries.api.listentries import router as listentries_router

__all__ = [
    "health_router",
    "listentries_router",
]
