"""API routers."""

from server.routers.documents import router as documents_router
from server.routers.navigation import router as navigation_router
from server.routers.search import router as search_router

__all__ = ["documents_router", "navigation_router", "search_router"]
