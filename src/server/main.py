"""FastAPI application."""

from __future__ import annotations

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from sectionwiki.store import DocumentStore, create_store
from sectionwiki.utils.logging_config import get_logger
from server.routers import documents_router, navigation_router, search_router
from server.server_config import CORS_ORIGINS

logger = get_logger(__name__)


def create_app(store: DocumentStore | None = None) -> FastAPI:
    """Build the application around ``store`` (the configured backend by default)."""
    app = FastAPI(title="sectionwiki", summary="Hierarchical, section-addressable documents")
    app.state.store = store if store is not None else create_store()

    app.add_middleware(
        CORSMiddleware,
        allow_origins=CORS_ORIGINS,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(StarletteHTTPException)
    async def http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:  # noqa: ARG001
        return JSONResponse(status_code=exc.status_code, content={"error": str(exc.detail)})

    @app.get("/health")
    async def health() -> dict[str, str]:
        return {"status": "ok"}

    app.include_router(documents_router)
    app.include_router(search_router)
    app.include_router(navigation_router)

    logger.info("Application created", extra={"store": type(app.state.store).__name__})
    return app


app = create_app()
