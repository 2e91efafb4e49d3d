from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app import models  # noqa: F401  (registers every table on Base.metadata)
from app.api.router import api_router
from app.core.config import settings
from app.db.session import Base, engine
from app.services.errors import InvoiceGenerationError

logger = logging.getLogger(__name__)


def create_app() -> FastAPI:
    app = FastAPI(title=settings.app_name)

    origins = settings.cors_origins
    logger.info("CORS allow_origins=%s environment=%s", origins, settings.environment)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/health")
    def health():
        return {"status": "ok"}

    @app.exception_handler(InvoiceGenerationError)
    async def _generation_error(request: Request, exc: InvoiceGenerationError):
        """Domain errors escaping a route (lookups outside the generation services)."""
        return JSONResponse(status_code=exc.status_code, content={"detail": str(exc)})

    @app.on_event("startup")
    def _startup() -> None:
        """
        Local-dev helper: DATABASE_URL=sqlite:///... creates the billing tables
        without running Alembic.
        """
        if settings.environment == "development" and settings.database_url.startswith("sqlite"):
            Base.metadata.create_all(bind=engine)
            logger.info("sqlite_schema_created: url=%s", settings.database_url)

    app.include_router(api_router)
    return app


app = create_app()
