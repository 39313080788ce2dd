"""
TariffPilot API

Stateless HTTP surface over the decision core. Every endpoint takes the
full snapshot or inputs it needs; nothing is stored between requests.

Endpoints:
    POST /decide                 - Next action for a conversation snapshot
    POST /terminate              - Termination verdict
    POST /confidence             - Confidence score with breakdown
    POST /confidence/factors     - Score plus improvement recommendations
    POST /precedents/consensus   - Majority agreement among cases
    POST /precedents/relevance   - Cases ranked by relevance
    POST /precedents/validate    - Proposed code vs. precedent consensus
    POST /legal/parse            - Explanatory-note parsing
    POST /legal/match            - Product vs. explanatory-note cross-check
    POST /product/validate       - Profile errors, analyst feedback, 3(b) analysis check
    POST /product/hs-format      - HS code vs. national format
    GET  /health                 - Liveness check with tables identity
"""
from __future__ import annotations

import logging
import time
import uuid
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any, Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from .. import __version__
from ..config import Settings
from ..exceptions import StateValidationError, TariffPilotError
from ..log import configure_logging
from .routes import confidence, decisions, legal, precedents, product


logger = logging.getLogger(__name__)


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Build the app; the tables pack is loaded once at startup."""
    settings = settings or Settings.from_env()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        configure_logging(settings.log_level, json_lines=settings.log_json)
        tables = settings.load_tables()
        app.state.tables = tables
        logger.info(
            "Loaded tables %s v%s", tables.id, tables.version,
            extra={"tables_hash_short": tables.content_hash[:12]},
        )
        yield

    app = FastAPI(
        title="TariffPilot API",
        description="Deterministic decision core for tariff classification conversations.",
        version=__version__,
        lifespan=lifespan,
    )

    @app.middleware("http")
    async def add_request_id(request: Request, call_next):
        """Add request ID to all requests."""
        request_id = str(uuid.uuid4())[:8]
        request.state.request_id = request_id
        start = time.time()

        response = await call_next(request)

        response.headers["X-Request-ID"] = request_id
        logger.debug(
            "%s %s -> %d", request.method, request.url.path, response.status_code,
            extra={
                "request_id": request_id,
                "duration_ms": int((time.time() - start) * 1000),
            },
        )
        return response

    @app.exception_handler(TariffPilotError)
    async def tariffpilot_error_handler(request: Request, exc: TariffPilotError):
        status_code = 422 if isinstance(exc, StateValidationError) else 400
        logger.warning(
            "Request rejected: %s", exc,
            extra={
                "request_id": getattr(request.state, "request_id", None),
                "report_id": exc.report_id,
            },
        )
        return JSONResponse(status_code=status_code, content=exc.to_dict())

    @app.get("/health", tags=["Health"])
    async def health(request: Request) -> dict[str, Any]:
        """Liveness check; reports which tables pack is loaded."""
        tables = request.app.state.tables
        return {
            "status": "healthy",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "version": __version__,
            "tables": {
                "id": tables.id,
                "version": tables.version,
                "schema_version": tables.schema_version,
                "content_hash": tables.content_hash,
            },
        }

    app.include_router(decisions.router)
    app.include_router(confidence.router)
    app.include_router(precedents.router)
    app.include_router(legal.router)
    app.include_router(product.router)

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
