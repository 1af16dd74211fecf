"""Application factory for the sublinear dev server.

``create_app`` wires the pieces together: the settings object, the storage
engine (bootstrapped on startup), the request-id middleware, the JSON error
envelope for transport-level failures, and the routers. The plain-text ``/``
and ``/healthz`` endpoints let scripts probe the process without speaking the
operation protocol.

sublinear is a development stand-in. It never verifies who a caller is beyond
the shared-key gate and must not be exposed as a production service.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.responses import PlainTextResponse
from sqlalchemy.engine import Engine
from starlette.exceptions import HTTPException as StarletteHTTPException

from .core.config import AppSettings, get_settings
from .core.errors import http_exception_handler, validation_exception_handler
from .core.logging import log_event
from .db.migrate import bootstrap
from .middlewares import RequestIdMiddleware

BANNER = "sublinear: dev-only Linear API replacement (NOT FOR PRODUCTION USE)"

logger = logging.getLogger("sublinear")


def create_app(settings: Optional[AppSettings] = None, engine: Optional[Engine] = None) -> FastAPI:
    settings = settings or get_settings()
    if engine is None:
        from .db.session import engine as default_engine

        engine = default_engine

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        bootstrap(engine, settings)
        log_event(logger, "bootstrap.complete", db_url=engine.url.render_as_string())
        yield
        log_event(logger, "shutdown.complete")

    app = FastAPI(title=settings.APP_NAME, lifespan=lifespan)
    app.state.settings = settings
    app.state.engine = engine

    app.add_middleware(RequestIdMiddleware)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)

    from .routers import graphql as graphql_router

    app.include_router(graphql_router.router)

    @app.get("/", response_class=PlainTextResponse)
    def banner() -> str:
        return BANNER

    @app.get("/healthz", response_class=PlainTextResponse)
    def healthz() -> str:
        return "ok"

    return app


__all__ = ["BANNER", "create_app"]
