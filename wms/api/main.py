import asyncio
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.middleware.cors import CORSMiddleware
from starlette.types import ASGIApp

from wms.api.routes_health import router as health_router
from wms.api.routes_inventory import router as inventory_router
from wms.api.routes_metrics import router as metrics_router
from wms.core.config import settings
from wms.core.errors import register_error_handlers
from wms.core.exceptions import RequestTimeoutError
from wms.core.logger import init_logging
from wms.core.monitoring import init_monitoring
from wms.db.session import create_db_and_tables

logger = logging.getLogger(__name__)


class RequestTimeoutMiddleware(BaseHTTPMiddleware):
    """Answer 504 when a request runs past its time budget.

    Stock operations are single transactions, so an abandoned request either
    committed whole or rolls back whole.
    """

    def __init__(self, app: ASGIApp, timeout_seconds: float = 30.0) -> None:
        super().__init__(app)
        self.timeout_seconds = timeout_seconds
        self.logger = logging.getLogger("wms.request_timeout")

    async def dispatch(self, request, call_next):  # type: ignore[override]
        try:
            return await asyncio.wait_for(call_next(request), timeout=self.timeout_seconds)
        except asyncio.TimeoutError:
            self.logger.warning(
                "Request timed out after %ss: %s %s", self.timeout_seconds, request.method, request.url.path
            )
            exc = RequestTimeoutError(self.timeout_seconds)
            return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@asynccontextmanager
async def lifespan(app: FastAPI):
    if settings.AUTO_CREATE_TABLES:
        create_db_and_tables()
        logger.info("Database tables ensured")
    yield


def create_app() -> FastAPI:
    init_logging()
    init_monitoring()

    # Interactive docs are disabled in production
    is_production = settings.ENV.lower() == "prod"
    app = FastAPI(
        title=settings.APP_NAME,
        version=settings.APP_VERSION,
        debug=False,
        docs_url=None if is_production else "/docs",
        redoc_url=None if is_production else "/redoc",
        openapi_url=None if is_production else "/openapi.json",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ALLOW_ORIGINS,
        allow_credentials=settings.CORS_ALLOW_CREDENTIALS,
        allow_methods=settings.CORS_ALLOW_METHODS,
        allow_headers=settings.CORS_ALLOW_HEADERS,
    )
    app.add_middleware(RequestTimeoutMiddleware, timeout_seconds=settings.REQUEST_TIMEOUT_SECONDS)
    register_error_handlers(app)

    app.include_router(inventory_router, prefix="/api")
    app.include_router(metrics_router, tags=["metrics"])
    app.include_router(health_router)

    @app.get("/", include_in_schema=False)
    def root() -> dict[str, str]:
        return {"message": f"{settings.APP_NAME} API is running", "version": settings.APP_VERSION}

    return app


app = create_app()
