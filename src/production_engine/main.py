"""FastAPI application entry point."""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from production_engine import __version__
from production_engine.api.routes import dashboard, events, finance, health
from production_engine.config import settings
from production_engine.errors import CollectionUnavailableError, EngineError
from production_engine.logging import get_logger, setup_logging

setup_logging()
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Verify the record store on startup; views degrade to partial if it is down."""
    logger.info(
        "application_starting",
        version=__version__,
        late_check_enabled=settings.late_check_enabled,
        nominal_capacity=settings.nominal_capacity,
    )

    try:
        from production_engine.db.session import init_db

        init_db()
        logger.info("database_connected")
    except Exception as e:
        logger.error("database_connection_failed", error=str(e))

    yield

    logger.info("application_shutting_down")


app = FastAPI(
    title="Production Engine",
    description=(
        "Video lifecycle and lateness, editor performance, client cost "
        "allocation and dashboard views for a video agency"
    ),
    version=__version__,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(EngineError)
async def engine_error_handler(request: Request, exc: EngineError) -> JSONResponse:
    """Map engine failures that escape a route to a JSON error body."""
    code = (
        status.HTTP_503_SERVICE_UNAVAILABLE
        if isinstance(exc, CollectionUnavailableError)
        else status.HTTP_500_INTERNAL_SERVER_ERROR
    )
    logger.error("engine_error", path=request.url.path, error=str(exc))
    return JSONResponse(status_code=code, content={"detail": str(exc)})


app.include_router(health.router)
for router in (dashboard.router, finance.router, events.router):
    app.include_router(router, prefix="/api/v1")


@app.get("/", include_in_schema=False)
async def root() -> dict[str, str]:
    """Service name, version and where the docs live."""
    return {
        "name": "Production Engine",
        "version": __version__,
        "docs": "/docs",
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "production_engine.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.api_reload,
    )
