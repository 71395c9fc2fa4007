import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from tortoise import Tortoise
from tortoise.contrib.fastapi import tortoise_exception_handlers

from .core import logging_config  # noqa: F401  (configures the "storestats" logger)
from .core.config import DATABASE_URL
from .features.auth.router import router as auth_router
from .features.orders.router import router as orders_router
from .features.reports import CacheInvalidator, InvalidDateRangeError, ReportCache
from .features.reports.router import router as reports_router

logger = logging.getLogger(__name__)

TORTOISE_ORM_CONFIG = {
    "connections": {"default": DATABASE_URL},
    "apps": {
        "models": {  # This is an app label, can be anything
            "models": [
                "storestats.features.auth.models",
                "storestats.features.orders.models",
            ],
            "default_connection": "default",
        }
    },
    "use_tz": True,
    "timezone": "UTC",
}


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Application lifespan context manager.

    Connects to the database on startup and closes connections on shutdown.
    """
    logger.info("Starting application...")
    await Tortoise.init(config=TORTOISE_ORM_CONFIG)
    await Tortoise.generate_schemas(safe=True)
    logger.info("Tortoise-ORM has been initialized.")

    yield

    await Tortoise.close_connections()
    logger.info("Tortoise-ORM connections have been closed.")


async def invalid_date_range_handler(request: Request, exc: InvalidDateRangeError) -> JSONResponse:
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"detail": str(exc)})


app = FastAPI(
    title="Store Stats API",
    description="Sales analytics over the order store.",
    version="0.1.0",
    exception_handlers={
        **tortoise_exception_handlers(),
        InvalidDateRangeError: invalid_date_range_handler,
    },
    lifespan=lifespan,
)

# One report cache per process, cleared by order lifecycle events
app.state.report_cache = ReportCache()
app.state.cache_invalidator = CacheInvalidator(app.state.report_cache)
app.state.cache_invalidator.subscribe()


@app.get("/")
async def read_root(request: Request):
    client_host = request.client.host if request.client else "unknown client"
    logger.info(f"Root endpoint '/' accessed by {client_host}")
    return {"message": "Welcome to the Store Stats API!"}


app.include_router(auth_router, prefix="/api/v1")
app.include_router(orders_router, prefix="/api/v1")
app.include_router(reports_router, prefix="/api/v1")
