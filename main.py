"""
Application entry point. FastAPI app with middleware, health probes and the
resource dispatcher.
Run: uvicorn main:app --host 0.0.0.0 --port 8080
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from api.dispatcher import DISPATCHED_METHODS, Dispatcher
from api.router import RouteTable
from api.routes import health_router
from core.config import get_settings
from core.errors import INTERNAL_ERROR_MESSAGE
from core.middleware import RequestTimingMiddleware
from db.session import close_db, get_database, init_db
from resources import register_resources
from services.credentials import sync_static_tokens
from utils.logging import get_logger

logger = get_logger(__name__)


def build_route_table(site_prefix: str = "") -> RouteTable:
    """Register every resource and freeze the table."""
    table = register_resources(RouteTable(site_prefix=site_prefix))
    table.freeze()
    return table


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Startup: open the database unless one was injected, sync static tokens.
    Shutdown: dispose of the pool.
    """
    settings = get_settings()
    logger.info(
        "startup",
        extra={
            "app": settings.APP_NAME,
            "env": settings.ENVIRONMENT,
            "log_level": settings.LOG_LEVEL,
            "site_prefix": settings.SITE_PREFIX,
        },
    )
    try:
        database = get_database()
        owned = False
    except RuntimeError:
        database = init_db(
            settings.DATABASE_URL,
            pool_size=settings.DATABASE_POOL_SIZE,
            max_overflow=settings.DATABASE_MAX_OVERFLOW,
            echo=settings.DATABASE_ECHO,
        )
        owned = True
    await sync_static_tokens(database, settings)
    yield
    if owned:
        await close_db()
    logger.info("shutdown", extra={"app": settings.APP_NAME})


def create_app() -> FastAPI:
    """Factory for FastAPI app. Enables testing with overrides."""
    settings = get_settings()
    app = FastAPI(
        title=settings.APP_NAME,
        description="Tech:Online backend: tracks, users and access tokens over a JSON API",
        version="1.0.0",
        docs_url="/docs" if not settings.is_production else None,
        redoc_url=None,
        openapi_url="/openapi.json" if not settings.is_production else None,
        lifespan=lifespan,
    )

    app.add_middleware(RequestTimingMiddleware)

    app.include_router(health_router)

    table = build_route_table(settings.SITE_PREFIX)
    dispatcher = Dispatcher(table)
    app.state.route_table = table
    app.state.dispatcher = dispatcher
    # Everything the app does not serve itself goes to the dispatcher, any method.
    app.add_route(
        "/{path:path}",
        dispatcher.dispatch,
        methods=list(DISPATCHED_METHODS),
        include_in_schema=False,
    )

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        logger.exception("unhandled_exception", extra={"path": request.url.path})
        return JSONResponse(
            status_code=500,
            content={"message": INTERNAL_ERROR_MESSAGE},
        )

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    s = get_settings()
    uvicorn.run(
        "main:app",
        host=s.HOST,
        port=s.PORT,
        reload=s.ENVIRONMENT == "development",
        log_level=s.LOG_LEVEL.lower(),
    )
