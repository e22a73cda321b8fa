import logging
import time
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from sqlalchemy import text

from crudgen.api import api_router
from crudgen.config import Settings
from crudgen.core.error_handlers import register_error_handlers
from crudgen.core.middleware import RequestIDMiddleware, SecurityHeadersMiddleware
from crudgen.database import create_engine, create_session_factory
from crudgen.schemas.definition import load_schema
from crudgen.services.migration import auto_migrate, build_table

logger = logging.getLogger(__name__)

STATIC_DIR = Path(__file__).resolve().parent / "static"


def create_app(settings: Settings | None = None) -> FastAPI:
    """Build the application for one table definition.

    The definition is loaded and the table provisioned during startup; a
    broken definition or an unreachable database aborts startup.
    """
    if settings is None:
        settings = Settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        schema = load_schema(settings.JSON_SCHEMA)
        logger.info(
            "Schema loaded: table '%s' with %d fields.",
            schema.table_name,
            len(schema.fields),
        )

        engine = create_engine(settings)
        table = build_table(schema)
        try:
            await auto_migrate(engine, table)
        except Exception:
            await engine.dispose()
            raise

        app.state.settings = settings
        app.state.schema = schema
        app.state.table = table
        app.state.engine = engine
        app.state.session_factory = create_session_factory(engine)
        yield
        await engine.dispose()

    app = FastAPI(
        title=settings.APP_NAME,
        version=settings.APP_VERSION,
        debug=settings.DEBUG,
        docs_url=None,
        redoc_url=None,
        lifespan=lifespan,
    )
    app.state.settings = settings

    # --- Middleware (outermost first) ---
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(RequestIDMiddleware)

    # --- Error handlers ---
    register_error_handlers(app)

    # --- Routes ---
    app.include_router(api_router)
    app.mount("/static", StaticFiles(directory=str(STATIC_DIR)), name="static")

    @app.get("/api/health")
    async def health_check(request: Request):
        """Verifies database connectivity."""
        checks: dict = {"version": settings.APP_VERSION}
        start = time.monotonic()
        try:
            async with request.app.state.session_factory() as session:
                await session.execute(text("SELECT 1"))
            checks["database"] = {
                "status": "ok",
                "latency_ms": round((time.monotonic() - start) * 1000, 1),
            }
            healthy = True
        except Exception as exc:
            logger.warning("Health check failed: %s", exc)
            checks["database"] = {"status": "error", "detail": str(exc)[:200]}
            healthy = False

        checks["status"] = "healthy" if healthy else "degraded"
        return JSONResponse(content=checks, status_code=200 if healthy else 503)

    return app
