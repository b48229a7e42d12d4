"""
ThreatRadar - FastAPI Application
Main entry point. Same app serves SQL and Supabase row stores.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from threatradar.api.routes import APP_VERSION, router
from threatradar.auth.routes import auth_router
from threatradar.config import get_settings
from threatradar.db.session import init_db
from threatradar.errors import AuthError, InvalidWindow, UpstreamFetchFailure


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events."""
    settings = get_settings()

    # Configure logging
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
    )
    logger = logging.getLogger("threatradar")

    logger.info("=" * 60)
    logger.info(f"  ThreatRadar v{APP_VERSION}")
    logger.info(f"  Store: {settings.store_backend}")
    logger.info(f"  LLM: {settings.llm_provider} ({'local' if settings.is_local_mode else 'cloud'})")
    logger.info(f"  Auth: {settings.auth_provider}")
    logger.info("=" * 60)

    if settings.store_backend == "sql":
        try:
            await init_db()
            logger.info("Database initialized")
        except Exception as e:
            logger.warning(f"Database init skipped (may not be available): {e}")

    yield

    logger.info("ThreatRadar shutting down")


app = FastAPI(
    title="ThreatRadar",
    description="Multi-tenant security operations reporting and AI assistant.",
    version=APP_VERSION,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Lock down in production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ─── Error mapping ───

@app.exception_handler(InvalidWindow)
async def invalid_window_handler(request: Request, exc: InvalidWindow):
    return JSONResponse(status_code=422, content={"detail": str(exc)})


@app.exception_handler(UpstreamFetchFailure)
async def upstream_failure_handler(request: Request, exc: UpstreamFetchFailure):
    logging.getLogger("threatradar").error(f"Upstream fetch failed: {exc}")
    return JSONResponse(status_code=502, content={"detail": str(exc)})


@app.exception_handler(AuthError)
async def auth_error_handler(request: Request, exc: AuthError):
    return JSONResponse(status_code=401, content={"detail": str(exc)})


# Routes
app.include_router(router)
app.include_router(auth_router, prefix="/api/v1")


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    uvicorn.run("threatradar.main:app", host=settings.api_host, port=settings.api_port)
