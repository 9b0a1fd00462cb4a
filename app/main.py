# app/main.py
"""
FastAPI application: CRM REST API, dashboard metrics and AI assistant.
"""

import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.staticfiles import StaticFiles

from app.config import settings
from app.db.json_store import record_store
from app.infrastructure.observability.logging import get_logger, log_request, setup_logging
from app.middleware import CORSMiddleware, RequestContextMiddleware, register_exception_handlers
from app.routes import ai, contacts, health, metrics, opportunities, tasks

# Setup logging before creating the app
setup_logging(log_level=settings.LOG_LEVEL)
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Prepare the record store on startup."""

    logger.info("Application starting", environment=settings.environment, debug=settings.debug)

    try:
        record_store.initialize()
    except OSError as e:
        logger.error("Failed to initialize record store", path=str(record_store.path), error=str(e))
        raise

    logger.info(
        "Record store ready",
        path=str(record_store.path),
        load_policy=record_store.load_policy,
        ai_configured=settings.ai_configured(),
    )

    yield

    logger.info("Application shutting down")


app = FastAPI(
    title="NEXA CRM",
    description="Contacts, opportunities and tasks with dashboard metrics and AI assistance",
    version="0.1.0",
    lifespan=lifespan,
)

register_exception_handlers(app)

# Include routers
app.include_router(health.router)
app.include_router(contacts.router)
app.include_router(opportunities.router)
app.include_router(tasks.router)
app.include_router(metrics.router)
app.include_router(ai.router)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Log HTTP requests with timing."""
    start_time = time.time()
    response = await call_next(request)
    process_time = (time.time() - start_time) * 1000

    log_request(
        method=request.method,
        path=request.url.path,
        status_code=response.status_code,
        duration_ms=round(process_time, 2),
    )
    return response


# Middleware runs in reverse order of registration: request context is outermost
app.add_middleware(CORSMiddleware, allowed_origins=settings.CORS_ALLOWED_ORIGINS)
app.add_middleware(RequestContextMiddleware)

# Serve a prebuilt browser front end when one is deployed alongside the API
public_dir = settings.public_dir()
if public_dir and public_dir.is_dir():
    app.mount("/", StaticFiles(directory=str(public_dir), html=True), name="public")


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host=settings.HOST, port=settings.PORT)
