"""
Engagement Service - FastAPI Backend
Main application entry point with health check and API routing.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from config import settings, validate_security_settings
from database import engine, Base
import models  # noqa: F401
from routers import devices, events, health
from routers.dependencies import close_upstream_clients
from routers.errors import register_exception_handlers

logging.basicConfig(
    level=getattr(logging, str(settings.LOG_LEVEL).upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler for startup/shutdown."""
    # Startup
    print("🚀 Starting Engagement API...")
    validate_security_settings()
    if settings.EVENT_STORE_BACKEND == "sql" and settings.AUTO_CREATE_DB_SCHEMA:
        try:
            async with engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)
            print("🗄️ Database schema verified.")
        except Exception as e:
            print(f"⚠️ Database bootstrap skipped: {e}")
    if settings.USE_MOCK_UPSTREAMS:
        print("🧪 Using mock users/posts clients.")
    yield
    # Shutdown
    await close_upstream_clients()
    await engine.dispose()
    print("👋 Shutting down API...")


app = FastAPI(
    title="Mittel Engagement",
    description="API for managing engagement on the Mittel blogging platform.",
    version="0.1.0",
    lifespan=lifespan,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)

# Include routers
app.include_router(health.router, tags=["Health"])
app.include_router(events.internal_router, prefix="/events", tags=["Events"])
app.include_router(events.router, prefix="/events", tags=["Events"])
app.include_router(devices.router, prefix="/devices", tags=["Devices"])


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host=settings.API_HOST, port=settings.API_PORT)
