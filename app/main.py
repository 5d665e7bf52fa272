"""FastAPI application entry point."""
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.config import settings
from app.database import database
from app.logging_config import configure_logging
from app.routers import auth, slack, timers
from app.services.slack_api import slack as slack_connection


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan - startup and shutdown events."""
    # Startup
    configure_logging(settings.debug)
    await database.connect()
    slack_connection.connect()
    yield
    # Shutdown
    await slack_connection.disconnect()
    await database.disconnect()


app = FastAPI(
    title="Time Tracking Service API",
    description="Single-active-timer time tracking for the web UI and Slack",
    version="0.1.0",
    lifespan=lifespan,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(auth.router)
app.include_router(timers.router)
app.include_router(slack.router)


@app.get("/")
async def root():
    """Root endpoint - health check."""
    return {"status": "ok", "message": "Time Tracking Service API"}


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {"status": "healthy"}
