"""
Studio Split - FastAPI Application
Main application entry point with all routers and middleware
"""
import logging
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager

from app.database import init_db
from app.routers import auth, users, split_bookings, refunds, webhooks, abuse
from app.config import get_settings

settings = get_settings()

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

# Quiet chatty client libraries
logging.getLogger("stripe").setLevel(logging.WARNING)
logging.getLogger("apscheduler").setLevel(logging.WARNING)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan - startup and shutdown events."""
    logger.info("Starting Studio Split API...")
    init_db()
    logger.info("Database tables created/verified")

    scheduler = None
    if settings.abuse_scan_enabled:
        from app.jobs.abuse_monitor import create_scheduler
        scheduler = create_scheduler()
        scheduler.start()
        logger.info(f"Abuse monitor scheduled every {settings.abuse_scan_interval_minutes} minutes")

    yield

    if scheduler:
        scheduler.shutdown(wait=False)
    logger.info("Shutting down...")


app = FastAPI(
    title=settings.app_name,
    description="""
    ## Studio Split API

    Shared studio sessions for music creators:
    - Split bookings between two paying clients, each with their own Stripe checkout
    - Optional artist, producer and engineer requests per session
    - Cancellation refunds by creator tier
    - Automated abuse detection with an admin review queue

    ### Authentication
    Use the token from `/api/auth/login` in the Authorization header:
    ```
    Authorization: Bearer <your-token>
    ```
    """,
    version="1.0.0",
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json"
)

# The dashboard is the only browser client
app.add_middleware(
    CORSMiddleware,
    allow_origins=[settings.frontend_url],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Every router is mounted under /api
for module in (auth, users, split_bookings, refunds, webhooks, abuse):
    app.include_router(module.router, prefix="/api")


@app.get("/")
async def root():
    """Root endpoint with API info."""
    return {
        "name": settings.app_name,
        "version": "1.0.0",
        "docs": "/docs",
        "health": "/healthz"
    }


@app.get("/healthz")
async def health():
    """Health check endpoint."""
    return {"ok": True, "status": "healthy"}
