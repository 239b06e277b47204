"""Workforce: FastAPI application factory."""

import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from workforce.admin.router import router as admin_router
from workforce.announcements.router import router as announcements_router
from workforce.auth.router import router as auth_router
from workforce.breaks.router import router as breaks_router
from workforce.common.exceptions import register_exception_handlers
from workforce.common.rate_limit import limiter
from workforce.config import settings
from workforce.database import engine
from workforce.documents.router import router as documents_router
from workforce.employees.router import router as employees_router
from workforce.goals.router import router as goals_router
from workforce.leaves.router import router as leaves_router
from workforce.messages.router import router as messages_router
from workforce.notifications.router import router as notifications_router
from workforce.performance.router import router as performance_router
from workforce.permissions.router import router as permissions_router
from workforce.photos.router import router as photos_router
from workforce.reports.router import router as reports_router
from workforce.scores.router import router as scores_router
from workforce.shifts.router import router as shifts_router
from workforce.tasks.router import router as tasks_router
from workforce.time_entries.router import router as time_router
from workforce.training.router import router as training_router
from workforce.users.router import router as users_router

logger = logging.getLogger(__name__)

VERSION = "1.0.0"


def configure_logging() -> None:
    logging.basicConfig(
        level=settings.LOG_LEVEL.upper(),
        format="%(asctime)s [%(levelname)s] %(name)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application startup and shutdown events."""
    logger.info("Workforce API starting (%s)", settings.ENVIRONMENT)
    yield
    await engine.dispose()
    logger.info("Workforce API stopped")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title="Workforce",
        description="Workforce management: people, scheduling, leave, time and performance",
        version=VERSION,
        docs_url="/api/docs" if settings.ENVIRONMENT != "production" else None,
        redoc_url="/api/redoc" if settings.ENVIRONMENT != "production" else None,
        lifespan=lifespan,
    )

    # Exception handlers (RFC 7807)
    register_exception_handlers(app)

    # Rate limiting (slowapi)
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

    # CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Health check (no auth)
    @app.get("/api/v1/health", tags=["system"])
    async def health_check():
        return {
            "status": "healthy",
            "version": VERSION,
            "environment": settings.ENVIRONMENT,
        }

    # Register routers
    app.include_router(auth_router, prefix="/api/v1/auth")
    app.include_router(permissions_router, prefix="/api/v1/permissions")
    app.include_router(users_router, prefix="/api/v1/users")
    app.include_router(employees_router, prefix="/api/v1/employees")
    app.include_router(shifts_router, prefix="/api/v1/shifts")
    app.include_router(time_router, prefix="/api/v1/time")
    app.include_router(breaks_router, prefix="/api/v1/breaks")
    app.include_router(leaves_router, prefix="/api/v1/leaves")
    app.include_router(documents_router, prefix="/api/v1/documents")
    app.include_router(performance_router, prefix="/api/v1/performance")
    app.include_router(goals_router, prefix="/api/v1/goals")
    app.include_router(training_router, prefix="/api/v1/training")
    app.include_router(announcements_router, prefix="/api/v1/announcements")
    app.include_router(messages_router, prefix="/api/v1/messages")
    app.include_router(notifications_router, prefix="/api/v1/notifications")
    app.include_router(photos_router, prefix="/api/v1/photos")
    app.include_router(tasks_router, prefix="/api/v1/tasks")
    app.include_router(scores_router, prefix="/api/v1/scores")
    app.include_router(reports_router, prefix="/api/v1/reports")
    app.include_router(admin_router, prefix="/api/v1/admin")

    # Approved profile photos are public; other uploads have no static route
    photo_dir = os.path.join(settings.UPLOAD_DIR, "photos")
    os.makedirs(photo_dir, exist_ok=True)
    app.mount("/uploads/photos", StaticFiles(directory=photo_dir), name="photos")

    return app


configure_logging()
app = create_app()
