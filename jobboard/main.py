# main.py
from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from jobboard.config import build_sqlalchemy_db_url, settings
from jobboard.database import Base, engine
from jobboard import models  # noqa: F401  (registers every table on Base.metadata)
from jobboard.api.routes.health import router as health_router
from jobboard.routers import (
    admin,
    analytics,
    applications,
    auth,
    billing,
    directory,
    employer_jobs,
    gdpr,
    job_alerts,
    jobs,
    notifications,
    profiles,
    saved_jobs,
    searches,
    users,
)


logger = logging.getLogger(__name__)


def create_app() -> FastAPI:
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("%s %s starting (environment=%s)", settings.app_name, settings.version, settings.environment)
        yield

    logging.getLogger("jobboard").setLevel(settings.log_level.upper())

    application = FastAPI(
        title=settings.app_name,
        version=settings.version,
        debug=settings.debug,
        lifespan=lifespan,
    )
    application.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Health endpoints (do not depend on API_PREFIX)
    application.include_router(health_router)

    application.include_router(auth.router, prefix="/auth", tags=["auth"])
    application.include_router(users.router, prefix="/users", tags=["users"])
    application.include_router(admin.router)

    for module in (
        profiles,
        jobs,
        employer_jobs,
        applications,
        saved_jobs,
        job_alerts,
        notifications,
        billing,
        gdpr,
        analytics,
        directory,
        searches,
    ):
        application.include_router(module.router, prefix=settings.api_prefix)

    # Avoid accidental schema changes in shared MySQL databases.
    # For local/test sqlite usage, auto-create ORM tables is still convenient.
    if build_sqlalchemy_db_url(settings).startswith("sqlite"):
        Base.metadata.create_all(bind=engine)
    return application


app = create_app()
