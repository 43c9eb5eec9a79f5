import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.sessions import SessionMiddleware
from contextlib import asynccontextmanager

from config.config import (
    SESSION_SECRET_KEY, SESSION_MAX_AGE, SESSION_HTTPS_ONLY, FRONTEND_URL,
    ADMIN_EMAIL, ADMIN_PASSWORD, ADMIN_NAME, LOG_LEVEL,
)
from database.DB import Database
from helpers.LoggingSetup import setup_logging
from services.IdentityService import IdentityService
from routes import (
    AuthRouter, EventRouter, TaskRouter, RequestRouter, VolunteerRouter,
    MeetingRouter, AnnouncementRouter, DashboardRouter,
)

''' The backend API Endpoints setup '''

setup_logging(LOG_LEVEL)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup: initialize database unless one was injected
    db = getattr(app.state, "db", None)
    if db is None:
        db = Database()
        db.check_connection()
        db.connect()
        app.state.db = db
    logger.info("Database connected successfully")

    identity = IdentityService(
        db,
        notifier=getattr(app.state, "notifier", None),
        hasher=getattr(app.state, "hasher", None),
    )
    await identity.ensure_indexes()
    if await identity.ensure_admin(ADMIN_EMAIL, ADMIN_PASSWORD, ADMIN_NAME):
        logger.info("Created initial admin account for %s", ADMIN_EMAIL)

    yield

    # Shutdown: Clean up resources if needed
    logger.info("Application shutting down")

app = FastAPI(lifespan=lifespan)

allowed_origins = [FRONTEND_URL]
if FRONTEND_URL != "http://localhost:5173":
    allowed_origins.append("http://localhost:5173")

logger.info("Configuring CORS middleware; allowed origins: %s", allowed_origins)

app.add_middleware(
    CORSMiddleware,
    allow_origins=allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["*"],
    max_age=3600,
)

if not SESSION_SECRET_KEY:
    raise ValueError("SESSION_SECRET_KEY environment variable not set!")

app.add_middleware(
    SessionMiddleware,
    secret_key=SESSION_SECRET_KEY,
    session_cookie="session",
    max_age=SESSION_MAX_AGE,
    same_site="none" if SESSION_HTTPS_ONLY else "lax",
    https_only=SESSION_HTTPS_ONLY
)

# Include routers
app.include_router(AuthRouter.router, prefix="/api", tags=["Authentication"])
app.include_router(DashboardRouter.router, prefix="/api", tags=["Dashboard"])
app.include_router(EventRouter.router, prefix="/api/events", tags=["Events"])
app.include_router(TaskRouter.router, prefix="/api/tasks", tags=["Tasks"])
app.include_router(RequestRouter.router, prefix="/api/requests", tags=["Remapping Requests"])
app.include_router(VolunteerRouter.router, prefix="/api/volunteers", tags=["Volunteers"])
app.include_router(MeetingRouter.router, prefix="/api/meetings", tags=["Meetings"])
app.include_router(AnnouncementRouter.router, prefix="/api/announcements", tags=["Announcements"])
