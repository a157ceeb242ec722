"""FastAPI application entry point."""
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from schedula.config import settings
from schedula.database import Base, engine

# Import routers
from schedula.routers import profiles, events, registrations, rsvps, stats, notifications

# Import all models so Base.metadata knows about them
from schedula.models.profile import Profile                # noqa: F401
from schedula.models.event import Event                    # noqa: F401
from schedula.models.rsvp import RSVP                      # noqa: F401
from schedula.models.attendance import Attendance          # noqa: F401
from schedula.models.notification import Notification      # noqa: F401
from schedula.models.event_mutation import EventMutation   # noqa: F401

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = FastAPI(
    title="Schedula",
    description="Event management — registrations, waitlists, QR check-in and attendance",
    version="0.1.0",
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS.split(","),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Register routers
app.include_router(profiles.router, prefix="/api/profiles", tags=["Profiles"])
app.include_router(events.router, prefix="/api/events", tags=["Events"])
app.include_router(registrations.router, prefix="/api/events", tags=["Registrations"])
app.include_router(rsvps.router, prefix="/api/rsvps", tags=["RSVPs"])
app.include_router(stats.router, prefix="/api", tags=["Statistics"])
app.include_router(notifications.router, prefix="/api/notifications", tags=["Notifications"])


@app.on_event("startup")
def on_startup():
    """Create database tables on startup (for SQLite dev mode)."""
    if settings.DATABASE_URL.startswith("sqlite"):
        Base.metadata.create_all(bind=engine)


@app.get("/api/health")
def health_check():
    return {"status": "ok"}
