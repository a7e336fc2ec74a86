"""FastAPI application entry point."""
import logging
import os

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from clubhub.config import settings
from clubhub.database import Base, engine

# Import routers
from clubhub.routers import users, clubs, events, registrations, attendance, payments, reports

# Import all models so Base.metadata knows about them
from clubhub.models.user import User                                      # noqa: F401
from clubhub.models.club import Club, ClubMember, MembershipRequest       # noqa: F401
from clubhub.models.event import Event                                    # noqa: F401
from clubhub.models.registration import Registration                      # noqa: F401
from clubhub.models.attendance import EventAttendance                     # noqa: F401
from clubhub.models.payment import Payment                                # noqa: F401

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = FastAPI(
    title="ClubHub",
    description="Club & event management: approvals, registrations, QR attendance and paid checkout",
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
app.include_router(users.router, prefix="/api/users", tags=["Users"])
app.include_router(clubs.router, prefix="/api/clubs", tags=["Clubs"])
app.include_router(events.router, prefix="/api/events", tags=["Events"])
app.include_router(registrations.router, prefix="/api/registrations", tags=["Registrations"])
app.include_router(attendance.router, prefix="/api/attendance", tags=["Attendance"])
app.include_router(payments.router, prefix="/api/payments", tags=["Payments"])
app.include_router(reports.router, prefix="/api/reports", tags=["Reports"])

# Posters and QR images written by the local blob store
os.makedirs(settings.MEDIA_ROOT, exist_ok=True)
app.mount(settings.MEDIA_URL, StaticFiles(directory=settings.MEDIA_ROOT), name="media")


@app.on_event("startup")
def on_startup():
    """Create database tables on startup (for SQLite dev mode)."""
    if settings.DATABASE_URL.startswith("sqlite"):
        Base.metadata.create_all(bind=engine)


@app.get("/api/health")
def health_check():
    return {"status": "ok"}
