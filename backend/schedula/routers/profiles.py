"""Profile API routes — the identity records the ledger trusts."""
import logging
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from schedula.database import get_db
from schedula.models.profile import Profile
from schedula.schemas.attendance import AttendanceOut
from schedula.schemas.profile import ProfileAction, ProfileCreate, ProfileUpdate, ProfileOut
from schedula.schemas.rsvp import RSVPOut
from schedula.services import attendance_service, profile_service, rsvp_ledger
from schedula.services.access import get_profile

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/", response_model=ProfileOut, status_code=status.HTTP_201_CREATED)
def create_profile(payload: ProfileCreate, db: Session = Depends(get_db)):
    """Create a profile with a role and timezone."""
    return profile_service.create_profile(
        db,
        email=payload.email,
        display_name=payload.display_name,
        role=payload.role,
        timezone=payload.timezone,
    )


@router.get("/", response_model=list[ProfileOut])
def list_profiles(db: Session = Depends(get_db)):
    """List all profiles."""
    return db.query(Profile).order_by(Profile.created_at).all()


@router.get("/{user_id}", response_model=ProfileOut)
def get_profile_route(user_id: str, db: Session = Depends(get_db)):
    """Fetch a single profile by ID."""
    return get_profile(db, user_id)


@router.patch("/{user_id}", response_model=ProfileOut)
def update_profile(user_id: str, payload: ProfileUpdate, db: Session = Depends(get_db)):
    """Update a profile (partial update)."""
    profile = get_profile(db, user_id)
    for field, value in payload.model_dump(exclude_unset=True).items():
        setattr(profile, field, value)
    db.commit()
    db.refresh(profile)
    logger.info("Updated profile %s", user_id)
    return profile


@router.get("/{user_id}/rsvps", response_model=list[RSVPOut])
def list_profile_rsvps(user_id: str, include_cancelled: bool = True, db: Session = Depends(get_db)):
    """Attendee dashboard: every registration the user holds."""
    get_profile(db, user_id)
    return rsvp_ledger.get_by_user(db, user_id, include_cancelled=include_cancelled)


@router.get("/{user_id}/attendance", response_model=list[AttendanceOut])
def list_profile_attendance(user_id: str, db: Session = Depends(get_db)):
    """Events the user has been checked in to."""
    get_profile(db, user_id)
    return attendance_service.list_by_user(db, user_id)


@router.post("/{user_id}/approve", response_model=ProfileOut)
def approve_profile(user_id: str, payload: ProfileAction, db: Session = Depends(get_db)):
    """Activate a pending organizer account (admin only)."""
    return profile_service.approve_profile(db, user_id, payload.actor_user_id)
