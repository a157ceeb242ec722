"""Profile writes: signup and organizer approval."""
import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from schedula.config import settings
from schedula.errors import DuplicateProfile, Forbidden, InvalidState
from schedula.models.profile import Profile, ProfileRole, ProfileStatus
from schedula.services import notification_service
from schedula.services.access import get_active_profile, get_profile

logger = logging.getLogger(__name__)


def create_profile(
    db: Session,
    email: str,
    display_name: str,
    role: ProfileRole = ProfileRole.attendee,
    timezone: str = "UTC",
) -> Profile:
    """Create a profile. Organizers start pending when approval is required."""
    existing = db.query(Profile).filter(Profile.email == email).first()
    if existing:
        raise DuplicateProfile("A profile with this email already exists", user_id=existing.user_id)

    status = ProfileStatus.active
    if role == ProfileRole.organizer and settings.ORGANIZER_APPROVAL_REQUIRED:
        status = ProfileStatus.pending

    profile = Profile(email=email, display_name=display_name, role=role, status=status, timezone=timezone)
    db.add(profile)
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise DuplicateProfile("A profile with this email already exists") from exc
    db.refresh(profile)
    logger.info("Created profile %s (%s, %s, %s)",
                profile.user_id, profile.email, profile.role.value, profile.status.value)
    return profile


def approve_profile(db: Session, user_id: str, actor_user_id: str) -> Profile:
    """Admin approval of a pending account."""
    actor = get_active_profile(db, actor_user_id)
    if actor.role != ProfileRole.admin:
        raise Forbidden("Only admins can approve accounts", user_id=actor_user_id)

    profile = get_profile(db, user_id)
    if profile.status != ProfileStatus.pending:
        raise InvalidState(f"Profile is {profile.status.value}, not pending", user_id=user_id)

    profile.status = ProfileStatus.active
    notification_service.notify(
        db, profile.user_id, "Account approved",
        "Your account has been approved.",
    )
    db.commit()
    db.refresh(profile)
    logger.info("Admin %s approved profile %s", actor_user_id, user_id)
    return profile
