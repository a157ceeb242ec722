"""Dashboard statistics routes — read-only, computed on every request."""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from schedula.database import get_db
from schedula.schemas.attendance import EventStats, OrganizerTotals
from schedula.services import stats_service

router = APIRouter()


@router.get("/events/{event_id}/stats", response_model=EventStats)
def event_stats(event_id: str, db: Session = Depends(get_db)):
    """Per-event counts and fill rate; zeroed for unknown events."""
    return stats_service.event_stats(db, event_id)


@router.get("/organizers/{organizer_id}/stats", response_model=OrganizerTotals)
def organizer_totals(organizer_id: str, db: Session = Depends(get_db)):
    """Organizer dashboard totals including revenue from paid events."""
    return stats_service.organizer_totals(db, organizer_id)
