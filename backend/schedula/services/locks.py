"""Per-event serialization for ledger mutations.

A ledger mutation reads the confirmed count and capacity, decides, and
writes. Two such units for the same event must never interleave, while
units for different events run in parallel. Two layers give that:

- a process-local lock keyed by event id (bounded wait), which also
  covers SQLite where row locks do not exist;
- ``SELECT ... FOR UPDATE`` on the event row, which serializes across
  worker processes on PostgreSQL.

The whole unit commits once at the end; any exception rolls it back, so
a promotion or an attendance append is never left half-applied.
"""
import logging
import threading
from contextlib import contextmanager
from typing import Iterator

from sqlalchemy.orm import Session

from schedula.config import settings
from schedula.errors import LedgerBusy, NotFound
from schedula.models.event import Event

logger = logging.getLogger(__name__)

_registry_lock = threading.Lock()
# event_id -> [lock, number of callers holding or waiting on it]
_event_locks: dict[str, list] = {}


@contextmanager
def _held_lock(event_id: str) -> Iterator[threading.Lock]:
    """Check out the event's lock; the entry is dropped when its last user leaves."""
    with _registry_lock:
        entry = _event_locks.setdefault(event_id, [threading.Lock(), 0])
        entry[1] += 1
    try:
        yield entry[0]
    finally:
        with _registry_lock:
            entry[1] -= 1
            if entry[1] == 0:
                del _event_locks[event_id]


@contextmanager
def event_transaction(db: Session, event_id: str) -> Iterator[Event]:
    """Run one atomic ledger unit against ``event_id``; yields the locked event."""
    if not db.query(Event.event_id).filter(Event.event_id == event_id).first():
        raise NotFound("Event not found", event_id=event_id)

    with _held_lock(event_id) as lock:
        if not lock.acquire(timeout=settings.LEDGER_LOCK_TIMEOUT_SECONDS):
            logger.warning("Timed out waiting for ledger lock on event %s", event_id)
            raise LedgerBusy("Event ledger is busy, try again", event_id=event_id)
        try:
            # Drop anything cached so counts are read fresh under the lock.
            db.expire_all()
            event = db.query(Event).filter(Event.event_id == event_id).with_for_update().first()
            if not event:
                raise NotFound("Event not found", event_id=event_id)
            try:
                yield event
                db.commit()
            except Exception:
                db.rollback()
                raise
        finally:
            lock.release()
