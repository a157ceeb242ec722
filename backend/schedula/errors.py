"""Ledger error kinds.

Every kind is an ``HTTPException`` so the service layer can raise it and
FastAPI turns it into a response directly. ``detail`` always carries a
stable ``code``, a human message and the ids the caller needs to act on.
"""
from typing import Any

from fastapi import HTTPException, status


class LedgerError(HTTPException):
    code = "ledger_error"
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str, **ids: Any):
        self.message = message
        self.ids = {k: str(v) for k, v in ids.items() if v is not None}
        super().__init__(
            status_code=self.status_code,
            detail={"code": self.code, "message": message, **self.ids},
        )


class NotFound(LedgerError):
    code = "not_found"
    status_code = status.HTTP_404_NOT_FOUND


class Forbidden(LedgerError):
    code = "forbidden"
    status_code = status.HTTP_403_FORBIDDEN


class InvalidState(LedgerError):
    code = "invalid_state"
    status_code = status.HTTP_400_BAD_REQUEST


class AlreadyCheckedIn(InvalidState):
    code = "already_checked_in"
    status_code = status.HTTP_409_CONFLICT


class DuplicateRegistration(LedgerError):
    code = "duplicate_registration"
    status_code = status.HTTP_409_CONFLICT


class DuplicateAttendance(LedgerError):
    code = "duplicate_attendance"
    status_code = status.HTTP_409_CONFLICT


class CapacityBelowConfirmed(LedgerError):
    code = "capacity_below_confirmed"
    status_code = status.HTTP_409_CONFLICT


class VersionConflict(LedgerError):
    code = "version_conflict"
    status_code = status.HTTP_409_CONFLICT


class InvalidTicket(LedgerError):
    code = "invalid_ticket"
    status_code = status.HTTP_400_BAD_REQUEST


class LedgerBusy(LedgerError):
    code = "ledger_busy"
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE


class DuplicateProfile(LedgerError):
    code = "duplicate_profile"
    status_code = status.HTTP_409_CONFLICT
