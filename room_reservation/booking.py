from __future__ import annotations

from dataclasses import dataclass
from datetime import time
from enum import Enum
from typing import Iterable

from .errors import InvalidTimeRangeError
from .models import Reservation, RoleName, User

SLOT_MINUTES = 30


class RejectReason(str, Enum):
    INVALID_TIME_RANGE = "INVALID_TIME_RANGE"
    ALREADY_RESERVED = "ALREADY_RESERVED"


@dataclass(frozen=True)
class AdmissionResult:
    accepted: bool
    reason: RejectReason | None = None
    conflict: Reservation | None = None

    @staticmethod
    def accept() -> "AdmissionResult":
        return AdmissionResult(accepted=True)

    @staticmethod
    def reject(reason: RejectReason, conflict: Reservation | None = None) -> "AdmissionResult":
        return AdmissionResult(accepted=False, reason=reason, conflict=conflict)


def has_time_overlap(new_start: time, new_end: time, exist_start: time, exist_end: time) -> bool:
    """Return True when two time intervals overlap by even one minute.

    Intervals are treated as half-open ranges: [start, end)
    so touching boundaries (e.g. 09:00-10:00 and 10:00-10:30) do not overlap.
    """
    return exist_end > new_start and new_end > exist_start


def overlaps(a: Reservation, b: Reservation) -> bool:
    if a.slot_key != b.slot_key:
        return False
    if a.start_time == b.start_time and a.end_time == b.end_time:
        return True
    return has_time_overlap(a.start_time, a.end_time, b.start_time, b.end_time)


def evaluate(candidate: Reservation, existing: Iterable[Reservation]) -> AdmissionResult:
    """Decide whether `candidate` may be committed next to `existing`.

    `existing` is normally pre-filtered to the candidate's room and date;
    reservations for any other slot are ignored.
    """
    if candidate.end_time <= candidate.start_time:
        return AdmissionResult.reject(RejectReason.INVALID_TIME_RANGE)

    for reservation in existing:
        if overlaps(reservation, candidate):
            return AdmissionResult.reject(RejectReason.ALREADY_RESERVED, conflict=reservation)
    return AdmissionResult.accept()


def is_thirty_minute_unit(value: time) -> bool:
    return value.minute % SLOT_MINUTES == 0 and value.second == 0 and value.microsecond == 0


def validate_reservation_times(candidate: Reservation) -> None:
    if candidate.end_time <= candidate.start_time:
        raise InvalidTimeRangeError("The end time must be later than the start time.")
    if not (is_thirty_minute_unit(candidate.start_time) and is_thirty_minute_unit(candidate.end_time)):
        raise InvalidTimeRangeError("Reservation times must be on a 30 minute boundary.")


def can_cancel(reservation: Reservation, acting_user: User) -> bool:
    return acting_user.role_name == RoleName.ADMIN or acting_user.user_id == reservation.user_id
