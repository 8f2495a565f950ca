from __future__ import annotations

from datetime import date
import threading

from .booking import RejectReason, can_cancel, evaluate, validate_reservation_times
from .errors import (
    AlreadyReservedError,
    ForbiddenError,
    InvalidTimeRangeError,
    NotFoundError,
    UnavailableReservationError,
)
from .models import AvailabilitySlot, Reservation, Room, SlotKey, User
from .yaml_store import ReservationYamlRepository


class AvailabilityIndex:
    """Room/date lookup; a missing slot is a normal answer, not an error."""

    def __init__(self, repository: ReservationYamlRepository) -> None:
        self.repository = repository

    def lookup(self, room_id: int, reserved_date: date) -> AvailabilitySlot | None:
        return self.repository.find_availability(room_id, reserved_date)

    def find_reservable_rooms(self, reserved_date: date) -> list[AvailabilitySlot]:
        return self.repository.find_reservable_rooms(reserved_date)

    def find_meeting_room(self, room_id: int) -> Room | None:
        return self.repository.get_room(room_id)


class ReservationService:
    def __init__(self, repository: ReservationYamlRepository, availability: AvailabilityIndex | None = None) -> None:
        self.repository = repository
        self.availability = availability or AvailabilityIndex(repository)
        self._key_locks: dict[SlotKey, threading.Lock] = {}
        self._key_locks_guard = threading.Lock()

    def _lock_for(self, slot_key: SlotKey) -> threading.Lock:
        with self._key_locks_guard:
            lock = self._key_locks.get(slot_key)
            if lock is None:
                lock = threading.Lock()
                self._key_locks[slot_key] = lock
            return lock

    def find_reservations(self, slot_key: SlotKey) -> list[Reservation]:
        return self.repository.find_reservations(slot_key)

    def get_reservation(self, reservation_id: int) -> Reservation:
        reservation = self.repository.get_reservation(reservation_id)
        if reservation is None:
            raise NotFoundError("Reservation not found.")
        return reservation

    def reserve(self, candidate: Reservation) -> Reservation:
        slot_key = candidate.slot_key
        # unopened keys never get a lock entry
        if self.availability.lookup(slot_key.room_id, slot_key.reserved_date) is None:
            self._reject_unavailable(candidate)

        with self._lock_for(slot_key):
            if self.availability.lookup(slot_key.room_id, slot_key.reserved_date) is None:
                self._reject_unavailable(candidate)

            validate_reservation_times(candidate)
            existing = self.repository.find_reservations(slot_key)
            result = evaluate(candidate, existing)
            if result.reason == RejectReason.INVALID_TIME_RANGE:
                raise InvalidTimeRangeError("The end time must be later than the start time.")
            if not result.accepted:
                self._log_rejection(candidate, result.reason.value)
                raise AlreadyReservedError("The time of entry is already reserved.")

            return self.repository.save_reservation(candidate)

    def cancel(self, reservation: Reservation, acting_user: User) -> Reservation:
        """Cancel the stored reservation that `reservation` refers to.

        Authorization is decided against the stored row, so a stale copy of a
        cancelled reservation cannot remove a newer booking.
        """
        if reservation.reservation_id is None:
            raise NotFoundError("Reservation not found.")

        stored = self._find_matching(reservation)
        with self._lock_for(stored.slot_key):
            stored = self._find_matching(reservation)
            if not can_cancel(stored, acting_user):
                raise ForbiddenError("You are not allowed to cancel this reservation.")
            return self.repository.delete_reservation(stored.reservation_id)

    def _find_matching(self, reservation: Reservation) -> Reservation:
        stored = self.repository.get_reservation(reservation.reservation_id)
        if stored is None or stored.slot_key != reservation.slot_key or stored.user_id != reservation.user_id:
            raise NotFoundError("Reservation not found.")
        return stored

    def _reject_unavailable(self, candidate: Reservation) -> None:
        self._log_rejection(candidate, "UNAVAILABLE_RESERVATION")
        raise UnavailableReservationError("Combination of input date and room can not be reserved.")

    def _log_rejection(self, candidate: Reservation, reason: str) -> None:
        payload = candidate.to_dict()
        payload.pop("reservation_id")
        payload["reason"] = reason
        self.repository.log_event("RESERVATION_REJECTED", payload)
