from __future__ import annotations


class ReservationError(Exception):
    """Base class for recoverable, user-facing reservation outcomes."""


class InvalidTimeRangeError(ReservationError, ValueError):
    pass


class UnavailableReservationError(ReservationError):
    pass


class AlreadyReservedError(ReservationError):
    pass


class ForbiddenError(ReservationError):
    pass


class NotFoundError(ReservationError, LookupError):
    pass


class AuthenticationError(ReservationError):
    pass


class FormValidationError(ReservationError, ValueError):
    def __init__(self, errors: dict[str, str]) -> None:
        self.errors = dict(errors)
        summary = ", ".join(f"{field}: {message}" for field, message in self.errors.items())
        super().__init__(summary or "Invalid form input.")
