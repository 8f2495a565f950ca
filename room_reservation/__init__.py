from .booking import AdmissionResult, RejectReason, can_cancel, evaluate, has_time_overlap, overlaps
from .errors import (
	AlreadyReservedError,
	AuthenticationError,
	ForbiddenError,
	FormValidationError,
	InvalidTimeRangeError,
	NotFoundError,
	ReservationError,
	UnavailableReservationError,
)
from .models import AvailabilitySlot, Reservation, RoleName, Room, SlotKey, User
from .service import AvailabilityIndex, ReservationService
from .yaml_store import ReservationStorageError, ReservationYamlRepository

__all__ = [
	"AdmissionResult",
	"RejectReason",
	"can_cancel",
	"evaluate",
	"has_time_overlap",
	"overlaps",
	"AlreadyReservedError",
	"AuthenticationError",
	"ForbiddenError",
	"FormValidationError",
	"InvalidTimeRangeError",
	"NotFoundError",
	"ReservationError",
	"UnavailableReservationError",
	"AvailabilitySlot",
	"Reservation",
	"RoleName",
	"Room",
	"SlotKey",
	"User",
	"AvailabilityIndex",
	"ReservationService",
	"ReservationStorageError",
	"ReservationYamlRepository",
]
