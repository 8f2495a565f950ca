import re
from dataclasses import dataclass
from datetime import datetime, time, timedelta
from typing import Any

from .booking import SLOT_MINUTES, is_thirty_minute_unit
from .errors import FormValidationError

_TIME_RE = re.compile(r"^(?P<time>(?:[01]?\d|2[0-3]):[0-5]\d)$")

REQUIRED_MESSAGE = "Required"
THIRTY_MINUTES_MESSAGE = "Please enter in 30 minutes"
END_AFTER_START_MESSAGE = "The end time must be later than the start time"
FORMAT_MESSAGE = "Please enter the time as HH:MM"


@dataclass(frozen=True)
class ReservationForm:
    start_time: time
    end_time: time


def time_list() -> list[time]:
    """Half-hour choices offered by the reservation form, 00:00 through 23:30."""
    start = datetime(2000, 1, 1)
    return [(start + timedelta(minutes=SLOT_MINUTES * index)).time() for index in range(24 * 60 // SLOT_MINUTES)]


def _parse_time(value: Any) -> time:
    text = str(value).strip()
    if not _TIME_RE.match(text):
        raise ValueError(FORMAT_MESSAGE)
    return datetime.strptime(text, "%H:%M").time()


def parse_reservation_form(payload: dict[str, Any]) -> ReservationForm:
    errors: dict[str, str] = {}
    parsed: dict[str, time] = {}

    for field in ("start_time", "end_time"):
        raw = payload.get(field)
        if raw is None or not str(raw).strip():
            errors[field] = REQUIRED_MESSAGE
            continue
        try:
            value = _parse_time(raw)
        except ValueError as error:
            errors[field] = str(error)
            continue
        if not is_thirty_minute_unit(value):
            errors[field] = THIRTY_MINUTES_MESSAGE
            continue
        parsed[field] = value

    start_time = parsed.get("start_time")
    end_time = parsed.get("end_time")
    if start_time is not None and end_time is not None and end_time <= start_time:
        errors["end_time"] = END_AFTER_START_MESSAGE

    if errors:
        raise FormValidationError(errors)
    return ReservationForm(start_time=parsed["start_time"], end_time=parsed["end_time"])
