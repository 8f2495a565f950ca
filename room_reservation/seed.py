from __future__ import annotations

from datetime import date, datetime, timedelta
from typing import Iterable

import holidays as pyholidays

from .auth import create_user
from .models import AvailabilitySlot, RoleName
from .yaml_store import ReservationYamlRepository

DEFAULT_HOLIDAY_COUNTRY = "KR"
DEMO_ROOM_NAMES = ["Shin-Kiba", "Tatsumi", "Toyosu", "Tsukishima", "Shinbashi", "Ginza", "Yurakucho"]
DEMO_PASSWORD = "53cret"
_HOLIDAY_CACHE: dict[tuple[str, int], set[date]] = {}


def provision_business_days(
    repository: ReservationYamlRepository,
    room_ids: Iterable[int],
    start_date: date,
    days: int = 30,
    country: str = DEFAULT_HOLIDAY_COUNTRY,
) -> list[AvailabilitySlot]:
    """Open every room on each weekday in the window that is not a public holiday."""
    if days <= 0:
        raise ValueError("days must be greater than zero")

    room_ids = list(room_ids)
    business_days = _collect_business_days(start_date, start_date + timedelta(days=days), country)
    return [
        repository.provision_availability(room_id, day)
        for day in business_days
        for room_id in room_ids
    ]


def seed_demo_data(
    repository: ReservationYamlRepository,
    today: date | None = None,
    days: int = 30,
    country: str = DEFAULT_HOLIDAY_COUNTRY,
) -> list[AvailabilitySlot]:
    start_date = today or date.today()

    existing_names = {room.room_name for room in repository.list_rooms()}
    for room_name in DEMO_ROOM_NAMES:
        if room_name not in existing_names:
            repository.add_room(room_name)

    if repository.find_user("admin") is None:
        create_user(repository, "admin", DEMO_PASSWORD, "Hendi", "Santika", role_name=RoleName.ADMIN)
    if repository.find_user("user") is None:
        create_user(repository, "user", DEMO_PASSWORD, "Taro", "Yamada")

    room_ids = [room.room_id for room in repository.list_rooms()]
    slots = provision_business_days(repository, room_ids, start_date, days=days, country=country)

    repository.log_event(
        "DEMO_DATA_SEEDED",
        {
            "rooms": len(room_ids),
            "slots": len(slots),
            "date_window_days": days,
            "holiday_country": country,
        },
        datetime.now(),
    )
    return slots


def _collect_business_days(start_inclusive: date, end_exclusive: date, country: str) -> list[date]:
    cursor = start_inclusive
    business_days: list[date] = []
    while cursor < end_exclusive:
        if is_business_day(cursor, country):
            business_days.append(cursor)
        cursor += timedelta(days=1)
    return business_days


def is_business_day(target_date: date, country: str = DEFAULT_HOLIDAY_COUNTRY) -> bool:
    return target_date.weekday() < 5 and not _is_public_holiday(target_date, country)


def _is_public_holiday(target_date: date, country: str) -> bool:
    cache_key = (country, target_date.year)
    if cache_key not in _HOLIDAY_CACHE:
        holiday_map = pyholidays.country_holidays(country, years=[target_date.year])
        _HOLIDAY_CACHE[cache_key] = set(holiday_map.keys())
    return target_date in _HOLIDAY_CACHE[cache_key]
