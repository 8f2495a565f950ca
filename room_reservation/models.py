from __future__ import annotations

from dataclasses import dataclass
from datetime import date, time
from enum import Enum
from typing import Any


class RoleName(str, Enum):
    USER = "USER"
    ADMIN = "ADMIN"


@dataclass(frozen=True)
class SlotKey:
    room_id: int
    reserved_date: date

    def to_dict(self) -> dict[str, Any]:
        return {"room_id": self.room_id, "reserved_date": self.reserved_date.isoformat()}


@dataclass(frozen=True)
class Room:
    room_id: int
    room_name: str

    def to_dict(self) -> dict[str, Any]:
        return {"room_id": self.room_id, "room_name": self.room_name}

    @staticmethod
    def from_dict(data: dict[str, Any]) -> "Room":
        return Room(room_id=int(data["room_id"]), room_name=str(data["room_name"]))


@dataclass(frozen=True)
class AvailabilitySlot:
    room_id: int
    reserved_date: date
    room: Room | None = None

    @property
    def slot_key(self) -> SlotKey:
        return SlotKey(self.room_id, self.reserved_date)

    def to_dict(self) -> dict[str, Any]:
        return {"room_id": self.room_id, "reserved_date": self.reserved_date.isoformat()}

    @staticmethod
    def from_dict(data: dict[str, Any], room: Room | None = None) -> "AvailabilitySlot":
        return AvailabilitySlot(
            room_id=int(data["room_id"]),
            reserved_date=date.fromisoformat(str(data["reserved_date"])),
            room=room,
        )


@dataclass(frozen=True)
class Reservation:
    """A booking of one room on one date.

    `reservation_id` is None while the reservation is only a candidate and is
    assigned by the repository when the reservation is committed. Times are
    time-of-day values on `reserved_date` and form the half-open range
    [start_time, end_time).
    """

    room_id: int
    reserved_date: date
    start_time: time
    end_time: time
    user_id: str
    reservation_id: int | None = None

    @property
    def slot_key(self) -> SlotKey:
        return SlotKey(self.room_id, self.reserved_date)

    def to_dict(self) -> dict[str, Any]:
        return {
            "reservation_id": self.reservation_id,
            "room_id": self.room_id,
            "reserved_date": self.reserved_date.isoformat(),
            "start_time": self.start_time.isoformat(timespec="minutes"),
            "end_time": self.end_time.isoformat(timespec="minutes"),
            "user_id": self.user_id,
        }

    @staticmethod
    def from_dict(data: dict[str, Any]) -> "Reservation":
        raw_id = data.get("reservation_id")
        return Reservation(
            reservation_id=int(raw_id) if raw_id is not None else None,
            room_id=int(data["room_id"]),
            reserved_date=date.fromisoformat(str(data["reserved_date"])),
            start_time=time.fromisoformat(str(data["start_time"])),
            end_time=time.fromisoformat(str(data["end_time"])),
            user_id=str(data["user_id"]),
        )


@dataclass(frozen=True)
class User:
    user_id: str
    password_hash: str
    first_name: str
    last_name: str
    role_name: RoleName = RoleName.USER

    def to_dict(self) -> dict[str, Any]:
        return {
            "user_id": self.user_id,
            "password_hash": self.password_hash,
            "first_name": self.first_name,
            "last_name": self.last_name,
            "role_name": self.role_name.value,
        }

    def to_public_dict(self) -> dict[str, Any]:
        payload = self.to_dict()
        payload.pop("password_hash")
        return payload

    @staticmethod
    def from_dict(data: dict[str, Any]) -> "User":
        return User(
            user_id=str(data["user_id"]),
            password_hash=str(data["password_hash"]),
            first_name=str(data.get("first_name") or ""),
            last_name=str(data.get("last_name") or ""),
            role_name=RoleName(str(data.get("role_name") or RoleName.USER.value)),
        )
