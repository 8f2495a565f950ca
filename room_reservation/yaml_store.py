from __future__ import annotations

from datetime import date, datetime
from pathlib import Path
from typing import Any
import dataclasses
import shutil
import threading

import yaml

from .errors import NotFoundError
from .models import AvailabilitySlot, Reservation, Room, SlotKey, User


class ReservationStorageError(RuntimeError):
    pass


class ReservationYamlRepository:
    def __init__(self, base_dir: str | Path = "data") -> None:
        self.base_dir = Path(base_dir)
        self.rooms_file = self.base_dir / "rooms.yaml"
        self.slots_file = self.base_dir / "reservable_rooms.yaml"
        self.reservations_file = self.base_dir / "reservations.yaml"
        self.users_file = self.base_dir / "users.yaml"
        self.sequences_file = self.base_dir / "sequences.yaml"
        self.log_file = self.base_dir / "reservation_events.yaml"
        self._lock = threading.RLock()
        self._ensure_files()

    def _ensure_files(self) -> None:
        self.base_dir.mkdir(parents=True, exist_ok=True)
        for path in (self.rooms_file, self.slots_file, self.reservations_file, self.users_file, self.sequences_file, self.log_file):
            if not path.exists():
                path.write_text("[]\n", encoding="utf-8")

    def _read_yaml_list(self, path: Path) -> list[dict[str, Any]]:
        try:
            payload = yaml.safe_load(path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            path.write_text("[]\n", encoding="utf-8")
            return []
        except (OSError, UnicodeDecodeError, yaml.YAMLError) as error:
            self._recover_corrupted_yaml(path, error)
            return []

        if payload is None:
            return []
        if not isinstance(payload, list):
            self._recover_corrupted_yaml(path, ValueError("top-level YAML is not a list"))
            return []

        sanitized: list[dict[str, Any]] = []
        for index, row in enumerate(payload):
            if isinstance(row, dict):
                sanitized.append(row)
            else:
                self.log_event(
                    "YAML_ROW_SKIPPED",
                    {
                        "file": str(path.name),
                        "index": index,
                        "reason": "row is not a mapping",
                    },
                )
        return sanitized

    def _write_yaml_list(self, path: Path, rows: list[dict[str, Any]]) -> None:
        temp_path = path.with_suffix(path.suffix + ".tmp")
        try:
            temp_path.write_text(yaml.safe_dump(rows, allow_unicode=True, sort_keys=False), encoding="utf-8")
            temp_path.replace(path)
        except OSError as error:
            raise ReservationStorageError(f"Failed to write YAML file: {path}") from error
        finally:
            if temp_path.exists():
                temp_path.unlink(missing_ok=True)

    def _recover_corrupted_yaml(self, path: Path, error: Exception) -> None:
        timestamp = datetime.now().strftime("%Y%m%d%H%M%S")
        backup_path = path.with_name(f"{path.stem}.corrupt.{timestamp}{path.suffix}")
        try:
            if path.exists():
                shutil.copy2(path, backup_path)
        except OSError:
            # the reset below still restores a readable file
            pass

        path.write_text("[]\n", encoding="utf-8")
        if path != self.log_file:
            self.log_event(
                "YAML_RECOVERED",
                {
                    "file": str(path.name),
                    "backup": str(backup_path.name),
                    "reason": str(error),
                },
            )

    def log_event(self, event_type: str, payload: dict[str, Any], event_time: datetime | None = None) -> None:
        timestamp = (event_time or datetime.now()).isoformat(timespec="seconds")
        with self._lock:
            events = self._read_yaml_list(self.log_file)
            events.append({"event_time": timestamp, "event_type": event_type, "payload": payload})
            self._write_yaml_list(self.log_file, events)

    def get_events(self) -> list[dict[str, Any]]:
        return self._read_yaml_list(self.log_file)

    # Rooms

    def list_rooms(self) -> list[Room]:
        rooms = [Room.from_dict(row) for row in self._read_yaml_list(self.rooms_file)]
        return sorted(rooms, key=lambda room: room.room_id)

    def get_room(self, room_id: int) -> Room | None:
        for room in self.list_rooms():
            if room.room_id == room_id:
                return room
        return None

    def add_room(self, room_name: str, room_id: int | None = None) -> Room:
        room_name = _normalize_name(room_name, "room_name")
        with self._lock:
            rows = self._read_yaml_list(self.rooms_file)
            existing_ids = {int(row["room_id"]) for row in rows}
            if room_id is None:
                room_id = max(existing_ids, default=0) + 1
            elif room_id in existing_ids:
                raise ValueError(f"room_id {room_id} already exists")

            room = Room(room_id=room_id, room_name=room_name)
            rows.append(room.to_dict())
            self._write_yaml_list(self.rooms_file, rows)

        self.log_event("ROOM_CREATED", room.to_dict())
        return room

    # Availability

    def find_availability(self, room_id: int, reserved_date: date) -> AvailabilitySlot | None:
        for row in self._read_yaml_list(self.slots_file):
            slot = AvailabilitySlot.from_dict(row)
            if slot.room_id == room_id and slot.reserved_date == reserved_date:
                return dataclasses.replace(slot, room=self.get_room(room_id))
        return None

    def find_reservable_rooms(self, reserved_date: date) -> list[AvailabilitySlot]:
        rooms = {room.room_id: room for room in self.list_rooms()}
        slots = [
            AvailabilitySlot.from_dict(row, room=rooms.get(int(row["room_id"])))
            for row in self._read_yaml_list(self.slots_file)
            if str(row.get("reserved_date")) == reserved_date.isoformat()
        ]
        return sorted(slots, key=lambda slot: slot.room_id)

    def provision_availability(self, room_id: int, reserved_date: date) -> AvailabilitySlot:
        with self._lock:
            room = self.get_room(room_id)
            if room is None:
                raise NotFoundError(f"Room {room_id} is not found.")

            existing = self.find_availability(room_id, reserved_date)
            if existing is not None:
                return existing

            slot = AvailabilitySlot(room_id=room_id, reserved_date=reserved_date, room=room)
            rows = self._read_yaml_list(self.slots_file)
            rows.append(slot.to_dict())
            self._write_yaml_list(self.slots_file, rows)

        self.log_event("AVAILABILITY_PROVISIONED", slot.to_dict())
        return slot

    def remove_availability(self, room_id: int, reserved_date: date) -> AvailabilitySlot:
        """Remove a room/date slot; refused while reservations still reference it."""
        key = SlotKey(room_id, reserved_date)
        with self._lock:
            slot = self.find_availability(room_id, reserved_date)
            if slot is None:
                raise NotFoundError("Combination of input date and room is not reservable.")
            if self.find_reservations(key):
                raise ValueError("Availability cannot be removed while reservations exist.")

            rows = [
                row
                for row in self._read_yaml_list(self.slots_file)
                if not (int(row["room_id"]) == room_id and str(row.get("reserved_date")) == reserved_date.isoformat())
            ]
            self._write_yaml_list(self.slots_file, rows)

        self.log_event("AVAILABILITY_REMOVED", slot.to_dict())
        return slot

    def _next_sequence_value(self, name: str, rows: list[dict[str, Any]]) -> int:
        """Return the next id for `name`; ids of deleted rows are never handed out again."""
        with self._lock:
            sequences = self._read_yaml_list(self.sequences_file)
            current = next((row for row in sequences if row.get("name") == name), None)
            if current is None:
                current = {"name": name, "value": 0}
                sequences.append(current)

            # rows written before the sequence file existed still count
            highest_row = max((int(row[name]) for row in rows if row.get(name) is not None), default=0)
            value = max(int(current.get("value") or 0), highest_row) + 1
            current["value"] = value
            self._write_yaml_list(self.sequences_file, sequences)
        return value

    # Reservations

    def find_reservations(self, slot_key: SlotKey) -> list[Reservation]:
        reservations = [
            reservation
            for reservation in (Reservation.from_dict(row) for row in self._read_yaml_list(self.reservations_file))
            if reservation.slot_key == slot_key
        ]
        return sorted(reservations, key=lambda reservation: reservation.start_time)

    def get_reservation(self, reservation_id: int) -> Reservation | None:
        for row in self._read_yaml_list(self.reservations_file):
            if int(row["reservation_id"]) == reservation_id:
                return Reservation.from_dict(row)
        return None

    def save_reservation(self, reservation: Reservation) -> Reservation:
        with self._lock:
            rows = self._read_yaml_list(self.reservations_file)
            next_id = self._next_sequence_value("reservation_id", rows)
            saved = dataclasses.replace(reservation, reservation_id=next_id)
            rows.append(saved.to_dict())
            self._write_yaml_list(self.reservations_file, rows)

        self.log_event("RESERVATION_CREATED", saved.to_dict())
        return saved

    def delete_reservation(self, reservation_id: int) -> Reservation:
        with self._lock:
            rows = self._read_yaml_list(self.reservations_file)
            found_index = -1
            for index, row in enumerate(rows):
                if int(row["reservation_id"]) == reservation_id:
                    found_index = index
                    break

            if found_index < 0:
                raise NotFoundError("Reservation not found.")

            deleted = Reservation.from_dict(rows.pop(found_index))
            self._write_yaml_list(self.reservations_file, rows)

        self.log_event("RESERVATION_CANCELLED", deleted.to_dict())
        return deleted

    # Users

    def find_user(self, user_id: str) -> User | None:
        for row in self._read_yaml_list(self.users_file):
            if str(row.get("user_id")) == user_id:
                return User.from_dict(row)
        return None

    def add_user(self, user: User) -> User:
        _normalize_name(user.user_id, "user_id")
        with self._lock:
            rows = self._read_yaml_list(self.users_file)
            if any(str(row.get("user_id")) == user.user_id for row in rows):
                raise ValueError(f"user_id {user.user_id} already exists")
            rows.append(user.to_dict())
            self._write_yaml_list(self.users_file, rows)

        self.log_event("USER_CREATED", user.to_public_dict())
        return user


def _normalize_name(value: str | None, field: str) -> str:
    if value is None:
        raise ValueError(f"{field} must not be None")

    normalized = value.strip()
    if not normalized:
        raise ValueError(f"{field} must not be empty")
    return normalized
