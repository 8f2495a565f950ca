from __future__ import annotations

from datetime import date, datetime
from pathlib import Path
from typing import Any, Callable

from flask import Flask, jsonify, request, session

from .auth import authenticate
from .booking import can_cancel
from .errors import (
    AlreadyReservedError,
    AuthenticationError,
    ForbiddenError,
    FormValidationError,
    InvalidTimeRangeError,
    NotFoundError,
    UnavailableReservationError,
)
from .forms import parse_reservation_form, time_list
from .models import AvailabilitySlot, Reservation, SlotKey, User
from .service import AvailabilityIndex, ReservationService
from .yaml_store import ReservationYamlRepository, ReservationStorageError

CONFIG_ENV_PREFIX = "ROOM_RESERVATION"
DEFAULT_SECRET_KEY = "room-reservation-dev"


def create_app(
    data_dir: str | Path = "data",
    now_provider: Callable[[], datetime] | None = None,
    secret_key: str | None = None,
) -> Flask:
    app = Flask(__name__)
    app.config.from_mapping(DATA_DIR=str(data_dir), SECRET_KEY=DEFAULT_SECRET_KEY)
    app.config.from_prefixed_env(CONFIG_ENV_PREFIX)
    if secret_key is not None:
        app.config["SECRET_KEY"] = secret_key

    repository = ReservationYamlRepository(app.config["DATA_DIR"])
    availability = AvailabilityIndex(repository)
    reservation_service = ReservationService(repository, availability)
    clock: Callable[[], datetime] = now_provider or datetime.now

    app.extensions["reservation_repository"] = repository
    app.extensions["reservation_service"] = reservation_service

    def _error(message: str, status: int, **extra: Any) -> Any:
        return jsonify({"ok": False, "message": message, **extra}), status

    def _current_user() -> User | None:
        user_id = session.get("user_id")
        if not user_id:
            return None
        return repository.find_user(str(user_id))

    def _serialize_slot(slot: AvailabilitySlot) -> dict[str, Any]:
        return {
            "room_id": slot.room_id,
            "room_name": slot.room.room_name if slot.room is not None else None,
            "reserved_date": slot.reserved_date.isoformat(),
        }

    def _serialize_reservation(reservation: Reservation, user: User) -> dict[str, Any]:
        owner = repository.find_user(reservation.user_id)
        return {
            **reservation.to_dict(),
            "user_name": f"{owner.first_name} {owner.last_name}".strip() if owner is not None else reservation.user_id,
            "is_mine": reservation.user_id == user.user_id,
            "can_cancel": can_cancel(reservation, user),
        }

    def _reservation_page(reserved_date: date, room_id: int, user: User) -> dict[str, Any] | None:
        slot = availability.lookup(room_id, reserved_date)
        if slot is None:
            return None
        reservations = reservation_service.find_reservations(SlotKey(room_id, reserved_date))
        return {
            "date": reserved_date.isoformat(),
            "room_id": room_id,
            "room": slot.room.to_dict() if slot.room is not None else None,
            "reservations": [_serialize_reservation(reservation, user) for reservation in reservations],
            "time_list": [value.isoformat(timespec="minutes") for value in time_list()],
        }

    @app.after_request
    def add_cors_headers(response: Any) -> Any:
        response.headers["Access-Control-Allow-Origin"] = "*"
        response.headers["Access-Control-Allow-Methods"] = "GET,POST,OPTIONS"
        response.headers["Access-Control-Allow-Headers"] = "Content-Type"
        return response

    @app.errorhandler(ReservationStorageError)
    def handle_storage_error(error: ReservationStorageError) -> Any:
        app.logger.exception("Reservation storage failure")
        return _error("Reservation data could not be saved.", 500)

    @app.post("/api/login")
    def login() -> Any:
        payload = request.get_json(silent=True) or {}
        user_id = str(payload.get("user_id", "")).strip()
        password = str(payload.get("password", ""))
        if not user_id or not password:
            return _error("user_id and password are required.", 400)

        try:
            user = authenticate(repository, user_id, password)
        except AuthenticationError as error:
            return _error(str(error), 401)

        session.clear()
        session["user_id"] = user.user_id
        return jsonify({"ok": True, "user": user.to_public_dict()})

    @app.post("/api/logout")
    def logout() -> Any:
        session.clear()
        return jsonify({"ok": True})

    @app.get("/api/me")
    def me() -> Any:
        user = _current_user()
        if user is None:
            return _error("Login is required.", 401)
        return jsonify({"ok": True, "user": user.to_public_dict()})

    @app.get("/api/rooms")
    @app.get("/api/rooms/<date_text>")
    def list_rooms(date_text: str | None = None) -> Any:
        if _current_user() is None:
            return _error("Login is required.", 401)

        if date_text is None:
            reserved_date = clock().date()
        else:
            try:
                reserved_date = date.fromisoformat(date_text)
            except ValueError:
                return _error("date must be formatted as YYYY-MM-DD.", 400)

        rooms = availability.find_reservable_rooms(reserved_date)
        return jsonify({"ok": True, "date": reserved_date.isoformat(), "rooms": [_serialize_slot(slot) for slot in rooms]})

    @app.get("/api/reservations/<date_text>/<int:room_id>")
    def reserve_form(date_text: str, room_id: int) -> Any:
        user = _current_user()
        if user is None:
            return _error("Login is required.", 401)
        try:
            reserved_date = date.fromisoformat(date_text)
        except ValueError:
            return _error("date must be formatted as YYYY-MM-DD.", 400)

        page = _reservation_page(reserved_date, room_id, user)
        if page is None:
            return _error("This room is not available for the selected date.", 404)
        return jsonify({"ok": True, **page})

    @app.post("/api/reservations/<date_text>/<int:room_id>")
    def reserve(date_text: str, room_id: int) -> Any:
        user = _current_user()
        if user is None:
            return _error("Login is required.", 401)
        try:
            reserved_date = date.fromisoformat(date_text)
        except ValueError:
            return _error("date must be formatted as YYYY-MM-DD.", 400)

        payload = request.get_json(silent=True) or {}
        try:
            form = parse_reservation_form(payload)
        except FormValidationError as error:
            return _error("Please correct the highlighted errors.", 400, errors=error.errors)

        candidate = Reservation(
            room_id=room_id,
            reserved_date=reserved_date,
            start_time=form.start_time,
            end_time=form.end_time,
            user_id=user.user_id,
        )
        try:
            created = reservation_service.reserve(candidate)
        except InvalidTimeRangeError as error:
            return _error(str(error), 400)
        except UnavailableReservationError as error:
            return _error(str(error), 404)
        except AlreadyReservedError as error:
            return _error(str(error), 409)

        return jsonify({"ok": True, "reservation": _serialize_reservation(created, user)}), 201

    @app.post("/api/reservations/<date_text>/<int:room_id>/cancel")
    def cancel(date_text: str, room_id: int) -> Any:
        user = _current_user()
        if user is None:
            return _error("Login is required.", 401)
        try:
            reserved_date = date.fromisoformat(date_text)
        except ValueError:
            return _error("date must be formatted as YYYY-MM-DD.", 400)

        payload = request.get_json(silent=True) or {}
        try:
            reservation_id = int(payload.get("reservation_id"))
        except (TypeError, ValueError):
            return _error("reservation_id is required.", 400)

        try:
            reservation = reservation_service.get_reservation(reservation_id)
            if reservation.slot_key != SlotKey(room_id, reserved_date):
                raise NotFoundError("Reservation not found.")
            cancelled = reservation_service.cancel(reservation, user)
        except NotFoundError as error:
            return _error(str(error), 404)
        except ForbiddenError as error:
            return _error(f"Unable to cancel reservation: {error}", 403)

        return jsonify({"ok": True, "reservation": cancelled.to_dict()})

    return app


if __name__ == "__main__":
    app = create_app()
    app.run(host="127.0.0.1", port=5000, debug=False)
