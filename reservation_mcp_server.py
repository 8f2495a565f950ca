from __future__ import annotations

from datetime import date
import os
from pathlib import Path
from typing import Any

from mcp.server.fastmcp import FastMCP

from room_reservation import ReservationYamlRepository, SlotKey

mcp = FastMCP(
    "Room Reservation MCP Server",
    instructions="Expose meeting rooms, availability and reservations from the room_reservation project.",
    json_response=True,
)

DEFAULT_DATA_DIR = Path(__file__).parent / "data"


def _repository() -> ReservationYamlRepository:
    return ReservationYamlRepository(os.environ.get("ROOM_RESERVATION_DATA_DIR", DEFAULT_DATA_DIR))


@mcp.resource("reservation://rooms")
def list_rooms() -> list[dict[str, Any]]:
    """List meeting rooms."""
    return [room.to_dict() for room in _repository().list_rooms()]


@mcp.tool()
def list_available_rooms(reserved_date: str) -> list[dict[str, Any]]:
    """Return the rooms that accept reservations on an ISO date."""
    slots = _repository().find_reservable_rooms(date.fromisoformat(reserved_date))
    return [
        {**slot.to_dict(), "room_name": slot.room.room_name if slot.room is not None else None}
        for slot in slots
    ]


@mcp.tool()
def list_reservations(room_id: int, reserved_date: str) -> list[dict[str, Any]]:
    """Return reservations for one room and date, ordered by start time."""
    key = SlotKey(room_id, date.fromisoformat(reserved_date))
    return [reservation.to_dict() for reservation in _repository().find_reservations(key)]


@mcp.tool()
def provision_availability(room_id: int, reserved_date: str) -> dict[str, Any]:
    """Open a room for reservations on an ISO date."""
    slot = _repository().provision_availability(room_id, date.fromisoformat(reserved_date))
    return slot.to_dict()


def main() -> None:
    mcp.run()


if __name__ == "__main__":
    main()
