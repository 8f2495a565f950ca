from __future__ import annotations

from datetime import date, time
from pathlib import Path
import traceback

from room_reservation import Reservation, ReservationService, ReservationYamlRepository, has_time_overlap
from room_reservation.seed import seed_demo_data


def main() -> int:
    print("[INFO] Room Reservation Quick Check")
    print("[INFO] Seeding demo rooms, users and availability...")

    repo = ReservationYamlRepository("data")
    slots = seed_demo_data(repo, today=date.today())
    print(f"[OK] Availability slots: {len(slots)}")
    if not slots:
        print("[ERROR] No business days in the seeded window.")
        return 1

    first = slots[0]
    service = ReservationService(repo)
    existing = service.find_reservations(first.slot_key)
    start_hour = next(
        (
            hour
            for hour in range(9, 18)
            if not any(has_time_overlap(time(hour, 0), time(hour, 30), r.start_time, r.end_time) for r in existing)
        ),
        None,
    )
    if start_hour is None:
        print(f"[ERROR] No free half-hour between 09:00 and 18:00 for room {first.room_id} on {first.reserved_date.isoformat()}.")
        return 1

    created = service.reserve(
        Reservation(
            room_id=first.room_id,
            reserved_date=first.reserved_date,
            start_time=time(start_hour, 0),
            end_time=time(start_hour, 30),
            user_id="user",
        )
    )
    print(
        "[OK] Reserved slot: "
        f"room {created.room_id}, {created.reserved_date.isoformat()} "
        f"{created.start_time.isoformat(timespec='minutes')}~{created.end_time.isoformat(timespec='minutes')}"
    )

    cancelled = service.cancel(created, repo.find_user("user"))
    print(f"[OK] Cancelled reservation {cancelled.reservation_id}")
    print(f"[OK] Reservations YAML: {Path('data/reservations.yaml').resolve()}")
    print(f"[OK] Event Log YAML: {Path('data/reservation_events.yaml').resolve()}")

    print("[DONE] Quick check completed successfully.")
    return 0


if __name__ == "__main__":
    try:
        raise SystemExit(main())
    except Exception:
        print("[ERROR] Quick check failed.")
        traceback.print_exc()
        raise SystemExit(1)
