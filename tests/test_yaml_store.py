import tempfile
import unittest
from datetime import date, time
from pathlib import Path

from room_reservation import NotFoundError, Reservation, ReservationYamlRepository, RoleName, SlotKey, User

DAY = date(2025, 6, 1)


class TestReservationYamlRepository(unittest.TestCase):
    def setUp(self) -> None:
        self._temp_dir = tempfile.TemporaryDirectory()
        self.addCleanup(self._temp_dir.cleanup)
        self.data_dir = Path(self._temp_dir.name) / "data"
        self.repo = ReservationYamlRepository(self.data_dir)

    def _reservation(self, start: time, end: time, room_id: int = 1) -> Reservation:
        return Reservation(room_id=room_id, reserved_date=DAY, start_time=start, end_time=end, user_id="taro")

    def test_creates_empty_files(self) -> None:
        for name in ("rooms.yaml", "reservable_rooms.yaml", "reservations.yaml", "users.yaml", "sequences.yaml", "reservation_events.yaml"):
            self.assertEqual((self.data_dir / name).read_text(encoding="utf-8"), "[]\n")

    def test_add_room_assigns_sequential_ids(self) -> None:
        first = self.repo.add_room("Shin-Kiba")
        second = self.repo.add_room("Tatsumi")

        self.assertEqual((first.room_id, second.room_id), (1, 2))
        self.assertEqual(self.repo.get_room(2).room_name, "Tatsumi")

    def test_add_room_raises_on_empty_name_or_duplicate_id(self) -> None:
        with self.assertRaises(ValueError):
            self.repo.add_room("   ")
        self.repo.add_room("Shin-Kiba", room_id=5)
        with self.assertRaises(ValueError):
            self.repo.add_room("Tatsumi", room_id=5)

    def test_provision_availability_is_idempotent(self) -> None:
        self.repo.add_room("Shin-Kiba")
        self.repo.provision_availability(1, DAY)
        self.repo.provision_availability(1, DAY)

        slots = self.repo.find_reservable_rooms(DAY)
        self.assertEqual(len(slots), 1)
        self.assertEqual(slots[0].room.room_name, "Shin-Kiba")

    def test_provision_availability_requires_room(self) -> None:
        with self.assertRaises(NotFoundError):
            self.repo.provision_availability(42, DAY)

    def test_remove_availability_refused_while_reserved(self) -> None:
        self.repo.add_room("Shin-Kiba")
        self.repo.provision_availability(1, DAY)
        saved = self.repo.save_reservation(self._reservation(time(9, 0), time(10, 0)))

        with self.assertRaises(ValueError):
            self.repo.remove_availability(1, DAY)

        self.repo.delete_reservation(saved.reservation_id)
        self.repo.remove_availability(1, DAY)
        self.assertIsNone(self.repo.find_availability(1, DAY))

    def test_remove_missing_availability_raises(self) -> None:
        with self.assertRaises(NotFoundError):
            self.repo.remove_availability(1, DAY)

    def test_save_and_find_reservations_by_slot(self) -> None:
        first = self.repo.save_reservation(self._reservation(time(13, 0), time(14, 0)))
        second = self.repo.save_reservation(self._reservation(time(9, 0), time(9, 30)))
        self.repo.save_reservation(self._reservation(time(9, 0), time(9, 30), room_id=2))

        self.assertEqual((first.reservation_id, second.reservation_id), (1, 2))
        found = self.repo.find_reservations(SlotKey(1, DAY))
        self.assertEqual([reservation.reservation_id for reservation in found], [2, 1])
        self.assertEqual(self.repo.get_reservation(1), first)

    def test_delete_reservation_removes_record(self) -> None:
        saved = self.repo.save_reservation(self._reservation(time(9, 0), time(10, 0)))

        deleted = self.repo.delete_reservation(saved.reservation_id)

        self.assertEqual(deleted, saved)
        self.assertIsNone(self.repo.get_reservation(saved.reservation_id))
        with self.assertRaises(NotFoundError):
            self.repo.delete_reservation(saved.reservation_id)

    def test_reservation_ids_are_not_reused_after_deleting_the_highest(self) -> None:
        self.repo.save_reservation(self._reservation(time(9, 0), time(9, 30)))
        second = self.repo.save_reservation(self._reservation(time(10, 0), time(10, 30)))
        self.repo.delete_reservation(second.reservation_id)

        third = self.repo.save_reservation(self._reservation(time(11, 0), time(11, 30)))

        self.assertEqual(third.reservation_id, 3)
        self.assertIsNone(self.repo.get_reservation(2))

    def test_reservation_ids_survive_a_new_repository_instance(self) -> None:
        saved = self.repo.save_reservation(self._reservation(time(9, 0), time(9, 30)))
        self.repo.delete_reservation(saved.reservation_id)

        reopened = ReservationYamlRepository(self.data_dir)
        again = reopened.save_reservation(self._reservation(time(9, 0), time(9, 30)))

        self.assertEqual(again.reservation_id, 2)

    def test_users_round_trip_and_reject_duplicates(self) -> None:
        user = User("admin", "hash", "Hendi", "Santika", role_name=RoleName.ADMIN)
        self.repo.add_user(user)

        self.assertEqual(self.repo.find_user("admin"), user)
        self.assertIsNone(self.repo.find_user("nobody"))
        with self.assertRaises(ValueError):
            self.repo.add_user(user)

    def test_logs_create_and_cancel_events(self) -> None:
        self.repo.add_room("Shin-Kiba")
        self.repo.provision_availability(1, DAY)
        saved = self.repo.save_reservation(self._reservation(time(9, 0), time(10, 0)))
        self.repo.delete_reservation(saved.reservation_id)

        contents = (self.data_dir / "reservation_events.yaml").read_text(encoding="utf-8")
        self.assertIn("ROOM_CREATED", contents)
        self.assertIn("AVAILABILITY_PROVISIONED", contents)
        self.assertIn("RESERVATION_CREATED", contents)
        self.assertIn("RESERVATION_CANCELLED", contents)

    def test_user_event_does_not_log_password_hash(self) -> None:
        self.repo.add_user(User("taro", "secret-hash", "Taro", "Yamada"))
        contents = (self.data_dir / "reservation_events.yaml").read_text(encoding="utf-8")
        self.assertIn("USER_CREATED", contents)
        self.assertNotIn("secret-hash", contents)

    def test_corrupted_yaml_is_recovered(self) -> None:
        reservations_path = self.data_dir / "reservations.yaml"
        reservations_path.write_text("this: [is: invalid", encoding="utf-8")

        found = self.repo.find_reservations(SlotKey(1, DAY))

        self.assertEqual(found, [])
        self.assertIn("[]", reservations_path.read_text(encoding="utf-8"))
        backups = list(self.data_dir.glob("reservations.corrupt.*.yaml"))
        self.assertEqual(len(backups), 1)
        event_types = [event["event_type"] for event in self.repo.get_events()]
        self.assertIn("YAML_RECOVERED", event_types)

    def test_non_mapping_rows_are_skipped(self) -> None:
        (self.data_dir / "rooms.yaml").write_text("- room_id: 1\n  room_name: Shin-Kiba\n- just a string\n", encoding="utf-8")

        rooms = self.repo.list_rooms()

        self.assertEqual(len(rooms), 1)
        event_types = [event["event_type"] for event in self.repo.get_events()]
        self.assertIn("YAML_ROW_SKIPPED", event_types)


if __name__ == "__main__":
    unittest.main()
