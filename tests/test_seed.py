import tempfile
import unittest
from datetime import date
from pathlib import Path

from room_reservation import ReservationYamlRepository, RoleName
from room_reservation.auth import authenticate
from room_reservation.errors import AuthenticationError
from room_reservation.seed import DEMO_PASSWORD, DEMO_ROOM_NAMES, is_business_day, provision_business_days, seed_demo_data


class TestBusinessDays(unittest.TestCase):
    def test_weekends_are_not_business_days(self) -> None:
        self.assertTrue(is_business_day(date(2026, 2, 24)))
        self.assertFalse(is_business_day(date(2026, 2, 28)))
        self.assertFalse(is_business_day(date(2026, 3, 1)))

    def test_public_holidays_are_not_business_days(self) -> None:
        self.assertEqual(date(2026, 1, 1).weekday(), 3)
        self.assertFalse(is_business_day(date(2026, 1, 1), "KR"))
        self.assertFalse(is_business_day(date(2026, 12, 25), "US"))


class TestProvisioning(unittest.TestCase):
    def setUp(self) -> None:
        self._temp_dir = tempfile.TemporaryDirectory()
        self.addCleanup(self._temp_dir.cleanup)
        self.repo = ReservationYamlRepository(Path(self._temp_dir.name) / "data")

    def test_provision_business_days_skips_weekends(self) -> None:
        self.repo.add_room("Shin-Kiba")

        # Monday 2026-02-23 through Sunday 2026-03-01
        slots = provision_business_days(self.repo, [1], date(2026, 2, 23), days=7)

        dates = [slot.reserved_date for slot in slots]
        self.assertEqual(dates, [date(2026, 2, 23), date(2026, 2, 24), date(2026, 2, 25), date(2026, 2, 26), date(2026, 2, 27)])
        self.assertIsNone(self.repo.find_availability(1, date(2026, 2, 28)))

    def test_provision_business_days_rejects_empty_window(self) -> None:
        with self.assertRaises(ValueError):
            provision_business_days(self.repo, [1], date(2026, 2, 23), days=0)

    def test_seed_demo_data_creates_rooms_users_and_slots(self) -> None:
        slots = seed_demo_data(self.repo, today=date(2026, 2, 23), days=7)

        self.assertEqual([room.room_name for room in self.repo.list_rooms()], DEMO_ROOM_NAMES)
        self.assertEqual(len(slots), 5 * len(DEMO_ROOM_NAMES))
        self.assertEqual(authenticate(self.repo, "admin", DEMO_PASSWORD).role_name, RoleName.ADMIN)
        self.assertEqual(authenticate(self.repo, "user", DEMO_PASSWORD).role_name, RoleName.USER)
        with self.assertRaises(AuthenticationError):
            authenticate(self.repo, "user", "wrong")

    def test_seed_demo_data_is_repeatable(self) -> None:
        seed_demo_data(self.repo, today=date(2026, 2, 23), days=7)
        seed_demo_data(self.repo, today=date(2026, 2, 23), days=7)

        self.assertEqual(len(self.repo.list_rooms()), len(DEMO_ROOM_NAMES))
        self.assertEqual(len(self.repo.find_reservable_rooms(date(2026, 2, 23))), len(DEMO_ROOM_NAMES))


if __name__ == "__main__":
    unittest.main()
