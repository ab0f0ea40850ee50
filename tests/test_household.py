import pytest

from conftest import at
from homesphere.exceptions import InvalidDeviceError, InvalidRoomError, InvalidUserError
from homesphere.models.household import Household, Room
from homesphere.utils.event_system import EventSystem
from homesphere.utils.running_log import RunningLog


class TestUsers:
    def test_register_and_authenticate(self):
        household = Household(1)
        admin = household.register_user("admin", "secret", is_admin=True)
        assert household.authenticate("admin", "secret") is admin
        with pytest.raises(InvalidUserError):
            household.authenticate("admin", "wrong")

    def test_duplicate_and_empty_logins(self):
        household = Household(1)
        household.register_user("bob", "pw")
        with pytest.raises(InvalidUserError):
            household.register_user("bob", "other")
        with pytest.raises(InvalidUserError):
            household.register_user(" ", "pw")

    def test_admins_cannot_be_removed(self):
        household = Household(1)
        admin = household.register_user("admin", "pw", is_admin=True)
        guest = household.register_user("guest", "pw")
        household.remove_user(guest.user_id)
        with pytest.raises(InvalidUserError):
            household.remove_user(admin.user_id)
        assert household.users == [admin]


class TestRoomsAndDevices:
    def test_room_type_is_normalized(self):
        assert Room(1, "Living Room").room_type == "living_room"
        with pytest.raises(InvalidRoomError):
            Room(2, "")

    def test_device_lookup(self, household, factory):
        living = household.find_room("Living Room")
        lamp = factory.create("LIGHT_BULB", household.next_device_id(), "Lamp")
        household.add_device(lamp, living.id)
        assert household.get_device(lamp.id) is lamp
        assert household.room_of(lamp.id) is living
        assert household.next_device_id() == lamp.id + 1

    def test_device_ids_are_unique(self, household, factory):
        living = household.find_room("Living Room")
        bedroom = household.find_room("Bedroom")
        household.add_device(factory.create("LIGHT_BULB", 1, "Lamp"), living.id)
        with pytest.raises(InvalidDeviceError):
            household.add_device(factory.create("LIGHT_BULB", 1, "Other"), bedroom.id)

    def test_missing_lookups_raise(self, household):
        with pytest.raises(InvalidRoomError):
            household.get_room(99)
        with pytest.raises(InvalidDeviceError):
            household.get_device(99)
        with pytest.raises(InvalidDeviceError):
            household.remove_device(99)
        assert household.find_device(99) is None


class TestRunningLog:
    def test_records_device_activity(self, factory, events):
        log = RunningLog()
        log.attach(events)
        light = factory.create("LIGHT_BULB", 1, "Lamp")
        light.set_value("luminance", 50, actor="alice")
        light.open(at(0))
        light.close(at(3600))

        entries = log.entries(device_id=1)
        assert [entry.event for entry in entries] == [
            "Device created: Lamp",
            "Attribute changed: luminance",
            "Powered on",
            "Powered off",
        ]
        assert entries[1].actor == "alice"
        assert "0.1000 kWh" in entries[3].remarks

    def test_detach_and_bounded_size(self, factory):
        events = EventSystem()
        log = RunningLog(max_entries=2)
        log.attach(events)
        log.record("system", "one")
        log.record("system", "two")
        log.record("system", "three")
        assert [entry.event for entry in log.entries()] == ["two", "three"]
        log.detach(events)
        assert not events.has_handlers("attribute_changed")

    def test_failing_handler_does_not_stop_others(self):
        events = EventSystem()
        seen = []

        def broken(data):
            raise RuntimeError("boom")

        events.on("attribute_changed", broken)
        events.on("attribute_changed", seen.append)
        events.emit("attribute_changed", {"x": 1})
        assert seen == [{"x": 1}]
