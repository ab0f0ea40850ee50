import pytest

from conftest import at
from homesphere.exceptions import InvalidAttributeValue, UnknownAttribute, UnsupportedDeviceKind
from homesphere.models.attribute import BooleanAttribute, RangeAttribute
from homesphere.models.device import DeviceKind, OnlineState, PowerState
from homesphere.models.manufacturer import ConnectMode, Manufacturer, PowerMode
from homesphere.models.registry import WriteOutcome
from homesphere.models.usage import UsageEventKind
from homesphere.utils.event_system import ATTRIBUTE_CHANGED, DEVICE_CREATED, POWER_CHANGED


class TestDeviceFactory:
    def test_air_conditioner_attributes(self, factory):
        ac = factory.create(DeviceKind.AIR_CONDITIONER, 1, "Living Room AC")
        assert set(ac.registry.names()) == {"mode", "temperature", "fan_speed", "swing", "energy_saving"}
        assert ac.get_value("temperature") == 26
        assert ac.power_draw == 1000.0
        assert ac.kind is DeviceKind.AIR_CONDITIONER

    def test_each_builtin_kind(self, factory):
        light = factory.create("LIGHT_BULB", 2, "Lamp")
        lock = factory.create("SMART_LOCK", 3, "Door")
        scale = factory.create("BATHROOM_SCALE", 4, "Scale")
        assert set(light.registry.names()) == {"colorTemperature", "luminance"}
        assert set(lock.registry.names()) == {"powerMode", "lockStatus"}
        assert len(scale.registry) == 0
        assert lock.power_mode is PowerMode.BATTERY

    def test_devices_do_not_share_attributes(self, factory):
        first = factory.create("LIGHT_BULB", 1, "A")
        second = factory.create("LIGHT_BULB", 2, "B")
        first.set_value("luminance", 90)
        assert second.get_value("luminance") == 10

    def test_undefined_uses_caller_attributes(self, factory):
        attrs = [BooleanAttribute("open"), RangeAttribute("speed", 0, 3, 0)]
        fan = factory.create(DeviceKind.UNDEFINED, 5, "Window", attributes=attrs, power_draw=40)
        assert set(fan.registry.names()) == {"open", "speed"}
        fan.set_value("speed", 2)
        assert attrs[1].current == 0

    def test_overrides_and_manufacturer(self, factory):
        maker = Manufacturer.create("Acme", ["WIFI", "MATTER"])
        light = factory.create("LIGHT_BULB", 6, "Lamp", manufacturer=maker,
                               connect_mode=ConnectMode.MATTER, power_draw=60)
        assert light.manufacturer.supports(ConnectMode.MATTER)
        assert light.connect_mode is ConnectMode.MATTER
        assert light.power_draw == 60

    def test_unsupported_kind(self, factory):
        with pytest.raises(UnsupportedDeviceKind):
            factory.create("TOASTER", 1, "Toaster")

    def test_announces_creation(self, factory, events):
        seen = []
        events.on(DEVICE_CREATED, seen.append)
        factory.create("LIGHT_BULB", 1, "Lamp")
        factory.create("LIGHT_BULB", 2, "Quiet", announce=False)
        assert [event["device_id"] for event in seen] == [1]


class TestDeviceAttributes:
    def test_set_value_publishes_change(self, factory, events):
        seen = []
        events.on(ATTRIBUTE_CHANGED, seen.append)
        ac = factory.create("AIR_CONDITIONER", 1, "AC")
        assert ac.set_value("temperature", 22, actor="alice") is WriteOutcome.APPLIED
        assert seen[0]["old"] == 26
        assert seen[0]["new"] == 22
        assert seen[0]["actor"] == "alice"

    def test_rejected_write_is_silent(self, factory, events):
        seen = []
        events.on(ATTRIBUTE_CHANGED, seen.append)
        ac = factory.create("AIR_CONDITIONER", 1, "AC")
        assert ac.set_value("temperature", 40) is WriteOutcome.INVALID_VALUE
        assert ac.set_value("humidity", 40) is WriteOutcome.UNKNOWN_ATTRIBUTE
        assert seen == []
        assert ac.get_value("temperature") == 26

    def test_require_value_raises(self, factory):
        ac = factory.create("AIR_CONDITIONER", 1, "AC")
        with pytest.raises(UnknownAttribute):
            ac.require_value("humidity", 40)
        with pytest.raises(InvalidAttributeValue):
            ac.require_value("mode", "TURBO")
        ac.require_value("mode", "COOL")
        assert ac.get_value("mode") == "COOL"


class TestDeviceStateMachine:
    def test_initial_state(self, factory):
        light = factory.create("LIGHT_BULB", 1, "Lamp")
        assert light.online_state is OnlineState.OFFLINE
        assert light.power_state is PowerState.UNPOWERED
        assert light.last_powered_on_at is None

    def test_connect_disconnect(self, factory):
        light = factory.create("LIGHT_BULB", 1, "Lamp")
        light.connect()
        assert light.is_online
        light.disconnect()
        assert not light.is_online

    def test_open_close_records_interval(self, factory):
        ac = factory.create("AIR_CONDITIONER", 1, "AC")
        ac.open(at(0))
        interval = ac.close(at(3600))
        assert interval.start == at(0)
        assert interval.end == at(3600)
        assert interval.energy_kwh == pytest.approx(1.0)
        assert [event.kind for event in ac.ledger.events()] == [UsageEventKind.POWER_ON, UsageEventKind.POWER_OFF]

    def test_double_open_keeps_latest_start(self, factory):
        ac = factory.create("AIR_CONDITIONER", 1, "AC")
        ac.open(at(0))
        ac.open(at(600))
        ac.close(at(1200))
        intervals = ac.intervals()
        assert len(intervals) == 1
        assert intervals[0].start == at(600)
        assert ac.last_powered_on_at == at(600)

    def test_close_while_unpowered_records_no_interval(self, factory):
        ac = factory.create("AIR_CONDITIONER", 1, "AC")
        assert ac.close(at(100)) is None
        assert ac.intervals() == []
        assert len(ac.ledger) == 1

    def test_uses_clock_when_no_time_given(self, factory, clock):
        ac = factory.create("AIR_CONDITIONER", 1, "AC")
        ac.open()
        clock.advance(1800)
        interval = ac.close()
        assert interval.hours == pytest.approx(0.5)

    def test_power_events_published(self, factory, events):
        seen = []
        events.on(POWER_CHANGED, seen.append)
        light = factory.create("LIGHT_BULB", 1, "Lamp")
        light.open(at(0))
        light.close(at(60))
        assert [(event["old"], event["new"]) for event in seen] == [
            ("UNPOWERED", "POWERED"), ("POWERED", "UNPOWERED")]
        assert seen[1]["interval"] is not None

    def test_restore_state_is_silent(self, factory, events):
        seen = []
        events.on(POWER_CHANGED, seen.append)
        light = factory.create("LIGHT_BULB", 1, "Lamp")
        light.restore_state(OnlineState.ONLINE, PowerState.POWERED, at(0))
        assert light.is_online and light.is_powered
        assert seen == []
        assert len(light.ledger) == 0


class TestUsageLedger:
    def test_sorted_events_break_ties_by_insertion(self, factory):
        light = factory.create("LIGHT_BULB", 1, "Lamp")
        light.open(at(10))
        light.close(at(10))
        light.open(at(5))
        ordered = light.ledger.sorted_events()
        assert [event.timestamp for event in ordered] == [at(5), at(10), at(10)]
        assert ordered[1].kind is UsageEventKind.POWER_ON

    def test_zero_length_interval_dropped(self, factory):
        light = factory.create("LIGHT_BULB", 1, "Lamp")
        light.open(at(10))
        assert light.close(at(10)) is None
        assert light.intervals() == []

    def test_readers_get_snapshots(self, factory):
        light = factory.create("LIGHT_BULB", 1, "Lamp")
        light.open(at(0))
        snapshot = light.ledger.events()
        light.close(at(60))
        assert len(snapshot) == 1
        assert isinstance(snapshot, tuple)
