from datetime import date, datetime, timezone

import pytest

from conftest import at
from homesphere.models.manufacturer import PowerMode
from homesphere.services.energy import (
    EnergyAccountant,
    day_window,
    month_window,
    rebuild_intervals,
    year_window,
)


@pytest.fixture
def accountant():
    return EnergyAccountant()


@pytest.fixture
def heater(factory):
    return factory.create("UNDEFINED", 1, "Heater", power_draw=1000)


class TestWindowReport:
    def test_single_interval_inside_window(self, accountant, heater):
        heater.open(at(0))
        heater.close(at(3600))
        assert accountant.report(heater, at(0), at(7200)) == pytest.approx(1.0)

    def test_partial_overlap_is_clipped(self, accountant, heater):
        heater.open(at(0))
        heater.close(at(7200))
        assert accountant.report(heater, at(1800), at(5400)) == pytest.approx(1.0)

    def test_open_interval_counts_to_window_end(self, accountant, heater):
        heater.open(at(0))
        assert accountant.report(heater, at(0), at(3600)) == pytest.approx(1.0)

    def test_interval_outside_window(self, accountant, heater):
        heater.open(at(0))
        heater.close(at(3600))
        assert accountant.report(heater, at(7200), at(10800)) == 0.0

    def test_events_after_window_are_ignored(self, accountant, heater):
        heater.open(at(7200))
        heater.close(at(10800))
        assert accountant.report(heater, at(0), at(3600)) == 0.0

    def test_multiple_intervals_sum(self, accountant, heater):
        heater.open(at(0))
        heater.close(at(1800))
        heater.open(at(3600))
        heater.close(at(5400))
        assert accountant.report(heater, at(0), at(7200)) == pytest.approx(1.0)

    def test_double_open_uses_latest_start(self, accountant, heater):
        heater.open(at(0))
        heater.open(at(3600))
        heater.close(at(7200))
        assert accountant.report(heater, at(0), at(7200)) == pytest.approx(1.0)

    def test_invalid_window_reports_zero(self, accountant, heater):
        heater.open(at(0))
        heater.close(at(3600))
        assert accountant.report(heater, at(3600), at(0)) == 0.0
        assert accountant.report(heater, None, at(3600)) == 0.0

    def test_offset_aware_window_over_naive_ledger_reports_zero(self, accountant, heater):
        heater.open(at(0))
        heater.close(at(3600))
        start = at(0).replace(tzinfo=timezone.utc)
        end = at(7200).replace(tzinfo=timezone.utc)
        assert accountant.report(heater, start, end) == 0.0
        assert accountant.report(heater, at(0), end) == 0.0
        assert accountant.report(heater, at(0), at(7200)) == pytest.approx(1.0)

    def test_battery_devices_report_zero(self, accountant, factory):
        lock = factory.create("SMART_LOCK", 2, "Door")
        assert lock.power_mode is PowerMode.BATTERY
        lock.open(at(0))
        lock.close(at(3600))
        assert accountant.report(lock, at(0), at(3600)) == 0.0
        assert accountant.total_consumption(lock) == 0.0

    def test_zero_power_draw(self, accountant, factory):
        fan = factory.create("UNDEFINED", 3, "Idle")
        fan.open(at(0))
        assert accountant.report(fan, at(0), at(3600)) == 0.0


class TestRebuildIntervals:
    def test_stray_off_is_ignored(self, heater):
        heater.close(at(0))
        heater.open(at(60))
        heater.close(at(120))
        closed, pending = rebuild_intervals(heater.ledger.events(), at(3600))
        assert closed == [(at(60), at(120))]
        assert pending is None

    def test_trailing_open(self, heater):
        heater.open(at(60))
        closed, pending = rebuild_intervals(heater.ledger.events(), at(3600))
        assert closed == []
        assert pending == at(60)


class TestCalendarReports:
    def test_windows(self):
        assert day_window(date(2024, 3, 1)) == (datetime(2024, 3, 1), datetime(2024, 3, 2))
        assert month_window(2024, 2) == (datetime(2024, 2, 1), datetime(2024, 3, 1))
        assert month_window(2024, 12) == (datetime(2024, 12, 1), datetime(2025, 1, 1))
        assert year_window(2024) == (datetime(2024, 1, 1), datetime(2025, 1, 1))

    def test_daily_monthly_yearly(self, accountant, heater):
        heater.open(datetime(2024, 3, 1, 23, 0))
        heater.close(datetime(2024, 3, 2, 1, 0))
        assert accountant.daily_report(heater, date(2024, 3, 1)) == pytest.approx(1.0)
        assert accountant.daily_report(heater, date(2024, 3, 2)) == pytest.approx(1.0)
        assert accountant.monthly_report(heater, 2024, 3) == pytest.approx(2.0)
        assert accountant.monthly_report(heater, 2024, 4) == 0.0
        assert accountant.yearly_report(heater, 2024) == pytest.approx(2.0)

    def test_total_consumption(self, accountant, heater):
        heater.open(at(0))
        heater.close(at(5400))
        assert accountant.total_consumption(heater) == pytest.approx(1.5)


class TestRollups:
    def test_room_and_household(self, accountant, factory, household):
        living = household.find_room("Living Room")
        bedroom = household.find_room("Bedroom")
        ac = factory.create("AIR_CONDITIONER", 1, "AC")
        light = factory.create("LIGHT_BULB", 2, "Lamp")
        household.add_device(ac, living.id)
        household.add_device(light, bedroom.id)
        ac.open(at(0))
        ac.close(at(3600))
        light.open(at(0))
        light.close(at(3600))

        room = accountant.room_report(living, at(0), at(3600))
        assert room.devices == {1: pytest.approx(1.0)}

        report = accountant.household_report(household, at(0), at(3600))
        assert report["Living Room"].total == pytest.approx(1.0)
        assert report["Bedroom"].total == pytest.approx(0.1)
        assert report["Bedroom"].to_dict()["devices"] == {2: pytest.approx(0.1)}
