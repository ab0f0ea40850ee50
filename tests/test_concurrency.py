from datetime import timedelta
from threading import Barrier, Lock, Thread

import pytest

from conftest import T0
from homesphere.models.attribute import RangeAttribute
from homesphere.models.registry import WriteOutcome
from homesphere.models.usage import UsageEventKind
from homesphere.services.device_factory import DeviceFactory
from homesphere.services.energy import EnergyAccountant
from homesphere.utils.running_log import RunningLog

WRITERS = 4
READERS = 3
CYCLES = 150


class TickingClock:
    """Thread-safe clock that moves one second forward on every reading"""

    def __init__(self, start=T0):
        self._lock = Lock()
        self._current = start

    def __call__(self):
        with self._lock:
            self._current += timedelta(seconds=1)
            return self._current


def run_together(*targets):
    """Start every target at once and return the exceptions they raised"""
    errors = []
    barrier = Barrier(len(targets))

    def runner(target):
        barrier.wait()
        try:
            target()
        except Exception as e:
            errors.append(e)

    threads = [Thread(target=runner, args=(target,)) for target in targets]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()
    return errors


def adjacent_pairs(events):
    """(start, end) for every OFF event directly preceded by an ON event"""
    return [
        (previous.timestamp, event.timestamp)
        for previous, event in zip(events, events[1:])
        if previous.kind is UsageEventKind.POWER_ON and event.kind is UsageEventKind.POWER_OFF
    ]


@pytest.fixture
def heater(events):
    RunningLog().attach(events)
    factory = DeviceFactory(events=events, clock=TickingClock())
    return factory.create("UNDEFINED", 1, "Heater", power_draw=1000,
                          attributes=[RangeAttribute("level", 0, 10, 0)])


class TestSharedDevice:
    def test_parallel_power_cycles_and_reads(self, heater):
        accountant = EnergyAccountant()
        window = (T0, T0 + timedelta(days=1))
        outcomes = []

        def cycle():
            for i in range(CYCLES):
                heater.open()
                outcomes.append(heater.set_value("level", i % 11))
                heater.close()

        def adjust():
            for i in range(CYCLES):
                outcomes.append(heater.set_value("level", 10 - i % 11))

        def read():
            for _ in range(CYCLES):
                events, intervals = heater.ledger.snapshot()
                assert [(i.start, i.end) for i in intervals] == adjacent_pairs(events)
                assert accountant.report(heater, *window) >= 0.0

        errors = run_together(*([cycle] * WRITERS + [adjust] + [read] * READERS))
        assert errors == []

        events, intervals = heater.ledger.snapshot()
        assert len(events) == 2 * WRITERS * CYCLES
        assert [event.sequence for event in events] == sorted(event.sequence for event in events)
        timestamps = [event.timestamp for event in events]
        assert timestamps == sorted(set(timestamps))
        assert [(i.start, i.end) for i in intervals] == adjacent_pairs(events)

        assert all(outcome is WriteOutcome.APPLIED for outcome in outcomes)
        assert len(outcomes) == (WRITERS + 1) * CYCLES
        assert 0 <= heater.get_value("level") <= 10
        assert not heater.is_powered
        assert accountant.report(heater, *window) == pytest.approx(accountant.total_consumption(heater))

    def test_close_never_tears_a_snapshot(self, heater):
        def toggle():
            for _ in range(CYCLES):
                heater.open()
                heater.close()

        def read():
            for _ in range(CYCLES * 2):
                events, intervals = heater.ledger.snapshot()
                off_times = {event.timestamp for event in events if event.kind is UsageEventKind.POWER_OFF}
                assert all(interval.end in off_times for interval in intervals)

        assert run_together(toggle, toggle, read, read) == []
        assert len(heater.ledger) == 4 * CYCLES
        assert [(i.start, i.end) for i in heater.intervals()] == adjacent_pairs(heater.ledger.events())
