from datetime import datetime, timedelta

import pytest

from homesphere.config import Settings
from homesphere.models.household import Household
from homesphere.services.device_factory import DeviceFactory
from homesphere.system import HomeSphereSystem
from homesphere.utils.event_system import EventSystem

T0 = datetime(2024, 3, 1, 8, 0, 0)


class FixedClock:
    """Callable clock that only moves when a test advances it"""

    def __init__(self, start: datetime = T0):
        self.current = start

    def __call__(self) -> datetime:
        return self.current

    def advance(self, seconds: float) -> datetime:
        self.current += timedelta(seconds=seconds)
        return self.current


def at(seconds: float) -> datetime:
    return T0 + timedelta(seconds=seconds)


@pytest.fixture
def clock():
    return FixedClock()


@pytest.fixture
def events():
    return EventSystem()


@pytest.fixture
def factory(events, clock):
    return DeviceFactory(events=events, clock=clock)


@pytest.fixture
def household():
    household = Household(1, "1 Example Street")
    household.create_room("Living Room", area=30.0)
    household.create_room("Bedroom", area=18.0)
    return household


@pytest.fixture
def system(clock):
    system = HomeSphereSystem(settings=Settings(), clock=clock)
    system.household.create_room("Living Room", area=30.0)
    system.household.create_room("Bedroom", area=18.0)
    return system
