from datetime import date, datetime
from typing import Any, Callable, Dict, List, Optional

from loguru import logger

from homesphere.config import Settings
from homesphere.database.database import init_db, make_engine, make_session_factory, shutdown_db
from homesphere.database.store import HouseholdStore
from homesphere.models.device import Device
from homesphere.models.household import Household
from homesphere.models.manufacturer import Manufacturer
from homesphere.models.registry import WriteOutcome
from homesphere.models.scene import AutomationScene, BindingOutcome, ExecutionTally
from homesphere.services.device_factory import DeviceFactory
from homesphere.services.energy import EnergyAccountant
from homesphere.services.scene_engine import SceneEngine
from homesphere.utils.event_system import EventSystem
from homesphere.utils.running_log import RunningLog


class HomeSphereSystem:
    """Wires one household to its factory, scene engine, accountant and audit log.

    Everything that would otherwise be a module-level singleton lives on an
    instance of this class; the HTTP layer receives it through ``app.state``.
    """

    def __init__(self, household: Optional[Household] = None, settings: Optional[Settings] = None,
                 clock: Optional[Callable[[], datetime]] = None, store: Optional[HouseholdStore] = None):
        self.settings = settings or Settings()
        self.events = EventSystem()
        self.running_log = RunningLog()
        self.running_log.attach(self.events)

        self.household = household or Household(1)
        self.factory = DeviceFactory(events=self.events, clock=clock)
        self.scene_engine = SceneEngine(self.get_device, events=self.events,
                                        max_workers=self.settings.scene_workers, clock=clock)
        self.accountant = EnergyAccountant()

        self.store = store
        self.engine = None
        if self.store is not None:
            self.store.factory = self.factory

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None,
                      clock: Optional[Callable[[], datetime]] = None) -> "HomeSphereSystem":
        """Build a system backed by the configured database, restoring the stored household if any"""
        settings = settings or Settings.from_env()
        engine = make_engine(settings.database_url)
        init_db(engine)
        store = HouseholdStore(make_session_factory(engine))
        system = cls(settings=settings, clock=clock, store=store)
        system.engine = engine
        if store.exists():
            system.restore()
        return system

    # Devices

    def get_device(self, device_id: int) -> Device:
        return self.household.get_device(device_id)

    def create_device(self, kind, name: str, room_id: int, manufacturer: Optional[Manufacturer] = None,
                      device_id: Optional[int] = None, **options) -> Device:
        """Build a device through the factory and place it in a room"""
        self.household.get_room(room_id)
        device_id = device_id if device_id is not None else self.household.next_device_id()
        device = self.factory.create(kind, device_id, name, manufacturer=manufacturer, **options)
        self.household.add_device(device, room_id)
        return device

    def remove_device(self, device_id: int) -> Device:
        device = self.household.remove_device(device_id)
        self.scene_engine.forget_device(device)
        logger.info(f"Removed device '{device.name}' ({device_id})")
        return device

    def set_attribute(self, device_id: int, name: str, value: Any, actor: str = "api") -> WriteOutcome:
        return self.get_device(device_id).set_value(name, value, actor=actor)

    def set_power(self, device_id: int, powered: bool, at: Optional[datetime] = None):
        device = self.get_device(device_id)
        if powered:
            device.open(at)
        else:
            device.close(at)
        return device

    def set_connection(self, device_id: int, online: bool, at: Optional[datetime] = None):
        device = self.get_device(device_id)
        if online:
            device.connect(at)
        else:
            device.disconnect(at)
        return device

    # Scenes

    def create_scene(self, name: str, description: str = "", bindings: Optional[Dict[int, Dict[str, Any]]] = None) -> AutomationScene:
        scene_id = self.scene_engine.create_scene(name, description)
        for device_id, attributes in (bindings or {}).items():
            self.scene_engine.add_binding(scene_id, device_id, attributes)
        return self.scene_engine.get_scene(scene_id)

    def trigger_scene(self, scene_id: str, actor: Optional[str] = None) -> ExecutionTally:
        return self.scene_engine.trigger(scene_id, actor=actor)

    def validate_scene(self, scene_id: str) -> List[BindingOutcome]:
        return self.scene_engine.validate(scene_id)

    # Energy

    def energy(self, device_id: int, window_start: datetime, window_end: datetime) -> float:
        return self.accountant.report(self.get_device(device_id), window_start, window_end)

    def daily_energy(self, device_id: int, day: date) -> float:
        return self.accountant.daily_report(self.get_device(device_id), day)

    def monthly_energy(self, device_id: int, year: int, month: int) -> float:
        return self.accountant.monthly_report(self.get_device(device_id), year, month)

    def yearly_energy(self, device_id: int, year: int) -> float:
        return self.accountant.yearly_report(self.get_device(device_id), year)

    # Persistence

    def save(self):
        if self.store is None:
            logger.warning("save() called on a system without a store")
            return
        self.store.save(self.household, self.scene_engine.list_scenes())

    def restore(self, household_id: Optional[int] = None):
        """Replace the live household and scenes with the stored snapshot"""
        if self.store is None:
            logger.warning("restore() called on a system without a store")
            return
        household, scenes = self.store.load(household_id)
        self.household = household
        for scene in self.scene_engine.list_scenes():
            self.scene_engine.delete_scene(scene.id)
        for scene in scenes:
            self.scene_engine.add_scene(scene)

    def close(self):
        shutdown_db(self.engine)
        self.engine = None

    def __repr__(self):
        return f"<HomeSphereSystem(household={self.household!r}, scenes={len(self.scene_engine.list_scenes())})>"
