from typing import Iterable, List, Optional, Tuple

from loguru import logger
from sqlalchemy.orm import Session, sessionmaker

from homesphere.database.database import db_session
from homesphere.database.records import (
    DeviceRecord,
    HouseholdRecord,
    RoomRecord,
    SceneBindingRecord,
    SceneRecord,
    UsageEventRecord,
    UsageIntervalRecord,
    UserRecord,
)
from homesphere.exceptions import HomeSphereError
from homesphere.models.attribute import attribute_from_dict
from homesphere.models.device import Device, DeviceKind
from homesphere.models.household import Household, Room, User
from homesphere.models.manufacturer import Manufacturer
from homesphere.models.scene import AutomationScene
from homesphere.models.usage import UsageEventKind, UsageInterval
from homesphere.services.device_factory import DeviceFactory


class HouseholdStore:
    """Snapshots a household and its scenes into the database and back.

    ``save`` replaces whatever was stored for the household id; ``load``
    rebuilds live objects, replaying usage ledgers in their original order.
    Restoring never emits device events.
    """

    def __init__(self, session_factory: sessionmaker, factory: Optional[DeviceFactory] = None):
        self.session_factory = session_factory
        self.factory = factory or DeviceFactory()

    def save(self, household: Household, scenes: Iterable[AutomationScene] = ()):
        scenes = list(scenes)
        with db_session(self.session_factory) as session:
            existing = session.get(HouseholdRecord, household.id)
            if existing is not None:
                session.delete(existing)
                session.flush()

            record = HouseholdRecord(id=household.id, address=household.address)
            record.users = [self._user_record(user) for user in household.users]
            record.rooms = [self._room_record(room) for room in household.rooms]
            record.scenes = [self._scene_record(scene) for scene in scenes]
            session.add(record)

        logger.info(f"Saved household {household.id}: {len(household.rooms)} rooms, "
                    f"{len(household.devices)} devices, {len(scenes)} scenes")

    def load(self, household_id: Optional[int] = None) -> Tuple[Household, List[AutomationScene]]:
        with db_session(self.session_factory) as session:
            record = self._find(session, household_id)
            household = Household(record.id, record.address or "")
            for user_record in record.users:
                household.add_user(User(user_record.user_id, user_record.login_name, user_record.password,
                                        user_record.email or "", bool(user_record.is_admin)))

            for room_record in sorted(record.rooms, key=lambda r: r.room_id):
                room = Room(room_record.room_id, room_record.name, room_record.area or 0.0, room_record.room_type)
                household.add_room(room)
                for device_record in sorted(room_record.devices, key=lambda d: d.device_id):
                    room.add_device(self._restore_device(device_record))

            scenes = [self._restore_scene(scene_record, household) for scene_record in record.scenes]

        logger.info(f"Loaded household {household.id}: {len(household.rooms)} rooms, "
                    f"{len(household.devices)} devices, {len(scenes)} scenes")
        return household, scenes

    def exists(self, household_id: Optional[int] = None) -> bool:
        with db_session(self.session_factory) as session:
            query = session.query(HouseholdRecord)
            if household_id is not None:
                query = query.filter(HouseholdRecord.id == household_id)
            return query.first() is not None

    @staticmethod
    def _find(session: Session, household_id: Optional[int]) -> HouseholdRecord:
        if household_id is None:
            record = session.query(HouseholdRecord).order_by(HouseholdRecord.id).first()
        else:
            record = session.get(HouseholdRecord, household_id)
        if record is None:
            raise HomeSphereError(f"No stored household{'' if household_id is None else f' {household_id}'}")
        return record

    # Live objects -> records

    @staticmethod
    def _user_record(user: User) -> UserRecord:
        return UserRecord(user_id=user.user_id, login_name=user.login_name, password=user.password,
                          email=user.email, is_admin=user.is_admin)

    def _room_record(self, room: Room) -> RoomRecord:
        record = RoomRecord(room_id=room.id, name=room.name, room_type=room.room_type, area=room.area)
        record.devices = [self._device_record(device) for device in room.devices]
        return record

    @staticmethod
    def _device_record(device: Device) -> DeviceRecord:
        manufacturer = device.manufacturer
        events, intervals = device.ledger.snapshot()
        record = DeviceRecord(
            device_id=device.id,
            name=device.name,
            kind=device.kind.value,
            manufacturer_name=manufacturer.name if manufacturer else None,
            manufacturer_modes=manufacturer.to_dict()["connect_modes"] if manufacturer else [],
            connect_mode=device.connect_mode.value,
            power_mode=device.power_mode.value,
            power_draw=device.power_draw,
            online_state=device.online_state.value,
            power_state=device.power_state.value,
            last_powered_on_at=device.last_powered_on_at,
            attributes=[attribute.to_dict() for attribute in device.registry.attributes()],
        )
        record.events = [UsageEventRecord(sequence=event.sequence, timestamp=event.timestamp, kind=event.kind.value)
                         for event in events]
        record.intervals = [UsageIntervalRecord(start=interval.start, end=interval.end,
                                                power_draw=interval.power_draw)
                            for interval in intervals]
        return record

    @staticmethod
    def _scene_record(scene: AutomationScene) -> SceneRecord:
        record = SceneRecord(scene_id=scene.id, name=scene.name, description=scene.description)
        record.bindings = [SceneBindingRecord(position=position, device_id=device.id, attributes=dict(attributes))
                           for position, (device, attributes) in enumerate(scene.bindings())]
        return record

    # Records -> live objects

    def _restore_device(self, record: DeviceRecord) -> Device:
        manufacturer = None
        if record.manufacturer_name:
            manufacturer = Manufacturer.create(record.manufacturer_name, record.manufacturer_modes or ())

        kind = DeviceKind(record.kind)
        definitions = record.attributes or []
        device = self.factory.create(
            kind,
            record.device_id,
            record.name,
            manufacturer=manufacturer,
            connect_mode=record.connect_mode,
            power_mode=record.power_mode,
            power_draw=record.power_draw,
            attributes=[attribute_from_dict(d) for d in definitions] if kind is DeviceKind.UNDEFINED else None,
            announce=False,
        )
        # factory copies start from defaults
        for definition in definitions:
            if definition.get("value") is not None and device.has_attribute(definition["name"]):
                device.registry.set_value(definition["name"], definition["value"])

        device.restore_state(record.online_state, record.power_state, record.last_powered_on_at)
        for event in record.events:
            device.ledger.append(UsageEventKind(event.kind), event.timestamp)
        for interval in record.intervals:
            device.ledger.commit_interval(UsageInterval(interval.start, interval.end, interval.power_draw or 0.0))
        return device

    @staticmethod
    def _restore_scene(record: SceneRecord, household: Household) -> AutomationScene:
        scene = AutomationScene(record.scene_id, record.name, record.description or "")
        for binding in record.bindings:
            device = household.find_device(binding.device_id)
            if device is None:
                logger.warning(f"Scene '{record.name}': device {binding.device_id} no longer exists, binding dropped")
                continue
            if binding.attributes:
                scene.add_binding(device, binding.attributes)
        return scene
