from __future__ import annotations

from datetime import datetime
from enum import Enum
from threading import RLock
from typing import TYPE_CHECKING, Any, Callable, Dict, Iterable, List, Optional

from loguru import logger

from homesphere.exceptions import InvalidAttributeValue, UnknownAttribute
from homesphere.models.attribute import AttributeSpec, AttributeValue
from homesphere.models.manufacturer import ConnectMode, Manufacturer, PowerMode
from homesphere.models.registry import DeviceRegistry, WriteOutcome
from homesphere.models.usage import UsageEvent, UsageEventKind, UsageInterval, UsageLedger
from homesphere.utils.event_system import ATTRIBUTE_CHANGED, CONNECTION_CHANGED, POWER_CHANGED

if TYPE_CHECKING:
    from homesphere.utils.event_system import EventSystem

Clock = Callable[[], datetime]


class DeviceKind(str, Enum):
    AIR_CONDITIONER = "AIR_CONDITIONER"
    LIGHT_BULB = "LIGHT_BULB"
    SMART_LOCK = "SMART_LOCK"
    BATHROOM_SCALE = "BATHROOM_SCALE"
    UNDEFINED = "UNDEFINED"


class OnlineState(str, Enum):
    ONLINE = "ONLINE"
    OFFLINE = "OFFLINE"


class PowerState(str, Enum):
    POWERED = "POWERED"
    UNPOWERED = "UNPOWERED"


class Device:
    """A smart-home device: identity, attributes, power/online state and usage ledger.

    All devices share the same command surface (``has_attribute``,
    ``get_value``, ``set_value`` plus the ``connect``/``disconnect``/``open``/
    ``close`` transitions), so callers never need to know the concrete kind.
    The attribute set is fixed at construction.
    """

    def __init__(self, device_id: int, name: str, manufacturer: Optional[Manufacturer] = None,
                 connect_mode: ConnectMode = ConnectMode.WIFI, power_mode: PowerMode = PowerMode.MAINS,
                 power_draw: float = 0.0, attributes: Iterable[AttributeSpec] = (),
                 kind: DeviceKind = DeviceKind.UNDEFINED, events: Optional["EventSystem"] = None,
                 clock: Optional[Clock] = None):
        if power_draw is None or power_draw < 0:
            raise ValueError(f"Power draw must be >= 0, got {power_draw}")
        self._id = device_id
        self.name = name
        self.manufacturer = manufacturer
        self.connect_mode = ConnectMode(connect_mode)
        self.power_mode = PowerMode(power_mode)
        self.power_draw = float(power_draw)
        self.kind = DeviceKind(kind)
        self.events = events
        self._clock: Clock = clock or datetime.now

        self._lock = RLock()
        self._registry = DeviceRegistry(attributes, lock=self._lock)
        self._ledger = UsageLedger(lock=self._lock)
        self._online_state = OnlineState.OFFLINE
        self._power_state = PowerState.UNPOWERED
        self._last_powered_on_at: Optional[datetime] = None

    @property
    def id(self) -> int:
        return self._id

    @property
    def online_state(self) -> OnlineState:
        return self._online_state

    @property
    def power_state(self) -> PowerState:
        return self._power_state

    @property
    def is_online(self) -> bool:
        return self._online_state is OnlineState.ONLINE

    @property
    def is_powered(self) -> bool:
        return self._power_state is PowerState.POWERED

    @property
    def last_powered_on_at(self) -> Optional[datetime]:
        return self._last_powered_on_at

    @property
    def registry(self) -> DeviceRegistry:
        return self._registry

    @property
    def ledger(self) -> UsageLedger:
        return self._ledger

    def now(self) -> datetime:
        return self._clock()

    # Attribute surface

    def has_attribute(self, name: str) -> bool:
        return self._registry.has_attribute(name)

    def get_value(self, name: str) -> Optional[AttributeValue]:
        return self._registry.get_value(name)

    def check_value(self, name: str, value: Any) -> WriteOutcome:
        return self._registry.check(name, value)

    def set_value(self, name: str, value: Any, actor: str = "system") -> WriteOutcome:
        """Validate and write an attribute, publishing the change when applied"""
        outcome, previous = self._registry.set_value(name, value)
        if not outcome:
            logger.warning(f"[Device {self._id}] Write {name}={value!r} rejected: {outcome.value}")
            return outcome

        logger.debug(f"[Device {self._id}] {name}: {previous!r} -> {value!r}")
        self._publish(ATTRIBUTE_CHANGED, {
            "actor": actor,
            "attribute": name,
            "old": previous,
            "new": value,
        })
        return outcome

    def require_value(self, name: str, value: Any, actor: str = "system"):
        """Strict variant of ``set_value`` for direct callers that want exceptions"""
        outcome = self.set_value(name, value, actor=actor)
        if outcome is WriteOutcome.UNKNOWN_ATTRIBUTE:
            raise UnknownAttribute(self._id, name)
        if outcome is WriteOutcome.INVALID_VALUE:
            raise InvalidAttributeValue(self._id, name, value)

    def attributes(self) -> Dict[str, AttributeValue]:
        return self._registry.snapshot()

    # State machine

    def connect(self, at: Optional[datetime] = None):
        self._set_online(OnlineState.ONLINE, at)

    def disconnect(self, at: Optional[datetime] = None):
        self._set_online(OnlineState.OFFLINE, at)

    def open(self, at: Optional[datetime] = None) -> UsageEvent:
        """Power the device on.

        Repeated calls without a ``close`` in between move the tracked start
        forward, so the eventual interval begins at the most recent call.
        Every call appends a POWER_ON event.
        """
        with self._lock:
            timestamp = at or self._clock()
            previous = self._power_state
            self._last_powered_on_at = timestamp
            self._power_state = PowerState.POWERED
            event = self._ledger.append(UsageEventKind.POWER_ON, timestamp)

        logger.debug(f"[Device {self._id}] Powered on at {timestamp.isoformat()}")
        self._publish(POWER_CHANGED, {
            "old": previous.value,
            "new": PowerState.POWERED.value,
            "timestamp": timestamp,
        })
        return event

    def close(self, at: Optional[datetime] = None) -> Optional[UsageInterval]:
        """Power the device off; returns the committed interval, if any"""
        committed = None
        with self._lock:
            timestamp = at or self._clock()
            previous = self._power_state
            if previous is PowerState.POWERED and self._last_powered_on_at is not None:
                candidate = UsageInterval(self._last_powered_on_at, timestamp, self.power_draw)
                if self._ledger.commit_interval(candidate):
                    committed = candidate
            self._power_state = PowerState.UNPOWERED
            self._ledger.append(UsageEventKind.POWER_OFF, timestamp)

        logger.debug(f"[Device {self._id}] Powered off at {timestamp.isoformat()}")
        self._publish(POWER_CHANGED, {
            "old": previous.value,
            "new": PowerState.UNPOWERED.value,
            "timestamp": timestamp,
            "interval": committed,
        })
        return committed

    def _set_online(self, state: OnlineState, at: Optional[datetime]):
        with self._lock:
            timestamp = at or self._clock()
            previous = self._online_state
            self._online_state = state
        logger.debug(f"[Device {self._id}] {previous.value} -> {state.value}")
        self._publish(CONNECTION_CHANGED, {
            "old": previous.value,
            "new": state.value,
            "timestamp": timestamp,
        })

    def restore_state(self, online_state: OnlineState, power_state: PowerState,
                      last_powered_on_at: Optional[datetime] = None):
        """Reinstate persisted state without emitting events or ledger entries"""
        with self._lock:
            self._online_state = OnlineState(online_state)
            self._power_state = PowerState(power_state)
            self._last_powered_on_at = last_powered_on_at

    def intervals(self) -> List[UsageInterval]:
        return list(self._ledger.intervals())

    def _publish(self, event_type: str, data: dict):
        if self.events is None:
            return
        payload = {"device_id": self._id, "device_name": self.name, "timestamp": self._clock()}
        payload.update(data)
        self.events.emit(event_type, payload)

    def to_dict(self) -> dict:
        return {
            "id": self._id,
            "name": self.name,
            "kind": self.kind.value,
            "manufacturer": self.manufacturer.name if self.manufacturer else None,
            "connect_mode": self.connect_mode.value,
            "power_mode": self.power_mode.value,
            "power_draw": self.power_draw,
            "online_state": self._online_state.value,
            "power_state": self._power_state.value,
            "attributes": self.attributes(),
        }

    def __eq__(self, other):
        if not isinstance(other, Device):
            return NotImplemented
        return self._id == other._id

    def __hash__(self):
        return hash(self._id)

    def __repr__(self):
        return f"<Device(id={self._id}, name='{self.name}', kind='{self.kind.value}')>"
