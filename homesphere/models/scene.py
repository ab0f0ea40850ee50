"""Automation scenes: ordered, per-device batches of attribute writes."""
from concurrent.futures import Executor
from dataclasses import dataclass
from enum import Enum
from threading import Lock
from typing import Any, Dict, List, NamedTuple, Optional, Tuple

from loguru import logger

from homesphere.exceptions import InvalidSceneError
from homesphere.models.device import Device, OnlineState, PowerState
from homesphere.models.registry import WriteOutcome

ONLINE_STATUS_KEY = "online_status"
POWER_STATUS_KEY = "power_status"

INTERCEPTED_KEYS = {
    ONLINE_STATUS_KEY: OnlineState,
    POWER_STATUS_KEY: PowerState,
}


class BindingStatus(str, Enum):
    SUCCEEDED = "succeeded"
    UNKNOWN_ATTRIBUTE = "unknown_attribute"
    INVALID_VALUE = "invalid_value"
    EMPTY = "empty"
    FAILED = "failed"


@dataclass(frozen=True)
class BindingOutcome:
    device_id: int
    device_name: str
    status: BindingStatus
    attribute: Optional[str] = None
    detail: str = ""

    @property
    def succeeded(self) -> bool:
        return self.status is BindingStatus.SUCCEEDED


class ExecutionTally(NamedTuple):
    succeeded: int
    total: int


def _coerce_state(state_cls, value):
    """Map an intercepted key's value onto its state enum, or None if it is not a member"""
    if isinstance(value, state_cls):
        return value
    if isinstance(value, str):
        try:
            return state_cls(value)
        except ValueError:
            return None
    return None


def check_binding(device: Device, attributes: Dict[str, Any]) -> BindingOutcome:
    """Pre-flight a binding against its device without changing anything"""
    if not attributes:
        return BindingOutcome(device.id, device.name, BindingStatus.EMPTY, detail="no attributes bound")

    for name, value in attributes.items():
        state_cls = INTERCEPTED_KEYS.get(name)
        if state_cls is not None:
            if _coerce_state(state_cls, value) is None:
                return BindingOutcome(device.id, device.name, BindingStatus.INVALID_VALUE, name,
                                      f"{value!r} is not a valid {name}")
            continue

        outcome = device.check_value(name, value)
        if outcome is WriteOutcome.UNKNOWN_ATTRIBUTE:
            return BindingOutcome(device.id, device.name, BindingStatus.UNKNOWN_ATTRIBUTE, name,
                                  f"device has no attribute '{name}'")
        if outcome is WriteOutcome.INVALID_VALUE:
            return BindingOutcome(device.id, device.name, BindingStatus.INVALID_VALUE, name,
                                  f"{value!r} rejected by '{name}'")

    return BindingOutcome(device.id, device.name, BindingStatus.SUCCEEDED)


def apply_binding(device: Device, attributes: Dict[str, Any], actor: str = "scene") -> BindingOutcome:
    """Validate then apply a binding; power/online keys drive the state machine"""
    outcome = check_binding(device, attributes)
    if not outcome.succeeded:
        return outcome

    for name, value in attributes.items():
        if name == ONLINE_STATUS_KEY:
            if _coerce_state(OnlineState, value) is OnlineState.ONLINE:
                device.connect()
            else:
                device.disconnect()
        elif name == POWER_STATUS_KEY:
            if _coerce_state(PowerState, value) is PowerState.POWERED:
                device.open()
            else:
                device.close()
        else:
            written = device.set_value(name, value, actor=actor)
            if not written:
                # device changed between check and write
                return BindingOutcome(device.id, device.name, BindingStatus(written.value), name,
                                      f"write of {value!r} to '{name}' failed")
    return outcome


class AutomationScene:
    """An ordered collection of (device, attribute map) bindings.

    Binding a device that is already in the scene merges the new keys into
    its existing map (last write wins) and keeps the device's original
    position, so execution order is the order devices were first added.
    """

    def __init__(self, scene_id: str, name: str, description: str = ""):
        if not name or not name.strip():
            raise InvalidSceneError("Scene name must not be empty")
        self.id = scene_id
        self.name = name
        self.description = description or ""
        self._bindings: Dict[int, Tuple[Device, Dict[str, Any]]] = {}
        self._lock = Lock()
        self.last_outcomes: List[BindingOutcome] = []

    def add_binding(self, device: Device, attributes: Dict[str, Any]):
        """Bind attributes to a device, merging into an existing binding"""
        if device is None or not attributes:
            raise InvalidSceneError("A binding needs a device and at least one attribute")
        with self._lock:
            if device.id in self._bindings:
                self._bindings[device.id][1].update(attributes)
            else:
                self._bindings[device.id] = (device, dict(attributes))
        logger.debug(f"Scene '{self.name}': bound {sorted(attributes)} to device {device.id}")

    def add_attribute(self, device: Device, name: str, value: Any):
        self.add_binding(device, {name: value})

    def remove_attribute(self, device: Device, name: str) -> bool:
        with self._lock:
            binding = self._bindings.get(device.id)
            if binding is None or name not in binding[1]:
                return False
            del binding[1][name]
            return True

    def remove_device(self, device: Device) -> bool:
        with self._lock:
            return self._bindings.pop(device.id, None) is not None

    def clear(self):
        with self._lock:
            self._bindings.clear()

    def contains(self, device: Device) -> bool:
        return device.id in self._bindings

    def get_binding(self, device: Device) -> Dict[str, Any]:
        with self._lock:
            binding = self._bindings.get(device.id)
            return dict(binding[1]) if binding else {}

    def bindings(self) -> List[Tuple[Device, Dict[str, Any]]]:
        """Copy of the bindings in execution order"""
        with self._lock:
            return [(device, dict(attributes)) for device, attributes in self._bindings.values()]

    def devices(self) -> List[Device]:
        with self._lock:
            return [device for device, _ in self._bindings.values()]

    def validate(self) -> List[BindingOutcome]:
        """Dry run: check every binding without applying anything"""
        return [check_binding(device, attributes) for device, attributes in self.bindings()]

    def is_valid(self) -> bool:
        return all(outcome.succeeded for outcome in self.validate())

    def execute(self, executor: Optional[Executor] = None, actor: Optional[str] = None) -> ExecutionTally:
        """Apply every binding, continuing past failures.

        Each binding targets a different device, so an executor may run them
        concurrently; outcomes are still reported in scene order. Nothing is
        rolled back when a binding fails.
        """
        bindings = self.bindings()
        actor = actor or f"scene:{self.id}"
        logger.info(f"Executing scene '{self.name}' ({len(bindings)} bindings)")

        def run(binding):
            device, attributes = binding
            try:
                outcome = apply_binding(device, attributes, actor=actor)
            except Exception as e:
                logger.error(f"Scene '{self.name}': device {device.id} failed: {str(e)}")
                return BindingOutcome(device.id, device.name, BindingStatus.FAILED, detail=str(e))
            if outcome.succeeded:
                logger.info(f"Scene '{self.name}': device '{device.name}' applied")
            else:
                logger.warning(f"Scene '{self.name}': device '{device.name}' rejected ({outcome.status.value}: {outcome.detail})")
            return outcome

        if executor is None:
            outcomes = [run(binding) for binding in bindings]
        else:
            outcomes = list(executor.map(run, bindings))

        self.last_outcomes = outcomes
        succeeded = sum(1 for outcome in outcomes if outcome.succeeded)
        logger.info(f"Scene '{self.name}' finished: {succeeded}/{len(outcomes)} succeeded")
        return ExecutionTally(succeeded, len(outcomes))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "bindings": [
                {"device_id": device.id, "attributes": attributes}
                for device, attributes in self.bindings()
            ],
        }

    def __len__(self):
        return len(self._bindings)

    def __eq__(self, other):
        if not isinstance(other, AutomationScene):
            return NotImplemented
        return self.id == other.id

    def __hash__(self):
        return hash(self.id)

    def __repr__(self):
        return f"<AutomationScene(id='{self.id}', name='{self.name}', devices={len(self)})>"
