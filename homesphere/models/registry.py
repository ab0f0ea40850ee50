from enum import Enum
from threading import RLock
from typing import Any, Dict, Iterable, List, Optional, Tuple

from loguru import logger

from homesphere.exceptions import InvalidAttributeDefinition
from homesphere.models.attribute import AttributeSpec, AttributeValue


class WriteOutcome(str, Enum):
    """Result of a single attribute write or dry-run check"""
    APPLIED = "applied"
    UNKNOWN_ATTRIBUTE = "unknown_attribute"
    INVALID_VALUE = "invalid_value"

    def __bool__(self):
        return self is WriteOutcome.APPLIED


class DeviceRegistry:
    """Attribute map owned by a single device.

    The attribute set is fixed once the registry is built; only values change
    afterwards. Callers that share the owning device across threads pass in the
    device lock so writes and ledger appends serialize together.
    """

    def __init__(self, attributes: Iterable[AttributeSpec] = (), lock: Optional[RLock] = None):
        self._attributes: Dict[str, AttributeSpec] = {}
        self._lock = lock or RLock()
        for attribute in attributes:
            if attribute.name in self._attributes:
                raise InvalidAttributeDefinition(f"Duplicate attribute '{attribute.name}'")
            self._attributes[attribute.name] = attribute

    def has_attribute(self, name: str) -> bool:
        return name in self._attributes

    def get_value(self, name: str) -> Optional[AttributeValue]:
        with self._lock:
            attribute = self._attributes.get(name)
            return attribute.current if attribute is not None else None

    def get_attribute(self, name: str) -> Optional[AttributeSpec]:
        return self._attributes.get(name)

    def check(self, name: str, candidate: Any) -> WriteOutcome:
        """Dry-run a write without touching state"""
        attribute = self._attributes.get(name)
        if attribute is None:
            return WriteOutcome.UNKNOWN_ATTRIBUTE
        if not attribute.validate(candidate):
            return WriteOutcome.INVALID_VALUE
        return WriteOutcome.APPLIED

    def set_value(self, name: str, candidate: Any) -> Tuple[WriteOutcome, Optional[AttributeValue]]:
        """Write ``candidate`` to ``name``.

        Returns the outcome and the previous value, so the caller can publish
        an old -> new audit entry for applied writes.
        """
        with self._lock:
            attribute = self._attributes.get(name)
            if attribute is None:
                logger.debug(f"Rejected write to unknown attribute '{name}'")
                return WriteOutcome.UNKNOWN_ATTRIBUTE, None
            previous = attribute.current
            if not attribute.set_value(candidate):
                logger.debug(f"Rejected value {candidate!r} for attribute '{name}'")
                return WriteOutcome.INVALID_VALUE, previous
            return WriteOutcome.APPLIED, previous

    def reset(self, name: Optional[str] = None):
        """Reset one attribute, or all of them, to their defaults"""
        with self._lock:
            targets = [self._attributes[name]] if name is not None else self._attributes.values()
            for attribute in targets:
                attribute.reset()

    def names(self) -> List[str]:
        return list(self._attributes)

    def attributes(self) -> List[AttributeSpec]:
        return list(self._attributes.values())

    def snapshot(self) -> Dict[str, AttributeValue]:
        with self._lock:
            return {name: attribute.current for name, attribute in self._attributes.items()}

    def __contains__(self, name):
        return name in self._attributes

    def __len__(self):
        return len(self._attributes)

    def __iter__(self):
        return iter(self._attributes.values())
