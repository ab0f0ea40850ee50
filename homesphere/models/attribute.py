"""Typed, validated device attributes.

Every attribute carries a kind tag fixed at registration time. Validation
dispatches on that tag, so a Range attribute never accepts a bool even though
``bool`` is a subclass of ``int`` in Python.
"""
from enum import Enum
from typing import Any, FrozenSet, Iterable, Optional, Union

from homesphere.exceptions import InvalidAttributeDefinition

AttributeValue = Union[bool, int, str]


class AttributeKind(str, Enum):
    BOOLEAN = "boolean"
    RANGE = "range"
    CHOICE = "choice"


class AttributeSpec:
    """Base class for a named device attribute with a default and a current value"""

    kind: AttributeKind

    def __init__(self, name: str, default: AttributeValue):
        if not name:
            raise InvalidAttributeDefinition("Attribute name must not be empty")
        self._name = name
        self._default = default
        self._current = default

    @property
    def name(self) -> str:
        return self._name

    @property
    def default(self) -> AttributeValue:
        return self._default

    @property
    def current(self) -> AttributeValue:
        return self._current

    def validate(self, candidate: Any) -> bool:
        raise NotImplementedError

    def set_value(self, candidate: Any) -> bool:
        """Commit ``candidate`` if it validates; leave the current value alone otherwise"""
        if not self.validate(candidate):
            return False
        self._current = candidate
        return True

    def reset(self):
        """Restore the default value"""
        self._current = self._default

    def copy(self) -> "AttributeSpec":
        """Return a fresh attribute with the same definition and the default value"""
        raise NotImplementedError

    def to_dict(self) -> dict:
        return {
            "name": self._name,
            "kind": self.kind.value,
            "default": self._default,
            "value": self._current,
        }

    def __eq__(self, other):
        if not isinstance(other, AttributeSpec):
            return NotImplemented
        return self.kind == other.kind and self._name == other._name

    def __hash__(self):
        return hash((self.kind, self._name))

    def __repr__(self):
        return f"<{self.__class__.__name__}({self._name}={self._current!r})>"


class BooleanAttribute(AttributeSpec):
    """On/off style attribute; accepts any bool"""

    kind = AttributeKind.BOOLEAN

    def __init__(self, name: str, default: bool = False):
        if not isinstance(default, bool):
            raise InvalidAttributeDefinition(f"Boolean attribute '{name}' needs a bool default, got {default!r}")
        super().__init__(name, default)

    def validate(self, candidate: Any) -> bool:
        return isinstance(candidate, bool)

    def copy(self) -> "BooleanAttribute":
        return BooleanAttribute(self.name, self.default)


class RangeAttribute(AttributeSpec):
    """Integer attribute constrained to the closed interval [min_value, max_value]"""

    kind = AttributeKind.RANGE

    def __init__(self, name: str, min_value: int, max_value: int, default: int, unit: str = ""):
        if min_value > max_value:
            raise InvalidAttributeDefinition(
                f"Range attribute '{name}' has min {min_value} greater than max {max_value}")
        self.min_value = min_value
        self.max_value = max_value
        self.unit = unit
        super().__init__(name, default)
        if not self.validate(default):
            raise InvalidAttributeDefinition(
                f"Default {default!r} for '{name}' is outside [{min_value}, {max_value}]")

    def validate(self, candidate: Any) -> bool:
        if isinstance(candidate, bool) or not isinstance(candidate, int):
            return False
        return self.min_value <= candidate <= self.max_value

    def copy(self) -> "RangeAttribute":
        return RangeAttribute(self.name, self.min_value, self.max_value, self.default, self.unit)

    def to_dict(self) -> dict:
        data = super().to_dict()
        data.update({"min": self.min_value, "max": self.max_value, "unit": self.unit})
        return data

    def __repr__(self):
        return f"<RangeAttribute({self.name}={self.current} {self.unit} [{self.min_value}-{self.max_value}])>"


class ChoiceAttribute(AttributeSpec):
    """String attribute restricted to a fixed, case-sensitive set of options"""

    kind = AttributeKind.CHOICE

    def __init__(self, name: str, default: str, allowed: Iterable[str]):
        self.allowed: FrozenSet[str] = frozenset(allowed)
        if default not in self.allowed:
            raise InvalidAttributeDefinition(
                f"Default {default!r} for '{name}' is not one of {sorted(self.allowed)}")
        super().__init__(name, default)

    def validate(self, candidate: Any) -> bool:
        return isinstance(candidate, str) and candidate in self.allowed

    def copy(self) -> "ChoiceAttribute":
        return ChoiceAttribute(self.name, self.default, self.allowed)

    def to_dict(self) -> dict:
        data = super().to_dict()
        data["allowed"] = sorted(self.allowed)
        return data


def attribute_from_dict(data: dict) -> AttributeSpec:
    """Rebuild an attribute definition from ``AttributeSpec.to_dict`` output.

    The stored ``value`` is applied when present and valid, so a record that
    went stale against its definition falls back to the default.
    """
    kind = AttributeKind(data["kind"])
    if kind is AttributeKind.BOOLEAN:
        attribute = BooleanAttribute(data["name"], data["default"])
    elif kind is AttributeKind.RANGE:
        attribute = RangeAttribute(data["name"], data["min"], data["max"], data["default"], data.get("unit", ""))
    else:
        attribute = ChoiceAttribute(data["name"], data["default"], data["allowed"])

    value: Optional[Any] = data.get("value")
    if value is not None:
        attribute.set_value(value)
    return attribute
