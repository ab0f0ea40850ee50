from dataclasses import dataclass, field
from enum import Enum
from typing import FrozenSet, Iterable


class ConnectMode(str, Enum):
    WIFI = "WIFI"
    BLUETOOTH = "BLUETOOTH"
    ZIGBEE = "ZIGBEE"
    Z_WAVE = "Z_WAVE"
    THREAD = "THREAD"
    MATTER = "MATTER"


class PowerMode(str, Enum):
    BATTERY = "BATTERY"
    MAINS = "MAINS"


@dataclass(frozen=True)
class Manufacturer:
    """Device maker; shared by reference between the devices it built"""
    name: str
    supported_connect_modes: FrozenSet[ConnectMode] = field(default_factory=frozenset)

    def __post_init__(self):
        if not self.name or not self.name.strip():
            raise ValueError("Manufacturer name must not be empty")
        object.__setattr__(self, "supported_connect_modes",
                           frozenset(ConnectMode(mode) for mode in self.supported_connect_modes))

    @classmethod
    def create(cls, name: str, modes: Iterable[str] = ()) -> "Manufacturer":
        return cls(name=name, supported_connect_modes=frozenset(ConnectMode(mode) for mode in modes))

    def supports(self, connect_mode: ConnectMode) -> bool:
        return ConnectMode(connect_mode) in self.supported_connect_modes

    def to_dict(self) -> dict:
        return {"name": self.name, "connect_modes": sorted(mode.value for mode in self.supported_connect_modes)}
