from datetime import datetime
from typing import Callable, Iterable, Optional

from loguru import logger

from homesphere.constants.device_templates import DEVICE_TEMPLATES
from homesphere.exceptions import UnsupportedDeviceKind
from homesphere.models.attribute import AttributeSpec, attribute_from_dict
from homesphere.models.device import Device, DeviceKind
from homesphere.models.manufacturer import ConnectMode, Manufacturer, PowerMode
from homesphere.utils.event_system import DEVICE_CREATED, EventSystem


class DeviceFactory:
    """Builds devices whose attribute set is fixed by their kind.

    Built-in kinds take their attributes from ``DEVICE_TEMPLATES``; the
    UNDEFINED kind carries whatever attributes the caller supplies. Every
    device is wired to the factory's event system and clock.
    """

    def __init__(self, events: Optional[EventSystem] = None, clock: Optional[Callable[[], datetime]] = None,
                 templates: Optional[dict] = None):
        self.events = events
        self.clock = clock
        self.templates = templates or DEVICE_TEMPLATES

    def create(self, kind, device_id: int, name: str, manufacturer: Optional[Manufacturer] = None,
               connect_mode: Optional[ConnectMode] = None, power_mode: Optional[PowerMode] = None,
               power_draw: Optional[float] = None, attributes: Optional[Iterable[AttributeSpec]] = None,
               announce: bool = True) -> Device:
        """Create a device of ``kind``; unset metadata falls back to the kind's template.

        ``announce=False`` skips the creation event, for devices rebuilt from storage.
        """
        device_kind = self._resolve_kind(kind)
        template = self.templates[device_kind.value]

        if device_kind is DeviceKind.UNDEFINED:
            specs = [attribute.copy() for attribute in (attributes or ())]
        else:
            if attributes:
                logger.warning(f"Ignoring caller attributes for built-in kind {device_kind.value}")
            specs = [attribute_from_dict(definition) for definition in template["attributes"]]

        device = Device(
            device_id=device_id,
            name=name,
            manufacturer=manufacturer,
            connect_mode=connect_mode or template["connect_mode"],
            power_mode=power_mode or template["power_mode"],
            power_draw=template["power_draw"] if power_draw is None else power_draw,
            attributes=specs,
            kind=device_kind,
            events=self.events,
            clock=self.clock,
        )
        logger.info(f"Created {device_kind.value} device '{name}' ({device_id})")
        if announce and self.events is not None:
            self.events.emit(DEVICE_CREATED, {
                "device_id": device_id,
                "device_name": name,
                "timestamp": device.now(),
                "kind": device_kind.value,
            })
        return device

    def _resolve_kind(self, kind) -> DeviceKind:
        try:
            device_kind = DeviceKind(kind)
        except ValueError:
            raise UnsupportedDeviceKind(f"Unsupported device kind: {kind!r}") from None
        if device_kind.value not in self.templates:
            raise UnsupportedDeviceKind(f"No template for device kind: {device_kind.value}")
        return device_kind
