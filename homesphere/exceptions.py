"""Exception types raised by the HomeSphere core and its catalog"""


class HomeSphereError(Exception):
    """Base class for all HomeSphere errors"""


class InvalidAttributeDefinition(HomeSphereError, ValueError):
    """An attribute was declared with bounds or a default that cannot hold"""


class UnknownAttribute(HomeSphereError, KeyError):
    """A write or lookup referenced an attribute the device does not expose"""

    def __init__(self, device_id, name: str):
        super().__init__(f"Device {device_id} has no attribute '{name}'")
        self.device_id = device_id
        self.name = name

    def __str__(self):
        return self.args[0]


class InvalidAttributeValue(HomeSphereError, ValueError):
    """A candidate value was rejected by the attribute's validator"""

    def __init__(self, device_id, name: str, value):
        super().__init__(f"Value {value!r} is not valid for attribute '{name}' on device {device_id}")
        self.device_id = device_id
        self.name = name
        self.value = value


class InvalidQueryWindow(HomeSphereError, ValueError):
    """An energy query window is missing a bound or ends before it starts"""


class UnsupportedDeviceKind(HomeSphereError, ValueError):
    """The device factory was asked for a kind it cannot build"""


class InvalidDeviceError(HomeSphereError):
    pass


class InvalidRoomError(HomeSphereError):
    pass


class InvalidSceneError(HomeSphereError):
    pass


class InvalidUserError(HomeSphereError):
    pass
