"""Models package for household entities"""

# Leaves first, then the types that build on them
from .attribute import AttributeSpec, BooleanAttribute, ChoiceAttribute, RangeAttribute
from .registry import DeviceRegistry, WriteOutcome
from .usage import UsageEvent, UsageEventKind, UsageInterval, UsageLedger
from .manufacturer import ConnectMode, Manufacturer, PowerMode
from .device import Device, DeviceKind, OnlineState, PowerState
from .scene import AutomationScene, BindingOutcome, BindingStatus, ExecutionTally
from .household import Household, Room, User

__all__ = [
    'AttributeSpec',
    'BooleanAttribute',
    'ChoiceAttribute',
    'RangeAttribute',
    'DeviceRegistry',
    'WriteOutcome',
    'UsageEvent',
    'UsageEventKind',
    'UsageInterval',
    'UsageLedger',
    'ConnectMode',
    'Manufacturer',
    'PowerMode',
    'Device',
    'DeviceKind',
    'OnlineState',
    'PowerState',
    'AutomationScene',
    'BindingOutcome',
    'BindingStatus',
    'ExecutionTally',
    'Household',
    'Room',
    'User',
]
