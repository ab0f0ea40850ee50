"""Energy accounting over device usage ledgers.

Consumption is rebuilt from the power on/off events rather than from stored
totals: events up to the end of the query window are replayed into
intervals, each interval is clipped to the window, and watts x hours / 1000
gives kWh.
"""
from calendar import monthrange
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta
from typing import Dict, Iterable, List, Optional, Tuple

from loguru import logger

from homesphere.exceptions import InvalidQueryWindow
from homesphere.models.device import Device
from homesphere.models.manufacturer import PowerMode
from homesphere.models.usage import UsageEvent, UsageEventKind


def rebuild_intervals(events: Iterable[UsageEvent], window_end: datetime) -> Tuple[List[Tuple[datetime, datetime]], Optional[datetime]]:
    """Pair ON/OFF events into closed spans.

    Returns the closed spans and the start of a trailing span that was still
    open at ``window_end`` (or None). A second ON while a span is pending
    replaces its start; an OFF with nothing pending is ignored.
    """
    ordered = sorted((event for event in events if event.timestamp <= window_end),
                     key=lambda event: (event.timestamp, event.sequence))
    closed = []
    pending: Optional[datetime] = None
    for event in ordered:
        if event.kind is UsageEventKind.POWER_ON:
            pending = event.timestamp
        elif pending is not None:
            closed.append((pending, event.timestamp))
            pending = None
    return closed, pending


def overlap_hours(start: datetime, end: datetime, window_start: datetime, window_end: datetime) -> float:
    actual_start = max(start, window_start)
    actual_end = min(end, window_end)
    if actual_end <= actual_start:
        return 0.0
    return (actual_end - actual_start).total_seconds() / 3600.0


@dataclass
class EnergyReport:
    """Per-device breakdown for a room or household query"""
    window_start: datetime
    window_end: datetime
    devices: Dict[int, float] = field(default_factory=dict)

    @property
    def total(self) -> float:
        return sum(self.devices.values())

    def to_dict(self) -> dict:
        return {
            "window_start": self.window_start.isoformat(),
            "window_end": self.window_end.isoformat(),
            "devices": dict(self.devices),
            "total_kwh": self.total,
        }


class EnergyAccountant:
    """Computes kWh consumed by devices within arbitrary time windows"""

    def report(self, device: Device, window_start: Optional[datetime], window_end: Optional[datetime]) -> float:
        """Energy in kWh consumed by ``device`` within ``[window_start, window_end]``.

        Invalid windows and battery-powered devices report 0.0.
        """
        events = device.ledger.events()
        try:
            self._check_window(window_start, window_end, events[0].timestamp if events else None)
        except InvalidQueryWindow as e:
            logger.warning(f"Energy report for device {device.id} skipped: {str(e)}")
            return 0.0

        if device.power_mode is PowerMode.BATTERY:
            return 0.0

        closed, open_start = rebuild_intervals(events, window_end)

        hours = sum(overlap_hours(start, end, window_start, window_end) for start, end in closed)
        if open_start is not None:
            hours += overlap_hours(open_start, window_end, window_start, window_end)

        energy = max(0.0, device.power_draw * hours / 1000.0)
        logger.debug(f"Device {device.id}: {energy:.4f} kWh between {window_start} and {window_end}")
        return energy

    def daily_report(self, device: Device, day: date) -> float:
        return self.report(device, *day_window(day))

    def monthly_report(self, device: Device, year: int, month: int) -> float:
        return self.report(device, *month_window(year, month))

    def yearly_report(self, device: Device, year: int) -> float:
        return self.report(device, *year_window(year))

    def total_consumption(self, device: Device) -> float:
        """Sum of every interval the device has committed on close"""
        if device.power_mode is PowerMode.BATTERY:
            return 0.0
        return sum(interval.energy_kwh for interval in device.ledger.intervals())

    def devices_report(self, devices: Iterable[Device], window_start: datetime, window_end: datetime) -> EnergyReport:
        report = EnergyReport(window_start, window_end)
        for device in devices:
            report.devices[device.id] = self.report(device, window_start, window_end)
        return report

    def room_report(self, room, window_start: datetime, window_end: datetime) -> EnergyReport:
        return self.devices_report(room.devices, window_start, window_end)

    def household_report(self, household, window_start: datetime, window_end: datetime) -> Dict[str, EnergyReport]:
        """Room name -> per-device report"""
        return {room.name: self.room_report(room, window_start, window_end) for room in household.rooms}

    @staticmethod
    def _check_window(window_start, window_end, recorded_at=None):
        if window_start is None or window_end is None:
            raise InvalidQueryWindow("query window needs both a start and an end")
        aware = _is_aware(window_start)
        if _is_aware(window_end) != aware:
            raise InvalidQueryWindow("window mixes offset-aware and naive bounds")
        if recorded_at is not None and _is_aware(recorded_at) != aware:
            raise InvalidQueryWindow("window and usage ledger disagree on timezone awareness")
        if window_start > window_end:
            raise InvalidQueryWindow(f"window start {window_start} is after window end {window_end}")


def _is_aware(value: datetime) -> bool:
    return value.tzinfo is not None and value.utcoffset() is not None


def day_window(day: date) -> Tuple[datetime, datetime]:
    start = datetime.combine(day, time.min)
    return start, start + timedelta(days=1)


def month_window(year: int, month: int) -> Tuple[datetime, datetime]:
    start = datetime(year, month, 1)
    return start, start + timedelta(days=monthrange(year, month)[1])


def year_window(year: int) -> Tuple[datetime, datetime]:
    return datetime(year, 1, 1), datetime(year + 1, 1, 1)
