from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
from itertools import count
from threading import RLock
from typing import List, Optional, Tuple


class UsageEventKind(str, Enum):
    POWER_ON = "POWER_ON"
    POWER_OFF = "POWER_OFF"


@dataclass(frozen=True)
class UsageEvent:
    """A single power transition recorded in a device ledger"""
    timestamp: datetime
    kind: UsageEventKind
    sequence: int = 0


@dataclass(frozen=True)
class UsageInterval:
    """A closed ``[start, end)`` span during which a device drew power"""
    start: datetime
    end: datetime
    power_draw: float = 0.0

    @property
    def duration(self) -> timedelta:
        return self.end - self.start

    @property
    def hours(self) -> float:
        return self.duration.total_seconds() / 3600.0

    @property
    def energy_kwh(self) -> float:
        return self.power_draw * self.hours / 1000.0


class UsageLedger:
    """Append-only record of a device's power transitions.

    Events keep insertion order; readers get an immutable snapshot and sort it
    by (timestamp, sequence) themselves, so ties resolve in insertion order.
    Intervals committed by ``Device.close`` are stored alongside the events.
    """

    def __init__(self, lock: Optional[RLock] = None):
        self._lock = lock or RLock()
        self._events: List[UsageEvent] = []
        self._intervals: List[UsageInterval] = []
        self._sequence = count()

    def append(self, kind: UsageEventKind, timestamp: datetime) -> UsageEvent:
        with self._lock:
            event = UsageEvent(timestamp=timestamp, kind=UsageEventKind(kind), sequence=next(self._sequence))
            self._events.append(event)
            return event

    def commit_interval(self, interval: UsageInterval) -> bool:
        """Store a closed interval; empty or inverted spans are dropped"""
        if interval.end <= interval.start:
            return False
        with self._lock:
            self._intervals.append(interval)
            return True

    def events(self) -> Tuple[UsageEvent, ...]:
        with self._lock:
            return tuple(self._events)

    def intervals(self) -> Tuple[UsageInterval, ...]:
        with self._lock:
            return tuple(self._intervals)

    def snapshot(self) -> Tuple[Tuple[UsageEvent, ...], Tuple[UsageInterval, ...]]:
        """Events and intervals taken under one lock acquisition"""
        with self._lock:
            return tuple(self._events), tuple(self._intervals)

    def sorted_events(self) -> List[UsageEvent]:
        return sorted(self.events(), key=lambda event: (event.timestamp, event.sequence))

    def __len__(self):
        with self._lock:
            return len(self._events)
