from collections import deque
from dataclasses import dataclass
from datetime import datetime
from threading import Lock
from typing import List, Optional
import uuid

from loguru import logger

from homesphere.utils.event_system import (
    ATTRIBUTE_CHANGED,
    CONNECTION_CHANGED,
    DEVICE_CREATED,
    POWER_CHANGED,
    SCENE_EXECUTED,
    EventSystem,
)


@dataclass(frozen=True)
class LogEntry:
    log_id: str
    timestamp: datetime
    actor: str
    level: str
    event: str
    remarks: str = ""
    device_id: Optional[int] = None

    def to_dict(self) -> dict:
        return {
            "log_id": self.log_id,
            "timestamp": self.timestamp.isoformat(),
            "actor": self.actor,
            "level": self.level,
            "event": self.event,
            "remarks": self.remarks,
            "device_id": self.device_id,
        }

    def __str__(self):
        return f"LOG[{self.log_id}]({self.actor}) {self.timestamp.isoformat()} {self.level} {self.event} ({self.remarks})"


class RunningLog:
    """In-memory audit trail fed by the event system.

    Keeps the most recent ``max_entries`` entries; rendering them to files is
    left to whoever reads ``entries()``.
    """

    def __init__(self, max_entries: int = 10000):
        self._entries = deque(maxlen=max_entries)
        self._lock = Lock()

    def attach(self, events: EventSystem):
        events.on(ATTRIBUTE_CHANGED, self._on_attribute_changed)
        events.on(POWER_CHANGED, self._on_power_changed)
        events.on(CONNECTION_CHANGED, self._on_connection_changed)
        events.on(DEVICE_CREATED, self._on_device_created)
        events.on(SCENE_EXECUTED, self._on_scene_executed)

    def detach(self, events: EventSystem):
        events.off(ATTRIBUTE_CHANGED, self._on_attribute_changed)
        events.off(POWER_CHANGED, self._on_power_changed)
        events.off(CONNECTION_CHANGED, self._on_connection_changed)
        events.off(DEVICE_CREATED, self._on_device_created)
        events.off(SCENE_EXECUTED, self._on_scene_executed)

    def record(self, actor: str, event: str, level: str = "INFO", remarks: str = "",
               device_id: Optional[int] = None, timestamp: Optional[datetime] = None) -> LogEntry:
        entry = LogEntry(
            log_id=uuid.uuid4().hex[:12],
            timestamp=timestamp or datetime.now(),
            actor=actor,
            level=level,
            event=event,
            remarks=remarks,
            device_id=device_id,
        )
        with self._lock:
            self._entries.append(entry)
        return entry

    def entries(self, device_id: Optional[int] = None, level: Optional[str] = None) -> List[LogEntry]:
        with self._lock:
            entries = list(self._entries)
        if device_id is not None:
            entries = [entry for entry in entries if entry.device_id == device_id]
        if level is not None:
            entries = [entry for entry in entries if entry.level == level]
        return entries

    def clear(self):
        with self._lock:
            self._entries.clear()

    def __len__(self):
        with self._lock:
            return len(self._entries)

    def _on_attribute_changed(self, data: dict):
        self.record(
            actor=data.get("actor", "system"),
            event=f"Attribute changed: {data['attribute']}",
            remarks=f"{data['old']!r} -> {data['new']!r}",
            device_id=data["device_id"],
            timestamp=data.get("timestamp"),
        )

    def _on_power_changed(self, data: dict):
        event = "Powered on" if data["new"] == "POWERED" else "Powered off"
        interval = data.get("interval")
        remarks = f"{data['old']} -> {data['new']}"
        if interval is not None:
            remarks += f", used {interval.energy_kwh:.4f} kWh"
        self.record(str(data["device_id"]), event, remarks=remarks,
                    device_id=data["device_id"], timestamp=data.get("timestamp"))

    def _on_connection_changed(self, data: dict):
        event = "Connected" if data["new"] == "ONLINE" else "Disconnected"
        self.record(str(data["device_id"]), event, remarks=f"{data['old']} -> {data['new']}",
                    device_id=data["device_id"], timestamp=data.get("timestamp"))

    def _on_device_created(self, data: dict):
        self.record(str(data["device_id"]), f"Device created: {data['device_name']}",
                    remarks=data.get("kind", ""), device_id=data["device_id"], timestamp=data.get("timestamp"))

    def _on_scene_executed(self, data: dict):
        level = "INFO" if data["succeeded"] == data["total"] else "WARNING"
        self.record(data["actor"], f"Scene executed: {data['scene_name']}", level=level,
                    remarks=f"{data['succeeded']}/{data['total']} succeeded", timestamp=data.get("timestamp"))
        if level == "WARNING":
            logger.warning(f"Scene '{data['scene_name']}' partially applied: {data['succeeded']}/{data['total']}")
