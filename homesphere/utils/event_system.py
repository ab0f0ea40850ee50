from typing import Callable, Dict, List
from threading import Lock
from loguru import logger

ATTRIBUTE_CHANGED = "attribute_changed"
POWER_CHANGED = "power_changed"
CONNECTION_CHANGED = "connection_changed"
DEVICE_CREATED = "device_created"
SCENE_EXECUTED = "scene_executed"

Handler = Callable[[dict], None]


class EventSystem:
    """Publish/subscribe hub for device and scene audit events.

    Devices publish through the instance they were built with; nothing here
    is process-global. Handlers run synchronously on the publishing thread and
    a failing handler never stops delivery to the others.
    """

    def __init__(self):
        self.handlers: Dict[str, List[Handler]] = {}
        self._lock = Lock()

    def emit(self, event_type: str, data: dict):
        """Emit an event to all registered handlers"""
        with self._lock:
            handlers = list(self.handlers.get(event_type, ()))
        for handler in handlers:
            try:
                handler(data)
            except Exception as e:
                logger.error(f"Error in event handler for {event_type}: {str(e)}")
                logger.debug(f"Handler: {getattr(handler, '__name__', handler)}, Data: {data}")

    def on(self, event_type: str, handler: Handler):
        """Register an event handler"""
        with self._lock:
            handlers = self.handlers.setdefault(event_type, [])
            if handler not in handlers:
                handlers.append(handler)

    def off(self, event_type: str, handler: Handler):
        """Remove an event handler"""
        with self._lock:
            if event_type in self.handlers and handler in self.handlers[event_type]:
                self.handlers[event_type].remove(handler)

    def has_handlers(self, event_type: str) -> bool:
        with self._lock:
            return bool(self.handlers.get(event_type))
