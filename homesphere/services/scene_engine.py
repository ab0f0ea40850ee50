from concurrent.futures import ThreadPoolExecutor
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional
import uuid

from loguru import logger

from homesphere.exceptions import InvalidSceneError
from homesphere.models.device import Device
from homesphere.models.scene import AutomationScene, BindingOutcome, ExecutionTally
from homesphere.utils.event_system import SCENE_EXECUTED, EventSystem


class SceneEngine:
    """Authoring and triggering surface for automation scenes.

    Devices are resolved through ``device_lookup`` (usually
    ``Household.get_device``), which raises for unknown ids. With
    ``max_workers`` > 0 bindings run on a thread pool; the default is
    sequential execution.
    """

    def __init__(self, device_lookup: Callable[[int], Device], events: Optional[EventSystem] = None,
                 max_workers: int = 0, clock: Optional[Callable[[], datetime]] = None):
        self._lookup = device_lookup
        self.events = events
        self.max_workers = max_workers
        self._clock = clock or datetime.now
        self._scenes: Dict[str, AutomationScene] = {}

    def create_scene(self, name: str, description: str = "", scene_id: Optional[str] = None) -> str:
        scene_id = scene_id or uuid.uuid4().hex[:12]
        if scene_id in self._scenes:
            raise InvalidSceneError(f"Scene id '{scene_id}' already exists")
        self._scenes[scene_id] = AutomationScene(scene_id, name, description)
        logger.info(f"Created scene '{name}' ({scene_id})")
        return scene_id

    def add_scene(self, scene: AutomationScene):
        if scene.id in self._scenes:
            raise InvalidSceneError(f"Scene id '{scene.id}' already exists")
        self._scenes[scene.id] = scene

    def get_scene(self, scene_id: str) -> AutomationScene:
        scene = self._scenes.get(scene_id)
        if scene is None:
            raise InvalidSceneError(f"Scene '{scene_id}' does not exist")
        return scene

    def find_scene(self, name: str) -> Optional[AutomationScene]:
        for scene in self._scenes.values():
            if scene.name == name:
                return scene
        return None

    def list_scenes(self) -> List[AutomationScene]:
        return list(self._scenes.values())

    def delete_scene(self, scene_id: str) -> AutomationScene:
        scene = self.get_scene(scene_id)
        del self._scenes[scene_id]
        logger.info(f"Deleted scene '{scene.name}' ({scene_id})")
        return scene

    def add_binding(self, scene_id: str, device_id: int, attributes: Dict[str, Any]):
        """Bind (or merge) an attribute map for a device into a scene"""
        scene = self.get_scene(scene_id)
        scene.add_binding(self._lookup(device_id), attributes)

    def remove_attribute(self, scene_id: str, device_id: int, name: str) -> bool:
        return self.get_scene(scene_id).remove_attribute(self._lookup(device_id), name)

    def remove_binding(self, scene_id: str, device_id: int) -> bool:
        return self.get_scene(scene_id).remove_device(self._lookup(device_id))

    def forget_device(self, device: Device):
        """Drop a device from every scene, e.g. after it was removed from its room"""
        for scene in self._scenes.values():
            scene.remove_device(device)

    def validate(self, scene_id: str) -> List[BindingOutcome]:
        return self.get_scene(scene_id).validate()

    def trigger(self, scene_id: str, actor: Optional[str] = None) -> ExecutionTally:
        """Execute a scene and report (succeeded, total)"""
        scene = self.get_scene(scene_id)
        if self.max_workers > 0 and len(scene) > 1:
            with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
                tally = scene.execute(executor=executor, actor=actor)
        else:
            tally = scene.execute(actor=actor)

        if self.events is not None:
            self.events.emit(SCENE_EXECUTED, {
                "scene_id": scene.id,
                "scene_name": scene.name,
                "actor": actor or f"scene:{scene.id}",
                "succeeded": tally.succeeded,
                "total": tally.total,
                "outcomes": list(scene.last_outcomes),
                "timestamp": self._clock(),
            })
        return tally
