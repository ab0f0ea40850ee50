"""REST API for controlling HomeSphere devices, scenes and energy reports"""

from datetime import date, datetime
from typing import Any, Dict, List, Optional, Union

from fastapi import APIRouter, Body, Depends, HTTPException, Path, Query, Request
from loguru import logger
from pydantic import BaseModel, Field

from homesphere.exceptions import HomeSphereError, InvalidDeviceError, InvalidSceneError
from homesphere.models.device import Device
from homesphere.models.registry import WriteOutcome
from homesphere.models.scene import AutomationScene, BindingOutcome
from homesphere.services.energy import day_window, month_window, year_window
from homesphere.system import HomeSphereSystem

# Create API router
api_router = APIRouter(prefix="/api", tags=["homesphere"])

AttributeInput = Union[bool, int, str]

# -------------------------------
# Pydantic models for API
# -------------------------------

class AttributeWrite(BaseModel):
    name: str = Field(..., description="Attribute name, e.g. 'temperature'")
    value: AttributeInput = Field(..., description="New value (bool, int or str depending on the attribute)")
    actor: str = Field("api", description="Who requested the change, recorded in the running log")

class PowerCommand(BaseModel):
    powered: bool = Field(..., description="True to power on, False to power off")
    at: Optional[datetime] = Field(None, description="Transition time; defaults to now")

class ConnectionCommand(BaseModel):
    online: bool = Field(..., description="True to connect, False to disconnect")
    at: Optional[datetime] = Field(None, description="Transition time; defaults to now")

class BindingInput(BaseModel):
    device_id: int
    attributes: Dict[str, AttributeInput] = Field(..., min_length=1)

class SceneCreate(BaseModel):
    name: str = Field(..., min_length=1)
    description: str = ""
    bindings: List[BindingInput] = Field(default_factory=list)

class DeviceInfo(BaseModel):
    id: int
    name: str
    kind: str
    manufacturer: Optional[str] = None
    connect_mode: str
    power_mode: str
    power_draw: float
    online_state: str
    power_state: str
    attributes: Dict[str, Any]
    room_id: Optional[int] = None
    room_name: Optional[str] = None

class BindingResult(BaseModel):
    device_id: int
    device_name: str
    status: str
    attribute: Optional[str] = None
    detail: str = ""

class TriggerResult(BaseModel):
    scene_id: str
    succeeded: int
    total: int
    outcomes: List[BindingResult]

class ValidationResult(BaseModel):
    scene_id: str
    valid: bool
    outcomes: List[BindingResult]

class EnergyResult(BaseModel):
    device_id: int
    window_start: datetime
    window_end: datetime
    kwh: float

# -------------------------------
# Helpers
# -------------------------------

def get_system(request: Request) -> HomeSphereSystem:
    return request.app.state.system


def _local_naive(value: Optional[datetime]) -> Optional[datetime]:
    """Convert an offset-aware timestamp to naive local time, as device clocks record it"""
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone().replace(tzinfo=None)


def _device_or_404(system: HomeSphereSystem, device_id: int) -> Device:
    try:
        return system.get_device(device_id)
    except InvalidDeviceError as e:
        raise HTTPException(status_code=404, detail=str(e))


def _scene_or_404(system: HomeSphereSystem, scene_id: str) -> AutomationScene:
    try:
        return system.scene_engine.get_scene(scene_id)
    except InvalidSceneError as e:
        raise HTTPException(status_code=404, detail=str(e))


def _device_info(system: HomeSphereSystem, device: Device) -> dict:
    info = device.to_dict()
    room = system.household.room_of(device.id)
    info["room_id"] = room.id if room else None
    info["room_name"] = room.name if room else None
    return info


def _outcomes(outcomes: List[BindingOutcome]) -> List[dict]:
    return [
        {
            "device_id": outcome.device_id,
            "device_name": outcome.device_name,
            "status": outcome.status.value,
            "attribute": outcome.attribute,
            "detail": outcome.detail,
        }
        for outcome in outcomes
    ]

# -------------------------------
# Device endpoints
# -------------------------------

@api_router.get("/devices", response_model=List[DeviceInfo])
def get_devices(
    kind: Optional[str] = Query(None, description="Filter by device kind"),
    room_id: Optional[int] = Query(None, description="Filter by room ID"),
    system: HomeSphereSystem = Depends(get_system)
):
    """
    Get all devices or filter by kind or room
    """
    if room_id is not None:
        try:
            devices = system.household.get_room(room_id).devices
        except HomeSphereError as e:
            raise HTTPException(status_code=404, detail=str(e))
    else:
        devices = system.household.devices

    if kind:
        devices = [device for device in devices if device.kind.value == kind.upper()]
    return [_device_info(system, device) for device in devices]


@api_router.get("/devices/{device_id}", response_model=DeviceInfo)
def get_device(
    device_id: int = Path(..., description="The ID of the device to retrieve"),
    system: HomeSphereSystem = Depends(get_system)
):
    """
    Get detailed information about a specific device
    """
    return _device_info(system, _device_or_404(system, device_id))


@api_router.post("/devices/{device_id}/attributes", response_model=DeviceInfo)
def set_device_attribute(
    device_id: int = Path(..., description="The ID of the device to update"),
    command: AttributeWrite = Body(...),
    system: HomeSphereSystem = Depends(get_system)
):
    """
    Write one attribute; unknown names give 404, rejected values 400
    """
    device = _device_or_404(system, device_id)
    outcome = device.set_value(command.name, command.value, actor=command.actor)
    if outcome is WriteOutcome.UNKNOWN_ATTRIBUTE:
        raise HTTPException(status_code=404, detail=f"Device {device_id} has no attribute '{command.name}'")
    if outcome is WriteOutcome.INVALID_VALUE:
        raise HTTPException(status_code=400, detail=f"Value {command.value!r} rejected for '{command.name}'")
    return _device_info(system, device)


@api_router.post("/devices/{device_id}/power", response_model=DeviceInfo)
def set_device_power(
    device_id: int = Path(..., description="The ID of the device to power on or off"),
    command: PowerCommand = Body(...),
    system: HomeSphereSystem = Depends(get_system)
):
    device = _device_or_404(system, device_id)
    system.set_power(device.id, command.powered, at=_local_naive(command.at))
    return _device_info(system, device)


@api_router.post("/devices/{device_id}/connection", response_model=DeviceInfo)
def set_device_connection(
    device_id: int = Path(..., description="The ID of the device to connect or disconnect"),
    command: ConnectionCommand = Body(...),
    system: HomeSphereSystem = Depends(get_system)
):
    device = _device_or_404(system, device_id)
    system.set_connection(device.id, command.online, at=_local_naive(command.at))
    return _device_info(system, device)

# -------------------------------
# Scene endpoints
# -------------------------------

@api_router.get("/scenes")
def get_scenes(system: HomeSphereSystem = Depends(get_system)):
    return [scene.to_dict() for scene in system.scene_engine.list_scenes()]


@api_router.post("/scenes", status_code=201)
def create_scene(
    payload: SceneCreate = Body(...),
    system: HomeSphereSystem = Depends(get_system)
):
    """
    Create a scene, optionally with its initial bindings
    """
    devices = [_device_or_404(system, binding.device_id) for binding in payload.bindings]
    try:
        scene = system.create_scene(payload.name, payload.description)
    except InvalidSceneError as e:
        raise HTTPException(status_code=400, detail=str(e))
    for device, binding in zip(devices, payload.bindings):
        scene.add_binding(device, binding.attributes)
    logger.info(f"API created scene '{scene.name}' ({scene.id})")
    return scene.to_dict()


@api_router.post("/scenes/{scene_id}/bindings")
def add_scene_binding(
    scene_id: str = Path(..., description="The scene to extend"),
    binding: BindingInput = Body(...),
    system: HomeSphereSystem = Depends(get_system)
):
    """
    Bind attributes to a device; an existing binding for the device is merged
    """
    scene = _scene_or_404(system, scene_id)
    device = _device_or_404(system, binding.device_id)
    try:
        scene.add_binding(device, binding.attributes)
    except InvalidSceneError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return scene.to_dict()


@api_router.post("/scenes/{scene_id}/trigger", response_model=TriggerResult)
def trigger_scene(
    scene_id: str = Path(..., description="The scene to execute"),
    actor: Optional[str] = Query(None, description="Who triggered the scene"),
    system: HomeSphereSystem = Depends(get_system)
):
    scene = _scene_or_404(system, scene_id)
    tally = system.trigger_scene(scene.id, actor=actor)
    return {
        "scene_id": scene.id,
        "succeeded": tally.succeeded,
        "total": tally.total,
        "outcomes": _outcomes(scene.last_outcomes),
    }


@api_router.get("/scenes/{scene_id}/validate", response_model=ValidationResult)
def validate_scene(
    scene_id: str = Path(..., description="The scene to dry-run"),
    system: HomeSphereSystem = Depends(get_system)
):
    scene = _scene_or_404(system, scene_id)
    outcomes = scene.validate()
    return {
        "scene_id": scene.id,
        "valid": all(outcome.succeeded for outcome in outcomes),
        "outcomes": _outcomes(outcomes),
    }

# -------------------------------
# Energy and log endpoints
# -------------------------------

@api_router.get("/energy/{device_id}", response_model=EnergyResult)
def get_device_energy(
    device_id: int = Path(..., description="The device to account for"),
    start: Optional[datetime] = Query(None, description="Window start"),
    end: Optional[datetime] = Query(None, description="Window end"),
    day: Optional[date] = Query(None, description="Report a single day"),
    year: Optional[int] = Query(None, ge=1, le=9998, description="Report a year, or a month with 'month'"),
    month: Optional[int] = Query(None, ge=1, le=12, description="Month of 'year'"),
    system: HomeSphereSystem = Depends(get_system)
):
    """
    Energy in kWh for an explicit window, a day, a month or a year
    """
    device = _device_or_404(system, device_id)
    if start is not None or end is not None:
        if start is None or end is None:
            raise HTTPException(status_code=400, detail="Both 'start' and 'end' are required for a window")
        window = (_local_naive(start), _local_naive(end))
    elif day is not None:
        window = day_window(day)
    elif year is not None and month is not None:
        window = month_window(year, month)
    elif year is not None:
        window = year_window(year)
    else:
        raise HTTPException(status_code=400, detail="Give a window (start/end), a day, a year and month, or a year")

    kwh = system.accountant.report(device, *window)
    return {"device_id": device.id, "window_start": window[0], "window_end": window[1], "kwh": kwh}


@api_router.get("/logs")
def get_logs(
    device_id: Optional[int] = Query(None, description="Only entries for this device"),
    level: Optional[str] = Query(None, description="Only entries with this level"),
    system: HomeSphereSystem = Depends(get_system)
):
    entries = system.running_log.entries(device_id=device_id, level=level.upper() if level else None)
    return [entry.to_dict() for entry in entries]
