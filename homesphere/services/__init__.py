from .device_factory import DeviceFactory
from .energy import EnergyAccountant, EnergyReport
from .scene_engine import SceneEngine

__all__ = ['DeviceFactory', 'EnergyAccountant', 'EnergyReport', 'SceneEngine']
