from dataclasses import dataclass
from typing import Dict, List, Optional

from loguru import logger

from homesphere.exceptions import InvalidDeviceError, InvalidRoomError, InvalidUserError
from homesphere.models.device import Device


@dataclass
class User:
    """Household member; a single admin flag is the whole permission model"""
    user_id: int
    login_name: str
    password: str
    email: str = ""
    is_admin: bool = False

    def to_dict(self) -> dict:
        return {
            "user_id": self.user_id,
            "login_name": self.login_name,
            "email": self.email,
            "is_admin": self.is_admin,
        }


class Room:
    """Room model for smart home rooms"""

    def __init__(self, room_id: int, name: str, area: float = 0.0, room_type: str = None):
        if not name or not name.strip():
            raise InvalidRoomError("Room name must not be empty")
        self.id = room_id
        self.name = name
        self.area = area
        self.room_type = self._normalize_room_type(room_type or name)
        self._devices: Dict[int, Device] = {}

    def _normalize_room_type(self, room_type: str) -> str:
        """Normalize room type for consistent comparison"""
        return room_type.lower().strip().replace(" ", "_")

    def add_device(self, device: Device):
        if device is not None:
            self._devices[device.id] = device

    def remove_device(self, device_id: int) -> Optional[Device]:
        return self._devices.pop(device_id, None)

    def get_device(self, device_id: int) -> Optional[Device]:
        return self._devices.get(device_id)

    def contains_device(self, device_id: int) -> bool:
        return device_id in self._devices

    @property
    def devices(self) -> List[Device]:
        return list(self._devices.values())

    def __len__(self):
        return len(self._devices)

    def __repr__(self):
        return f"<Room(id={self.id}, name='{self.name}', type='{self.room_type}')>"


class Household:
    """Container for users, rooms and the devices in them.

    Rooms own devices for lifecycle purposes; everything else (scenes,
    accounting) looks devices up here by id.
    """

    def __init__(self, household_id: int, address: str = ""):
        self.id = household_id
        self.address = address
        self._users: Dict[int, User] = {}
        self._rooms: Dict[int, Room] = {}

    # Users

    def register_user(self, login_name: str, password: str, email: str = "", is_admin: bool = False) -> User:
        if not login_name or not login_name.strip():
            raise InvalidUserError("Login name must not be empty")
        if not password or not password.strip():
            raise InvalidUserError("Password must not be empty")
        if self.find_user(login_name) is not None:
            raise InvalidUserError(f"Login name '{login_name}' is already taken")
        user = User(self._next_id(self._users), login_name, password, email, is_admin)
        self._users[user.user_id] = user
        logger.info(f"Registered user '{login_name}' (admin={is_admin})")
        return user

    def add_user(self, user: User):
        self._users[user.user_id] = user

    def find_user(self, login_name: str) -> Optional[User]:
        for user in self._users.values():
            if user.login_name == login_name:
                return user
        return None

    def authenticate(self, login_name: str, password: str) -> User:
        user = self.find_user(login_name)
        if user is None or user.password != password:
            raise InvalidUserError("Unknown login name or wrong password")
        return user

    def remove_user(self, user_id: int):
        user = self._users.get(user_id)
        if user is None:
            raise InvalidUserError(f"User {user_id} does not exist")
        if user.is_admin:
            raise InvalidUserError("Admin users cannot be removed")
        del self._users[user_id]

    @property
    def users(self) -> List[User]:
        return list(self._users.values())

    # Rooms

    def create_room(self, name: str, area: float = 0.0, room_type: str = None) -> Room:
        room = Room(self._next_id(self._rooms), name, area, room_type)
        self._rooms[room.id] = room
        logger.info(f"Created room '{name}' ({room.id})")
        return room

    def add_room(self, room: Room):
        self._rooms[room.id] = room

    def get_room(self, room_id: int) -> Room:
        room = self._rooms.get(room_id)
        if room is None:
            raise InvalidRoomError(f"Room {room_id} does not exist")
        return room

    def remove_room(self, room_id: int) -> Room:
        room = self.get_room(room_id)
        del self._rooms[room_id]
        return room

    def find_room(self, name: str) -> Optional[Room]:
        for room in self._rooms.values():
            if room.name == name:
                return room
        return None

    @property
    def rooms(self) -> List[Room]:
        return list(self._rooms.values())

    # Devices

    def add_device(self, device: Device, room_id: int):
        if self.find_device(device.id) is not None:
            raise InvalidDeviceError(f"Device {device.id} already exists")
        self.get_room(room_id).add_device(device)

    def remove_device(self, device_id: int) -> Device:
        for room in self._rooms.values():
            device = room.remove_device(device_id)
            if device is not None:
                return device
        raise InvalidDeviceError(f"Device {device_id} does not exist")

    def find_device(self, device_id: int) -> Optional[Device]:
        for room in self._rooms.values():
            device = room.get_device(device_id)
            if device is not None:
                return device
        return None

    def get_device(self, device_id: int) -> Device:
        device = self.find_device(device_id)
        if device is None:
            raise InvalidDeviceError(f"Device {device_id} does not exist")
        return device

    def room_of(self, device_id: int) -> Optional[Room]:
        for room in self._rooms.values():
            if room.contains_device(device_id):
                return room
        return None

    @property
    def devices(self) -> List[Device]:
        return [device for room in self._rooms.values() for device in room.devices]

    def next_device_id(self) -> int:
        ids = [device.id for device in self.devices]
        return max(ids, default=0) + 1

    @staticmethod
    def _next_id(items: dict) -> int:
        return max(items, default=0) + 1

    def __repr__(self):
        return f"<Household(id={self.id}, rooms={len(self._rooms)}, devices={len(self.devices)})>"
