"""Database records used to snapshot and restore a household"""
from sqlalchemy import JSON, Boolean, Column, DateTime, Float, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship

from homesphere.database.base import Base


class HouseholdRecord(Base):
    __tablename__ = 'households'

    id = Column(Integer, primary_key=True)
    address = Column(String(200), default="")

    users = relationship("UserRecord", back_populates="household", cascade="all, delete-orphan")
    rooms = relationship("RoomRecord", back_populates="household", cascade="all, delete-orphan")
    scenes = relationship("SceneRecord", back_populates="household", cascade="all, delete-orphan")

    def __repr__(self):
        return f"<HouseholdRecord(id={self.id}, address='{self.address}')>"


class UserRecord(Base):
    __tablename__ = 'users'

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, nullable=False)
    household_id = Column(Integer, ForeignKey('households.id'), nullable=False)
    login_name = Column(String(100), nullable=False)
    password = Column(String(200), nullable=False)
    email = Column(String(200), default="")
    is_admin = Column(Boolean, default=False)

    household = relationship("HouseholdRecord", back_populates="users")


class RoomRecord(Base):
    __tablename__ = 'rooms'

    id = Column(Integer, primary_key=True, autoincrement=True)
    room_id = Column(Integer, nullable=False)
    household_id = Column(Integer, ForeignKey('households.id'), nullable=False)
    name = Column(String(100), nullable=False)
    room_type = Column(String(50))
    area = Column(Float, default=0.0)

    household = relationship("HouseholdRecord", back_populates="rooms")
    devices = relationship("DeviceRecord", back_populates="room", cascade="all, delete-orphan")

    def __repr__(self):
        return f"<RoomRecord(name='{self.name}', type='{self.room_type}')>"


class DeviceRecord(Base):
    __tablename__ = 'devices'

    id = Column(Integer, primary_key=True, autoincrement=True)
    device_id = Column(Integer, nullable=False, index=True)
    room_pk = Column(Integer, ForeignKey('rooms.id'), nullable=False)
    name = Column(String(100), nullable=False)
    kind = Column(String(50), nullable=False)
    manufacturer_name = Column(String(100))
    manufacturer_modes = Column(JSON, default=list)
    connect_mode = Column(String(20))
    power_mode = Column(String(20))
    power_draw = Column(Float, default=0.0)
    online_state = Column(String(20))
    power_state = Column(String(20))
    last_powered_on_at = Column(DateTime)
    # AttributeSpec.to_dict() per attribute, definition and current value
    attributes = Column(JSON, default=list)

    room = relationship("RoomRecord", back_populates="devices")
    events = relationship("UsageEventRecord", back_populates="device", cascade="all, delete-orphan",
                          order_by="UsageEventRecord.sequence")
    intervals = relationship("UsageIntervalRecord", back_populates="device", cascade="all, delete-orphan",
                             order_by="UsageIntervalRecord.id")

    def __repr__(self):
        return f"<DeviceRecord(device_id={self.device_id}, name='{self.name}', kind='{self.kind}')>"


class UsageEventRecord(Base):
    __tablename__ = 'usage_events'

    id = Column(Integer, primary_key=True, autoincrement=True)
    device_pk = Column(Integer, ForeignKey('devices.id'), nullable=False)
    sequence = Column(Integer, nullable=False)
    timestamp = Column(DateTime, nullable=False)
    kind = Column(String(20), nullable=False)

    device = relationship("DeviceRecord", back_populates="events")


class UsageIntervalRecord(Base):
    __tablename__ = 'usage_intervals'

    id = Column(Integer, primary_key=True, autoincrement=True)
    device_pk = Column(Integer, ForeignKey('devices.id'), nullable=False)
    start = Column(DateTime, nullable=False)
    end = Column(DateTime, nullable=False)
    power_draw = Column(Float, default=0.0)

    device = relationship("DeviceRecord", back_populates="intervals")


class SceneRecord(Base):
    __tablename__ = 'scenes'

    id = Column(Integer, primary_key=True, autoincrement=True)
    scene_id = Column(String(64), nullable=False)
    household_id = Column(Integer, ForeignKey('households.id'), nullable=False)
    name = Column(String(100), nullable=False)
    description = Column(Text, default="")

    household = relationship("HouseholdRecord", back_populates="scenes")
    bindings = relationship("SceneBindingRecord", back_populates="scene", cascade="all, delete-orphan",
                            order_by="SceneBindingRecord.position")

    def __repr__(self):
        return f"<SceneRecord(scene_id='{self.scene_id}', name='{self.name}')>"


class SceneBindingRecord(Base):
    __tablename__ = 'scene_bindings'

    id = Column(Integer, primary_key=True, autoincrement=True)
    scene_pk = Column(Integer, ForeignKey('scenes.id'), nullable=False)
    position = Column(Integer, nullable=False)
    device_id = Column(Integer, nullable=False)
    attributes = Column(JSON, default=dict)

    scene = relationship("SceneRecord", back_populates="bindings")
