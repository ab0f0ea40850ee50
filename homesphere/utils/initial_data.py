from loguru import logger

from homesphere.constants.device_templates import DEFAULT_MANUFACTURER, ROOM_TEMPLATES, SCENE_TEMPLATES
from homesphere.models.manufacturer import Manufacturer


def initialize_rooms(system):
    """Create the template rooms that do not exist yet"""
    logger.info("Initializing rooms...")
    for room_name, template in ROOM_TEMPLATES.items():
        if system.household.find_room(room_name) is None:
            system.household.create_room(room_name, area=template['area'], room_type=template['room_type'])
    logger.success("Rooms initialized successfully.")


def initialize_devices(system, manufacturer: Manufacturer):
    """Create each room's template devices, skipping names already present"""
    existing = {device.name for device in system.household.devices}
    for room_name, template in ROOM_TEMPLATES.items():
        room = system.household.find_room(room_name)
        for kind, device_name in template['devices']:
            if device_name in existing:
                continue
            system.create_device(kind, device_name, room.id, manufacturer=manufacturer)
            existing.add(device_name)
    logger.success(f"Devices initialized: {len(system.household.devices)} in total")


def initialize_scenes(system):
    """Create template scenes whose devices can all be found by name"""
    devices_by_name = {device.name: device for device in system.household.devices}
    for scene_name, template in SCENE_TEMPLATES.items():
        if system.scene_engine.find_scene(scene_name) is not None:
            continue

        bindings = {}
        for device_name, attributes in template['bindings']:
            device = devices_by_name.get(device_name)
            if device is None:
                logger.error(f"Device '{device_name}' not found for scene {scene_name}")
                continue
            bindings[device.id] = attributes

        system.create_scene(scene_name, template['description'], bindings)
    logger.success("Scenes initialized successfully.")


def seed_demo_household(system):
    """Populate a system with the demo rooms, devices, admin user and scenes"""
    try:
        logger.info("Seeding demo household...")
        household = system.household
        if household.find_user('admin') is None:
            household.register_user('admin', 'admin', email='admin@homesphere.local', is_admin=True)

        manufacturer = Manufacturer.create(DEFAULT_MANUFACTURER['name'], DEFAULT_MANUFACTURER['connect_modes'])
        initialize_rooms(system)
        initialize_devices(system, manufacturer)
        initialize_scenes(system)
        logger.info("Demo household seeded")
    except Exception as e:
        logger.error(f"Error seeding demo household: {e}")
        raise
    return system
