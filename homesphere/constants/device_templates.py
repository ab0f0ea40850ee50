"""Device templates, room templates and demo scenes for the smart home"""

# Attribute definitions use the same shape as AttributeSpec.to_dict()
DEVICE_TEMPLATES = {
    "AIR_CONDITIONER": {
        "description": "Split air conditioner",
        "icon": "mdi-air-conditioner",
        "power_draw": 1000.0,
        "power_mode": "MAINS",
        "connect_mode": "WIFI",
        "attributes": [
            {
                "name": "mode",
                "kind": "choice",
                "default": "AUTO",
                "allowed": ["AUTO", "WARM", "COOL", "WIND", "DRY"]
            },
            {
                "name": "temperature",
                "kind": "range",
                "min": 16,
                "max": 30,
                "default": 26,
                "unit": "°C"
            },
            {
                "name": "fan_speed",
                "kind": "range",
                "min": 1,
                "max": 5,
                "default": 1,
                "unit": "level"
            },
            {
                "name": "swing",
                "kind": "boolean",
                "default": False
            },
            {
                "name": "energy_saving",
                "kind": "boolean",
                "default": False
            }
        ]
    },
    "LIGHT_BULB": {
        "description": "Dimmable smart bulb",
        "icon": "mdi-lightbulb",
        "power_draw": 100.0,
        "power_mode": "MAINS",
        "connect_mode": "ZIGBEE",
        "attributes": [
            {
                "name": "colorTemperature",
                "kind": "choice",
                "default": "WARM",
                "allowed": ["WARM", "COOL", "NORMAL"]
            },
            {
                "name": "luminance",
                "kind": "range",
                "min": 0,
                "max": 100,
                "default": 10,
                "unit": "%"
            }
        ]
    },
    "SMART_LOCK": {
        "description": "Door lock with remote control",
        "icon": "mdi-lock",
        "power_draw": 5.0,
        "power_mode": "BATTERY",
        "connect_mode": "BLUETOOTH",
        "attributes": [
            {
                "name": "powerMode",
                "kind": "choice",
                "default": "BATTERY",
                "allowed": ["MAINS", "BATTERY"]
            },
            {
                "name": "lockStatus",
                "kind": "boolean",
                "default": False
            }
        ]
    },
    "BATHROOM_SCALE": {
        "description": "Body weight scale",
        "icon": "mdi-scale-bathroom",
        "power_draw": 2.0,
        "power_mode": "BATTERY",
        "connect_mode": "BLUETOOTH",
        "attributes": []
    },
    "UNDEFINED": {
        "description": "Device with caller-defined attributes",
        "icon": "devices",
        "power_draw": 0.0,
        "power_mode": "MAINS",
        "connect_mode": "WIFI",
        "attributes": []
    }
}

ROOM_TEMPLATES = {
    'Living Room': {
        'room_type': 'living_room',
        'description': 'General living and relaxation area',
        'area': 30.0,
        'devices': [('AIR_CONDITIONER', 'Living Room AC'), ('LIGHT_BULB', 'Living Room Light')]
    },
    'Bedroom': {
        'room_type': 'bedroom',
        'description': 'Private sleeping quarters',
        'area': 18.0,
        'devices': [('AIR_CONDITIONER', 'Bedroom AC'), ('LIGHT_BULB', 'Bedside Lamp')]
    },
    'Bathroom': {
        'room_type': 'bathroom',
        'description': 'Hygiene and sanitation facilities',
        'area': 6.0,
        'devices': [('BATHROOM_SCALE', 'Bathroom Scale')]
    },
    'Garage': {
        'room_type': 'garage',
        'description': 'Vehicle storage and workshop area',
        'area': 20.0,
        'devices': [('SMART_LOCK', 'Garage Door Lock'), ('LIGHT_BULB', 'Garage Light')]
    }
}

# Bindings refer to devices by template name
SCENE_TEMPLATES = {
    'Good Morning': {
        'description': 'Lights up, bedroom cooling off, garage unlocked',
        'bindings': [
            ('Bedside Lamp', {'power_status': 'POWERED', 'luminance': 80, 'colorTemperature': 'COOL'}),
            ('Bedroom AC', {'power_status': 'UNPOWERED'}),
            ('Garage Door Lock', {'lockStatus': False})
        ]
    },
    'Movie Night': {
        'description': 'Dim warm light and a quiet, cool living room',
        'bindings': [
            ('Living Room Light', {'power_status': 'POWERED', 'luminance': 15, 'colorTemperature': 'WARM'}),
            ('Living Room AC', {'power_status': 'POWERED', 'mode': 'COOL', 'temperature': 23, 'fan_speed': 1})
        ]
    },
    'Leave Home': {
        'description': 'Everything off and the garage locked',
        'bindings': [
            ('Living Room Light', {'power_status': 'UNPOWERED'}),
            ('Living Room AC', {'power_status': 'UNPOWERED'}),
            ('Bedside Lamp', {'power_status': 'UNPOWERED'}),
            ('Bedroom AC', {'power_status': 'UNPOWERED'}),
            ('Garage Light', {'power_status': 'UNPOWERED'}),
            ('Garage Door Lock', {'lockStatus': True})
        ]
    }
}

DEFAULT_MANUFACTURER = {
    'name': 'HomeSphere Labs',
    'connect_modes': ['WIFI', 'BLUETOOTH', 'ZIGBEE']
}
