"""HomeSphere: smart-home device control, automation scenes and energy accounting"""

__version__ = "0.1.0"
