from .api import api_router, get_system

__all__ = ['api_router', 'get_system']
