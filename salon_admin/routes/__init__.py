# salon_admin/routes/__init__.py
"""
Application routes package
"""

from .auth import register_auth_routes
from .main import register_main_routes


def init_routes(app):
    """Initialize all application routes"""
    register_main_routes(app)
    register_auth_routes(app)
