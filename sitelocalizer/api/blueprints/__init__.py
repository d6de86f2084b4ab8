"""
API Routes
"""
from .site_routes import create_site_blueprint
from .localization_routes import create_localization_blueprint

__all__ = [
    'create_site_blueprint',
    'create_localization_blueprint'
]
