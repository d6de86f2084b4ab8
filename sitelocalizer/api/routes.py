"""
Flask routes orchestrator for the localization API

This module serves as a lightweight coordinator that registers
all route blueprints:

- blueprints/site_routes.py: Health check and site browsing (locales, pages,
  page metadata and content, CMS collections)
- blueprints/localization_routes.py: Text, page, metadata and CMS localization
"""
import logging

from flask import jsonify

from .blueprints import create_site_blueprint, create_localization_blueprint
from .services import ServiceFactory

logger = logging.getLogger(__name__)


def configure_routes(app, services: ServiceFactory = None):
    """
    Configure Flask routes by registering all blueprints

    Args:
        app: Flask application instance
        services: Builds stores and backends per request
    """
    services = services or ServiceFactory()

    app.register_blueprint(create_site_blueprint(services))
    app.register_blueprint(create_localization_blueprint(services))

    _register_error_handlers(app)


def _register_error_handlers(app):
    """Register global error handlers"""

    @app.errorhandler(404)
    def route_not_found(error):
        return jsonify({"error": "API Endpoint not found"}), 404

    @app.errorhandler(500)
    def internal_server_error(error):
        logger.exception(f"Internal server error: {error}")
        return jsonify({"error": "Internal server error", "details": str(error)}), 500
