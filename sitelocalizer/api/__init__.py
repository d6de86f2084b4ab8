"""
HTTP API for the localization pipeline
"""
from flask import Flask
from flask_cors import CORS

from .routes import configure_routes
from .services import ServiceFactory


def create_app(services: ServiceFactory = None) -> Flask:
    """Flask application with CORS and every route registered"""
    app = Flask(__name__)
    CORS(app)
    configure_routes(app, services)
    return app


__all__ = ['create_app', 'configure_routes', 'ServiceFactory']
