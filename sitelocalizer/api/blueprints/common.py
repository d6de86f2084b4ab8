"""
Helpers shared by the API blueprints
"""
from typing import Any, Dict, Optional, Tuple

from flask import jsonify, request

from sitelocalizer.core.exceptions import (
    AuthenticationError,
    ContentNotFoundError,
    RequestFailedError,
)


def request_credentials() -> Tuple[Optional[str], Optional[str]]:
    """Token override header and siteId query parameter of the current request"""
    return request.headers.get('x-webflow-token') or None, request.args.get('siteId') or None


def json_body() -> Optional[Dict[str, Any]]:
    """Parsed JSON object body, or None when the body is not a JSON object"""
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else None


def error_status(error: Exception) -> int:
    """HTTP status for an error raised while serving a request"""
    if isinstance(error, AuthenticationError):
        return 401
    if isinstance(error, ContentNotFoundError):
        return 404
    if isinstance(error, RequestFailedError) and error.status_code:
        return error.status_code
    return 500


def error_response(message: str, error: Exception):
    return jsonify({"error": message, "details": str(error)}), error_status(error)
