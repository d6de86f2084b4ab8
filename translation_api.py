"""
Flask web server for the localization API
"""
import sys
import logging
from datetime import datetime

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

# Reduce verbosity of werkzeug (Flask HTTP server logs)
logging.getLogger('werkzeug').setLevel(logging.WARNING)

from sitelocalizer.config import (
    DEFAULT_MODEL,
    HOST,
    LLM_API_ENDPOINT,
    PORT,
    WEBFLOW_API_BASE,
    validate_configuration,
)
from sitelocalizer.api import create_app


app = create_app()


def check_configuration():
    """Validate required configuration before starting server"""
    issues = validate_configuration()
    if not PORT or not isinstance(PORT, int):
        issues.append("PORT must be a valid integer")

    if issues:
        logger.error("\n" + "=" * 70)
        logger.error("CONFIGURATION ERROR")
        logger.error("=" * 70)
        for issue in issues:
            logger.error(f"   - {issue}")
        logger.error("\nSOLUTION:")
        logger.error("   1. Create a .env file from .env.example")
        logger.error("   2. Configure the required settings")
        logger.error("   3. Restart the application")
        logger.error("=" * 70 + "\n")
        raise ValueError("Configuration validation failed. See errors above.")

    logger.info("Configuration validated successfully")


if __name__ == '__main__':
    try:
        check_configuration()
    except ValueError:
        sys.exit(1)

    logger.info("=" * 60)
    logger.info(f"SITE LOCALIZATION SERVER (Version {datetime.now().strftime('%Y%m%d-%H%M')})")
    logger.info("=" * 60)
    logger.info(f"   - Webflow API: {WEBFLOW_API_BASE}")
    logger.info(f"   - LLM Endpoint: {LLM_API_ENDPOINT} ({DEFAULT_MODEL})")
    logger.info(f"   - API: http://{HOST}:{PORT}/api/")
    logger.info(f"   - Health Check: http://{HOST}:{PORT}/api/health")
    logger.info("")
    logger.info("Press Ctrl+C to stop the server")
    logger.info("")

    if HOST == '0.0.0.0':
        logger.warning("Server is binding to 0.0.0.0 (all network interfaces)")
        logger.warning("   For production, use a proper WSGI server like gunicorn:")
        logger.warning("   gunicorn --threads 8 -w 1 --bind 0.0.0.0:5000 translation_api:app")
        logger.info("")

    app.run(debug=False, host=HOST, port=PORT, threaded=True)
