"""
Centralized configuration
"""
import os
import logging
from pathlib import Path
from typing import List
from dotenv import load_dotenv

_config_logger = logging.getLogger('config')

# Check for DEBUG_MODE early (before .env is loaded, check environment)
_debug_mode = os.getenv('DEBUG_MODE', 'false').lower() == 'true'
if _debug_mode:
    logging.basicConfig(level=logging.DEBUG, format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')
    _config_logger.setLevel(logging.DEBUG)
    _config_logger.debug("DEBUG_MODE enabled - verbose logging active")

_config_dir = Path.cwd()
_env_file = _config_dir / '.env'
_env_example = _config_dir / '.env.example'
_env_exists = _env_file.exists()

if not _env_exists and os.getenv('SITELOCALIZER_QUIET') is None:
    _config_logger.warning(
        ".env configuration file not found in %s - using environment and defaults%s",
        _config_dir,
        " (copy .env.example to .env to configure)" if _env_example.exists() else ""
    )

_dotenv_result = load_dotenv(_env_file)
if _debug_mode:
    _config_logger.debug(f"load_dotenv() returned: {_dotenv_result}")

# Webflow content store
WEBFLOW_API_TOKEN = os.getenv('WEBFLOW_API_TOKEN', '')
WEBFLOW_SITE_ID = os.getenv('WEBFLOW_SITE_ID', '')
WEBFLOW_API_BASE = os.getenv('WEBFLOW_API_BASE', 'https://api.webflow.com/v2').rstrip('/')
WEBFLOW_ACCEPT_VERSION = os.getenv('WEBFLOW_ACCEPT_VERSION', '1.0.0')
DOM_PAGE_LIMIT = int(os.getenv('DOM_PAGE_LIMIT', '100'))
CMS_UPDATE_BATCH_SIZE = 100

# Translation backend (OpenAI-compatible chat completions)
LLM_API_ENDPOINT = os.getenv('LLM_API_ENDPOINT', 'https://api.openai.com/v1/chat/completions')
OPENAI_API_KEY = os.getenv('OPENAI_API_KEY', '')
DEFAULT_MODEL = os.getenv('DEFAULT_MODEL', 'gpt-4o-mini')
LLM_TEMPERATURE = float(os.getenv('LLM_TEMPERATURE', '0.2'))
REQUEST_TIMEOUT = int(os.getenv('REQUEST_TIMEOUT', '120'))
DEFAULT_SOURCE_LANGUAGE = os.getenv('DEFAULT_SOURCE_LANGUAGE', 'English')

# Pipeline tuning
TRANSLATION_BATCH_SIZE = int(os.getenv('TRANSLATION_BATCH_SIZE', '20'))
LOCALE_CONCURRENCY = int(os.getenv('LOCALE_CONCURRENCY', '3'))
MAX_HTTP_ATTEMPTS = int(os.getenv('MAX_HTTP_ATTEMPTS', '3'))
RETRY_BASE_DELAY = float(os.getenv('RETRY_BASE_DELAY', '1.0'))

# Server configuration
HOST = os.getenv('HOST', '127.0.0.1')
PORT = int(os.getenv('PORT', '5000'))

DEBUG_MODE = os.getenv('DEBUG_MODE', 'false').lower() == 'true'

# Translation tags wrapped around the backend's answer
TRANSLATE_TAG_IN = "<TRANSLATION>"
TRANSLATE_TAG_OUT = "</TRANSLATION>"


def _mask(secret: str) -> str:
    return '***' + secret[-4:] if secret else '(not set)'


if DEBUG_MODE or _debug_mode:
    _config_logger.setLevel(logging.DEBUG)
    _config_logger.debug("=" * 60)
    _config_logger.debug("LOADED CONFIGURATION VALUES:")
    _config_logger.debug(f"   WEBFLOW_API_BASE: {WEBFLOW_API_BASE}")
    _config_logger.debug(f"   WEBFLOW_SITE_ID: {WEBFLOW_SITE_ID or '(not set)'}")
    _config_logger.debug(f"   WEBFLOW_API_TOKEN: {_mask(WEBFLOW_API_TOKEN)}")
    _config_logger.debug(f"   LLM_API_ENDPOINT: {LLM_API_ENDPOINT}")
    _config_logger.debug(f"   DEFAULT_MODEL: {DEFAULT_MODEL}")
    _config_logger.debug(f"   OPENAI_API_KEY: {_mask(OPENAI_API_KEY)}")
    _config_logger.debug(f"   TRANSLATION_BATCH_SIZE: {TRANSLATION_BATCH_SIZE}")
    _config_logger.debug(f"   LOCALE_CONCURRENCY: {LOCALE_CONCURRENCY}")
    _config_logger.debug(f"   MAX_HTTP_ATTEMPTS: {MAX_HTTP_ATTEMPTS}")
    _config_logger.debug("=" * 60)


def validate_configuration(require_llm_key: bool = False) -> List[str]:
    """
    Return a list of human-readable configuration problems.

    An empty list means the entry points can start.
    """
    issues = []
    if not WEBFLOW_API_TOKEN:
        issues.append("WEBFLOW_API_TOKEN must be configured")
    if not WEBFLOW_SITE_ID:
        issues.append("WEBFLOW_SITE_ID must be configured")
    if require_llm_key and not OPENAI_API_KEY:
        issues.append("OPENAI_API_KEY must be configured")
    if LOCALE_CONCURRENCY < 1:
        issues.append("LOCALE_CONCURRENCY must be at least 1")
    if TRANSLATION_BATCH_SIZE < 1:
        issues.append("TRANSLATION_BATCH_SIZE must be at least 1")
    return issues
