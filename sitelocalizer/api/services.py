"""
Request-scoped construction of stores and translation backends
"""
from typing import Callable, Optional

from sitelocalizer.config import WEBFLOW_API_TOKEN, WEBFLOW_SITE_ID
from sitelocalizer.core.http_client import CallCounter
from sitelocalizer.llm import OpenAICompatibleBackend, TranslationBackend
from sitelocalizer.store import ContentStore, WebflowContentStore

StoreBuilder = Callable[[Optional[str], Optional[str]], ContentStore]
BackendBuilder = Callable[[CallCounter], TranslationBackend]


def build_webflow_store(token: Optional[str], site_id: Optional[str]) -> ContentStore:
    """Webflow store for one request; raises ConfigurationError without a token."""
    return WebflowContentStore(
        api_token=token or WEBFLOW_API_TOKEN,
        site_id=site_id or WEBFLOW_SITE_ID,
        call_counter=CallCounter(),
    )


def build_openai_backend(call_counter: CallCounter) -> TranslationBackend:
    return OpenAICompatibleBackend(call_counter=call_counter)


class ServiceFactory:
    """Builds the collaborators of one API request"""

    def __init__(
        self,
        store_builder: StoreBuilder = build_webflow_store,
        backend_builder: BackendBuilder = build_openai_backend
    ):
        self.store_builder = store_builder
        self.backend_builder = backend_builder

    def create_store(self, token: Optional[str] = None, site_id: Optional[str] = None) -> ContentStore:
        return self.store_builder(token, site_id)

    def create_backend(self, call_counter: Optional[CallCounter] = None) -> TranslationBackend:
        """Backend whose calls are counted on call_counter (usually the store's)."""
        return self.backend_builder(call_counter or CallCounter())
