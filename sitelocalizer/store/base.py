"""
Content store interface.

The pipeline only talks to the store through this interface; the Webflow
implementation and the in-memory implementation used by tests both
provide it.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from sitelocalizer.core.http_client import CallCounter
from sitelocalizer.core.models import (
    ContentNode,
    DocumentRef,
    PropertyOverride,
    PropertyUpdate,
    SiteLocales,
    UpdatePayload,
    UpdateResponse,
)


class ContentStore(ABC):
    """Abstract content store"""

    call_counter: CallCounter

    @abstractmethod
    async def get_locales(self, site_id: Optional[str] = None) -> SiteLocales:
        pass

    @abstractmethod
    async def get_document_nodes(
        self,
        document: DocumentRef,
        locale_id: Optional[str] = None,
        branch_id: Optional[str] = None
    ) -> List[ContentNode]:
        """Fetch every node of a page or component DOM."""
        pass

    @abstractmethod
    async def update_document(
        self,
        document: DocumentRef,
        locale_id: str,
        updates: List[UpdatePayload]
    ) -> UpdateResponse:
        """Write localized content; per-node rejections come back in the response."""
        pass

    @abstractmethod
    async def get_component_properties(
        self,
        component_id: str,
        branch_id: Optional[str] = None
    ) -> List[PropertyOverride]:
        pass

    @abstractmethod
    async def set_component_properties(
        self,
        component_id: str,
        locale_id: str,
        properties: List[PropertyUpdate]
    ) -> UpdateResponse:
        pass

    @abstractmethod
    async def list_pages(self, site_id: Optional[str] = None) -> List[Dict[str, Any]]:
        pass

    @abstractmethod
    async def get_page_metadata(self, page_id: str, locale_id: Optional[str] = None) -> Dict[str, Any]:
        pass

    @abstractmethod
    async def update_page_metadata(
        self,
        page_id: str,
        locale_id: str,
        payload: Dict[str, Any]
    ) -> Dict[str, Any]:
        pass

    @abstractmethod
    async def list_collections(self, site_id: Optional[str] = None) -> List[Dict[str, Any]]:
        """CMS collections of the site."""
        pass

    @abstractmethod
    async def get_collection(self, collection_id: str) -> Dict[str, Any]:
        pass

    @abstractmethod
    async def list_collection_items(
        self,
        collection_id: str,
        cms_locale_id: Optional[str] = None,
        item_ids: Optional[List[str]] = None
    ) -> List[Dict[str, Any]]:
        pass

    @abstractmethod
    async def update_collection_items(
        self,
        collection_id: str,
        cms_locale_id: str,
        items: List[Dict[str, Any]]
    ) -> None:
        pass

    async def close(self):
        pass
