"""
In-memory content store for tests.

Holds typed nodes per document and records every write. Rejections can be
scripted per (document, locale) to exercise the corrective retry path, and
fetch failures can be injected per document.
"""

import copy
from typing import Any, Callable, Dict, List, Optional, Tuple

from sitelocalizer.core.exceptions import ContentNotFoundError
from sitelocalizer.core.http_client import CallCounter
from sitelocalizer.core.models import (
    ContentNode,
    DocumentKind,
    DocumentRef,
    FieldError,
    PropertyOverride,
    PropertyUpdate,
    SiteLocales,
    UpdatePayload,
    UpdateResponse,
)
from .base import ContentStore

# Decides the store's answer to a write: receives the submitted payload
# list and returns the errors to report.
RejectFn = Callable[[List[Any]], List[FieldError]]


class InMemoryContentStore(ContentStore):
    """ContentStore keeping everything in dictionaries"""

    def __init__(self, locales: Optional[SiteLocales] = None):
        self.locales = locales or SiteLocales(primary=None)
        self.pages: Dict[str, List[ContentNode]] = {}
        self.components: Dict[str, List[ContentNode]] = {}
        self.component_properties: Dict[str, List[PropertyOverride]] = {}
        self.page_metadata: Dict[str, Dict[str, Any]] = {}
        self.collections: Dict[str, Dict[str, Any]] = {}
        self.collection_items: Dict[str, List[Dict[str, Any]]] = {}
        self.call_counter = CallCounter()

        # Writes: (document, locale_id) -> list of submitted payload lists
        self.document_writes: Dict[Tuple[DocumentRef, str], List[List[UpdatePayload]]] = {}
        self.property_writes: Dict[Tuple[str, str], List[List[PropertyUpdate]]] = {}
        self.metadata_writes: Dict[Tuple[str, str], Dict[str, Any]] = {}
        self.collection_writes: Dict[Tuple[str, str], List[Dict[str, Any]]] = {}

        self.fetch_log: List[DocumentRef] = []
        self._rejections: Dict[Tuple[str, str], List[RejectFn]] = {}
        self._fetch_failures: Dict[str, Exception] = {}

    # --- priming -----------------------------------------------------------

    def add_page(self, page_id: str, nodes: List[ContentNode], metadata: Optional[Dict[str, Any]] = None):
        self.pages[page_id] = nodes
        if metadata is not None:
            self.page_metadata[page_id] = metadata

    def add_component(
        self,
        component_id: str,
        nodes: List[ContentNode],
        properties: Optional[List[PropertyOverride]] = None
    ):
        self.components[component_id] = nodes
        self.component_properties[component_id] = properties or []

    def add_collection(self, collection_id: str, schema: Dict[str, Any], items: List[Dict[str, Any]]):
        self.collections[collection_id] = schema
        self.collection_items[collection_id] = items

    def script_rejection(self, target_id: str, locale_id: str, reject: RejectFn):
        """Queue a scripted answer for the next write to target_id in locale_id."""
        self._rejections.setdefault((target_id, locale_id), []).append(reject)

    def fail_fetch(self, document_id: str, error: Exception):
        self._fetch_failures[document_id] = error

    # --- helpers -----------------------------------------------------------

    def _count(self):
        self.call_counter.increment()

    def _answer(self, target_id: str, locale_id: str, payload: List[Any]) -> UpdateResponse:
        queue = self._rejections.get((target_id, locale_id))
        if queue:
            return UpdateResponse(errors=queue.pop(0)(payload))
        return UpdateResponse()

    # --- ContentStore ------------------------------------------------------

    async def get_locales(self, site_id: Optional[str] = None) -> SiteLocales:
        self._count()
        return self.locales

    async def get_document_nodes(
        self,
        document: DocumentRef,
        locale_id: Optional[str] = None,
        branch_id: Optional[str] = None
    ) -> List[ContentNode]:
        self._count()
        self.fetch_log.append(document)
        if document.id in self._fetch_failures:
            raise self._fetch_failures[document.id]
        source = self.pages if document.kind == DocumentKind.PAGE else self.components
        if document.id not in source:
            raise ContentNotFoundError(f"Resource not found: {document}")
        return copy.deepcopy(source[document.id])

    async def update_document(
        self,
        document: DocumentRef,
        locale_id: str,
        updates: List[UpdatePayload]
    ) -> UpdateResponse:
        self._count()
        self.document_writes.setdefault((document, locale_id), []).append(list(updates))
        return self._answer(document.id, locale_id, updates)

    async def get_component_properties(
        self,
        component_id: str,
        branch_id: Optional[str] = None
    ) -> List[PropertyOverride]:
        self._count()
        if component_id not in self.component_properties:
            raise ContentNotFoundError(f"Component not found: {component_id}")
        return copy.deepcopy(self.component_properties[component_id])

    async def set_component_properties(
        self,
        component_id: str,
        locale_id: str,
        properties: List[PropertyUpdate]
    ) -> UpdateResponse:
        self._count()
        self.property_writes.setdefault((component_id, locale_id), []).append(list(properties))
        return self._answer(component_id, locale_id, properties)

    async def list_pages(self, site_id: Optional[str] = None) -> List[Dict[str, Any]]:
        self._count()
        return [{'id': page_id, **self.page_metadata.get(page_id, {})} for page_id in self.pages]

    async def get_page_metadata(self, page_id: str, locale_id: Optional[str] = None) -> Dict[str, Any]:
        self._count()
        if page_id not in self.page_metadata:
            raise ContentNotFoundError(f"Page not found: {page_id}")
        return copy.deepcopy(self.page_metadata[page_id])

    async def update_page_metadata(
        self,
        page_id: str,
        locale_id: str,
        payload: Dict[str, Any]
    ) -> Dict[str, Any]:
        self._count()
        self.metadata_writes[(page_id, locale_id)] = payload
        return payload

    async def list_collections(self, site_id: Optional[str] = None) -> List[Dict[str, Any]]:
        self._count()
        return [{**copy.deepcopy(schema), 'id': collection_id} for collection_id, schema in self.collections.items()]

    async def get_collection(self, collection_id: str) -> Dict[str, Any]:
        self._count()
        if collection_id not in self.collections:
            raise ContentNotFoundError(f"Collection not found: {collection_id}")
        return copy.deepcopy(self.collections[collection_id])

    async def list_collection_items(
        self,
        collection_id: str,
        cms_locale_id: Optional[str] = None,
        item_ids: Optional[List[str]] = None
    ) -> List[Dict[str, Any]]:
        self._count()
        items = self.collection_items.get(collection_id, [])
        if item_ids:
            items = [item for item in items if item.get('id') in item_ids]
        return copy.deepcopy(items)

    async def update_collection_items(
        self,
        collection_id: str,
        cms_locale_id: str,
        items: List[Dict[str, Any]]
    ) -> None:
        self._count()
        self.collection_writes.setdefault((collection_id, cms_locale_id), []).extend(items)
