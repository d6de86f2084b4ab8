"""
Webflow Data API v2 content store.

Raw JSON is validated into the typed node model here, once; node types
other than text runs and component instances are dropped at this boundary.
"""

import json
import logging
from typing import Any, Dict, List, Optional

from sitelocalizer.config import (
    CMS_UPDATE_BATCH_SIZE,
    DOM_PAGE_LIMIT,
    REQUEST_TIMEOUT,
    WEBFLOW_ACCEPT_VERSION,
    WEBFLOW_API_BASE,
    WEBFLOW_API_TOKEN,
    WEBFLOW_SITE_ID,
)
from sitelocalizer.core.exceptions import ConfigurationError, RequestFailedError
from sitelocalizer.core.http_client import CallCounter, RetryingHttpClient
from sitelocalizer.core.models import (
    ComponentInstanceNode,
    ContentNode,
    DocumentKind,
    DocumentRef,
    FieldError,
    Locale,
    PropertyOverride,
    PropertyUpdate,
    SiteLocales,
    TextNode,
    UpdatePayload,
    UpdateResponse,
)
from .base import ContentStore

logger = logging.getLogger(__name__)


def _text_fields(value: Any):
    """Split a Webflow text value ({"html", "text"} or a bare string)."""
    if isinstance(value, dict):
        return value.get('text'), value.get('html')
    if isinstance(value, str):
        return value, None
    return None, None


def parse_property_override(raw: Dict[str, Any]) -> Optional[PropertyOverride]:
    property_id = raw.get('propertyId') or raw.get('id')
    if not property_id:
        return None
    text, html = _text_fields(raw.get('text'))
    if html is None and isinstance(raw.get('html'), str):
        html = raw['html']
    return PropertyOverride(property_id=str(property_id), text=text, html=html)


def parse_node(raw: Dict[str, Any]) -> Optional[ContentNode]:
    """Validate one raw DOM node into a typed node, or None if not translatable."""
    node_id = raw.get('id') or raw.get('nodeId')
    node_type = raw.get('type')
    if not node_id:
        logger.warning(f"Skipping DOM node without id: {raw!r:.120}")
        return None

    if node_type == 'text':
        text, html = _text_fields(raw.get('text'))
        if html is None and isinstance(raw.get('html'), str):
            html = raw['html']
        return TextNode(node_id=str(node_id), text=text, html=html)

    if node_type == 'component-instance':
        component_id = raw.get('componentId')
        if not component_id:
            logger.warning(f"Component instance {node_id} has no componentId, skipping")
            return None
        overrides = [
            override
            for override in (parse_property_override(o) for o in raw.get('propertyOverrides') or [])
            if override is not None
        ]
        return ComponentInstanceNode(
            node_id=str(node_id),
            component_id=str(component_id),
            property_overrides=overrides,
        )

    return None


def parse_field_errors(raw_errors: Any) -> List[FieldError]:
    errors = []
    for raw in raw_errors or []:
        if isinstance(raw, dict):
            errors.append(FieldError(
                node_id=str(raw.get('nodeId') or raw.get('propertyId') or raw.get('id') or ''),
                error=str(raw.get('error') or raw.get('message') or ''),
                property_id=raw.get('propertyId') if raw.get('nodeId') else None,
            ))
        else:
            errors.append(FieldError(node_id='', error=str(raw)))
    return errors


class WebflowContentStore(ContentStore):
    """ContentStore backed by the Webflow Data API"""

    def __init__(
        self,
        api_token: str = WEBFLOW_API_TOKEN,
        site_id: str = WEBFLOW_SITE_ID,
        api_base: str = WEBFLOW_API_BASE,
        page_limit: int = DOM_PAGE_LIMIT,
        call_counter: Optional[CallCounter] = None,
        http_client: Optional[RetryingHttpClient] = None,
    ):
        if not api_token and http_client is None:
            raise ConfigurationError("Webflow API token not configured")
        self.site_id = site_id
        self.page_limit = page_limit
        self.call_counter = call_counter or CallCounter()
        self._http = http_client or RetryingHttpClient(
            base_url=api_base,
            headers={
                'Authorization': f"Bearer {api_token}",
                'accept-version': WEBFLOW_ACCEPT_VERSION,
            },
            timeout=REQUEST_TIMEOUT,
            call_counter=self.call_counter,
        )
        if http_client is not None:
            self.call_counter = http_client.call_counter

    async def close(self):
        await self._http.close()

    def _site(self, site_id: Optional[str]) -> str:
        resolved = site_id or self.site_id
        if not resolved:
            raise ConfigurationError("Missing siteId. Provide one or set WEBFLOW_SITE_ID.")
        return resolved

    def _dom_path(self, document: DocumentRef) -> str:
        if document.kind == DocumentKind.PAGE:
            return f"/pages/{document.id}/dom"
        return f"/sites/{self._site(None)}/components/{document.id}/dom"

    @staticmethod
    def _params(**kwargs) -> Dict[str, Any]:
        return {k: v for k, v in kwargs.items() if v is not None}

    async def _paginate(self, path: str, key: str, params: Dict[str, Any]) -> List[Dict[str, Any]]:
        """Collect every entry of a paginated listing."""
        results: List[Dict[str, Any]] = []
        offset = 0
        while True:
            data = await self._http.get(
                path, params=dict(params, offset=offset, limit=self.page_limit)
            )
            batch = data.get(key) or []
            results.extend(batch)
            total = (data.get('pagination') or {}).get('total')
            offset += len(batch)
            if not batch or total is None or offset >= total:
                return results

    async def _post_update(self, path: str, locale_id: str, body: Dict[str, Any]) -> UpdateResponse:
        """POST an update; a 400 carrying per-node errors is a normal rejection."""
        try:
            data = await self._http.post(path, params={'localeId': locale_id}, json=body)
        except RequestFailedError as e:
            if e.status_code not in (400, 422):
                raise
            try:
                data = json.loads(e.body)
            except ValueError:
                raise e
            if not isinstance(data, dict) or not data.get('errors'):
                raise
        return UpdateResponse(errors=parse_field_errors(data.get('errors')))

    async def get_locales(self, site_id: Optional[str] = None) -> SiteLocales:
        data = await self._http.get(f"/sites/{self._site(site_id)}")
        locales = data.get('locales') or {}
        primary = locales.get('primary')
        return SiteLocales(
            primary=Locale.from_dict(primary) if primary else None,
            secondary=[Locale.from_dict(l) for l in locales.get('secondary') or []],
        )

    async def get_document_nodes(
        self,
        document: DocumentRef,
        locale_id: Optional[str] = None,
        branch_id: Optional[str] = None
    ) -> List[ContentNode]:
        raw_nodes = await self._paginate(
            self._dom_path(document), 'nodes',
            self._params(localeId=locale_id, branchId=branch_id)
        )
        nodes = [node for node in (parse_node(raw) for raw in raw_nodes) if node is not None]
        logger.debug(f"Fetched {len(raw_nodes)} DOM nodes ({len(nodes)} translatable) from {document}")
        return nodes

    async def update_document(
        self,
        document: DocumentRef,
        locale_id: str,
        updates: List[UpdatePayload]
    ) -> UpdateResponse:
        return await self._post_update(
            self._dom_path(document), locale_id,
            {'nodes': [update.to_dict() for update in updates]}
        )

    async def get_component_properties(
        self,
        component_id: str,
        branch_id: Optional[str] = None
    ) -> List[PropertyOverride]:
        data = await self._http.get(
            f"/sites/{self._site(None)}/components/{component_id}/properties",
            params=self._params(branchId=branch_id),
        )
        return [
            prop
            for prop in (parse_property_override(p) for p in data.get('properties') or [])
            if prop is not None
        ]

    async def set_component_properties(
        self,
        component_id: str,
        locale_id: str,
        properties: List[PropertyUpdate]
    ) -> UpdateResponse:
        return await self._post_update(
            f"/sites/{self._site(None)}/components/{component_id}/properties", locale_id,
            {'properties': [prop.to_dict() for prop in properties]}
        )

    async def list_pages(self, site_id: Optional[str] = None) -> List[Dict[str, Any]]:
        return await self._paginate(f"/sites/{self._site(site_id)}/pages", 'pages', {})

    async def get_page_metadata(self, page_id: str, locale_id: Optional[str] = None) -> Dict[str, Any]:
        return await self._http.get(f"/pages/{page_id}", params=self._params(localeId=locale_id))

    async def update_page_metadata(
        self,
        page_id: str,
        locale_id: str,
        payload: Dict[str, Any]
    ) -> Dict[str, Any]:
        return await self._http.put(f"/pages/{page_id}", params={'localeId': locale_id}, json=payload)

    async def list_collections(self, site_id: Optional[str] = None) -> List[Dict[str, Any]]:
        data = await self._http.get(f"/sites/{self._site(site_id)}/collections")
        return data.get('collections') or []

    async def get_collection(self, collection_id: str) -> Dict[str, Any]:
        return await self._http.get(f"/collections/{collection_id}")

    async def list_collection_items(
        self,
        collection_id: str,
        cms_locale_id: Optional[str] = None,
        item_ids: Optional[List[str]] = None
    ) -> List[Dict[str, Any]]:
        wanted = set(item_ids or [])
        items: List[Dict[str, Any]] = []
        offset = 0
        while True:
            data = await self._http.get(
                f"/collections/{collection_id}/items",
                params=self._params(offset=offset, limit=self.page_limit, cmsLocaleId=cms_locale_id),
            )
            fetched = data.get('items') or []
            items.extend(item for item in fetched if not wanted or item.get('id') in wanted)
            offset += len(fetched)
            total = (data.get('pagination') or {}).get('total') or 0
            if not fetched or offset >= total or (wanted and len(items) >= len(wanted)):
                return items

    async def update_collection_items(
        self,
        collection_id: str,
        cms_locale_id: str,
        items: List[Dict[str, Any]]
    ) -> None:
        # cmsLocaleId must be set on each item, not only as a query parameter
        for start in range(0, len(items), CMS_UPDATE_BATCH_SIZE):
            batch = items[start:start + CMS_UPDATE_BATCH_SIZE]
            await self._http.patch(
                f"/collections/{collection_id}/items",
                json={'items': [
                    {'id': item['id'], 'cmsLocaleId': cms_locale_id, 'fieldData': item['fieldData']}
                    for item in batch
                ]},
            )
