"""
Health check and site browsing routes
"""
import logging

from flask import Blueprint, jsonify, request

from sitelocalizer.config import DEFAULT_MODEL, LLM_API_ENDPOINT, WEBFLOW_API_BASE
from sitelocalizer.core.cms import TRANSLATABLE_FIELD_TYPES, is_translatable_field
from sitelocalizer.core.exceptions import ConfigurationError, LocalizationError
from sitelocalizer.core.models import DocumentRef
from ..services import ServiceFactory
from ..streaming import run_async
from .common import error_response, request_credentials

logger = logging.getLogger(__name__)

# Page fields returned by /api/page-metadata
PAGE_METADATA_FIELDS = ('id', 'title', 'slug', 'localeId', 'publishedPath', 'draft', 'archived')


def create_site_blueprint(services: ServiceFactory):
    """Create and configure the site blueprint"""
    bp = Blueprint('site', __name__)

    async def _with_store(operation):
        token, site_id = request_credentials()
        store = services.create_store(token, site_id)
        try:
            return await operation(store, site_id)
        finally:
            await store.close()

    def _fetch(operation, failure_message):
        """
        Run operation against a request-scoped store

        Returns:
            tuple: (result, None) on success, (None, error response) otherwise
        """
        try:
            return run_async(_with_store(operation)), None
        except ConfigurationError as e:
            return None, (jsonify({"error": str(e)}), 500)
        except LocalizationError as e:
            logger.error(f"{failure_message}: {e}")
            return None, error_response(failure_message, e)

    @bp.route('/api/health', methods=['GET'])
    def health_check():
        """API health check endpoint"""
        return jsonify({
            "status": "ok",
            "message": "Localization API is running",
            "webflow_api_base": WEBFLOW_API_BASE,
            "llm_api_endpoint": LLM_API_ENDPOINT,
            "default_model": DEFAULT_MODEL
        })

    @bp.route('/api/locales', methods=['GET'])
    def get_locales():
        """Primary and secondary locales of the site"""
        async def fetch(store, site_id):
            return await store.get_locales(site_id)

        locales, error = _fetch(fetch, "Failed to fetch locales")
        if error:
            return error

        return jsonify({
            "primary": locales.primary.to_dict() if locales.primary else None,
            "secondary": [locale.to_dict() for locale in locales.secondary]
        })

    @bp.route('/api/pages', methods=['GET'])
    def list_pages():
        """Pages of the site"""
        async def fetch(store, site_id):
            return await store.list_pages(site_id)

        pages, error = _fetch(fetch, "Failed to fetch pages")
        if error:
            return error

        return jsonify({"pages": pages})

    @bp.route('/api/page-metadata', methods=['GET'])
    def get_page_metadata():
        """Title, slug, SEO and Open Graph fields of a page, optionally for one locale"""
        page_id = request.args.get('pageId')
        if not page_id:
            return jsonify({"error": "Missing pageId parameter"}), 400

        async def fetch(store, site_id):
            return await store.get_page_metadata(page_id, request.args.get('localeId') or None)

        page, error = _fetch(fetch, "Failed to fetch page metadata")
        if error:
            return error

        metadata = {name: page.get(name) for name in PAGE_METADATA_FIELDS}
        metadata['seo'] = page.get('seo') or {'title': '', 'description': ''}
        metadata['openGraph'] = page.get('openGraph') or {
            'title': '', 'titleCopied': False, 'description': '', 'descriptionCopied': False
        }
        return jsonify(metadata)

    @bp.route('/api/page-content', methods=['GET'])
    def get_page_content():
        """Translatable DOM nodes of a page"""
        page_id = request.args.get('pageId')
        if not page_id:
            return jsonify({"error": "pageId is required"}), 400

        async def fetch(store, site_id):
            return await store.get_document_nodes(
                DocumentRef.page(page_id),
                locale_id=request.args.get('localeId') or None,
                branch_id=request.args.get('branchId') or None,
            )

        nodes, error = _fetch(fetch, "Failed to fetch page content")
        if error:
            return error

        return jsonify({"pageId": page_id, "nodes": [node.to_dict() for node in nodes], "total": len(nodes)})

    @bp.route('/api/collections', methods=['GET'])
    def list_collections():
        """CMS collections of the site"""
        async def fetch(store, site_id):
            return await store.list_collections(site_id)

        collections, error = _fetch(fetch, "Failed to fetch collections")
        if error:
            return error

        return jsonify({"collections": collections, "total": len(collections)})

    @bp.route('/api/collection-schema', methods=['GET'])
    def get_collection_schema():
        """Fields of a collection, split into translatable and non-translatable"""
        collection_id = request.args.get('collectionId')
        if not collection_id:
            return jsonify({"error": "Missing collectionId parameter"}), 400

        async def fetch(store, site_id):
            return await store.get_collection(collection_id)

        schema, error = _fetch(fetch, "Failed to fetch collection schema")
        if error:
            return error

        fields = schema.get('fields') or []
        return jsonify({
            "collectionId": schema.get('id', collection_id),
            "displayName": schema.get('displayName'),
            "singularName": schema.get('singularName'),
            "slug": schema.get('slug'),
            "fields": {
                "all": fields,
                "translatable": [f for f in fields if is_translatable_field(f)],
                "nonTranslatable": [f for f in fields if not is_translatable_field(f)],
            },
            "fieldTypes": {"translatable": list(TRANSLATABLE_FIELD_TYPES)},
        })

    @bp.route('/api/collection-items', methods=['GET'])
    def list_collection_items():
        """Every item of a collection, optionally read in one CMS locale"""
        collection_id = request.args.get('collectionId')
        if not collection_id:
            return jsonify({"error": "Missing collectionId parameter"}), 400

        async def fetch(store, site_id):
            return await store.list_collection_items(collection_id, request.args.get('cmsLocaleId') or None)

        items, error = _fetch(fetch, "Failed to fetch collection items")
        if error:
            return error

        return jsonify({
            "items": items,
            "pagination": {"offset": 0, "limit": len(items), "total": len(items)},
        })

    return bp
