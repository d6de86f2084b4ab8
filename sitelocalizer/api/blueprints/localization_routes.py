"""
Localization routes: text batches, page/component content, page metadata
and CMS collections. The long-running routes stream their progress as
Server-Sent Events.
"""
import logging

from flask import Blueprint, jsonify

from sitelocalizer.config import DEFAULT_SOURCE_LANGUAGE
from sitelocalizer.core.batcher import TranslationBatcher
from sitelocalizer.core.cms import CmsTranslator
from sitelocalizer.core.exceptions import ConfigurationError, LocalizationError
from sitelocalizer.core.metadata import MetadataTranslator
from sitelocalizer.core.models import DocumentRef
from sitelocalizer.core.orchestrator import LocaleOrchestrator
from ..services import ServiceFactory
from ..streaming import run_async, sse_response, stream_job
from .common import error_response, json_body, request_credentials

logger = logging.getLogger(__name__)


def _locale_ids(value):
    """Validated list of locale ids, or None"""
    if not isinstance(value, list) or not value:
        return None
    return [str(locale_id) for locale_id in value]


def create_localization_blueprint(services: ServiceFactory):
    """
    Create and configure the localization blueprint

    Args:
        services: Builds the store and backend of each request
    """
    bp = Blueprint('localization', __name__)

    def _open_services():
        token, site_id = request_credentials()
        store = services.create_store(token, site_id)
        backend = services.create_backend(store.call_counter)
        return store, backend

    def _stream(store, backend, run):
        async def job(bus):
            try:
                await run(bus)
            finally:
                await backend.close()
                await store.close()

        return sse_response(stream_job(job))

    @bp.route('/api/translate', methods=['POST'])
    def translate_texts():
        """Translate a list of texts into one language"""
        data = json_body()
        if data is None:
            return jsonify({"error": "Invalid JSON body"}), 400

        texts = data.get('texts')
        target_language = data.get('targetLanguage')
        if not isinstance(texts, list) or not texts:
            return jsonify({"error": "texts must be a non-empty array"}), 400
        if not target_language or not isinstance(target_language, str):
            return jsonify({"error": "targetLanguage is required"}), 400

        texts = [t for t in texts if isinstance(t, str) and t.strip()]
        if not texts:
            return jsonify({"error": "No valid texts to translate"}), 400

        async def translate():
            backend = services.create_backend()
            try:
                return await TranslationBatcher(backend).translate_batch(
                    texts, target_language,
                    data.get('sourceLanguage') or DEFAULT_SOURCE_LANGUAGE,
                    data.get('context')
                )
            finally:
                await backend.close()

        try:
            result = run_async(translate())
        except LocalizationError as e:
            logger.error(f"Text translation failed: {e}")
            return error_response("Translation service failed", e)

        return jsonify({
            "translations": result.translations,
            "failedIndices": sorted(result.failed_indices)
        })

    @bp.route('/api/translate-page', methods=['POST'])
    def translate_page():
        """Localize a page (or a component) and its nested components"""
        data = json_body()
        if data is None:
            return jsonify({"error": "Invalid JSON body"}), 400

        page_id = data.get('pageId')
        component_id = data.get('componentId')
        if not page_id and not component_id:
            return jsonify({"error": "Page ID is required"}), 400
        root = DocumentRef.page(page_id) if page_id else DocumentRef.component(component_id)
        target_locale_ids = _locale_ids(data.get('targetLocaleIds'))

        try:
            store, backend = _open_services()
        except ConfigurationError as e:
            return jsonify({"error": str(e)}), 500

        async def run(bus):
            orchestrator = LocaleOrchestrator(
                store, backend,
                event_bus=bus,
                branch_id=data.get('branchId'),
                translate_component_properties=data.get('translateComponentProperties', True)
            )
            await orchestrator.run(root, target_locale_ids)

        logger.info(f"Starting localization of {root}")
        return _stream(store, backend, run)

    @bp.route('/api/translate-metadata', methods=['POST'])
    def translate_metadata():
        """Localize page title, SEO and Open Graph settings"""
        data = json_body()
        if data is None:
            return jsonify({"error": "Invalid JSON body"}), 400

        page_id = data.get('pageId')
        target_locale_ids = _locale_ids(data.get('targetLocaleIds'))
        if not page_id or not target_locale_ids:
            return jsonify({"error": "Missing pageId or targetLocaleIds"}), 400

        try:
            store, backend = _open_services()
        except ConfigurationError as e:
            return jsonify({"error": str(e)}), 500

        async def run(bus):
            translator = MetadataTranslator(store, backend, event_bus=bus)
            await translator.run(page_id, target_locale_ids, translate_slug=bool(data.get('translateSlug')))

        return _stream(store, backend, run)

    @bp.route('/api/translate-cms', methods=['POST'])
    def translate_cms():
        """Localize the items of a CMS collection"""
        data = json_body()
        if data is None:
            return jsonify({"error": "Invalid JSON body"}), 400

        collection_id = data.get('collectionId')
        target_locale_ids = _locale_ids(data.get('targetLocaleIds'))
        if not collection_id:
            return jsonify({"error": "Collection ID is required"}), 400
        if not target_locale_ids:
            return jsonify({"error": "At least one target locale ID is required"}), 400

        try:
            store, backend = _open_services()
        except ConfigurationError as e:
            return jsonify({"error": str(e)}), 500

        async def run(bus):
            translator = CmsTranslator(store, backend, event_bus=bus)
            await translator.run(
                collection_id, target_locale_ids,
                item_ids=data.get('itemIds') or None,
                field_slugs=data.get('fieldSlugs') or None
            )

        return _stream(store, backend, run)

    return bp
