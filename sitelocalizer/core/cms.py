"""
CMS collection localization.

Items are read in the primary CMS locale, their text fields translated per
target locale through the same HTML-preserving batch path as page content,
and written back with the target's CMS locale id.
"""

import logging
from typing import Any, Dict, List, Optional

from sitelocalizer.config import DEFAULT_SOURCE_LANGUAGE
from sitelocalizer.llm.base import TranslationBackend
from sitelocalizer.store.base import ContentStore
from .batcher import TranslationBatcher
from .events import EventBus, EventType
from .exceptions import LocalizationError, TranslationBackendError
from .extractor import make_unit
from .http_client import CallCounter
from .models import Locale, LocaleOutcome, LocaleStatus, RunSummary, TranslationUnit

logger = logging.getLogger(__name__)

SOURCE = "cms_translator"

TRANSLATABLE_FIELD_TYPES = ('PlainText', 'RichText')
NON_TRANSLATABLE_FIELD_SLUGS = ('slug', '_archived', '_draft')


def is_translatable_field(field: Dict[str, Any]) -> bool:
    slug = field.get('slug') or ''
    return (
        field.get('type') in TRANSLATABLE_FIELD_TYPES
        and slug not in NON_TRANSLATABLE_FIELD_SLUGS
        and not slug.endswith('-slug')
        and not slug.endswith('-id')
    )


def select_fields(schema: Dict[str, Any], field_slugs: Optional[List[str]] = None) -> List[Dict[str, Any]]:
    """Translatable fields of a collection schema, optionally restricted to field_slugs."""
    fields = [f for f in schema.get('fields') or [] if is_translatable_field(f)]
    if field_slugs:
        fields = [f for f in fields if f.get('slug') in field_slugs]
    return fields


def extract_item_units(items: List[Dict[str, Any]], fields: List[Dict[str, Any]]) -> List[TranslationUnit]:
    """One unit per non-empty string field value, keyed by (item id, field slug)."""
    units = []
    for item in items:
        field_data = item.get('fieldData') or {}
        for field in fields:
            value = field_data.get(field['slug'])
            if isinstance(value, str):
                unit = make_unit(value, (item['id'], field['slug']))
                if unit:
                    units.append(unit)
    return units


class CmsTranslator:
    """Translates collection items into target locales."""

    def __init__(
        self,
        store: ContentStore,
        backend: TranslationBackend,
        event_bus: Optional[EventBus] = None,
        source_language: Optional[str] = None,
        call_counter: Optional[CallCounter] = None,
    ):
        self.store = store
        self.batcher = TranslationBatcher(backend)
        self.event_bus = event_bus or EventBus()
        self.source_language = source_language
        self.call_counter = call_counter or store.call_counter

    def _progress(self, message: str, **data):
        logger.info(message)
        self.event_bus.emit(EventType.PROGRESS, source=SOURCE, message=message, **data)

    async def run(
        self,
        collection_id: str,
        target_locale_ids: List[str],
        item_ids: Optional[List[str]] = None,
        field_slugs: Optional[List[str]] = None
    ) -> RunSummary:
        """
        Translate a collection's items into each target locale.

        Raises:
            LocalizationError: When the collection has no translatable
                fields or no matching items
        """
        calls_before = self.call_counter.count

        self._progress("Fetching collection schema...")
        fields = select_fields(await self.store.get_collection(collection_id), field_slugs)
        if not fields:
            raise LocalizationError(
                "No translatable fields found in this collection",
                context={'collection': collection_id}
            )
        self._progress(
            f"Found {len(fields)} translatable fields",
            fields=[{'slug': f['slug'], 'type': f['type']} for f in fields]
        )

        self._progress("Fetching locales...")
        site_locales = await self.store.get_locales()
        primary = site_locales.primary
        source_language = self.source_language or (primary.language if primary else DEFAULT_SOURCE_LANGUAGE)

        self._progress("Fetching items...")
        items = await self.store.list_collection_items(
            collection_id,
            cms_locale_id=primary.cms_locale_id if primary else None,
            item_ids=item_ids,
        )
        if not items:
            raise LocalizationError("No items found to translate", context={'collection': collection_id})
        self._progress(f"Found {len(items)} items to translate", itemCount=len(items))

        units = extract_item_units(items, fields)
        outcomes = []
        for locale_id in target_locale_ids:
            locale = next((l for l in site_locales.secondary if l.id == locale_id), None)
            outcomes.append(await self._translate_locale(collection_id, locale_id, locale, units, source_language))

        summary = RunSummary(
            root=f"collection:{collection_id}",
            outcomes=outcomes,
            api_call_count=self.call_counter.count - calls_before,
        )
        self.event_bus.emit(
            EventType.COMPLETE, source=SOURCE,
            itemsTranslated=len(items), **summary.to_dict()
        )
        return summary

    def _fail(self, locale_id: str, name: str, message: str) -> LocaleOutcome:
        logger.error(f"CMS translation to {name} failed: {message}")
        self.event_bus.emit(EventType.LOCALE_ERROR, source=SOURCE, localeId=locale_id, locale=name, error=message)
        return LocaleOutcome(locale_id, name, LocaleStatus.FAILED, error=message)

    async def _translate_locale(
        self,
        collection_id: str,
        locale_id: str,
        locale: Optional[Locale],
        units: List[TranslationUnit],
        source_language: str
    ) -> LocaleOutcome:
        name = locale.name if locale else locale_id
        if locale is None or not locale.cms_locale_id:
            return self._fail(
                locale_id, name,
                f'Locale "{name}" does not have CMS localization enabled. '
                f'Please enable it in Webflow Settings > Locales.'
            )
        if not units:
            self._progress(f"No translatable content found for {name}", locale=name)
            return LocaleOutcome(locale_id, name, LocaleStatus.COMPLETED)

        self._progress(
            f"Translating {len(units)} text segments to {name}...",
            locale=name, segmentCount=len(units)
        )
        try:
            result = await self.batcher.translate_batch(
                [unit.source_text for unit in units], locale.language, source_language
            )
            if result.all_failed:
                raise TranslationBackendError(f"Translation to {locale.language} failed for all segments")

            updates: Dict[str, Dict[str, str]] = {}
            for index, unit in enumerate(units):
                if index in result.failed_indices:
                    continue
                item_id, field_slug = unit.origin_key
                updates.setdefault(item_id, {})[field_slug] = unit.restore(result.translations[index])

            payload = [{'id': item_id, 'fieldData': field_data} for item_id, field_data in updates.items()]
            self._progress(f"Updating {len(payload)} items for {name}...", locale=name)
            await self.store.update_collection_items(collection_id, locale.cms_locale_id, payload)
        except Exception as e:
            return self._fail(locale_id, name, str(e))

        outcome = LocaleOutcome(
            locale_id, name, LocaleStatus.COMPLETED,
            nodes_updated=len(payload),
            fields_translated=len(units) - result.failed_count,
            fields_failed=result.failed_count,
        )
        self.event_bus.emit(
            EventType.LOCALE_COMPLETE, source=SOURCE,
            itemsTranslated=len(payload), **outcome.to_dict()
        )
        return outcome
