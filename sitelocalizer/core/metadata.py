"""
Page metadata localization: title, SEO and Open Graph fields, and
optionally the slug.
"""

import logging
import re
import unicodedata
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

from sitelocalizer.config import DEFAULT_SOURCE_LANGUAGE
from sitelocalizer.llm.base import TranslationBackend
from sitelocalizer.store.base import ContentStore
from .batcher import TranslationBatcher
from .events import EventBus, EventType
from .exceptions import TranslationBackendError
from .http_client import CallCounter
from .models import Locale, LocaleOutcome, LocaleStatus, RunSummary

logger = logging.getLogger(__name__)

SOURCE = "metadata_translator"


def to_slug(text: str) -> str:
    """
    Turn text into a URL-safe slug.

    Lowercases, strips diacritics, drops anything but letters, digits,
    spaces and hyphens, then joins words with single hyphens.
    """
    decomposed = unicodedata.normalize('NFD', text.lower())
    slug = ''.join(c for c in decomposed if not unicodedata.combining(c))
    slug = re.sub(r'[^a-z0-9\s-]', '', slug)
    slug = re.sub(r'[\s_]+', '-', slug)
    slug = re.sub(r'-+', '-', slug)
    return slug.strip('-')


@dataclass
class PageMetadata:
    """Translatable settings of a page."""
    page_id: str
    title: str = ""
    slug: str = ""
    seo_title: str = ""
    seo_description: str = ""
    og_title: str = ""
    og_title_copied: bool = False
    og_description: str = ""
    og_description_copied: bool = False

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'PageMetadata':
        seo = data.get('seo') or {}
        open_graph = data.get('openGraph') or {}
        return cls(
            page_id=str(data.get('id', '')),
            title=data.get('title') or '',
            slug=data.get('slug') or '',
            seo_title=seo.get('title') or '',
            seo_description=seo.get('description') or '',
            og_title=open_graph.get('title') or '',
            og_title_copied=bool(open_graph.get('titleCopied')),
            og_description=open_graph.get('description') or '',
            og_description_copied=bool(open_graph.get('descriptionCopied')),
        )

    def translatable_fields(self, translate_slug: bool = False) -> List[Tuple[str, str]]:
        """(field, source text) pairs to translate, in a stable order."""
        fields = []
        if self.title:
            fields.append(('title', self.title))
        if translate_slug and self.slug:
            # The title gives the backend more to work with than the slug
            fields.append(('slug', self.title or self.slug.replace('-', ' ')))
        if self.seo_title:
            fields.append(('seoTitle', self.seo_title))
        if self.seo_description:
            fields.append(('seoDescription', self.seo_description))
        if self.og_title and not self.og_title_copied:
            fields.append(('ogTitle', self.og_title))
        if self.og_description and not self.og_description_copied:
            fields.append(('ogDescription', self.og_description))
        return fields


def build_metadata_payload(translated: Dict[str, str]) -> Dict[str, Any]:
    """Nest translated field values into the page settings update shape."""
    payload: Dict[str, Any] = {}
    for name, value in translated.items():
        if name == 'title':
            payload['title'] = value
        elif name == 'slug':
            slug = to_slug(value)
            if slug:
                payload['slug'] = slug
        elif name == 'seoTitle':
            payload.setdefault('seo', {})['title'] = value
        elif name == 'seoDescription':
            payload.setdefault('seo', {})['description'] = value
        elif name == 'ogTitle':
            payload.setdefault('openGraph', {}).update(title=value, titleCopied=False)
        elif name == 'ogDescription':
            payload.setdefault('openGraph', {}).update(description=value, descriptionCopied=False)
    return payload


class MetadataTranslator:
    """Translates a page's settings into target locales, one locale at a time."""

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

    async def run(
        self,
        page_id: str,
        target_locale_ids: List[str],
        translate_slug: bool = False
    ) -> RunSummary:
        calls_before = self.call_counter.count
        site_locales = await self.store.get_locales()
        source_language = self.source_language or (
            site_locales.primary.language if site_locales.primary else DEFAULT_SOURCE_LANGUAGE
        )

        self.event_bus.emit(EventType.PROGRESS, source=SOURCE, message="Fetching source metadata...")
        metadata = PageMetadata.from_dict(await self.store.get_page_metadata(page_id))
        fields = metadata.translatable_fields(translate_slug)

        outcomes: List[LocaleOutcome] = []
        if not fields:
            self.event_bus.emit(EventType.PROGRESS, source=SOURCE, message="No metadata fields to translate")
        else:
            logger.info(f"Translating {len(fields)} metadata field(s) of page {page_id}")
            for locale_id in target_locale_ids:
                locale = site_locales.find(locale_id)
                outcomes.append(await self._translate_locale(
                    page_id, locale_id, locale, metadata, fields, source_language
                ))

        summary = RunSummary(
            root=f"page:{page_id}",
            outcomes=outcomes,
            api_call_count=self.call_counter.count - calls_before,
        )
        self.event_bus.emit(EventType.COMPLETE, source=SOURCE, **summary.to_dict())
        return summary

    async def _translate_locale(
        self,
        page_id: str,
        locale_id: str,
        locale: Optional[Locale],
        metadata: PageMetadata,
        fields: List[Tuple[str, str]],
        source_language: str
    ) -> LocaleOutcome:
        name = locale.name if locale else locale_id
        self.event_bus.emit(
            EventType.PROGRESS, source=SOURCE,
            localeId=locale_id, locale=name, message=f"Translating metadata to {name}..."
        )
        try:
            if locale is None:
                raise LookupError(f"Locale {locale_id} not found")
            result = await self.batcher.translate_batch(
                [text for _, text in fields], locale.language, source_language,
                context=f"Page metadata for: {metadata.title}"
            )
            if result.all_failed:
                raise TranslationBackendError(f"Metadata translation to {locale.language} failed")

            translated = {
                field_name: result.translations[i]
                for i, (field_name, _) in enumerate(fields)
                if i not in result.failed_indices
            }
            payload = build_metadata_payload(translated)
            await self.store.update_page_metadata(page_id, locale_id, payload)
        except Exception as e:
            logger.error(f"Metadata translation to {name} failed: {e}")
            self.event_bus.emit(EventType.LOCALE_ERROR, source=SOURCE, localeId=locale_id, locale=name, error=str(e))
            return LocaleOutcome(locale_id, name, LocaleStatus.FAILED, error=str(e))

        outcome = LocaleOutcome(
            locale_id, name, LocaleStatus.COMPLETED,
            nodes_updated=1,
            fields_translated=len(translated),
            fields_failed=result.failed_count,
        )
        self.event_bus.emit(EventType.LOCALE_COMPLETE, source=SOURCE, **outcome.to_dict())
        return outcome
