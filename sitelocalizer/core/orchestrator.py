"""
Per-locale localization pipeline.

For every target locale: walk the content tree, extract translation units,
translate them through the batcher and write them back through the
structural updater. Locales run concurrently in fixed-size groups; a
failure in one locale is recorded in its outcome and never reaches the
others.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple

from sitelocalizer.config import DEFAULT_SOURCE_LANGUAGE, LOCALE_CONCURRENCY, TRANSLATION_BATCH_SIZE
from sitelocalizer.llm.base import TranslationBackend
from sitelocalizer.store.base import ContentStore
from .batcher import TranslationBatcher
from .events import EventBus, EventType
from .exceptions import TranslationBackendError
from .extractor import NodeExtractor
from .http_client import CallCounter
from .models import (
    ComponentInstanceNode,
    ComponentInstanceUpdate,
    ContentNode,
    DocumentRef,
    Locale,
    LocaleOutcome,
    LocaleStatus,
    OriginKey,
    PropertyUpdate,
    RunSummary,
    SiteLocales,
    TextNode,
    TextUpdate,
    TranslationUnit,
    UpdatePayload,
)
from .updater import StructuralUpdater
from .walker import ContentTreeWalker

logger = logging.getLogger(__name__)

SOURCE = "locale_orchestrator"


def chunked(items: Sequence, size: int) -> List[Sequence]:
    """Split items into consecutive groups of at most size elements."""
    size = max(1, size)
    return [items[i:i + size] for i in range(0, len(items), size)]


def build_updates(nodes: List[ContentNode], translations: Dict[OriginKey, str]) -> List[UpdatePayload]:
    """
    Route translated text back to update payloads for one document.

    Nodes without a translation (nothing to translate, or the backend failed
    for them) produce no payload.
    """
    updates: List[UpdatePayload] = []
    for node in nodes:
        if isinstance(node, TextNode):
            text = translations.get((node.node_id,))
            if text is not None:
                updates.append(TextUpdate(node_id=node.node_id, text=text))
        elif isinstance(node, ComponentInstanceNode):
            overrides = [
                PropertyUpdate(prop.property_id, translations[(node.node_id, prop.property_id)])
                for prop in node.property_overrides
                if (node.node_id, prop.property_id) in translations
            ]
            if overrides:
                updates.append(ComponentInstanceUpdate(node_id=node.node_id, property_overrides=overrides))
    return updates


@dataclass
class _WorkItem:
    """Units extracted for one write target (a document, or a component's properties)."""
    document: DocumentRef
    units: List[TranslationUnit]
    nodes: List[ContentNode] = field(default_factory=list)
    is_properties: bool = False


class LocaleOrchestrator:
    """Runs walk, translate and update for each target locale."""

    def __init__(
        self,
        store: ContentStore,
        backend: TranslationBackend,
        event_bus: Optional[EventBus] = None,
        concurrency: int = LOCALE_CONCURRENCY,
        batch_size: int = TRANSLATION_BATCH_SIZE,
        source_language: Optional[str] = None,
        call_counter: Optional[CallCounter] = None,
        branch_id: Optional[str] = None,
        translate_component_properties: bool = True,
    ):
        """
        Args:
            store: Content store to read from and write to
            backend: Translation backend
            event_bus: Receives progress events; a private bus is used if None
            concurrency: Number of locales processed at the same time
            batch_size: Unique texts per translation batch
            source_language: Overrides the language derived from the primary locale
            call_counter: Counter read for the run summary (defaults to the store's)
            branch_id: Optional branch to read content from
            translate_component_properties: Also translate property defaults
                of every discovered component
        """
        self.store = store
        self.backend = backend
        self.event_bus = event_bus or EventBus()
        self.concurrency = max(1, concurrency)
        self.batch_size = batch_size
        self.source_language = source_language
        self.call_counter = call_counter or store.call_counter
        self.branch_id = branch_id
        self.translate_component_properties = translate_component_properties

        self.walker = ContentTreeWalker(store, branch_id=branch_id)
        self.extractor = NodeExtractor()
        self.updater = StructuralUpdater(store)

    async def run(self, root: DocumentRef, target_locale_ids: Optional[List[str]] = None) -> RunSummary:
        """
        Localize root into every target locale.

        Args:
            root: Page or component to localize
            target_locale_ids: Restrict to these locale ids; all secondary
                locales when None

        Returns:
            RunSummary with one outcome per requested locale

        Raises:
            Errors from reading the site's locales; per-locale errors are
            recorded in the summary instead
        """
        calls_before = self.call_counter.count
        site_locales = await self.store.get_locales()

        source_language = self._source_language(site_locales)
        targets, outcomes = self._select_targets(site_locales, target_locale_ids)
        batcher = TranslationBatcher(self.backend, self.batch_size)

        logger.info(
            f"Localizing {root} from {source_language} into {len(targets)} locale(s) "
            f"({self.concurrency} at a time)"
        )
        for group in chunked(targets, self.concurrency):
            results = await asyncio.gather(
                *(self._run_locale(root, locale, source_language, batcher) for locale in group)
            )
            outcomes.extend(results)

        summary = RunSummary(
            root=str(root),
            outcomes=outcomes,
            api_call_count=self.call_counter.count - calls_before,
        )
        logger.info(
            f"Localization of {root} finished: {len(summary.completed_locales)} completed, "
            f"{len(summary.failed_locales)} failed, {summary.nodes_touched} nodes updated"
        )
        self.event_bus.emit(EventType.COMPLETE, source=SOURCE, **summary.to_dict())
        return summary

    def _source_language(self, site_locales: SiteLocales) -> str:
        if self.source_language:
            return self.source_language
        if site_locales.primary:
            return site_locales.primary.language
        return DEFAULT_SOURCE_LANGUAGE

    def _select_targets(
        self,
        site_locales: SiteLocales,
        target_locale_ids: Optional[List[str]]
    ) -> Tuple[List[Locale], List[LocaleOutcome]]:
        """Resolve the locales to run, recording the ones that cannot be run as failures."""
        if target_locale_ids is None:
            candidates = list(site_locales.secondary)
            rejected: List[LocaleOutcome] = []
        else:
            candidates, rejected = [], []
            secondary = {locale.id: locale for locale in site_locales.secondary}
            for locale_id in dict.fromkeys(target_locale_ids):
                if locale_id in secondary:
                    candidates.append(secondary[locale_id])
                else:
                    rejected.append(self._fail(locale_id, locale_id, f"Locale {locale_id} not found among secondary locales"))

        targets = []
        for locale in candidates:
            if locale.is_translation_target:
                targets.append(locale)
            else:
                rejected.append(self._fail(
                    locale.id, locale.name,
                    f"Locale {locale.name} does not have localization enabled"
                ))
        return targets, rejected

    def _fail(self, locale_id: str, locale_name: str, message: str, **counts) -> LocaleOutcome:
        logger.error(f"Locale {locale_name} failed: {message}")
        self.event_bus.emit(
            EventType.LOCALE_ERROR, source=SOURCE,
            localeId=locale_id, locale=locale_name, error=message
        )
        return LocaleOutcome(
            locale_id=locale_id,
            locale_name=locale_name,
            status=LocaleStatus.FAILED,
            error=message,
            **counts
        )

    def _progress(self, locale: Locale, message: str):
        logger.info(f"[{locale.name}] {message}")
        self.event_bus.emit(
            EventType.PROGRESS, source=SOURCE,
            localeId=locale.id, locale=locale.name, message=message
        )

    async def _run_locale(
        self,
        root: DocumentRef,
        locale: Locale,
        source_language: str,
        batcher: TranslationBatcher
    ) -> LocaleOutcome:
        """Run the pipeline for one locale; every error ends up in the outcome."""
        self.event_bus.emit(EventType.LOCALE_STARTED, source=SOURCE, localeId=locale.id, locale=locale.name)
        outcome = LocaleOutcome(locale_id=locale.id, locale_name=locale.name, status=LocaleStatus.COMPLETED)
        try:
            await self._localize(root, locale, source_language, batcher, outcome)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            return self._fail(
                locale.id, locale.name, str(e),
                nodes_updated=outcome.nodes_updated,
                fields_translated=outcome.fields_translated,
                fields_failed=outcome.fields_failed,
                corrected_nodes=outcome.corrected_nodes,
            )

        self.event_bus.emit(EventType.LOCALE_COMPLETE, source=SOURCE, **outcome.to_dict())
        return outcome

    async def _collect(self, root: DocumentRef, locale: Locale) -> List[_WorkItem]:
        tree = await self.walker.walk(root)
        self._progress(
            locale,
            f"Found {len(tree.all_nodes)} nodes in {len(tree.documents)} document(s)"
        )

        work = [
            _WorkItem(document=doc.document, units=self.extractor.extract_all(doc.nodes), nodes=doc.nodes)
            for doc in tree.documents
        ]
        if self.translate_component_properties:
            for component_id in tree.component_ids:
                properties = await self.store.get_component_properties(component_id, branch_id=self.branch_id)
                units = self.extractor.extract_properties(properties)
                if units:
                    work.append(_WorkItem(DocumentRef.component(component_id), units, is_properties=True))
        return work

    async def _localize(
        self,
        root: DocumentRef,
        locale: Locale,
        source_language: str,
        batcher: TranslationBatcher,
        outcome: LocaleOutcome
    ):
        work = await self._collect(root, locale)
        units = [unit for item in work for unit in item.units]
        if not units:
            self._progress(locale, "Nothing to translate")
            return

        self._progress(locale, f"Translating {len(units)} text(s) to {locale.language}")
        result = await batcher.translate_batch(
            [unit.source_text for unit in units], locale.language, source_language
        )
        outcome.fields_failed = result.failed_count
        outcome.fields_translated = len(units) - result.failed_count
        if result.all_failed:
            raise TranslationBackendError(
                f"Translation to {locale.language} failed for all {len(units)} text(s)"
            )
        if result.failed_count:
            self._progress(locale, f"{result.failed_count} text(s) left untranslated after backend failures")

        position = 0
        for item in work:
            translations: Dict[OriginKey, str] = {}
            for unit in item.units:
                if position not in result.failed_indices:
                    translations[unit.origin_key] = unit.restore(result.translations[position])
                position += 1

            if item.is_properties:
                properties = [PropertyUpdate(key[0], text) for key, text in translations.items()]
                written = await self.updater.apply_properties(item.document.id, locale.id, properties)
            else:
                written = await self.updater.apply(item.document, locale.id, build_updates(item.nodes, translations))

            outcome.nodes_updated += written.written
            outcome.corrected_nodes += written.corrected
            if written.written:
                self._progress(locale, f"Updated {written.written} node(s) in {item.document}")
