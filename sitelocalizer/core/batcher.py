"""
Deduplicating batch translation.

Duplicates are translated once; unique texts are processed in fixed-size
batches; results are projected back over the original order. A batch that
fails degrades to its source strings so the rest of the run keeps going,
and the failed positions are reported so callers can tell "untranslated
because the backend failed" from a real translation.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Set, Tuple

from sitelocalizer.config import TRANSLATION_BATCH_SIZE
from sitelocalizer.llm.base import TranslationBackend
from .exceptions import AuthenticationError
from .html_translator import HtmlPreservingTranslator

logger = logging.getLogger(__name__)


@dataclass
class BatchResult:
    """Translations aligned with the input list.

    Attributes:
        translations: One output per input, same order
        failed_indices: Input positions whose output is the untranslated source
        unique_count: Number of distinct input strings
    """
    translations: List[str]
    failed_indices: Set[int] = field(default_factory=set)
    unique_count: int = 0

    @property
    def failed_count(self) -> int:
        return len(self.failed_indices)

    @property
    def all_failed(self) -> bool:
        return bool(self.translations) and self.failed_count == len(self.translations)


class TranslationBatcher:
    """Translates lists of strings through a backend, once per unique string."""

    def __init__(self, backend: TranslationBackend, batch_size: int = TRANSLATION_BATCH_SIZE):
        """
        Args:
            backend: Translation backend
            batch_size: Maximum number of unique strings translated per batch
        """
        self.backend = backend
        self.batch_size = max(1, batch_size)
        # In-run cache: (target, source, context, text) -> translation
        self._cache: Dict[Tuple[str, str, str, str], str] = {}

    async def translate_batch(
        self,
        texts: List[str],
        target_language: str,
        source_language: str,
        context: Optional[str] = None
    ) -> BatchResult:
        """Translate texts, returning results in the same order and length."""
        unique: List[str] = list(dict.fromkeys(texts))
        key_prefix = (target_language, source_language, context or "")
        translated: Dict[str, str] = {}
        failed: Set[str] = set()

        pending = []
        for text in unique:
            cached = self._cache.get(key_prefix + (text,))
            if cached is not None:
                translated[text] = cached
            else:
                pending.append(text)

        translator = HtmlPreservingTranslator(
            lambda core: self.backend.translate(core, target_language, source_language, context)
        )

        for start in range(0, len(pending), self.batch_size):
            batch = pending[start:start + self.batch_size]
            results = await asyncio.gather(
                *(translator.translate(text) for text in batch),
                return_exceptions=True
            )
            errors = [r for r in results if isinstance(r, BaseException)]
            for error in errors:
                if isinstance(error, (AuthenticationError, asyncio.CancelledError)):
                    raise error
            if errors:
                logger.warning(
                    f"Batch {start // self.batch_size + 1} ({len(batch)} texts) to "
                    f"{target_language} failed, keeping source text: {errors[0]}"
                )
                for text in batch:
                    translated[text] = text
                    failed.add(text)
                continue

            for text, result in zip(batch, results):
                translated[text] = result
                self._cache[key_prefix + (text,)] = result

        return BatchResult(
            translations=[translated[text] for text in texts],
            failed_indices={i for i, text in enumerate(texts) if text in failed},
            unique_count=len(unique),
        )
