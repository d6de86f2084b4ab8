"""
Base class for translation backends.
"""

from abc import ABC, abstractmethod
from typing import Optional


class TranslationBackend(ABC):
    """Abstract base class for translation backends"""

    @abstractmethod
    async def translate(
        self,
        text: str,
        target_language: str,
        source_language: str,
        context: Optional[str] = None
    ) -> str:
        """
        Translate plain text.

        Args:
            text: Trimmed text to translate
            target_language: Language to translate into
            source_language: Language of the text
            context: Optional hint about where the text is used

        Returns:
            Translated text

        Raises:
            TranslationBackendError: When no usable translation is produced
        """
        pass

    async def close(self):
        """Release any network resources."""
        pass
