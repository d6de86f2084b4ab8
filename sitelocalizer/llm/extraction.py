"""
Translation extraction from LLM responses.

This module provides utilities for extracting translations from LLM responses,
handling various response formats including thinking blocks.
"""

import logging
import re
from typing import Optional

logger = logging.getLogger(__name__)


class TranslationExtractor:
    """
    Extracts translation text from LLM responses.

    Handles:
        - Extraction between custom tags (e.g., <TRANSLATION>...</TRANSLATION>)
        - Removal of <think>...</think> blocks
        - Fallback to the trimmed raw response if tags are not found

    Example:
        >>> extractor = TranslationExtractor("<TRANSLATION>", "</TRANSLATION>")
        >>> extractor.extract("<think>reasoning</think><TRANSLATION>Bonjour</TRANSLATION>")
        'Bonjour'
    """

    def __init__(self, tag_in: str, tag_out: str):
        self._tag_in = tag_in
        self._tag_out = tag_out
        self._compiled_regex = re.compile(
            rf"{re.escape(tag_in)}(.*?){re.escape(tag_out)}",
            re.DOTALL
        )

    def extract(self, response: str) -> Optional[str]:
        """
        Extract the translation from a raw response.

        Returns:
            Extracted translation, or None if the response is empty
        """
        if not response:
            return None

        response = self._remove_think_blocks(response.strip()).strip()
        if not response:
            return None

        if response.startswith(self._tag_in) and response.endswith(self._tag_out):
            return response[len(self._tag_in):-len(self._tag_out)].strip()

        match = self._compiled_regex.search(response)
        if match:
            logger.debug("Translation tags found but not at response boundaries")
            return match.group(1).strip()

        # Model ignored the wrapping instruction; its whole answer is the translation
        return response

    def _remove_think_blocks(self, response: str) -> str:
        """
        Remove all <think>...</think> blocks from response.

        Also drops everything up to an orphan closing </think>, which some
        servers emit when the opening tag is truncated.
        """
        response = re.sub(r'<think>.*?</think>', '', response, flags=re.DOTALL | re.IGNORECASE)
        return re.sub(r'^.*?</think>\s*', '', response, flags=re.DOTALL | re.IGNORECASE)
