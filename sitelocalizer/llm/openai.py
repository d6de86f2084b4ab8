"""
OpenAI-compatible translation backend.

Works with OpenAI and any server exposing the chat completions API
(LM Studio, vLLM, llama.cpp, OpenRouter...).
"""

import logging
from typing import Optional

from sitelocalizer.config import (
    DEFAULT_MODEL,
    LLM_API_ENDPOINT,
    LLM_TEMPERATURE,
    OPENAI_API_KEY,
    REQUEST_TIMEOUT,
    TRANSLATE_TAG_IN,
    TRANSLATE_TAG_OUT,
)
from sitelocalizer.core.exceptions import (
    AuthenticationError,
    LocalizationError,
    TranslationBackendError,
)
from sitelocalizer.core.http_client import CallCounter, RetryingHttpClient
from .base import TranslationBackend
from .extraction import TranslationExtractor
from .prompts import build_system_prompt, build_translation_prompt

logger = logging.getLogger(__name__)

# Texts shorter than this are most likely symbols or codes
MIN_TRANSLATABLE_LENGTH = 2


class OpenAICompatibleBackend(TranslationBackend):
    """Chat-completions translation backend"""

    def __init__(
        self,
        api_endpoint: str = LLM_API_ENDPOINT,
        model: str = DEFAULT_MODEL,
        api_key: Optional[str] = OPENAI_API_KEY,
        temperature: float = LLM_TEMPERATURE,
        timeout: float = REQUEST_TIMEOUT,
        call_counter: Optional[CallCounter] = None,
        http_client: Optional[RetryingHttpClient] = None,
    ):
        self.api_endpoint = api_endpoint
        self.model = model
        self.temperature = temperature
        headers = {"Content-Type": "application/json"}
        if api_key:
            headers["Authorization"] = f"Bearer {api_key}"
        self._http = http_client or RetryingHttpClient(
            headers=headers, timeout=timeout, call_counter=call_counter
        )
        self._extractor = TranslationExtractor(TRANSLATE_TAG_IN, TRANSLATE_TAG_OUT)

    async def translate(
        self,
        text: str,
        target_language: str,
        source_language: str,
        context: Optional[str] = None
    ) -> str:
        if not text or len(text.strip()) < MIN_TRANSLATABLE_LENGTH:
            return text

        payload = {
            "model": self.model,
            "temperature": self.temperature,
            "messages": [
                {"role": "system", "content": build_system_prompt()},
                {"role": "user", "content": build_translation_prompt(
                    text, source_language, target_language, context
                )},
            ],
        }

        try:
            response_json = await self._http.post(self.api_endpoint, json=payload)
        except AuthenticationError:
            raise
        except LocalizationError as e:
            raise TranslationBackendError(
                f"Translation request failed: {e.message}",
                context={'target_language': target_language}
            ) from e

        try:
            content = response_json["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError) as e:
            raise TranslationBackendError("Unexpected translation response format") from e

        translated = self._extractor.extract(content) if isinstance(content, str) else None
        if not translated:
            raise TranslationBackendError(
                "Empty translation returned",
                context={'target_language': target_language}
            )
        return translated

    async def close(self):
        await self._http.close()
