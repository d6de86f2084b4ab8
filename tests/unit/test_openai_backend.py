"""Unit tests for the OpenAI-compatible backend and response extraction."""

import json

import httpx
import pytest

from sitelocalizer.core.exceptions import AuthenticationError, TranslationBackendError
from sitelocalizer.core.http_client import RetryConfig, RetryingHttpClient
from sitelocalizer.llm.extraction import TranslationExtractor
from sitelocalizer.llm.openai import OpenAICompatibleBackend
from sitelocalizer.llm.prompts import build_translation_prompt

ENDPOINT = "https://llm.test/v1/chat/completions"


def completion(content):
    return httpx.Response(200, json={"choices": [{"message": {"content": content}}]})


def make_backend(handler):
    requests = []

    def recording(request):
        requests.append(request)
        return handler(request)

    http = RetryingHttpClient(
        transport=httpx.MockTransport(recording),
        retry_config=RetryConfig(max_attempts=1),
    )
    return OpenAICompatibleBackend(api_endpoint=ENDPOINT, model="test-model", http_client=http), requests


class TestTranslationExtractor:
    """Test extraction of the translation from raw model output."""

    @pytest.fixture
    def extractor(self):
        return TranslationExtractor("<TRANSLATION>", "</TRANSLATION>")

    def test_tagged(self, extractor):
        assert extractor.extract("<TRANSLATION>Bonjour</TRANSLATION>") == "Bonjour"

    def test_think_block_removed(self, extractor):
        response = "<think>the user wants French</think>\n<TRANSLATION>Bonjour</TRANSLATION>"
        assert extractor.extract(response) == "Bonjour"

    def test_orphan_think_close(self, extractor):
        assert extractor.extract("reasoning...</think><TRANSLATION>Salut</TRANSLATION>") == "Salut"

    def test_tags_inside_text(self, extractor):
        assert extractor.extract("Sure! <TRANSLATION>Hallo</TRANSLATION> Hope it helps") == "Hallo"

    def test_untagged_answer_used_as_is(self, extractor):
        assert extractor.extract("  Hola  ") == "Hola"

    def test_empty(self, extractor):
        assert extractor.extract("") is None
        assert extractor.extract("<think>only thoughts</think>") is None


class TestOpenAICompatibleBackend:
    """Test the chat completions backend against a mocked server."""

    @pytest.mark.asyncio
    async def test_translate(self):
        backend, requests = make_backend(lambda r: completion("<TRANSLATION>Bonjour</TRANSLATION>"))

        result = await backend.translate("Hello", "French", "English", context="Page title")

        assert result == "Bonjour"
        body = json.loads(requests[0].content)
        assert body["model"] == "test-model"
        user_prompt = body["messages"][1]["content"]
        assert "English text to French" in user_prompt
        assert "Context: Page title" in user_prompt
        await backend.close()

    @pytest.mark.asyncio
    async def test_short_text_returned_untouched(self):
        backend, requests = make_backend(lambda r: completion("unused"))

        assert await backend.translate("%", "French", "English") == "%"
        assert requests == []

    @pytest.mark.asyncio
    async def test_empty_answer_is_backend_error(self):
        backend, _ = make_backend(lambda r: completion("<TRANSLATION></TRANSLATION>"))
        with pytest.raises(TranslationBackendError):
            await backend.translate("Hello", "French", "English")

    @pytest.mark.asyncio
    async def test_malformed_answer_is_backend_error(self):
        backend, _ = make_backend(lambda r: httpx.Response(200, json={"choices": []}))
        with pytest.raises(TranslationBackendError):
            await backend.translate("Hello", "French", "English")

    @pytest.mark.asyncio
    async def test_server_error_is_backend_error(self):
        backend, _ = make_backend(lambda r: httpx.Response(500, text="overloaded"))
        with pytest.raises(TranslationBackendError):
            await backend.translate("Hello", "French", "English")

    @pytest.mark.asyncio
    async def test_authentication_error_propagates(self):
        backend, _ = make_backend(lambda r: httpx.Response(401, json={"error": "bad key"}))
        with pytest.raises(AuthenticationError):
            await backend.translate("Hello", "French", "English")


def test_prompt_without_context():
    prompt = build_translation_prompt("Hi", "English", "German")
    assert "Context:" not in prompt
    assert prompt.endswith("Hi\n\nTranslation:")
