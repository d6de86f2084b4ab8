"""Unit tests for TranslationBatcher."""

import pytest

from sitelocalizer.core.batcher import TranslationBatcher
from sitelocalizer.core.exceptions import AuthenticationError, TranslationBackendError
from sitelocalizer.llm.base import TranslationBackend


class SelectiveBackend(TranslationBackend):
    """Fails for the texts in failing, translates everything else."""

    def __init__(self, failing=(), error=TranslationBackendError):
        self.failing = set(failing)
        self.error = error
        self.calls = []

    async def translate(self, text, target_language, source_language, context=None):
        self.calls.append(text)
        if text in self.failing:
            raise self.error(f"cannot translate {text}")
        return text.upper()


class TestDeduplication:
    """Test that duplicates are translated once."""

    @pytest.mark.asyncio
    async def test_duplicates_translated_once(self, backend):
        result = await TranslationBatcher(backend).translate_batch(["a", "a", "b"], "French", "English")

        assert len(backend.calls) == 2
        assert sorted(text for text, _, _, _ in backend.calls) == ["a", "b"]
        assert result.translations == ["[French] a", "[French] a", "[French] b"]
        assert result.unique_count == 2
        assert not result.failed_indices

    @pytest.mark.asyncio
    async def test_order_and_length_preserved_across_batches(self):
        backend = SelectiveBackend()
        texts = ["one", "two", "three", "two", "four", "five", "one"]
        result = await TranslationBatcher(backend, batch_size=2).translate_batch(texts, "French", "English")

        assert result.translations == [t.upper() for t in texts]
        assert len(backend.calls) == 5

    @pytest.mark.asyncio
    async def test_empty_input(self, backend):
        result = await TranslationBatcher(backend).translate_batch([], "French", "English")
        assert result.translations == []
        assert not result.all_failed
        assert backend.calls == []

    @pytest.mark.asyncio
    async def test_in_run_cache_reused(self, backend):
        batcher = TranslationBatcher(backend)
        await batcher.translate_batch(["Hello"], "French", "English")
        await batcher.translate_batch(["Hello", "World"], "French", "English")

        assert [text for text, _, _, _ in backend.calls] == ["Hello", "World"]

    @pytest.mark.asyncio
    async def test_cache_is_per_language(self, backend):
        batcher = TranslationBatcher(backend)
        fr = await batcher.translate_batch(["Hello"], "French", "English")
        de = await batcher.translate_batch(["Hello"], "German", "English")

        assert fr.translations == ["[French] Hello"]
        assert de.translations == ["[German] Hello"]

    @pytest.mark.asyncio
    async def test_context_forwarded(self, backend):
        await TranslationBatcher(backend).translate_batch(["Title"], "French", "English", context="Page metadata")
        assert backend.calls[0][3] == "Page metadata"


class TestFailurePolicy:
    """Test batch-level fallback to source text."""

    @pytest.mark.asyncio
    async def test_failed_batch_falls_back_to_source(self):
        backend = SelectiveBackend(failing={"bad"})
        result = await TranslationBatcher(backend, batch_size=2).translate_batch(
            ["good", "bad", "fine"], "French", "English"
        )

        # "good" and "bad" share the first batch
        assert result.translations == ["good", "bad", "FINE"]
        assert result.failed_indices == {0, 1}
        assert result.failed_count == 2
        assert not result.all_failed

    @pytest.mark.asyncio
    async def test_failed_indices_cover_duplicates(self):
        backend = SelectiveBackend(failing={"bad"})
        result = await TranslationBatcher(backend, batch_size=1).translate_batch(
            ["bad", "ok", "bad"], "French", "English"
        )
        assert result.translations == ["bad", "OK", "bad"]
        assert result.failed_indices == {0, 2}

    @pytest.mark.asyncio
    async def test_all_failed(self):
        backend = SelectiveBackend(failing={"x", "y"})
        result = await TranslationBatcher(backend).translate_batch(["x", "y"], "French", "English")
        assert result.all_failed

    @pytest.mark.asyncio
    async def test_failures_not_cached(self):
        backend = SelectiveBackend(failing={"flaky"})
        batcher = TranslationBatcher(backend)
        await batcher.translate_batch(["flaky"], "French", "English")
        backend.failing.clear()

        result = await batcher.translate_batch(["flaky"], "French", "English")
        assert result.translations == ["FLAKY"]

    @pytest.mark.asyncio
    async def test_authentication_error_aborts(self):
        backend = SelectiveBackend(failing={"secret"}, error=AuthenticationError)
        with pytest.raises(AuthenticationError):
            await TranslationBatcher(backend).translate_batch(["secret"], "French", "English")

    @pytest.mark.asyncio
    async def test_html_goes_through_preserving_path(self, backend):
        result = await TranslationBatcher(backend).translate_batch(
            ["<strong>World</strong>"], "French", "English"
        )
        assert result.translations == ["<strong>[French] World</strong>"]
        assert [text for text, _, _, _ in backend.calls] == ["World"]
