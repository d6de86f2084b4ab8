"""
Pytest configuration and fixtures for all tests.

This file is automatically loaded by pytest and provides common fixtures
and configuration for all test modules.
"""

import os
import sys
from pathlib import Path
from typing import List, Optional, Set, Tuple

# Silence the missing .env notice before the config module is imported
os.environ.setdefault('SITELOCALIZER_QUIET', '1')

# Add project root to Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

import pytest

from sitelocalizer.core.exceptions import TranslationBackendError
from sitelocalizer.core.models import Locale, SiteLocales
from sitelocalizer.llm.base import TranslationBackend
from sitelocalizer.store.memory import InMemoryContentStore


class FakeBackend(TranslationBackend):
    """
    Deterministic backend: "Hello" to French becomes "[French] Hello".

    Records every call; fails every call for the languages in failing_languages.
    """

    def __init__(self, failing_languages: Optional[Set[str]] = None):
        self.calls: List[Tuple[str, str, str, Optional[str]]] = []
        self.failing_languages = set(failing_languages or ())
        self.closed = False

    async def translate(self, text, target_language, source_language, context=None):
        self.calls.append((text, target_language, source_language, context))
        if target_language in self.failing_languages:
            raise TranslationBackendError(f"backend down for {target_language}")
        return f"[{target_language}] {text}"

    async def close(self):
        self.closed = True

    def texts_for(self, target_language: str) -> List[str]:
        return [text for text, target, _, _ in self.calls if target == target_language]


@pytest.fixture
def backend():
    return FakeBackend()


@pytest.fixture
def site_locales():
    """English primary with French and German targets."""
    return SiteLocales(
        primary=Locale(id='loc-en', tag='en-US', display_name='English', cms_locale_id='cms-en'),
        secondary=[
            Locale(id='loc-fr', tag='fr-FR', display_name='French', cms_locale_id='cms-fr'),
            Locale(id='loc-de', tag='de-DE', display_name='German', cms_locale_id='cms-de'),
        ]
    )


@pytest.fixture
def store(site_locales):
    return InMemoryContentStore(site_locales)


@pytest.fixture
def backend_factory():
    """Build a FakeBackend with custom failing languages."""
    return FakeBackend
