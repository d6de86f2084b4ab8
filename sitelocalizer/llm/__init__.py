"""
Translation backends.

Backends:
    - openai: OpenAI-compatible chat completions APIs
"""

from .base import TranslationBackend
from .openai import OpenAICompatibleBackend

__all__ = ['TranslationBackend', 'OpenAICompatibleBackend']
