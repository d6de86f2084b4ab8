"""
Content store implementations.

Stores:
    - webflow: Webflow Data API v2
    - memory: in-memory store for tests
"""

from .base import ContentStore
from .memory import InMemoryContentStore
from .webflow import WebflowContentStore

__all__ = ['ContentStore', 'InMemoryContentStore', 'WebflowContentStore']
