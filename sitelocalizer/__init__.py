"""
sitelocalizer - LLM-driven localization of Webflow sites

Walks a page (or component) and every nested component, translates the
text while keeping its markup intact, and writes it back per locale.
"""

__version__ = "1.0.0"
