"""
Markup-safe translation.

Strings that look like HTML are split into alternating tag / text tokens.
Only text tokens are ever handed to the translation backend; tags are
atomic literals and are copied to the output unchanged, so the tag
structure of the result is identical to the source. Markup is not
validated: any <...> shaped substring counts as a tag.
"""

import html
import re
from typing import Awaitable, Callable, List, Optional

TAG_PATTERN = re.compile(r'<[^>]+>')
_SPLIT_PATTERN = re.compile(r'(<[^>]+>)')

# Zero-width and bidi control characters that render as nothing
INVISIBLE_CHARS = (
    '\u00ad'                            # soft hyphen
    '\u200b\u200c\u200d\u200e\u200f'
    '\u202a\u202b\u202c\u202d\u202e'
    '\u2060\u2061\u2062\u2063\u2064'
    '\u2066\u2067\u2068\u2069'
    '\ufeff'
)
_INVISIBLE_RE = re.compile('[' + INVISIBLE_CHARS + ']')

TranslateFn = Callable[[str], Awaitable[str]]


def strip_invisible(text: str) -> str:
    """Remove zero-width / invisible control characters."""
    return _INVISIBLE_RE.sub('', text)


def is_blank(text: Optional[str]) -> bool:
    """True when nothing visible remains after removing invisibles and whitespace."""
    if not text:
        return True
    return not strip_invisible(text).strip()


def is_html_like(text: str) -> bool:
    return bool(TAG_PATTERN.search(text))


def is_tag(token: str) -> bool:
    return bool(TAG_PATTERN.fullmatch(token))


def tokenize_html(text: str) -> List[str]:
    """
    Split text into alternating tag / non-tag tokens.

    Concatenating the returned tokens always reproduces the input exactly.

    Example:
        >>> tokenize_html("<p>Hello <b>World</b></p>")
        ['<p>', 'Hello ', '<b>', 'World', '</b>', '</p>']
    """
    return [token for token in _SPLIT_PATTERN.split(text) if token]


def _needs_translation(token: str) -> bool:
    if is_tag(token):
        return False
    # Whitespace, invisible characters and bare entities such as &nbsp;
    return not is_blank(html.unescape(token))


def split_whitespace(text: str):
    """Return (leading, core, trailing) whitespace split of text."""
    core = text.strip()
    if not core:
        return text, "", ""
    start = text.index(core)
    return text[:start], core, text[start + len(core):]


class HtmlPreservingTranslator:
    """Translate text while keeping any markup byte-for-byte intact."""

    def __init__(self, translate_plain: TranslateFn):
        """
        Args:
            translate_plain: Coroutine translating one plain-text string
        """
        self._translate_plain = translate_plain

    async def translate(self, text: str) -> str:
        """Translate a string, tag-structure preserving when it looks like HTML."""
        if not is_html_like(text):
            return await self._translate_fragment(text)

        tokens = tokenize_html(text)
        translated: List[str] = []
        for token in tokens:
            if _needs_translation(token):
                translated.append(await self._translate_fragment(token))
            else:
                translated.append(token)
        return ''.join(translated)

    async def _translate_fragment(self, fragment: str) -> str:
        if is_blank(fragment):
            return fragment
        leading, core, trailing = split_whitespace(fragment)
        result = await self._translate_plain(core)
        return f"{leading}{result}{trailing}"
