"""
Turns content nodes into translation units.

Text nodes yield one unit (html preferred over text), component instances
yield one unit per non-empty property override. Surrounding whitespace is
captured on the unit and stripped from what the backend sees.
"""

from typing import Iterable, List, Optional

from .html_translator import is_blank, is_html_like, split_whitespace
from .models import (
    ComponentInstanceNode,
    ContentNode,
    OriginKey,
    PropertyOverride,
    TextNode,
    TranslationUnit,
)


def make_unit(content: Optional[str], origin_key: OriginKey) -> Optional[TranslationUnit]:
    """Build a unit from raw content, or None when nothing visible is left."""
    if content is None or is_blank(content):
        return None
    leading, core, trailing = split_whitespace(content)
    return TranslationUnit(
        source_text=core,
        is_html=is_html_like(core),
        origin_key=origin_key,
        leading=leading,
        trailing=trailing,
    )


class NodeExtractor:
    """Classifies nodes into zero or more TranslationUnits."""

    def extract(self, node: ContentNode) -> List[TranslationUnit]:
        if isinstance(node, TextNode):
            unit = make_unit(node.content, (node.node_id,))
            return [unit] if unit else []

        if isinstance(node, ComponentInstanceNode):
            return self.extract_properties(node.property_overrides, node.node_id)

        return []

    def extract_properties(
        self,
        properties: Iterable[PropertyOverride],
        node_id: Optional[str] = None
    ) -> List[TranslationUnit]:
        """
        Units for property overrides (or component property defaults).

        Args:
            properties: Overrides to extract
            node_id: Owning instance node; None for component-level defaults,
                in which case the origin key is just (property_id,)
        """
        units = []
        for prop in properties:
            key = (node_id, prop.property_id) if node_id else (prop.property_id,)
            unit = make_unit(prop.content, key)
            if unit:
                units.append(unit)
        return units

    def extract_all(self, nodes: Iterable[ContentNode]) -> List[TranslationUnit]:
        units: List[TranslationUnit] = []
        for node in nodes:
            units.extend(self.extract(node))
        return units
