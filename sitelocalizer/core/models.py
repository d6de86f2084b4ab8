"""
Data model for the localization pipeline.

Content nodes are modelled as explicit variants per node kind. Raw JSON
coming back from the content store is validated into these types once,
in the store layer, so the rest of the pipeline never inspects loose dicts.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple, Union


class NodeKind(Enum):
    """Kinds of content nodes the pipeline understands."""
    TEXT = "text"
    COMPONENT_INSTANCE = "component-instance"


class DocumentKind(Enum):
    """Kinds of documents that own a node tree."""
    PAGE = "page"
    COMPONENT = "component"


@dataclass(frozen=True)
class DocumentRef:
    """Reference to a page or a component whose DOM can be fetched/updated."""
    kind: DocumentKind
    id: str

    @classmethod
    def page(cls, page_id: str) -> 'DocumentRef':
        return cls(DocumentKind.PAGE, page_id)

    @classmethod
    def component(cls, component_id: str) -> 'DocumentRef':
        return cls(DocumentKind.COMPONENT, component_id)

    def __str__(self) -> str:
        return f"{self.kind.value}:{self.id}"


@dataclass
class PropertyOverride:
    """A per-instance override (or a default) of a named slot on a component.

    Attributes:
        property_id: Identifier of the component property
        text: Plain text representation
        html: Rich representation, when the property carries markup
    """
    property_id: str
    text: Optional[str] = None
    html: Optional[str] = None

    @property
    def content(self) -> Optional[str]:
        """Preferred representation: html when present, else text."""
        return self.html if self.html else self.text

    def to_dict(self) -> Dict[str, Any]:
        return {'propertyId': self.property_id, 'text': {'text': self.text, 'html': self.html}}


@dataclass
class TextNode:
    """A text run inside a document."""
    node_id: str
    text: Optional[str] = None
    html: Optional[str] = None
    kind: NodeKind = field(default=NodeKind.TEXT, init=False)

    @property
    def content(self) -> Optional[str]:
        return self.html if self.html else self.text

    def to_dict(self) -> Dict[str, Any]:
        return {'id': self.node_id, 'type': self.kind.value, 'text': {'text': self.text, 'html': self.html}}


@dataclass
class ComponentInstanceNode:
    """A reference to a reusable component, with per-instance overrides."""
    node_id: str
    component_id: str
    property_overrides: List[PropertyOverride] = field(default_factory=list)
    kind: NodeKind = field(default=NodeKind.COMPONENT_INSTANCE, init=False)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.node_id,
            'type': self.kind.value,
            'componentId': self.component_id,
            'propertyOverrides': [o.to_dict() for o in self.property_overrides],
        }


ContentNode = Union[TextNode, ComponentInstanceNode]


@dataclass
class Locale:
    """A locale known to the content store.

    Attributes:
        id: Store identifier of the locale
        tag: Language tag (e.g. "fr-FR")
        display_name: Human-readable name (e.g. "French")
        cms_locale_id: Store-specific localization id; when absent, content
            localization is disabled for this locale
        enabled: Whether the locale is enabled on the site
    """
    id: str
    tag: str = ""
    display_name: str = ""
    cms_locale_id: Optional[str] = None
    enabled: bool = True

    @property
    def is_translation_target(self) -> bool:
        return bool(self.cms_locale_id)

    @property
    def name(self) -> str:
        return self.display_name or self.tag or self.id

    @property
    def language(self) -> str:
        """Language name handed to the translation backend."""
        return self.display_name or self.tag or self.id

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Locale':
        return cls(
            id=str(data.get('id', '')),
            tag=data.get('tag') or '',
            display_name=data.get('displayName') or '',
            cms_locale_id=data.get('cmsLocaleId') or None,
            enabled=bool(data.get('enabled', True)),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'tag': self.tag,
            'displayName': self.display_name,
            'cmsLocaleId': self.cms_locale_id,
            'enabled': self.enabled,
        }


@dataclass
class SiteLocales:
    """Primary (source) and secondary (target) locales of a site."""
    primary: Optional[Locale]
    secondary: List[Locale] = field(default_factory=list)

    def find(self, locale_id: str) -> Optional[Locale]:
        for locale in self.secondary:
            if locale.id == locale_id:
                return locale
        if self.primary and self.primary.id == locale_id:
            return self.primary
        return None


# Routes a translated unit back to its update target:
# (node_id,) for a text node, (node_id, property_id) for an override.
OriginKey = Tuple[str, ...]


@dataclass
class TranslationUnit:
    """A single piece of text to translate.

    Attributes:
        source_text: Trimmed core content sent to the backend
        is_html: Whether the content carries markup
        origin_key: Identifies the owning node (and property) for routing
        leading: Whitespace stripped from the start of the source
        trailing: Whitespace stripped from the end of the source
    """
    source_text: str
    is_html: bool
    origin_key: OriginKey
    leading: str = ""
    trailing: str = ""

    def restore(self, translated_core: str) -> str:
        """Reattach the original surrounding whitespace verbatim."""
        return f"{self.leading}{translated_core}{self.trailing}"


@dataclass
class TextUpdate:
    """Update payload for a text node."""
    node_id: str
    text: str

    def to_dict(self) -> Dict[str, Any]:
        return {'nodeId': self.node_id, 'text': self.text}


@dataclass
class PropertyUpdate:
    """One translated property value."""
    property_id: str
    text: str

    def to_dict(self) -> Dict[str, Any]:
        return {'propertyId': self.property_id, 'text': self.text}


@dataclass
class ComponentInstanceUpdate:
    """Update payload for the overrides of a component instance."""
    node_id: str
    property_overrides: List[PropertyUpdate] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'nodeId': self.node_id,
            'propertyOverrides': [p.to_dict() for p in self.property_overrides],
        }


UpdatePayload = Union[TextUpdate, ComponentInstanceUpdate]


@dataclass
class FieldError:
    """A per-field rejection reported by the store after an update.

    Attributes:
        node_id: Node (or property, for property updates) the error refers to
        error: Raw error message, e.g. "Expected <p>"
        property_id: Property of a component instance, when reported
    """
    node_id: str
    error: str
    property_id: Optional[str] = None


@dataclass
class UpdateResponse:
    """Result of a single write to the store."""
    errors: List[FieldError] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors


class LocaleStatus(Enum):
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass
class LocaleOutcome:
    """Outcome of one locale's pipeline run."""
    locale_id: str
    locale_name: str
    status: LocaleStatus
    nodes_updated: int = 0
    fields_translated: int = 0
    fields_failed: int = 0
    corrected_nodes: int = 0
    error: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.status == LocaleStatus.COMPLETED

    def to_dict(self) -> Dict[str, Any]:
        return {
            'localeId': self.locale_id,
            'locale': self.locale_name,
            'status': self.status.value,
            'nodesUpdated': self.nodes_updated,
            'fieldsTranslated': self.fields_translated,
            'fieldsFailed': self.fields_failed,
            'correctedNodes': self.corrected_nodes,
            'error': self.error,
        }


@dataclass
class RunSummary:
    """Structured partial-success summary of a translation run."""
    root: str
    outcomes: List[LocaleOutcome] = field(default_factory=list)
    api_call_count: int = 0

    @property
    def completed_locales(self) -> List[str]:
        return [o.locale_name for o in self.outcomes if o.succeeded]

    @property
    def failed_locales(self) -> List[LocaleOutcome]:
        return [o for o in self.outcomes if not o.succeeded]

    @property
    def nodes_touched(self) -> int:
        return sum(o.nodes_updated for o in self.outcomes)

    @property
    def fields_translated(self) -> int:
        return sum(o.fields_translated for o in self.outcomes)

    def outcome_for(self, locale_id: str) -> Optional[LocaleOutcome]:
        for outcome in self.outcomes:
            if outcome.locale_id == locale_id:
                return outcome
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'root': self.root,
            'nodesTouched': self.nodes_touched,
            'fieldsTranslated': self.fields_translated,
            'completedLocales': self.completed_locales,
            'failedLocales': [
                {'locale': o.locale_name, 'localeId': o.locale_id, 'error': o.error}
                for o in self.failed_locales
            ],
            'locales': [o.to_dict() for o in self.outcomes],
            'apiCallCount': self.api_call_count,
        }
