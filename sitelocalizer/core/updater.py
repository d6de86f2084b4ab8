"""
Writes translated content back to the store, one locale at a time.

When the store rejects fields with an "Expected <tag>" error, the offending
content is HTML-escaped, wrapped in the expected tag and the full payload
is resubmitted exactly once. Any error that is not of that shape, or that survives the
retry, fails the update with StructuralValidationError.
"""

import html
import logging
import re
from dataclasses import dataclass
from typing import Awaitable, Callable, Dict, List, Optional, Sequence, TypeVar

from sitelocalizer.store.base import ContentStore
from .exceptions import StructuralValidationError
from .models import (
    ComponentInstanceUpdate,
    DocumentRef,
    FieldError,
    PropertyUpdate,
    TextUpdate,
    UpdatePayload,
    UpdateResponse,
)

logger = logging.getLogger(__name__)

# "Expected <p>", "Expected `<p>`", "expected 'h1'", or a bare "Expected p"
# that ends the message or is followed by "but". "Unexpected ..." and
# "expected a string value" do not match.
EXPECTED_TAG_PATTERN = re.compile(
    r'\bexpected\s+(?:'
    r'<\s*([a-z][a-z0-9-]*)\s*/?>'
    r'|[`"\']\s*<?\s*([a-z][a-z0-9-]*)\s*/?>?\s*[`"\']'
    r'|([a-z][a-z0-9-]*)(?=\s*[.!]?\s*$|\s*,?\s+but\b)'
    r')',
    re.IGNORECASE
)

P = TypeVar('P')


def parse_expected_tag(message: str) -> Optional[str]:
    """Return the tag name the store expects, or None if the error has another shape."""
    match = EXPECTED_TAG_PATTERN.search(message or "")
    if not match:
        return None
    return next(group for group in match.groups() if group).lower()


def wrap_in_tag(text: str, tag: str) -> str:
    """Escape the trimmed text and wrap it in tag."""
    return f"<{tag}>{html.escape(text.strip())}</{tag}>"


@dataclass
class UpdateOutcome:
    """Result of a successful update.

    Attributes:
        written: Number of payload entries accepted
        corrected: How many of them needed the corrective re-wrap
    """
    written: int
    corrected: int = 0


def _correct_document_payload(
    payload: UpdatePayload,
    error: FieldError,
    tag: str
) -> UpdatePayload:
    if isinstance(payload, TextUpdate):
        return TextUpdate(node_id=payload.node_id, text=wrap_in_tag(payload.text, tag))
    overrides = [
        PropertyUpdate(prop.property_id, wrap_in_tag(prop.text, tag))
        if error.property_id in (None, prop.property_id) else prop
        for prop in payload.property_overrides
    ]
    return ComponentInstanceUpdate(node_id=payload.node_id, property_overrides=overrides)


def _correct_property(payload: PropertyUpdate, error: FieldError, tag: str) -> PropertyUpdate:
    return PropertyUpdate(property_id=payload.property_id, text=wrap_in_tag(payload.text, tag))


class StructuralUpdater:
    """Applies update payloads with one corrective retry"""

    def __init__(self, store: ContentStore):
        self.store = store

    async def apply(
        self,
        document: DocumentRef,
        locale_id: str,
        updates: List[UpdatePayload]
    ) -> UpdateOutcome:
        """Write node updates for one document and locale."""
        if not updates:
            return UpdateOutcome(written=0)
        return await self._submit_with_correction(
            label=f"{document} [{locale_id}]",
            payload=updates,
            key=lambda update: update.node_id,
            submit=lambda batch: self.store.update_document(document, locale_id, batch),
            correct=_correct_document_payload,
        )

    async def apply_properties(
        self,
        component_id: str,
        locale_id: str,
        properties: List[PropertyUpdate]
    ) -> UpdateOutcome:
        """Write component property values for one locale."""
        if not properties:
            return UpdateOutcome(written=0)
        return await self._submit_with_correction(
            label=f"component:{component_id} properties [{locale_id}]",
            payload=properties,
            key=lambda prop: prop.property_id,
            submit=lambda batch: self.store.set_component_properties(component_id, locale_id, batch),
            correct=_correct_property,
        )

    async def _submit_with_correction(
        self,
        label: str,
        payload: Sequence[P],
        key: Callable[[P], str],
        submit: Callable[[List[P]], Awaitable[UpdateResponse]],
        correct: Callable[[P, FieldError, str], P],
    ) -> UpdateOutcome:
        response = await submit(list(payload))
        if response.ok:
            return UpdateOutcome(written=len(payload))

        by_key: Dict[str, P] = {key(item): item for item in payload}
        corrected: Dict[str, P] = {}
        uncorrectable: List[FieldError] = []

        for error in response.errors:
            tag = parse_expected_tag(error.error)
            target_key = error.node_id if error.node_id in by_key else error.property_id
            if tag is None or target_key not in by_key:
                uncorrectable.append(error)
                continue
            base = corrected.get(target_key, by_key[target_key])
            corrected[target_key] = correct(base, error, tag)

        if not corrected:
            logger.error(f"Update of {label} rejected: {[e.error for e in response.errors]}")
            raise StructuralValidationError(
                f"Store rejected {len(uncorrectable)} field(s) of {label}",
                field_errors=uncorrectable,
            )

        # A rejected request may have applied nothing, so the whole payload
        # is resubmitted with the corrected entries swapped in.
        logger.info(f"Re-wrapping {len(corrected)} field(s) of {label} and retrying once")
        retry = await submit([corrected.get(key(item), item) for item in payload])
        remaining = retry.errors + uncorrectable
        if remaining:
            logger.error(f"Update of {label} still rejected after correction: {[e.error for e in remaining]}")
            raise StructuralValidationError(
                f"Store rejected {len(remaining)} field(s) of {label} after corrective retry",
                field_errors=remaining,
            )

        return UpdateOutcome(written=len(payload), corrected=len(corrected))
