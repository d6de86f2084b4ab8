"""Unit tests for StructuralUpdater and the corrective re-wrap retry."""

import pytest

from sitelocalizer.core.exceptions import StructuralValidationError
from sitelocalizer.core.models import (
    ComponentInstanceUpdate,
    DocumentRef,
    FieldError,
    PropertyUpdate,
    TextUpdate,
)
from sitelocalizer.core.updater import StructuralUpdater, parse_expected_tag, wrap_in_tag

PAGE = DocumentRef.page("page")


def reject(*errors):
    """Scripted store answer reporting the given (node_id, message) errors."""
    return lambda payload: [FieldError(node_id, message) for node_id, message in errors]


class TestExpectedTagParsing:
    """Test the narrow "Expected <tag>" heuristic."""

    @pytest.mark.parametrize("message,tag", [
        ("Expected p", "p"),
        ("Expected <p>", "p"),
        ("Expected `<h2>`", "h2"),
        ('Expected "li"', "li"),
        ("expected <P>", "p"),
        ("Validation failed: Expected <p> but got text", "p"),
        ("Expected h1, but found text", "h1"),
        ("Expected p.", "p"),
    ])
    def test_recognized_shapes(self, message, tag):
        assert parse_expected_tag(message) == tag

    @pytest.mark.parametrize("message", [
        "Text too long",
        "Invalid node",
        "Unexpected end of input",
        "Expected a string value",
        "Field expected to be shorter than 256 characters",
        "",
    ])
    def test_other_shapes_not_correctable(self, message):
        assert parse_expected_tag(message) is None

    def test_wrap_escapes_and_trims(self):
        assert wrap_in_tag("  Fish & <chips>  ", "p") == "<p>Fish &amp; &lt;chips&gt;</p>"


class TestDocumentUpdates:
    """Test StructuralUpdater.apply."""

    @pytest.mark.asyncio
    async def test_accepted_first_time(self, store):
        outcome = await StructuralUpdater(store).apply(PAGE, "loc-fr", [TextUpdate("n1", "Bonjour")])

        assert outcome.written == 1
        assert outcome.corrected == 0
        assert len(store.document_writes[(PAGE, "loc-fr")]) == 1

    @pytest.mark.asyncio
    async def test_empty_payload_not_submitted(self, store):
        outcome = await StructuralUpdater(store).apply(PAGE, "loc-fr", [])
        assert outcome.written == 0
        assert store.document_writes == {}

    @pytest.mark.asyncio
    async def test_corrective_retry_rewraps_offending_node(self, store):
        store.script_rejection("page", "loc-fr", reject(("n1", "Expected p")))
        updates = [TextUpdate("n1", "hello"), TextUpdate("n2", "world")]

        outcome = await StructuralUpdater(store).apply(PAGE, "loc-fr", updates)

        first, retry = store.document_writes[(PAGE, "loc-fr")]
        assert first == updates
        assert retry == [TextUpdate("n1", "<p>hello</p>"), TextUpdate("n2", "world")]
        assert outcome.written == 2
        assert outcome.corrected == 1

    @pytest.mark.asyncio
    async def test_retry_escapes_html_special_characters(self, store):
        store.script_rejection("page", "loc-fr", reject(("n1", "Expected <p>")))

        await StructuralUpdater(store).apply(PAGE, "loc-fr", [TextUpdate("n1", " Tom & Jerry <3 ")])

        retry = store.document_writes[(PAGE, "loc-fr")][1]
        assert retry == [TextUpdate("n1", "<p>Tom &amp; Jerry &lt;3</p>")]

    @pytest.mark.asyncio
    async def test_retry_happens_exactly_once(self, store):
        store.script_rejection("page", "loc-fr", reject(("n1", "Expected p")))
        store.script_rejection("page", "loc-fr", reject(("n1", "Expected p")))

        with pytest.raises(StructuralValidationError) as exc_info:
            await StructuralUpdater(store).apply(PAGE, "loc-fr", [TextUpdate("n1", "hello")])

        assert len(store.document_writes[(PAGE, "loc-fr")]) == 2
        assert [e.node_id for e in exc_info.value.field_errors] == ["n1"]

    @pytest.mark.asyncio
    async def test_uncorrectable_error_fails_without_retry(self, store):
        store.script_rejection("page", "loc-fr", reject(("n1", "Text too long")))

        with pytest.raises(StructuralValidationError):
            await StructuralUpdater(store).apply(PAGE, "loc-fr", [TextUpdate("n1", "hello")])

        assert len(store.document_writes[(PAGE, "loc-fr")]) == 1

    @pytest.mark.asyncio
    @pytest.mark.parametrize("message", [
        "Unexpected end of input",
        "Expected a string value",
        "Field expected to be shorter than 256 characters",
    ])
    async def test_unrelated_expected_wording_fails_without_retry(self, store, message):
        store.script_rejection("page", "loc-fr", reject(("n1", message)))

        with pytest.raises(StructuralValidationError):
            await StructuralUpdater(store).apply(PAGE, "loc-fr", [TextUpdate("n1", "hello")])

        assert store.document_writes[(PAGE, "loc-fr")] == [[TextUpdate("n1", "hello")]]

    @pytest.mark.asyncio
    async def test_uncorrectable_error_surfaced_after_successful_retry(self, store):
        store.script_rejection("page", "loc-fr", reject(("n1", "Expected p"), ("n2", "Unknown failure")))

        with pytest.raises(StructuralValidationError) as exc_info:
            await StructuralUpdater(store).apply(
                PAGE, "loc-fr", [TextUpdate("n1", "a"), TextUpdate("n2", "b")]
            )

        assert [e.node_id for e in exc_info.value.field_errors] == ["n2"]
        assert store.document_writes[(PAGE, "loc-fr")][1] == [TextUpdate("n1", "<p>a</p>"), TextUpdate("n2", "b")]

    @pytest.mark.asyncio
    async def test_error_for_unknown_node_not_correctable(self, store):
        store.script_rejection("page", "loc-fr", reject(("ghost", "Expected p")))

        with pytest.raises(StructuralValidationError):
            await StructuralUpdater(store).apply(PAGE, "loc-fr", [TextUpdate("n1", "hello")])

    @pytest.mark.asyncio
    async def test_component_instance_override_rewrapped(self, store):
        def answer(payload):
            return [FieldError("i1", "Expected p", property_id="p2")]

        store.script_rejection("page", "loc-fr", answer)
        update = ComponentInstanceUpdate("i1", [PropertyUpdate("p1", "Title"), PropertyUpdate("p2", "Body")])

        await StructuralUpdater(store).apply(PAGE, "loc-fr", [update])

        retry = store.document_writes[(PAGE, "loc-fr")][1]
        assert retry == [ComponentInstanceUpdate("i1", [
            PropertyUpdate("p1", "Title"),
            PropertyUpdate("p2", "<p>Body</p>"),
        ])]

    @pytest.mark.asyncio
    async def test_component_instance_without_property_rewraps_all(self, store):
        store.script_rejection("page", "loc-fr", reject(("i1", "Expected h3")))
        update = ComponentInstanceUpdate("i1", [PropertyUpdate("p1", "A"), PropertyUpdate("p2", "B")])

        await StructuralUpdater(store).apply(PAGE, "loc-fr", [update])

        retry = store.document_writes[(PAGE, "loc-fr")][1]
        assert [p.text for p in retry[0].property_overrides] == ["<h3>A</h3>", "<h3>B</h3>"]


class TestPropertyUpdates:
    """Test StructuralUpdater.apply_properties."""

    @pytest.mark.asyncio
    async def test_property_rejection_rewrapped(self, store):
        store.script_rejection("comp", "loc-de", reject(("p1", "Expected p")))

        outcome = await StructuralUpdater(store).apply_properties(
            "comp", "loc-de", [PropertyUpdate("p1", "Text"), PropertyUpdate("p2", "Other")]
        )

        first, retry = store.property_writes[("comp", "loc-de")]
        assert len(first) == 2
        assert retry == [PropertyUpdate("p1", "<p>Text</p>"), PropertyUpdate("p2", "Other")]
        assert outcome.corrected == 1

    @pytest.mark.asyncio
    async def test_property_retry_failure_raises(self, store):
        store.script_rejection("comp", "loc-de", reject(("p1", "Expected p")))
        store.script_rejection("comp", "loc-de", reject(("p1", "Expected p")))

        with pytest.raises(StructuralValidationError):
            await StructuralUpdater(store).apply_properties("comp", "loc-de", [PropertyUpdate("p1", "Text")])
