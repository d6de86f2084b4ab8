"""
Command-line interface for page and component localization
"""
import sys
import argparse
import asyncio

from sitelocalizer.config import (
    DEFAULT_MODEL,
    LLM_API_ENDPOINT,
    LOCALE_CONCURRENCY,
    OPENAI_API_KEY,
    TRANSLATION_BATCH_SIZE,
    WEBFLOW_API_TOKEN,
    WEBFLOW_SITE_ID,
)
from sitelocalizer.core.events import EventBus
from sitelocalizer.core.http_client import CallCounter
from sitelocalizer.core.metadata import MetadataTranslator
from sitelocalizer.core.models import DocumentRef
from sitelocalizer.core.orchestrator import LocaleOrchestrator
from sitelocalizer.llm import OpenAICompatibleBackend
from sitelocalizer.store import WebflowContentStore
from sitelocalizer.utils.unified_logger import setup_cli_logger, LogType


async def localize(args, logger) -> bool:
    """Run the requested passes; True when every locale completed."""
    counter = CallCounter()
    store = WebflowContentStore(api_token=args.token, site_id=args.site_id, call_counter=counter)
    backend = OpenAICompatibleBackend(
        api_endpoint=args.api_endpoint,
        model=args.model,
        api_key=args.openai_api_key,
        call_counter=counter
    )
    bus = EventBus()
    bus.subscribe_all(logger.create_event_listener())

    root = DocumentRef.page(args.page) if args.page else DocumentRef.component(args.component)
    try:
        summary = await LocaleOrchestrator(
            store, backend,
            event_bus=bus,
            concurrency=args.concurrency,
            batch_size=args.batch_size,
            source_language=args.source_lang,
            branch_id=args.branch,
            translate_component_properties=not args.no_component_properties
        ).run(root, args.locales)
        ok = not summary.failed_locales

        if args.metadata and args.page:
            target_ids = args.locales or [outcome.locale_id for outcome in summary.outcomes]
            metadata_summary = await MetadataTranslator(
                store, backend, event_bus=bus, source_language=args.source_lang
            ).run(args.page, target_ids, translate_slug=args.translate_slug)
            ok = ok and not metadata_summary.failed_locales
        return ok
    finally:
        await backend.close()
        await store.close()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Localize a Webflow page or component into its secondary locales using an LLM.")
    target = parser.add_mutually_exclusive_group(required=True)
    target.add_argument("-p", "--page", help="ID of the page to localize.")
    target.add_argument("-c", "--component", help="ID of the component to localize.")
    parser.add_argument("-l", "--locales", nargs="+", default=None, help="Target locale IDs (default: all secondary locales).")
    parser.add_argument("--site_id", default=WEBFLOW_SITE_ID, help="Webflow site ID (default: WEBFLOW_SITE_ID).")
    parser.add_argument("--token", default=WEBFLOW_API_TOKEN, help="Webflow API token (default: WEBFLOW_API_TOKEN).")
    parser.add_argument("--branch", default=None, help="Read content from this branch.")
    parser.add_argument("-sl", "--source_lang", default=None, help="Source language (default: the site's primary locale).")
    parser.add_argument("-m", "--model", default=DEFAULT_MODEL, help=f"LLM model (default: {DEFAULT_MODEL}).")
    parser.add_argument("--api_endpoint", default=LLM_API_ENDPOINT, help=f"OpenAI compatible chat completions endpoint (default: {LLM_API_ENDPOINT}).")
    parser.add_argument("--openai_api_key", default=OPENAI_API_KEY, help="API key for the translation endpoint.")
    parser.add_argument("--concurrency", type=int, default=LOCALE_CONCURRENCY, help=f"Locales processed at the same time (default: {LOCALE_CONCURRENCY}).")
    parser.add_argument("--batch_size", type=int, default=TRANSLATION_BATCH_SIZE, help=f"Unique texts per translation batch (default: {TRANSLATION_BATCH_SIZE}).")
    parser.add_argument("--metadata", action="store_true", help="Also translate page title, SEO and Open Graph settings.")
    parser.add_argument("--translate_slug", action="store_true", help="With --metadata, also translate the page slug.")
    parser.add_argument("--no_component_properties", action="store_true", help="Skip the default values of component properties.")
    parser.add_argument("--no-color", action="store_true", help="Disable colored output.")

    args = parser.parse_args()

    if not args.token:
        parser.error("--token is required when WEBFLOW_API_TOKEN is not set")
    if not args.site_id:
        parser.error("--site_id is required when WEBFLOW_SITE_ID is not set")
    if args.metadata and not args.page:
        parser.error("--metadata requires --page")

    logger = setup_cli_logger(enable_colors=not args.no_color)

    logger.info("LOCALIZATION STARTED", LogType.RUN_START, {
        'root': f"page {args.page}" if args.page else f"component {args.component}",
        'model': args.model
    })

    try:
        success = asyncio.run(localize(args, logger))
    except Exception as e:
        logger.error(f"Localization failed: {str(e)}", LogType.ERROR_DETAIL, {
            'details': repr(e)
        })
        sys.exit(1)

    sys.exit(0 if success else 1)
