"""Storefront command line.

Drives a catalog screen session from the terminal.

Usage:
    storefront browse --query dune --sort price
    storefront add-to-cart <item-id>
"""

import argparse
import asyncio
import locale
import logging
import sys
from typing import TextIO

import structlog

from storefront.cart import CartWriter
from storefront.catalog.store import CatalogStore
from storefront.catalog.view import SortKey
from storefront.config import Settings, settings
from storefront.connectivity import ConnectivityProbe
from storefront.docstore import DocumentStoreClient
from storefront.exceptions import ItemNotFoundError
from storefront.models import CatalogItem
from storefront.notifications import ConsoleNotifier, LoggingNotifier, Notifier
from storefront.screen import CatalogScreen
from storefront.storage import LocalStorage, SnapshotCache

logger = structlog.get_logger()


def configure_logging(level: str) -> None:
    """Send structured JSON logs to stderr."""
    logging.basicConfig(
        level=getattr(logging, level.upper()),
        format="%(message)s",
        stream=sys.stderr,
    )
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.JSONRenderer(),
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


def build_screen(config: Settings, notifier: Notifier | None = None) -> CatalogScreen:
    """Wire a catalog screen from settings.

    Alerts go to the log unless a notifier is given.
    """
    if notifier is None:
        notifier = LoggingNotifier()
    client = DocumentStoreClient(
        base_url=config.firestore_base_url,
        project_id=config.firestore_project_id,
        api_key=config.firestore_api_key,
        timeout=config.request_timeout,
    )
    cache = SnapshotCache(LocalStorage(config.cache_dir), key=config.catalog_cache_key)
    return CatalogScreen(
        store=CatalogStore(
            client=client,
            cache=cache,
            collection=config.catalog_collection,
            fetch_deadline=config.fetch_deadline,
        ),
        probe=ConnectivityProbe(
            notifier=notifier,
            probe_url=config.connectivity_url,
            timeout=config.connectivity_timeout,
        ),
        cart_writer=CartWriter(
            client=client,
            notifier=notifier,
            collection=config.cart_collection,
            write_deadline=config.cart_write_deadline,
        ),
    )


def configure_collation() -> None:
    """Use the user's locale for sorting names."""
    try:
        locale.setlocale(locale.LC_COLLATE, "")
    except locale.Error as e:
        logger.warning("Locale unavailable, using default collation", error=str(e))


def format_item(item: CatalogItem) -> str:
    author = item.author or "-"
    return (
        f"{item.id}  {item.name}  by {author}  "
        f"[{item.publisher} / {item.genre}]  {item.price_text}"
    )


async def _close(screen: CatalogScreen) -> None:
    await screen.store.client.close()
    await screen.probe.close()


async def browse(screen: CatalogScreen, query: str, sort: str | None, out: TextIO) -> int:
    try:
        await screen.activate()
        screen.set_query(query)
        screen.set_sort_key(sort)
        items = screen.visible_items()
        if screen.is_stale:
            print("(offline: showing cached catalog)", file=out)
        for item in items:
            print(format_item(item), file=out)
        print(f"{len(items)} of {len(screen.store.snapshot)} items", file=out)
        return 0
    finally:
        screen.deactivate()
        await _close(screen)


async def add_to_cart(screen: CatalogScreen, item_id: str, out: TextIO) -> int:
    try:
        await screen.activate()
        try:
            result = await screen.add_to_cart(item_id)
        except ItemNotFoundError as e:
            print(e.message, file=out)
            return 1
        if result is None or not result.success:
            return 1
        print(f"Cart document {result.entry.document_id}", file=out)
        return 0
    finally:
        screen.deactivate()
        await _close(screen)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="storefront",
        description="Browse the book catalog and stage cart items",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    browse_parser = subparsers.add_parser("browse", help="List the catalog")
    browse_parser.add_argument(
        "--query",
        default="",
        help="Search term matched against name, publisher, genre and price",
    )
    browse_parser.add_argument(
        "--sort",
        choices=[k.value for k in SortKey],
        default=SortKey.NONE.value,
        help="Sort order (default: none)",
    )

    cart_parser = subparsers.add_parser("add-to-cart", help="Add an item to the cart")
    cart_parser.add_argument("item_id", help="Catalog item id")

    parser.add_argument(
        "--log-level",
        default=None,
        help="Override the configured log level",
    )
    return parser


async def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    args = build_parser().parse_args(argv)
    configure_logging(args.log_level or settings.log_level)
    configure_collation()

    screen = build_screen(settings, ConsoleNotifier())
    if args.command == "browse":
        return await browse(screen, args.query, args.sort, sys.stdout)
    return await add_to_cart(screen, args.item_id, sys.stdout)


def run() -> None:
    sys.exit(asyncio.run(main()))
