"""Catalog screen controller.

Holds the search term and sort key, starts the connectivity probe and the
catalog load together when the screen activates, and derives the visible
list from the store's current snapshot. Every suspension it starts is
bound to the screen's active lifetime and cancelled on deactivation.
"""

import asyncio
from typing import Any, Protocol

import structlog

from storefront.cart import CartWriter, CartWriteResult
from storefront.catalog.store import CatalogStatus, CatalogStore
from storefront.catalog.view import SortKey, project
from storefront.connectivity import ConnectivityProbe
from storefront.exceptions import ItemNotFoundError
from storefront.models import CatalogItem

logger = structlog.get_logger()


class Navigator(Protocol):
    """External navigation capability."""

    def open_detail(self, item_id: str) -> None: ...


class CatalogScreen:
    """State and actions of the catalog browsing screen."""

    def __init__(
        self,
        store: CatalogStore,
        probe: ConnectivityProbe,
        cart_writer: CartWriter,
        navigator: Navigator | None = None,
    ) -> None:
        self.store = store
        self.probe = probe
        self.cart_writer = cart_writer
        self.navigator = navigator
        self.query = ""
        self.sort_key = SortKey.NONE
        self.active = False
        self._tasks: set[asyncio.Task[Any]] = set()

    @property
    def loading(self) -> bool:
        """True until the first load finishes, and during any refresh."""
        state = self.store.state
        return state.loading or state.status == CatalogStatus.LOADING

    @property
    def is_stale(self) -> bool:
        return self.store.state.is_stale

    def _spawn(self, coro: Any) -> asyncio.Task[Any]:
        task = asyncio.create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def activate(self) -> None:
        """Run the connectivity probe and the catalog load concurrently.

        Returns once both have finished or the screen was deactivated.
        """
        self.active = True
        logger.info("Catalog screen activated")
        tasks = [
            self._spawn(self.probe.check_connectivity()),
            self._spawn(self.store.load()),
        ]
        await asyncio.wait(tasks)
        for task in tasks:
            if not task.cancelled():
                task.result()

    async def refresh(self) -> None:
        """Reload the catalog while keeping the screen's query and sort."""
        task = self._spawn(self.store.load())
        await asyncio.wait([task])
        if not task.cancelled():
            task.result()

    def deactivate(self) -> None:
        """Cancel pending work and drop the snapshot."""
        self.active = False
        pending = [t for t in self._tasks if not t.done()]
        for task in pending:
            task.cancel()
        self.store.discard()
        logger.info("Catalog screen deactivated", cancelled_tasks=len(pending))

    def set_query(self, query: str) -> None:
        self.query = query

    def set_sort_key(self, sort_key: SortKey | str | None) -> None:
        self.sort_key = SortKey(sort_key) if sort_key is not None else SortKey.NONE

    def visible_items(self) -> list[CatalogItem]:
        """The filtered and sorted list for display."""
        return project(self.store.snapshot.items, self.query, self.sort_key)

    def get_item(self, item_id: str) -> CatalogItem:
        """Look up an item in the current snapshot.

        Raises:
            ItemNotFoundError: If the id is not in the snapshot.
        """
        item = self.store.snapshot.get(item_id)
        if item is None:
            raise ItemNotFoundError(item_id)
        return item

    async def add_to_cart(self, item_id: str) -> CartWriteResult | None:
        """Stage an item in the cart.

        Returns:
            The write result, or None if the screen was deactivated first.

        Raises:
            ItemNotFoundError: If the id is not in the snapshot.
        """
        item = self.get_item(item_id)
        task = self._spawn(self.cart_writer.add_to_cart(item))
        await asyncio.wait([task])
        if task.cancelled():
            logger.info("Cart write cancelled", item_id=item_id)
            return None
        return task.result()

    def open_item(self, item_id: str) -> None:
        """Open the detail view of an item."""
        if self.navigator is None:
            logger.warning("No navigator configured", item_id=item_id)
            return
        self.navigator.open_detail(item_id)
