"""Cart writer.

Stages an add-to-cart action as a new document in the remote cart
collection. Each call appends an independent copy of the item; there is
no deduplication or quantity aggregation.
"""

import asyncio
from dataclasses import dataclass

import structlog

from storefront.docstore import DocumentStoreClient
from storefront.exceptions import CartWriteError, DocumentStoreError
from storefront.models import CartEntry, CatalogItem
from storefront.notifications import CART_ADD_FAILED, Notifier, added_to_cart

logger = structlog.get_logger()


@dataclass
class CartWriteResult:
    """Outcome of an add-to-cart action."""

    success: bool
    entry: CartEntry | None = None
    error: CartWriteError | None = None


class CartWriter:
    """Appends catalog items to the remote cart collection."""

    def __init__(
        self,
        client: DocumentStoreClient,
        notifier: Notifier,
        collection: str = "Cart",
        write_deadline: float | None = 15.0,
    ) -> None:
        """Initialize the cart writer.

        Args:
            client: Remote document store client.
            notifier: Receives success and failure alerts.
            collection: Cart collection id.
            write_deadline: Seconds allowed per write; None for no deadline.
        """
        self.client = client
        self.notifier = notifier
        self.collection = collection
        self.write_deadline = write_deadline

    async def _write(self, item: CatalogItem) -> CartEntry:
        """Create the cart document.

        Raises:
            CartWriteError: If the store rejects the write or times out.
        """
        fields = item.to_fields()
        try:
            document = await asyncio.wait_for(
                self.client.create_document(self.collection, fields),
                timeout=self.write_deadline,
            )
        except TimeoutError as e:
            raise CartWriteError(
                "Cart write timed out",
                details={"item_id": item.id, "deadline": self.write_deadline},
            ) from e
        except DocumentStoreError as e:
            raise CartWriteError(
                f"Cart write failed: {e.message}",
                details={"item_id": item.id, "status_code": e.status_code},
            ) from e
        return CartEntry(document_id=document.id, fields=fields)

    async def add_to_cart(self, item: CatalogItem) -> CartWriteResult:
        """Add a copy of an item to the cart and tell the user.

        Args:
            item: Catalog item to stage.

        Returns:
            CartWriteResult with the created entry or the error.
        """
        logger.info("Adding item to cart", item_id=item.id, collection=self.collection)

        try:
            entry = await self._write(item)
        except CartWriteError as e:
            logger.error("Error adding item to cart", error=e.message, **e.details)
            self.notifier.notify(CART_ADD_FAILED)
            return CartWriteResult(success=False, error=e)

        logger.info(
            "Item added to cart",
            item_id=item.id,
            cart_document_id=entry.document_id,
        )
        self.notifier.notify(added_to_cart(item.name))
        return CartWriteResult(success=True, entry=entry)
