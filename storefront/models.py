"""Catalog data models.

Defines the catalog item as materialized from a remote document, the
snapshot the catalog store publishes, and the cart entry created by an
add-to-cart action.
"""

import math
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    PrivateAttr,
    ValidatorFunctionWrapHandler,
    field_serializer,
    field_validator,
    model_validator,
)


class CatalogItem(BaseModel):
    """A book in the catalog.

    Fields not declared here are kept as extras so they survive the
    round trip through the local cache and into cart documents.
    """

    model_config = ConfigDict(
        extra="allow",
        frozen=True,
        populate_by_name=True,
        ser_json_bytes="base64",
    )

    id: str = Field(..., min_length=1, description="Store-assigned document id")
    name: str = Field(..., description="Title")
    publisher: str = Field(..., description="Publisher name")
    genre: str = Field(..., description="Genre label")
    price: int | float = Field(..., description="Price, numeric")
    image_url: str | None = Field(None, alias="imageUrl", description="Cover image")
    author: str | None = Field(None, description="Author name")

    # Stored text of a price that arrived as a string, kept verbatim.
    _price_text: str | None = PrivateAttr(default=None)

    @model_validator(mode="wrap")
    @classmethod
    def _keep_price_text(
        cls, data: Any, handler: ValidatorFunctionWrapHandler
    ) -> "CatalogItem":
        item = handler(data)
        if isinstance(data, dict) and isinstance(data.get("price"), str):
            item._price_text = data["price"]
        return item

    @field_validator("price", mode="before")
    @classmethod
    def _coerce_price(cls, value: Any) -> int | float:
        # Documents store prices either as numbers or as numeric strings.
        if isinstance(value, bool):
            raise ValueError("price must be a number")
        if isinstance(value, str):
            text = value.strip()
            try:
                value = int(text)
            except ValueError:
                try:
                    value = float(text)
                except ValueError:
                    raise ValueError(f"price is not numeric: {value!r}") from None
        if isinstance(value, float) and not math.isfinite(value):
            raise ValueError("price must be finite")
        return value

    @property
    def price_text(self) -> str:
        """Price as shown to the user and matched by search."""
        if self._price_text is not None:
            return self._price_text
        if isinstance(self.price, float) and self.price.is_integer():
            return str(int(self.price))
        return str(self.price)

    @field_serializer("price")
    def _serialize_price(self, price: int | float) -> int | float | str:
        return self._price_text if self._price_text is not None else price

    @classmethod
    def from_document(cls, document_id: str, fields: dict[str, Any]) -> "CatalogItem":
        """Create from a remote document.

        The store-assigned id wins over any ``id`` stored as a field.

        Args:
            document_id: Id assigned by the document store.
            fields: Decoded document fields.

        Returns:
            CatalogItem instance.
        """
        return cls.model_validate({**fields, "id": document_id})

    def to_fields(self) -> dict[str, Any]:
        """Serialize to the flat field map used by the cache and the cart."""
        return self.model_dump(by_alias=True, exclude_unset=True)


class SnapshotSource(str, Enum):
    """Where the items of a snapshot came from."""

    EMPTY = "empty"
    REMOTE = "remote"
    CACHE = "cache"


@dataclass(frozen=True)
class CatalogSnapshot:
    """Immutable catalog contents at a point in time."""

    items: tuple[CatalogItem, ...] = ()
    source: SnapshotSource = SnapshotSource.EMPTY
    fetched_at: datetime | None = None

    @classmethod
    def empty(cls) -> "CatalogSnapshot":
        return cls()

    @classmethod
    def remote(cls, items: list[CatalogItem]) -> "CatalogSnapshot":
        return cls(
            items=tuple(items),
            source=SnapshotSource.REMOTE,
            fetched_at=datetime.now(timezone.utc),
        )

    @classmethod
    def cached(cls, items: list[CatalogItem]) -> "CatalogSnapshot":
        return cls(items=tuple(items), source=SnapshotSource.CACHE)

    @property
    def is_stale(self) -> bool:
        """True when showing the locally cached copy instead of fresh data."""
        return self.source == SnapshotSource.CACHE

    def get(self, item_id: str) -> CatalogItem | None:
        for item in self.items:
            if item.id == item_id:
                return item
        return None

    def __len__(self) -> int:
        return len(self.items)


@dataclass
class CartEntry:
    """A document created in the cart collection.

    ``fields`` is a copy of the catalog item, including the original item
    id as a plain field; ``document_id`` is the new id assigned by the store.
    """

    document_id: str
    fields: dict[str, Any] = field(default_factory=dict)
