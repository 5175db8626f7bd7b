"""Catalog projection.

Derives the displayed list from a catalog snapshot: a case-insensitive
substring filter over name, publisher and genre (plus a verbatim match
on the price text), followed by an optional stable sort. The snapshot is
never mutated; every call returns a new list.
"""

import locale
import unicodedata
from collections.abc import Callable, Sequence
from enum import Enum
from functools import cmp_to_key

from storefront.models import CatalogItem


class SortKey(str, Enum):
    """Sort orders offered by the catalog screen."""

    NONE = "none"
    NAME = "name"
    PRICE = "price"
    PUBLISHER = "publisher"
    GENRE = "genre"


TEXT_SEARCH_FIELDS = ("name", "publisher", "genre")


def matches(item: CatalogItem, query: str) -> bool:
    """Check whether an item matches a search term.

    Args:
        item: Catalog item.
        query: Search term; empty matches everything.

    Returns:
        True if any searchable field contains the term.
    """
    if not query:
        return True
    needle = query.lower()
    for field_name in TEXT_SEARCH_FIELDS:
        if needle in (getattr(item, field_name) or "").lower():
            return True
    return query in item.price_text


def _fold(text: str) -> str:
    """Strip accents and case for codepoint-order fallback comparison."""
    decomposed = unicodedata.normalize("NFKD", text)
    return "".join(c for c in decomposed if not unicodedata.combining(c)).casefold()


def _collation_is_codepoint() -> bool:
    name = locale.setlocale(locale.LC_COLLATE) or "C"
    return name.split(".")[0] in ("C", "POSIX")


def _compare(a: str, b: str) -> int:
    return (a > b) - (a < b)


def collate(a: str, b: str) -> int:
    """Locale-aware comparison, case-insensitive first.

    Under the C locale ``strcoll`` orders by codepoint, which puts accented
    letters after ``z``; accents are then folded away before comparing.
    """
    if _collation_is_codepoint():
        return (
            _compare(_fold(a), _fold(b))
            or _compare(a.casefold(), b.casefold())
            or _compare(a, b)
        )
    return locale.strcoll(a.casefold(), b.casefold()) or locale.strcoll(a, b)



def _text_comparator(field_name: str) -> Callable[[CatalogItem, CatalogItem], int]:
    def compare(a: CatalogItem, b: CatalogItem) -> int:
        left = getattr(a, field_name, None)
        right = getattr(b, field_name, None)
        # Missing values keep their relative order.
        if left is None or right is None:
            return 0
        return collate(str(left), str(right))

    return compare


def project(
    snapshot: Sequence[CatalogItem],
    query: str = "",
    sort_key: SortKey | str | None = SortKey.NONE,
) -> list[CatalogItem]:
    """Filter and sort a snapshot for display.

    Args:
        snapshot: Catalog items in store order.
        query: Search term.
        sort_key: Sort order; None means no sorting.

    Returns:
        A new list with the matching items.
    """
    key = SortKey(sort_key) if sort_key is not None else SortKey.NONE
    items = [item for item in snapshot if matches(item, query)]

    if key == SortKey.NONE:
        return items
    if key == SortKey.PRICE:
        return sorted(items, key=lambda item: item.price)
    return sorted(items, key=cmp_to_key(_text_comparator(key.value)))
