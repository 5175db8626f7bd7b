"""Pytest configuration and fixtures for storefront tests."""

from pathlib import Path
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest

from storefront.cart import CartWriter
from storefront.catalog.store import CatalogStore
from storefront.connectivity import ConnectivityProbe
from storefront.docstore import DocumentStoreClient, RemoteDocument
from storefront.models import CatalogItem
from storefront.notifications import Alert
from storefront.screen import CatalogScreen
from storefront.storage import LocalStorage, SnapshotCache


class RecordingNotifier:
    """Notifier that keeps every alert for assertions."""

    def __init__(self) -> None:
        self.alerts: list[Alert] = []

    def notify(self, alert: Alert) -> None:
        self.alerts.append(alert)

    @property
    def titles(self) -> list[str]:
        return [a.title for a in self.alerts]


BOOK_FIELDS: list[dict[str, Any]] = [
    {
        "name": "Dune",
        "author": "Frank Herbert",
        "publisher": "Ace",
        "genre": "SciFi",
        "price": 15,
        "imageUrl": "https://covers.example/dune.jpg",
    },
    {
        "name": "Emma",
        "author": "Jane Austen",
        "publisher": "Penguin",
        "genre": "Classic",
        "price": 9,
    },
    {
        "name": "Neuromancer",
        "author": "William Gibson",
        "publisher": "Ace",
        "genre": "Cyberpunk",
        "price": "12.5",
    },
    {
        "name": "Beloved",
        "author": "Toni Morrison",
        "publisher": "Knopf",
        "genre": "Fiction",
        "price": 18.0,
    },
]


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def remote_documents() -> list[RemoteDocument]:
    """Catalog documents as returned by the store."""
    return [
        RemoteDocument(id=f"book-{i + 1}", fields=dict(fields))
        for i, fields in enumerate(BOOK_FIELDS)
    ]


@pytest.fixture
def catalog_items(remote_documents: list[RemoteDocument]) -> list[CatalogItem]:
    return [CatalogItem.from_document(d.id, d.fields) for d in remote_documents]


@pytest.fixture
def mock_docstore() -> MagicMock:
    """Create a mock document store client."""
    client = MagicMock(spec=DocumentStoreClient)

    client.list_documents = AsyncMock()
    client.create_document = AsyncMock()
    client.close = AsyncMock()

    return client


@pytest.fixture
def storage(tmp_path: Path) -> LocalStorage:
    return LocalStorage(tmp_path / "storage")


@pytest.fixture
def snapshot_cache(storage: LocalStorage) -> SnapshotCache:
    return SnapshotCache(storage, key="books")


def make_item(**overrides: Any) -> CatalogItem:
    """Create a catalog item with defaults for unspecified fields."""
    data: dict[str, Any] = {
        "id": "item-1",
        "name": "Untitled",
        "publisher": "Unknown",
        "genre": "General",
        "price": 10,
    }
    data.update(overrides)
    return CatalogItem.model_validate(data)


@pytest.fixture
def mock_probe() -> MagicMock:
    """Create a mock connectivity probe that reports online."""
    probe = MagicMock(spec=ConnectivityProbe)

    probe.check_connectivity = AsyncMock(return_value=True)
    probe.close = AsyncMock()

    return probe


@pytest.fixture
def screen(
    mock_docstore: MagicMock,
    snapshot_cache: SnapshotCache,
    mock_probe: MagicMock,
    notifier: RecordingNotifier,
) -> CatalogScreen:
    """Create a catalog screen wired to mocked remote collaborators."""
    return CatalogScreen(
        store=CatalogStore(client=mock_docstore, cache=snapshot_cache),
        probe=mock_probe,
        cart_writer=CartWriter(client=mock_docstore, notifier=notifier),
        navigator=MagicMock(),
    )
