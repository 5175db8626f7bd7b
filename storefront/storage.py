"""Local persistent storage.

A small key-value store on disk (one file per key) and the catalog
snapshot cache built on top of it. The cache is a best-effort fallback:
it is written after every successful fetch and read only when a fetch
fails.
"""

import asyncio
import os
import re
from pathlib import Path

import structlog
from pydantic import ConfigDict, TypeAdapter, ValidationError

from storefront.exceptions import CacheReadError, CacheWriteError, StorageError
from storefront.models import CatalogItem

logger = structlog.get_logger()

_KEY_PATTERN = re.compile(r"^[A-Za-z0-9_.-]+$")

# Bytes fields decoded from the store are written as base64 text.
_items_adapter = TypeAdapter(
    list[CatalogItem], config=ConfigDict(ser_json_bytes="base64")
)


class LocalStorage:
    """Async key-value storage backed by a directory.

    Values are strings. Writes go to a temporary file that atomically
    replaces the slot, so readers never see a half-written value.
    """

    def __init__(self, directory: Path | str) -> None:
        self.directory = Path(directory)

    def _path(self, key: str) -> Path:
        if not _KEY_PATTERN.match(key):
            raise StorageError(f"Invalid storage key: {key!r}", details={"key": key})
        return self.directory / f"{key}.json"

    async def get_item(self, key: str) -> str | None:
        """Read a slot, or None if it was never written."""
        path = self._path(key)
        try:
            return await asyncio.to_thread(_read_text, path)
        except OSError as e:
            raise StorageError(f"Cannot read slot '{key}': {e}", details={"key": key}) from e

    async def set_item(self, key: str, value: str) -> None:
        """Overwrite a slot."""
        path = self._path(key)
        try:
            await asyncio.to_thread(_write_text, path, value)
        except OSError as e:
            raise StorageError(f"Cannot write slot '{key}': {e}", details={"key": key}) from e

    async def remove_item(self, key: str) -> None:
        """Delete a slot if present."""
        path = self._path(key)
        try:
            await asyncio.to_thread(path.unlink, missing_ok=True)
        except OSError as e:
            raise StorageError(f"Cannot remove slot '{key}': {e}", details={"key": key}) from e


def _read_text(path: Path) -> str | None:
    try:
        return path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return None


def _write_text(path: Path, value: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = path.with_name(f".{path.name}.tmp")
    tmp_path.write_text(value, encoding="utf-8")
    os.replace(tmp_path, path)


class SnapshotCache:
    """Serialized copy of the last successfully fetched catalog."""

    def __init__(self, storage: LocalStorage, key: str = "books") -> None:
        self.storage = storage
        self.key = key

    async def save(self, items: list[CatalogItem]) -> None:
        """Overwrite the cached snapshot.

        Raises:
            CacheWriteError: If the snapshot cannot be serialized or stored.
        """
        try:
            payload = _items_adapter.dump_json(
                items, by_alias=True, exclude_unset=True
            ).decode("utf-8")
            await self.storage.set_item(self.key, payload)
        except (StorageError, ValueError) as e:
            raise CacheWriteError(
                f"Failed to cache catalog snapshot: {e}",
                details={"key": self.key, "item_count": len(items)},
            ) from e
        logger.debug("Cached catalog snapshot", key=self.key, item_count=len(items))

    async def load(self) -> list[CatalogItem] | None:
        """Read the cached snapshot.

        Returns:
            Cached items, or None if nothing was ever cached.

        Raises:
            CacheReadError: If the slot is unreadable or malformed.
        """
        try:
            payload = await self.storage.get_item(self.key)
        except StorageError as e:
            raise CacheReadError(e.message, details={"key": self.key}) from e

        if payload is None:
            return None

        try:
            return _items_adapter.validate_json(payload)
        except ValidationError as e:
            raise CacheReadError(
                f"Cached catalog snapshot is malformed: {e.error_count()} errors",
                details={"key": self.key},
            ) from e
