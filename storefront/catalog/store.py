"""Catalog store.

Owns the authoritative in-memory catalog. A load reads the whole catalog
collection, writes it through to the local cache and installs it as the
new snapshot; when the read fails, the last cached snapshot is installed
instead (flagged as stale), or an empty one if nothing was cached.

Snapshots are replaced wholesale, never merged, so subscribers always see
a complete prior or next catalog.
"""

import asyncio
from collections.abc import Callable
from dataclasses import dataclass, field, replace
from enum import Enum

import structlog
from pydantic import ValidationError

from storefront.docstore import DocumentStoreClient
from storefront.exceptions import (
    CacheReadError,
    CacheWriteError,
    DocumentStoreError,
    FetchError,
    InvalidStateTransitionError,
)
from storefront.models import CatalogItem, CatalogSnapshot
from storefront.storage import SnapshotCache

logger = structlog.get_logger()


# ============================================================================
# State
# ============================================================================


class CatalogStatus(str, Enum):
    """Catalog store lifecycle.

    State diagram:
        LOADING ──── load finished ───► READY ◄──┐
           ▲                              │      │ load finished
           │           discard            │──────┘
           └──────────────────────────────┘
    """

    LOADING = "loading"
    READY = "ready"

    def can_transition_to(self, target: "CatalogStatus") -> bool:
        return target in _CATALOG_TRANSITIONS.get(self, set())

    def allowed_transitions(self) -> list["CatalogStatus"]:
        return list(_CATALOG_TRANSITIONS.get(self, set()))


_CATALOG_TRANSITIONS: dict[CatalogStatus, set[CatalogStatus]] = {
    CatalogStatus.LOADING: {CatalogStatus.READY},
    CatalogStatus.READY: {CatalogStatus.READY, CatalogStatus.LOADING},
}


def validate_catalog_transition(current: CatalogStatus, target: CatalogStatus) -> None:
    """Validate a catalog state transition.

    Raises:
        InvalidStateTransitionError: If the transition is not allowed.
    """
    if not current.can_transition_to(target):
        raise InvalidStateTransitionError(
            current_state=current.value,
            target_state=target.value,
            allowed_transitions=[s.value for s in current.allowed_transitions()],
        )


@dataclass(frozen=True)
class CatalogState:
    """What subscribers see: lifecycle status, snapshot and loading flag."""

    status: CatalogStatus = CatalogStatus.LOADING
    snapshot: CatalogSnapshot = field(default_factory=CatalogSnapshot.empty)
    loading: bool = False

    @property
    def items(self) -> tuple[CatalogItem, ...]:
        return self.snapshot.items

    @property
    def is_stale(self) -> bool:
        return self.snapshot.is_stale


CatalogListener = Callable[[CatalogState], None]


# ============================================================================
# Store
# ============================================================================


class CatalogStore:
    """Fetches, caches and publishes the catalog snapshot."""

    def __init__(
        self,
        client: DocumentStoreClient,
        cache: SnapshotCache,
        collection: str = "Books",
        fetch_deadline: float | None = 30.0,
    ) -> None:
        """Initialize the catalog store.

        Args:
            client: Remote document store client.
            cache: Local snapshot cache.
            collection: Catalog collection id.
            fetch_deadline: Seconds allowed for a full catalog read;
                None for no deadline.
        """
        self.client = client
        self.cache = cache
        self.collection = collection
        self.fetch_deadline = fetch_deadline
        self._state = CatalogState()
        self._listeners: list[CatalogListener] = []
        self._generation = 0

    @property
    def state(self) -> CatalogState:
        return self._state

    @property
    def snapshot(self) -> CatalogSnapshot:
        return self._state.snapshot

    def subscribe(self, listener: CatalogListener) -> Callable[[], None]:
        """Register a state listener.

        Args:
            listener: Called with every new state.

        Returns:
            Callable that removes the listener.
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _publish(self, state: CatalogState) -> None:
        self._state = state
        for listener in list(self._listeners):
            try:
                listener(state)
            except Exception:
                logger.exception("Catalog listener failed")

    def _install(self, snapshot: CatalogSnapshot) -> None:
        validate_catalog_transition(self._state.status, CatalogStatus.READY)
        self._publish(
            CatalogState(status=CatalogStatus.READY, snapshot=snapshot, loading=False)
        )

    async def load(self) -> CatalogState:
        """Load the catalog, falling back to the cache on failure.

        Never raises for fetch or cache failures. A load superseded by a
        newer load or by ``discard()`` leaves the state untouched.

        Returns:
            The state after this load.
        """
        self._generation += 1
        generation = self._generation
        self._publish(replace(self._state, loading=True))

        try:
            items = await self._fetch()
        except FetchError as e:
            logger.error(
                "Error fetching catalog",
                collection=self.collection,
                error=e.message,
                **e.details,
            )
            items = None

        if generation != self._generation:
            logger.debug("Discarding superseded catalog load", generation=generation)
            return self._state

        if items is not None:
            await self._write_cache(items)
            snapshot = CatalogSnapshot.remote(items)
        else:
            snapshot = await self._read_cache()

        if generation != self._generation:
            logger.debug("Discarding superseded catalog load", generation=generation)
            return self._state

        self._install(snapshot)
        logger.info(
            "Catalog ready",
            source=snapshot.source.value,
            item_count=len(snapshot),
        )
        return self._state

    def discard(self) -> None:
        """Drop the snapshot and invalidate any in-flight load."""
        self._generation += 1
        self._publish(CatalogState())

    async def _fetch(self) -> list[CatalogItem]:
        """Read and materialize the catalog collection.

        Raises:
            FetchError: On transport failure, timeout or malformed documents.
        """
        try:
            documents = await asyncio.wait_for(
                self.client.list_documents(self.collection),
                timeout=self.fetch_deadline,
            )
        except TimeoutError as e:
            raise FetchError(
                "Catalog fetch timed out",
                details={"deadline": self.fetch_deadline},
            ) from e
        except DocumentStoreError as e:
            raise FetchError(
                f"Catalog fetch failed: {e.message}",
                details={"status_code": e.status_code},
            ) from e

        try:
            items = [CatalogItem.from_document(d.id, d.fields) for d in documents]
        except ValidationError as e:
            raise FetchError(
                f"Catalog contains malformed documents: {e.error_count()} errors"
            ) from e

        seen: set[str] = set()
        for item in items:
            if item.id in seen:
                raise FetchError(
                    "Catalog contains duplicate ids",
                    details={"item_id": item.id},
                )
            seen.add(item.id)
        return items

    async def _write_cache(self, items: list[CatalogItem]) -> None:
        try:
            await self.cache.save(items)
        except CacheWriteError as e:
            logger.warning("Catalog cache write failed", error=e.message, **e.details)

    async def _read_cache(self) -> CatalogSnapshot:
        try:
            cached = await self.cache.load()
        except CacheReadError as e:
            logger.warning("Catalog cache read failed", error=e.message, **e.details)
            cached = None

        if cached is None:
            return CatalogSnapshot.empty()
        logger.info("Using cached catalog", item_count=len(cached))
        return CatalogSnapshot.cached(cached)
