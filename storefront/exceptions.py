"""Storefront exceptions.

All errors raised by the catalog, cache, cart and document store layers.
Operational errors are caught at the component boundary and turned into
a state change or a user alert; none of them should reach the screen.
"""

from typing import Any


class StorefrontError(Exception):
    """Base class for all storefront exceptions.

    Carries a human-readable message plus optional structured details
    that are attached to log events.
    """

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        """Initialize storefront error.

        Args:
            message: Human-readable error message.
            details: Optional dictionary with additional error context.
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}


# ============================================================================
# State Machine Errors
# ============================================================================


class InvalidStateTransitionError(StorefrontError):
    """Raised when the catalog store attempts an invalid state transition."""

    def __init__(
        self,
        current_state: str,
        target_state: str,
        allowed_transitions: list[str] | None = None,
    ) -> None:
        """Initialize invalid state transition error.

        Args:
            current_state: Current state of the store.
            target_state: Attempted target state.
            allowed_transitions: States reachable from the current state.
        """
        allowed = allowed_transitions or []
        super().__init__(
            f"Cannot transition catalog from '{current_state}' to "
            f"'{target_state}'. Allowed transitions: {allowed}",
            details={
                "current_state": current_state,
                "target_state": target_state,
                "allowed_transitions": allowed,
            },
        )


# ============================================================================
# Remote Document Store Errors
# ============================================================================


class DocumentStoreError(StorefrontError):
    """Raised when a call to the remote document store fails."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details=details)
        self.status_code = status_code


class DocumentStoreTimeoutError(DocumentStoreError):
    """Raised when the document store does not answer in time."""


class MalformedDocumentError(DocumentStoreError):
    """Raised when a response or document cannot be decoded."""


# ============================================================================
# Operation Errors
# ============================================================================


class ConnectivityError(StorefrontError):
    """The reachability probe failed or reported no connection."""


class FetchError(StorefrontError):
    """The catalog could not be read from the remote store."""


class StorageError(StorefrontError):
    """A local key-value slot could not be read or written."""


class CacheWriteError(StorefrontError):
    """The catalog snapshot could not be persisted locally."""


class CacheReadError(StorefrontError):
    """The persisted catalog snapshot is unreadable or malformed."""


class CartWriteError(StorefrontError):
    """A cart document could not be created."""


class ItemNotFoundError(StorefrontError):
    """Raised when an item id is not part of the current snapshot."""

    def __init__(self, item_id: str) -> None:
        super().__init__(
            f"Item {item_id} is not in the catalog",
            details={"item_id": item_id},
        )
