"""Network reachability probe.

Runs once when the catalog screen activates and warns the user when the
device looks offline. It never blocks or cancels catalog loading.
"""

import httpx
import structlog

from storefront.exceptions import ConnectivityError
from storefront.notifications import NO_INTERNET, Notifier

logger = structlog.get_logger()


class ConnectivityProbe:
    """One-shot reachability check against a well-known URL."""

    def __init__(
        self,
        notifier: Notifier,
        probe_url: str,
        timeout: float = 5.0,
    ) -> None:
        """Initialize the probe.

        Args:
            notifier: Receives the offline alert.
            probe_url: URL expected to answer with a 2xx status.
            timeout: Request timeout in seconds.
        """
        self.notifier = notifier
        self.probe_url = probe_url
        self.timeout = timeout
        self._client: httpx.AsyncClient | None = None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.timeout)
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def _reach(self) -> None:
        """Raise ConnectivityError unless the probe URL answers."""
        client = await self._get_client()
        try:
            response = await client.get(self.probe_url)
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            raise ConnectivityError(
                f"Reachability check failed: {e}",
                details={"url": self.probe_url},
            ) from e
        if not response.is_success:
            raise ConnectivityError(
                f"Reachability check returned HTTP {response.status_code}",
                details={"url": self.probe_url, "status_code": response.status_code},
            )

    async def check_connectivity(self) -> bool:
        """Check reachability and alert the user when offline.

        A failing probe is indistinguishable from being offline.

        Returns:
            True if the network is reachable.
        """
        try:
            await self._reach()
        except ConnectivityError as e:
            logger.warning("Device appears offline", error=e.message, **e.details)
            self.notifier.notify(NO_INTERNET)
            return False

        logger.debug("Connectivity confirmed", url=self.probe_url)
        return True
