"""HTTP client for the upstream product feed."""

import httpx
import structlog

from catalog_service.exceptions import FeedTransportError

logger = structlog.get_logger()


class FeedClient:
    """Fetches the raw ``products.json`` body with a single GET."""

    def __init__(
        self,
        url: str,
        timeout: float = 30.0,
        client: httpx.AsyncClient | None = None,
    ):
        self.url = url
        self._owns_client = client is None
        self.client = client or httpx.AsyncClient(timeout=timeout, follow_redirects=True)

    async def fetch(self) -> bytes:
        """
        Return the feed body, possibly empty.

        Raises:
            FeedTransportError: The request failed or returned a non-2xx status.
        """
        try:
            response = await self.client.get(self.url, headers={"Accept": "application/json"})
            response.raise_for_status()
        except httpx.HTTPError as e:
            raise FeedTransportError(f"Failed to fetch {self.url}: {e}") from e

        logger.debug("Feed fetched", url=self.url, status=response.status_code, size=len(response.content))
        return response.content

    async def aclose(self) -> None:
        if self._owns_client:
            await self.client.aclose()

    async def __aenter__(self) -> "FeedClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()
