"""
HTTP client for the Open Cloud standard DataStore API.
"""

from typing import Any

import httpx

from forgetbridge.shared.exceptions import DataStoreDeleteError
from forgetbridge.shared.logging import get_logger

logger = get_logger(__name__)

ENTRY_PATH = "/datastores/v1/universes/{universe_id}/standard-datastores/datastore/entries/entry"

DEFAULT_BASE_URL = "https://apis.roblox.com"
DEFAULT_TIMEOUT_SECONDS = 10.0


class DataStoreClient:
    """Deletes standard DataStore entries on behalf of a game.

    Each call authenticates with the game's own API key; the client itself
    holds no credentials.
    """

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            base_url: API base URL.
            timeout: Per-request timeout in seconds.
            http_client: Optional pre-built client (tests inject a MockTransport).
        """
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._client = http_client

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(timeout=self._timeout)
        return self._client

    async def close(self) -> None:
        """Close HTTP client."""
        if self._client is not None and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    def entry_url(self, universe_id: str) -> str:
        return self._base_url + ENTRY_PATH.format(universe_id=universe_id)

    async def delete_entry(
        self,
        universe_id: str,
        api_key: str | None,
        datastore_name: str,
        scope: str,
        entry_key: str,
    ) -> None:
        """Delete one DataStore entry.

        Args:
            universe_id: Game's external numeric identifier.
            api_key: Game's Open Cloud API key.
            datastore_name: Resolved datastore name.
            scope: Datastore scope.
            entry_key: Resolved entry key.

        Raises:
            DataStoreDeleteError: On missing credentials, transport failure
                or any non-2xx response.
        """
        if not api_key:
            raise DataStoreDeleteError(f"No DataStore API key configured for universe {universe_id}")

        client = await self._get_client()
        url = self.entry_url(universe_id)

        logger.info(
            "Deleting DataStore entry",
            extra={
                "universe_id": universe_id,
                "datastore_name": datastore_name,
                "scope": scope,
                "entry_key": entry_key,
            },
        )

        try:
            response = await client.delete(
                url,
                headers={"x-api-key": api_key, "Content-Type": "application/json"},
                params={
                    "datastoreName": datastore_name,
                    "scope": scope,
                    "entryKey": entry_key,
                },
                timeout=self._timeout,
            )
        except httpx.HTTPError as exc:
            raise DataStoreDeleteError(str(exc) or exc.__class__.__name__) from exc

        if not response.is_success:
            raise DataStoreDeleteError(
                f"Request failed with status code {response.status_code}",
                status_code=response.status_code,
                status_text=response.reason_phrase,
                response_body=_response_body(response),
            )


def _response_body(response: httpx.Response) -> Any:
    if not response.content:
        return None
    try:
        return response.json()
    except ValueError:
        return response.text
