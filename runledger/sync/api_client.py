"""HTTP client for the remote run log.

Endpoints used (relative to the stored base URL):
    POST runs/batch   Upload a batch of runs; the server dedupes by start time
    GET  runs         Paginated run list, used as the connection check

Every request carries ``Accept: application/json``.  The bearer token is
injected per request by an httpx event hook that reads the credential store,
so a re-paired token takes effect without rebuilding the client.
"""

from __future__ import annotations

import logging

import httpx
from pydantic import ValidationError

from runledger.config_loader import ApiConfig, get_sync_config
from runledger.models.api import BatchRunRequest, PaginatedResponse, RunResponse
from runledger.sync.credentials import CredentialsStore

logger = logging.getLogger("runledger.sync.api_client")

_ACCEPT_JSON = "application/json"


class ConnectionTestError(Exception):
    """Raised when a pairing attempt cannot reach or authenticate to the server."""


def _normalize_base_url(base_url: str) -> str:
    base_url = base_url.strip()
    return base_url if base_url.endswith("/") else base_url + "/"


class RunLedgerApiService:
    """Thin wrapper over one configured ``httpx.AsyncClient``.

    Methods return the raw ``httpx.Response``; status handling belongs to the
    caller, which maps codes onto sync outcomes.
    """

    def __init__(self, client: httpx.AsyncClient, default_per_page: int = 15) -> None:
        self._client = client
        self._default_per_page = default_per_page

    @property
    def base_url(self) -> str:
        return str(self._client.base_url)

    async def create_runs_batch(self, request: BatchRunRequest) -> httpx.Response:
        logger.debug("POST runs/batch with %d runs", len(request.runs))
        return await self._client.post("runs/batch", json=request.to_json_body())

    async def get_runs(self, page: int = 1, per_page: int | None = None) -> httpx.Response:
        params = {"page": page, "per_page": per_page or self._default_per_page}
        return await self._client.get("runs", params=params)

    async def aclose(self) -> None:
        await self._client.aclose()


class ApiClient:
    """Builds API services from the stored credentials.

    Usage::

        client = ApiClient(FileCredentialsStore(path))
        service = await client.create_service()
        if service is None:
            ...  # not connected

    Args:
        credentials_store: Source of the base URL and bearer token.
        config:            Timeouts and page size.  Defaults to sync_config.yaml.
        transport:         Optional httpx transport (for testing).
    """

    def __init__(
        self,
        credentials_store: CredentialsStore,
        config: ApiConfig | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._credentials = credentials_store
        self._config = config or get_sync_config().api
        self._transport = transport
        self._service: RunLedgerApiService | None = None

    async def _inject_headers(self, request: httpx.Request) -> None:
        request.headers["Accept"] = _ACCEPT_JSON
        credentials = await self._credentials.get()
        if credentials is not None:
            request.headers["Authorization"] = f"Bearer {credentials.token}"

    async def create_service(self) -> RunLedgerApiService | None:
        """Return a service bound to the stored base URL, or None if disconnected.

        The underlying client is reused until the base URL changes.
        """
        credentials = await self._credentials.get()
        if credentials is None:
            return None

        base_url = _normalize_base_url(credentials.base_url)
        if self._service is not None and self._service.base_url == base_url:
            return self._service
        if self._service is not None:
            await self._service.aclose()

        client = httpx.AsyncClient(
            base_url=base_url,
            timeout=self._config.timeout_seconds,
            transport=self._transport,
            event_hooks={"request": [self._inject_headers]},
        )
        self._service = RunLedgerApiService(client, self._config.default_per_page)
        logger.info("Created run log API client for %s", base_url)
        return self._service

    async def test_connection(self, base_url: str, token: str) -> None:
        """Probe the server with the given credentials before saving them.

        Issues ``GET runs?page=1&per_page=1`` with a short timeout and a
        client of its own, so the stored credentials are never used.

        Raises:
            ConnectionTestError: With a message suitable for the user.
        """
        headers = {"Accept": _ACCEPT_JSON, "Authorization": f"Bearer {token.strip()}"}
        try:
            async with httpx.AsyncClient(
                base_url=_normalize_base_url(base_url),
                timeout=self._config.connection_test_timeout_seconds,
                transport=self._transport,
                headers=headers,
            ) as client:
                response = await client.get("runs", params={"page": 1, "per_page": 1})
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            logger.warning("Connection test to %s failed: %s", base_url, exc)
            raise ConnectionTestError(f"Connection failed: {exc}") from exc

        if 200 <= response.status_code < 300:
            logger.info(
                "Connection test to %s succeeded (%s runs on server)",
                base_url, _total_runs(response),
            )
            return
        if response.status_code == 401:
            raise ConnectionTestError("Authentication failed. Check your token.")
        raise ConnectionTestError(f"Server returned {response.status_code}")

    async def aclose(self) -> None:
        if self._service is not None:
            await self._service.aclose()
            self._service = None


def _total_runs(response: httpx.Response) -> int | str:
    try:
        page = PaginatedResponse[list[RunResponse]].model_validate(response.json())
    except (ValidationError, ValueError):
        return "unknown"
    return page.meta.total if page.meta else len(page.data)
