"""Async client for the Supabase REST (PostgREST) API."""

from __future__ import annotations

from typing import Any

import httpx

from .exceptions import SupabaseConfigError, SupabaseError

REST_PREFIX = "/rest/v1"


def filter_value(value: Any) -> str:
    """Render a filter value the way PostgREST expects it in a query string."""
    if value is True:
        return "true"
    if value is False:
        return "false"
    if value is None:
        return "null"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def equality_filters(filters: dict[str, Any] | None) -> list[tuple[str, str]]:
    """Turn ``{"col": value}`` into PostgREST ``col=eq.value`` params."""
    return [(key, f"eq.{filter_value(value)}") for key, value in (filters or {}).items()]


def parse_content_range(header: str | None) -> int:
    """Extract the total from a ``Content-Range`` header such as ``0-9/42``."""
    if not header or "/" not in header:
        return 0
    try:
        return int(header.split("/", 1)[1])
    except ValueError:
        return 0


class SupabaseClient:
    """Async client for a project's REST endpoint, authenticated with the service role key."""

    def __init__(
        self,
        url: str,
        service_role_key: str,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """Initialize the client.

        Args:
            url: Project URL, e.g. https://xyz.supabase.co
            service_role_key: Service role API key
            timeout: Request timeout in seconds
            transport: Optional httpx transport (used by tests)
        """
        if not url or not service_role_key:
            raise SupabaseConfigError()

        self.url = url.rstrip("/")
        self.timeout = timeout
        self._service_role_key = service_role_key
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    def _get_headers(self) -> dict[str, str]:
        return {
            "apikey": self._service_role_key,
            "Authorization": f"Bearer {self._service_role_key}",
            "Content-Type": "application/json",
        }

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=f"{self.url}{REST_PREFIX}",
                headers=self._get_headers(),
                timeout=self.timeout,
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    async def request(
        self,
        method: str,
        path: str,
        params: list[tuple[str, str]] | None = None,
        json: Any = None,
        headers: dict[str, str] | None = None,
    ) -> httpx.Response:
        """Send a request relative to the REST endpoint and return the raw response."""
        client = await self._get_client()
        return await client.request(method, path, params=params, json=json, headers=headers)

    async def _write(
        self,
        method: str,
        table: str,
        params: list[tuple[str, str]] | None = None,
        json: Any = None,
    ) -> Any:
        response = await self.request(
            method,
            f"/{table}",
            params=params,
            json=json,
            headers={"Prefer": "return=representation"},
        )
        return _json_or_raise(response)

    async def select(
        self,
        table: str,
        columns: str = "*",
        filters: dict[str, Any] | None = None,
        limit: int | None = None,
        order: str | None = None,
    ) -> Any:
        """Read rows from a table."""
        params: list[tuple[str, str]] = []
        if columns and columns != "*":
            params.append(("select", columns))
        params.extend(equality_filters(filters))
        if limit:
            params.append(("limit", filter_value(limit)))
        if order:
            params.append(("order", order))

        response = await self.request("GET", f"/{table}", params=params)
        return _json_or_raise(response)

    async def insert(self, table: str, data: Any) -> Any:
        """Insert one row (object) or many rows (list)."""
        return await self._write("POST", table, json=data)

    async def update(self, table: str, data: dict[str, Any], filters: dict[str, Any]) -> Any:
        """Update rows matching the equality filters."""
        return await self._write("PATCH", table, params=equality_filters(filters), json=data)

    async def delete(self, table: str, filters: dict[str, Any]) -> Any:
        """Delete rows matching the equality filters."""
        return await self._write("DELETE", table, params=equality_filters(filters))

    async def openapi(self) -> dict[str, Any]:
        """Fetch the OpenAPI description PostgREST serves at the REST root."""
        response = await self.request("GET", "/")
        if response.is_error:
            raise SupabaseError(
                f"Error querying schema: {response.status_code}", response.status_code
            )
        return response.json()

    async def table_exists(self, table: str) -> bool:
        """Check that a table is reachable with the current key."""
        response = await self.request("HEAD", f"/{table}", params=[("limit", "0")])
        return not response.is_error

    async def sample_rows(self, table: str, limit: int = 1) -> list[dict[str, Any]]:
        """Fetch the first rows of a table."""
        response = await self.request("GET", f"/{table}", params=[("limit", str(limit))])
        if response.is_error:
            raise SupabaseError(
                f"Error querying table '{table}': {response.status_code}", response.status_code
            )
        return response.json()

    async def count_rows(self, table: str) -> int:
        """Return the exact row count of a table."""
        response = await self.request(
            "HEAD",
            f"/{table}",
            params=[("select", "*"), ("limit", "0")],
            headers={"Prefer": "count=exact"},
        )
        if response.is_error:
            raise SupabaseError(
                f"Error getting stats for '{table}': {response.status_code}", response.status_code
            )
        return parse_content_range(response.headers.get("Content-Range"))


def _json_or_raise(response: httpx.Response) -> Any:
    if response.is_error:
        raise SupabaseError(
            f"Supabase error ({response.status_code}): {response.text}", response.status_code
        )
    if not response.content:
        return None
    return response.json()
