"""
ThreatRadar - Supabase Row Store
Reads clients, assets and logs through the Supabase PostgREST endpoint.

Setup:
  STORE_BACKEND=supabase
  SUPABASE_URL=https://<project>.supabase.co
  SUPABASE_KEY=<anon or service key>
"""

import logging
from typing import Any, Optional

import httpx

from threatradar.config import get_settings
from threatradar.errors import UpstreamFetchFailure
from threatradar.store.base import KNOWN_TABLES, RowStore

logger = logging.getLogger(__name__)


class SupabaseRowStore(RowStore):
    """PostgREST client. One short-lived httpx client per request."""

    def __init__(
        self,
        url: Optional[str] = None,
        key: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        settings = get_settings()
        self.url = (url or settings.supabase_url).rstrip("/")
        self.key = key if key is not None else settings.supabase_key
        self.timeout = timeout or settings.store_timeout
        self._transport = transport

    @property
    def backend_name(self) -> str:
        return "supabase"

    def _headers(self) -> dict:
        return {
            "apikey": self.key,
            "Authorization": f"Bearer {self.key}",
            "Accept": "application/json",
        }

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self.timeout, transport=self._transport)

    async def select(
        self,
        table: str,
        filters: Optional[dict[str, Any]] = None,
        order_by: Optional[str] = None,
        descending: bool = False,
        limit: Optional[int] = None,
    ) -> list[dict]:
        if table not in KNOWN_TABLES:
            raise UpstreamFetchFailure(table, "unknown table")

        params = {"select": "*"}
        for field_name, value in (filters or {}).items():
            params[field_name] = f"eq.{value}"
        if order_by:
            params["order"] = f"{order_by}.{'desc' if descending else 'asc'}"
        if limit is not None:
            params["limit"] = str(limit)

        try:
            async with self._client() as client:
                resp = await client.get(
                    f"{self.url}/rest/v1/{table}", params=params, headers=self._headers(),
                )
                resp.raise_for_status()
                rows = resp.json()
        except httpx.HTTPStatusError as e:
            logger.error(f"Supabase select on {table} returned {e.response.status_code}")
            raise UpstreamFetchFailure(table, f"HTTP {e.response.status_code}")
        except httpx.HTTPError as e:
            logger.error(f"Supabase select on {table} failed: {e}")
            raise UpstreamFetchFailure(table, str(e) or type(e).__name__)
        except ValueError as e:
            raise UpstreamFetchFailure(table, f"malformed response: {e}")

        if not isinstance(rows, list):
            raise UpstreamFetchFailure(table, "expected a JSON array")
        return [r for r in rows if isinstance(r, dict)]

    async def health_check(self) -> bool:
        if not self.url:
            return False
        try:
            async with self._client() as client:
                resp = await client.get(
                    f"{self.url}/rest/v1/clients",
                    params={"select": "id", "limit": "1"},
                    headers=self._headers(),
                )
                return resp.status_code == 200
        except httpx.HTTPError:
            return False
