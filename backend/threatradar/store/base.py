"""
ThreatRadar - Row Store Interface
Generic read surface over the hosted relational backend.

STORE_BACKEND=sql       → SQLAlchemy async (Postgres / SQLite)
STORE_BACKEND=supabase  → Supabase PostgREST over HTTPS

Every backend returns plain dict rows and raises UpstreamFetchFailure on
any transport or query error.
"""

from abc import ABC, abstractmethod
from typing import Any, Optional

from threatradar.domain import Asset, Client, Event

KNOWN_TABLES = ("clients", "assets", "logs")


class RowStore(ABC):
    """
    Abstract base class for row stores.
    Implementations: SQLRowStore, SupabaseRowStore
    """

    @abstractmethod
    async def select(
        self,
        table: str,
        filters: Optional[dict[str, Any]] = None,
        order_by: Optional[str] = None,
        descending: bool = False,
        limit: Optional[int] = None,
    ) -> list[dict]:
        """Fetch rows from a table.

        Args:
            table: One of clients, assets, logs
            filters: Equality filters {field: value}
            order_by: Column to order by
            descending: Order direction
            limit: Maximum rows returned

        Returns:
            List of row dicts
        """
        ...

    @abstractmethod
    async def health_check(self) -> bool:
        """Check if the store is reachable."""
        ...

    @property
    @abstractmethod
    def backend_name(self) -> str:
        ...

    # ─── Typed helpers shared by all backends ───

    async def list_clients(self) -> list[Client]:
        rows = await self.select("clients", order_by="name")
        return [Client.from_row(r) for r in rows]

    async def get_client(self, client_id: str) -> Optional[Client]:
        rows = await self.select("clients", filters={"id": client_id}, limit=1)
        return Client.from_row(rows[0]) if rows else None

    async def get_asset(self, asset_id: str) -> Optional[Asset]:
        rows = await self.select("assets", filters={"id": asset_id}, limit=1)
        return Asset.from_row(rows[0]) if rows else None

    async def list_events(self, client_id: str, limit: Optional[int] = None) -> list[Event]:
        rows = await self.select(
            "logs", filters={"client_id": client_id},
            order_by="timestamp", descending=True, limit=limit,
        )
        return [Event.from_row(r) for r in rows]

    async def list_assets(self, client_id: str, limit: Optional[int] = None) -> list[Asset]:
        rows = await self.select("assets", filters={"client_id": client_id}, limit=limit)
        return [Asset.from_row(r) for r in rows]

    async def list_asset_threats(self, asset: Asset) -> list[Event]:
        """Events of the asset's client whose host IP or host name matches
        the asset, newest first."""
        scope = {"client_id": asset.client_id} if asset.client_id else {}
        by_ip = await self.select(
            "logs", filters={**scope, "host_ip": asset.ip_address},
            order_by="timestamp", descending=True,
        ) if asset.ip_address else []
        by_name = await self.select(
            "logs", filters={**scope, "host_name": asset.name},
            order_by="timestamp", descending=True,
        ) if asset.name else []

        merged: dict[str, dict] = {}
        for row in by_ip + by_name:
            merged.setdefault(str(row.get("event_id")), row)
        events = [Event.from_row(r) for r in merged.values()]
        events.sort(key=lambda e: e.timestamp.timestamp() if e.timestamp else float("-inf"), reverse=True)
        return events
