"""Data access for the catalog.

Strategies only see the narrow ``CatalogStore`` interface below. The
production implementation wraps the Supabase client; ``RestClient`` talks to
the same project's PostgREST endpoint directly with ``requests`` and is used
as a last-resort path when the client library misbehaves.
"""

from typing import Any, Dict, List, Optional, Protocol

import requests
from postgrest.exceptions import APIError
from supabase import Client, create_client

from .config import Settings
from .logger import get_logger

logger = get_logger(__name__)

USER_AGENT = "LabelCatalog/1.0 (+https://builditrecords.com)"


class StoreError(Exception):
    """A store call completed but reported an error."""


class StoreNotConfigured(StoreError):
    """No Supabase URL/key were configured."""


class CatalogStore(Protocol):
    def query_by_foreign_key(
        self, table: str, column: str, value: Any, limit: Optional[int] = None
    ) -> List[Dict[str, Any]]: ...

    def query_by_join(
        self,
        join_table: str,
        join_column: str,
        value: Any,
        target_table: str,
        link_column: str,
        target_column: str = "id",
        limit: Optional[int] = None,
    ) -> List[Dict[str, Any]]: ...

    def query_by_values(
        self, table: str, column: str, values: List[Any], limit: Optional[int] = None
    ) -> List[Dict[str, Any]]: ...

    def call_remote_procedure(self, function: str, params: Dict[str, Any]) -> List[Dict[str, Any]]: ...

    def query_by_pattern(
        self, table: str, column: str, pattern: str, limit: Optional[int] = None
    ) -> List[Dict[str, Any]]: ...

    def ping(self) -> bool: ...


def _execute(query) -> Any:
    """Run a query builder, turning PostgREST errors into ``StoreError``."""
    try:
        return query.execute().data
    except APIError as exc:
        raise StoreError(f"PostgREST error {exc.code}: {exc.message}") from exc


def _unique(values: List[Any]) -> List[Any]:
    seen = set()
    out = []
    for v in values:
        if v not in seen:
            seen.add(v)
            out.append(v)
    return out


class SupabaseStore:
    """``CatalogStore`` backed by a ``supabase.Client``."""

    def __init__(self, client: Client):
        self.client = client

    @classmethod
    def from_settings(cls, settings: Settings) -> Optional["SupabaseStore"]:
        if not settings.store_configured:
            logger.warning("Supabase credentials missing; catalog store disabled")
            return None
        return cls(create_client(settings.supabase_url, settings.supabase_key))

    def query_by_foreign_key(self, table, column, value, limit=None):
        query = self.client.table(table).select("*").eq(column, value)
        if limit:
            query = query.limit(limit)
        return _execute(query) or []

    def query_by_join(self, join_table, join_column, value, target_table, link_column, target_column="id", limit=None):
        links = _execute(self.client.table(join_table).select(link_column).eq(join_column, value)) or []
        ids = _unique([row[link_column] for row in links if row.get(link_column) is not None])
        if not ids:
            return []
        query = self.client.table(target_table).select("*").in_(target_column, ids)
        if limit:
            query = query.limit(limit)
        return _execute(query) or []

    def query_by_values(self, table, column, values, limit=None):
        values = _unique([v for v in values if v is not None])
        if not values:
            return []
        query = self.client.table(table).select("*").in_(column, values)
        if limit:
            query = query.limit(limit)
        return _execute(query) or []

    def call_remote_procedure(self, function, params):
        data = _execute(self.client.rpc(function, params))
        if data is None:
            return []
        return data if isinstance(data, list) else [data]

    def query_by_pattern(self, table, column, pattern, limit=None):
        query = self.client.table(table).select("*").ilike(column, f"%{pattern}%")
        if limit:
            query = query.limit(limit)
        return _execute(query) or []

    def ping(self) -> bool:
        _execute(self.client.table("labels").select("id").limit(1))
        return True


class RestClient:
    """Minimal PostgREST reader using ``requests``."""

    def __init__(self, base_url: str, api_key: str, timeout: int = 15):
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.timeout = timeout

    @classmethod
    def from_settings(cls, settings: Settings) -> Optional["RestClient"]:
        if not settings.store_configured:
            return None
        return cls(settings.supabase_url, settings.supabase_key, timeout=settings.rest_timeout)

    def _headers(self) -> Dict[str, str]:
        return {
            "apikey": self.api_key,
            "Authorization": f"Bearer {self.api_key}",
            "Accept": "application/json",
            "User-Agent": USER_AGENT,
        }

    def select(self, table: str, column: str, value: Any, limit: Optional[int] = None) -> List[Dict[str, Any]]:
        """GET ``/rest/v1/<table>?<column>=eq.<value>``."""
        params: Dict[str, Any] = {"select": "*", column: f"eq.{value}"}
        if limit:
            params["limit"] = limit
        url = f"{self.base_url}/rest/v1/{table}"
        resp = requests.get(url, headers=self._headers(), params=params, timeout=self.timeout)
        if resp.status_code != 200:
            raise StoreError(f"REST API error {resp.status_code}: {resp.text[:200]}")
        data = resp.json()
        return data if isinstance(data, list) else [data]
