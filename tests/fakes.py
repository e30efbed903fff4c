"""
In-memory stand-ins for the catalog store and REST client.
"""

from typing import Any, Dict, List, Optional

from catalog.store import StoreError


class FakeStore:
    """In-memory ``CatalogStore`` recording every call."""

    def __init__(self, tables=None, procedures=None, failures=None):
        self.tables: Dict[str, List[Dict[str, Any]]] = tables or {}
        self.procedures = procedures or {}
        self.failures: Dict[str, Exception] = failures or {}
        self.calls: List[tuple] = []

    def _maybe_fail(self, method: str):
        if method in self.failures:
            raise self.failures[method]

    def query_by_foreign_key(self, table, column, value, limit=None):
        self.calls.append(("query_by_foreign_key", table, column, value))
        self._maybe_fail("query_by_foreign_key")
        rows = [r for r in self.tables.get(table, []) if r.get(column) == value]
        return rows[:limit] if limit else rows

    def query_by_join(self, join_table, join_column, value, target_table, link_column, target_column="id", limit=None):
        self.calls.append(("query_by_join", join_table, join_column, value))
        self._maybe_fail("query_by_join")
        ids = [r[link_column] for r in self.tables.get(join_table, []) if r.get(join_column) == value]
        rows = [r for r in self.tables.get(target_table, []) if r.get(target_column) in ids]
        return rows[:limit] if limit else rows

    def query_by_values(self, table, column, values, limit=None):
        self.calls.append(("query_by_values", table, column, list(values)))
        self._maybe_fail("query_by_values")
        rows = [r for r in self.tables.get(table, []) if values and r.get(column) in values]
        return rows[:limit] if limit else rows

    def call_remote_procedure(self, function, params):
        self.calls.append(("call_remote_procedure", function, params))
        self._maybe_fail("call_remote_procedure")
        if function not in self.procedures:
            raise StoreError(f"function {function} does not exist")
        return self.procedures[function](**params)

    def query_by_pattern(self, table, column, pattern, limit=None):
        self.calls.append(("query_by_pattern", table, column, pattern))
        self._maybe_fail("query_by_pattern")
        rows = [r for r in self.tables.get(table, []) if pattern.lower() in str(r.get(column, "")).lower()]
        return rows[:limit] if limit else rows

    def ping(self):
        self._maybe_fail("ping")
        return True


class FakeRest:
    """Stand-in for ``RestClient`` serving rows from a dict of tables."""

    def __init__(self, tables=None, error: Optional[Exception] = None):
        self.tables = tables or {}
        self.error = error
        self.calls: List[tuple] = []

    def select(self, table, column, value, limit=None):
        self.calls.append((table, column, value))
        if self.error:
            raise self.error
        rows = [r for r in self.tables.get(table, []) if r.get(column) == value]
        return rows[:limit] if limit else rows
