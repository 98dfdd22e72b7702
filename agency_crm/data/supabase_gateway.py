"""
Supabase Gateway

DataGateway over a Supabase project (PostgREST). Only simple filters are
sent to the server; every join is done client-side by the callers.
"""

from typing import Optional
import logging

import httpx
from postgrest.exceptions import APIError

from .diagnostics import DiagnosticLog
from .gateway import DataGateway, GatewayError

logger = logging.getLogger(__name__)


class SupabaseGateway(DataGateway):
    """Gateway backed by a `supabase.Client`."""

    def __init__(self, client, diagnostics: Optional[DiagnosticLog] = None):
        super().__init__(diagnostics)
        self._client = client

    def select(
        self,
        table: str,
        eq: Optional[dict] = None,
        in_: Optional[dict] = None,
        gte: Optional[dict] = None,
        lte: Optional[dict] = None,
        order: Optional[str] = None,
        descending: bool = False
    ) -> list[dict]:
        # An empty containment filter can never match
        if in_ and any(len(values) == 0 for values in in_.values()):
            return []

        query = self._client.table(table).select("*")
        for column, value in (eq or {}).items():
            query = query.eq(column, value)
        for column, values in (in_ or {}).items():
            query = query.in_(column, list(values))
        for column, value in (gte or {}).items():
            query = query.gte(column, value)
        for column, value in (lte or {}).items():
            query = query.lte(column, value)
        if order:
            query = query.order(order, desc=descending)

        response = self._execute(query, table, "select")
        rows = response.data or []
        logger.debug("Fetched %d rows from %s", len(rows), table)
        return rows

    def upsert(self, table: str, row: dict, on_conflict: str) -> dict:
        query = self._client.table(table).upsert(row, on_conflict=on_conflict)
        response = self._execute(query, table, "upsert")
        data = response.data or []
        return data[0] if data else {}

    def _execute(self, query, table: str, operation: str):
        try:
            return query.execute()
        except APIError as e:
            raise GatewayError(table, operation, e.message or str(e)) from e
        except httpx.HTTPError as e:
            raise GatewayError(table, operation, str(e)) from e
