"""Test helper functions."""

from typing import Any, Optional
from unittest.mock import AsyncMock, MagicMock


QUERY_METHODS = ("select", "eq", "in_", "is_", "order", "limit", "insert", "update")


def make_supabase_query(data: Optional[list[dict[str, Any]]] = None) -> MagicMock:
    """PostgREST query builder mock: every builder call chains, execute returns `data`."""
    query = MagicMock()
    for name in QUERY_METHODS:
        getattr(query, name).return_value = query
    query.execute.return_value = MagicMock(data=data if data is not None else [])
    return query


def make_supabase_client(query: MagicMock) -> MagicMock:
    client = MagicMock()
    client.table.return_value = query
    return client


def bind_supabase_client(mock_client_class: MagicMock, client: MagicMock) -> None:
    """Make a patched SupabaseClient class yield `client` from `async with`."""
    mock_client_class.return_value.__aenter__.return_value = client
    mock_client_class.return_value.__aexit__.return_value = None


def make_mongo_context() -> MagicMock:
    """MongoDbContext with async collection methods."""
    context = MagicMock()
    for name in ("status_histories", "case_histories", "user_activity_logs"):
        collection = MagicMock()
        collection.insert_one = AsyncMock()
        setattr(context, name, collection)
    return context
