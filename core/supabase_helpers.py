# core/supabase_helpers.py

from typing import Optional

from supabase import Client

from core.errors import UpstreamFailure, upstream_error
from core.supabase_client import get_supabase_client


# =================================================================
#  CLIENT
# =================================================================

def require_supabase_client() -> Client:
    """Service-role client, or a 500 if Supabase is not configured."""
    client = get_supabase_client()
    if not client:
        raise UpstreamFailure("Supabase client not configured")
    return client


# =================================================================
#  COUNT / SELECT over record-store tables
# =================================================================
# Keyword filters are equality checks; a value of None means IS NULL.
# =================================================================

def _apply_filters(query, filters: dict):
    for column, value in filters.items():
        if value is None:
            query = query.is_(column, "null")
        else:
            query = query.eq(column, value)
    return query


def count_rows(admin: Client, table: str, **filters) -> int:
    """Exact row count."""
    try:
        query = admin.table(table).select("id", count="exact")
        result = _apply_filters(query, filters).execute()
    except Exception as e:
        raise upstream_error(e, f"Count {table}") from e

    return result.count or 0


def select_rows(
    admin: Client,
    table: str,
    columns: str = "*",
    order: Optional[str] = None,
    desc: bool = False,
    **filters,
) -> list:
    try:
        query = _apply_filters(admin.table(table).select(columns), filters)
        if order:
            query = query.order(order, desc=desc)
        result = query.execute()
    except Exception as e:
        raise upstream_error(e, f"Failed to fetch from {table}") from e

    return result.data or []
