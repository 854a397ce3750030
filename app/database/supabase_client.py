from supabase import create_client, Client
from app.config import settings
from typing import Any, Dict, Optional
import logging

logger = logging.getLogger(__name__)


class SupabaseClient:
    """Process-wide Supabase clients for the users/sessions/reports/expenses tables and receipt storage."""

    _client: Client = None
    _admin_client: Client = None

    @staticmethod
    def is_configured() -> bool:
        return bool(settings.supabase_url and settings.supabase_key)

    @classmethod
    def get_client(cls) -> Client:
        if cls._client is None:
            if not cls.is_configured():
                logger.error("SUPABASE_URL / SUPABASE_KEY are not set")
            cls._client = create_client(settings.supabase_url, settings.supabase_key)
        return cls._client

    @classmethod
    def get_service_client(cls) -> Client:
        """Client with service_role key; bypasses RLS. Account activation needs it."""
        if cls._admin_client is None and settings.supabase_service_role_key:
            cls._admin_client = create_client(
                settings.supabase_url, settings.supabase_service_role_key
            )
        return cls._admin_client or cls.get_client()


def get_supabase() -> Client:
    return SupabaseClient.get_client()


def first_row(result: Any) -> Optional[Dict[str, Any]]:
    """First row of a PostgREST response, or None when nothing matched."""
    if result is None or not result.data:
        return None
    if isinstance(result.data, list):
        return result.data[0]
    return result.data
