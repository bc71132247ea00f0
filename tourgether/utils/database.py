"""Supabase database utility functions"""
import logging
from typing import Optional
from supabase import create_client, Client
from ..config import settings

logger = logging.getLogger(__name__)


class SupabaseClient:
    """Singleton Supabase client wrapper"""
    _instance: Optional[Client] = None

    @classmethod
    def get_client(cls) -> Client:
        """
        Get or create Supabase client instance

        Raises:
            RuntimeError: If SUPABASE_URL / SUPABASE_KEY are not configured
        """
        if cls._instance is None:
            if not settings.supabase_url or not settings.supabase_key:
                raise RuntimeError("Supabase credentials not configured. Set SUPABASE_URL and SUPABASE_KEY.")
            logger.info("Creating Supabase client")
            cls._instance = create_client(
                supabase_url=settings.supabase_url,
                supabase_key=settings.supabase_key
            )
        return cls._instance
