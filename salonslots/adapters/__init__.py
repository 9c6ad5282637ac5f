"""
Adapters layer - External integrations (Supabase, Google Calendar).
"""

from .google_calendar import GoogleCalendarClient
from .mock_backend import MockCalendarClient, MockStore
from .supabase_store import SupabaseStore

__all__ = ["GoogleCalendarClient", "MockCalendarClient", "MockStore", "SupabaseStore"]
