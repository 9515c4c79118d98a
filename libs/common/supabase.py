"""Supabase SDK clients built from settings.

Each call returns a fresh client. Auth sessions live on the client, so a
client must never be shared between users.
"""

from libs.common.config import get_settings
from supabase import Client, ClientOptions, create_client


def _server_options() -> ClientOptions:
    # No background refresh timers and no session storage on the server
    return ClientOptions(auto_refresh_token=False, persist_session=False)


def get_supabase_client() -> Client:
    """Client acting with the anon key, as a browser would."""
    settings = get_settings()
    return create_client(
        settings.SUPABASE_URL,
        settings.SUPABASE_ANON_KEY,
        options=_server_options(),
    )
