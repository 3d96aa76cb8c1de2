from typing import Optional

from supabase import Client, ClientOptions, create_client

from contractflow.core.config import Settings, settings
from contractflow.core.errors import ConfigError

_client: Optional[Client] = None


def create_service_client(cfg: Settings) -> Client:
    """Service-role client; server side only, so no session persistence or token refresh."""
    if not cfg.SUPABASE_URL or not cfg.SUPABASE_SERVICE_ROLE_KEY:
        raise ConfigError("Missing SUPABASE_URL or SUPABASE_SERVICE_ROLE_KEY")
    return create_client(
        cfg.SUPABASE_URL,
        cfg.SUPABASE_SERVICE_ROLE_KEY,
        options=ClientOptions(persist_session=False, auto_refresh_token=False),
    )


def get_supabase() -> Client:
    """Process-wide client stored on app.state.sb at startup."""
    global _client
    if _client is None:
        _client = create_service_client(settings)
    return _client
