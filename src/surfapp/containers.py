"""Dependency container wiring for the client."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from supabase import Client, create_client

from surfapp.adapters.api_client import ApiClient
from surfapp.adapters.http_api_client import HttpxApiClient
from surfapp.adapters.session_store import (
    JsonFileKeyValueStore,
    KeyValueStore,
    SessionStore,
)
from surfapp.adapters.supabase_api_client import SupabaseApiClient
from surfapp.config import Settings
from surfapp.services.auth import AuthSessionController
from surfapp.services.session_details import SessionDetailService

HTTP_BACKEND = "http"
SUPABASE_BACKEND = "supabase"


@dataclass
class AppContainer:
    """Holds client-wide dependencies."""

    settings: Settings
    api_client: ApiClient
    session_store: SessionStore
    auth: AuthSessionController
    session_details: SessionDetailService
    close_resources: Callable[[], Awaitable[None]]


def build_api_client(
    settings: Settings, supabase_client: Client | None = None
) -> ApiClient:
    """Select the transport configured for this process."""
    backend = settings.api_backend.strip().lower()
    if backend == HTTP_BACKEND:
        return HttpxApiClient.create(settings.api_url, settings.api_timeout_ms)
    if backend == SUPABASE_BACKEND:
        if supabase_client is None:
            if not settings.supabase_url or not settings.supabase_anon_key:
                raise ValueError(
                    "supabase_url and supabase_anon_key are required "
                    "for the supabase backend"
                )
            supabase_client = create_client(
                settings.supabase_url, settings.supabase_anon_key
            )
        return SupabaseApiClient(supabase_client)
    raise ValueError(f"Unknown api_backend: {settings.api_backend!r}")


def build_container(
    settings: Settings | None = None,
    supabase_client: Client | None = None,
    key_value_store: KeyValueStore | None = None,
) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    api_client = build_api_client(resolved_settings, supabase_client)
    session_store = SessionStore(
        key_value_store
        or JsonFileKeyValueStore.create(resolved_settings.session_store_path)
    )
    auth = AuthSessionController(client=api_client, store=session_store)
    session_details = SessionDetailService(api_client)

    async def close_resources() -> None:
        await api_client.close()

    return AppContainer(
        settings=resolved_settings,
        api_client=api_client,
        session_store=session_store,
        auth=auth,
        session_details=session_details,
        close_resources=close_resources,
    )
