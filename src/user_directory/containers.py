"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from supabase import create_client

from user_directory.adapters.connectivity import (
    AlwaysConnected,
    ConnectivityChecker,
    HttpxConnectivityChecker,
)
from user_directory.adapters.randomuser_client import HttpxRandomUserClient
from user_directory.adapters.supabase_user_store import SupabaseUserStore
from user_directory.config import Settings, parse_nationalities
from user_directory.services.users import UserSyncRepository


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    user_repository: UserSyncRepository
    close_resources: Callable[[], Awaitable[None]]


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    supabase_client = create_client(
        resolved_settings.supabase_url, resolved_settings.supabase_service_key
    )
    user_store = SupabaseUserStore(
        supabase_client, table_name=resolved_settings.users_table
    )
    randomuser_client = HttpxRandomUserClient.create(
        base_url=resolved_settings.randomuser_base_url,
        nationality=parse_nationalities(resolved_settings.randomuser_nationality),
        timeout_seconds=resolved_settings.request_timeout_seconds,
        min_fetch_interval_seconds=resolved_settings.min_fetch_interval_seconds,
    )
    connectivity: ConnectivityChecker = AlwaysConnected()
    if resolved_settings.connectivity_probe_url:
        connectivity = HttpxConnectivityChecker(
            probe_url=resolved_settings.connectivity_probe_url,
            http_client=randomuser_client.http_client,
        )
    randomuser_client.connectivity = connectivity
    user_repository = UserSyncRepository(
        client=randomuser_client,
        store=user_store,
        max_retries=resolved_settings.max_retries,
        load_threshold=resolved_settings.load_threshold,
        last_requested_count=resolved_settings.default_page_size,
    )

    async def close_resources() -> None:
        await user_repository.aclose()
        await randomuser_client.close()

    return AppContainer(
        settings=resolved_settings,
        user_repository=user_repository,
        close_resources=close_resources,
    )
