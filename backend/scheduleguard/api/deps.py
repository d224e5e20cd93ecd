from collections.abc import AsyncGenerator

from fastapi import Depends

from scheduleguard.clients.backend import BackendClient
from scheduleguard.core.config import Settings, get_settings


def get_app_settings() -> Settings:
    return get_settings()


async def get_backend_client(
    settings: Settings = Depends(get_app_settings),
) -> AsyncGenerator[BackendClient, None]:
    client = BackendClient.from_settings(settings)
    try:
        yield client
    finally:
        await client.aclose()
