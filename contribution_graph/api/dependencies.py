from collections.abc import AsyncGenerator
from datetime import date

import httpx
from fastapi import Depends

from contribution_graph.core.dates import Clock
from contribution_graph.settings import Settings


def get_settings() -> Settings:
    return Settings()


def get_clock() -> Clock:
    return date.today


async def get_http_client(
    settings: Settings = Depends(get_settings),
) -> AsyncGenerator[httpx.AsyncClient, None]:
    """Yield an HTTP client shared by both source requests of one call."""

    async with httpx.AsyncClient(timeout=settings.http_timeout_seconds) as client:
        yield client
