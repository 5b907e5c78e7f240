"""
Shared fixtures for the CryptoGuard API tests.

The app is driven through an AsyncClient with the service container
overridden, so tests never reach a real AI provider or block explorer.
"""

from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import AsyncClient

from cryptoguard.dependencies import ServiceContainer
from fakes import FakeClock, api_client, make_services


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def services(clock: FakeClock) -> ServiceContainer:
    """Container with no AI provider and an explorer that always fails."""
    return make_services(clock=clock)


@pytest_asyncio.fixture
async def client(services: ServiceContainer) -> AsyncGenerator[AsyncClient, None]:
    """AsyncClient hitting the real FastAPI app with ``services`` injected."""
    async with api_client(services) as ac:
        yield ac
