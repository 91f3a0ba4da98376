"""API test fixtures."""

from collections.abc import AsyncGenerator

import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from timesheet_engine.api.app import create_app
from timesheet_engine.config import Settings, get_settings


@pytest_asyncio.fixture
async def client(settings: Settings) -> AsyncGenerator[AsyncClient, None]:
    """Create async HTTP client bound to deterministic settings."""
    app = create_app()
    app.dependency_overrides[get_settings] = lambda: settings
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
