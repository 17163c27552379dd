# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openmcp-python/LICENSE
# ==============================================================================

from __future__ import annotations

import httpx
import pytest

from docspace_mcp.client import Client


BASE_URL = "https://portal.example.com/"


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
async def http_client():
    async with httpx.AsyncClient() as client:
        yield client


@pytest.fixture
def docspace_client(http_client: httpx.AsyncClient) -> Client:
    """DocSpace client authenticated with an API key; pair with ``httpx_mock``."""
    base = Client(BASE_URL, user_agent="docspace-mcp tests", http=http_client)
    return base.with_api_key("test-key")
