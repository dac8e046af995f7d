"""
Tests for the process-wide default client.
"""

import httpx
import pytest
import pytest_asyncio

from resilient_http import ResilientClient
from resilient_http.defaults import (
    DEFAULT_CLIENT_CONFIG,
    get_default_client,
    reset_default_client,
    set_default_client,
)


@pytest_asyncio.fixture(autouse=True)
async def clean_default():
    await reset_default_client()
    yield
    await reset_default_client()


class TestDefaultClient:

    @pytest.mark.asyncio
    async def test_singleton(self):
        client = get_default_client()

        assert get_default_client() is client
        assert client.config is DEFAULT_CLIENT_CONFIG
        assert client.config.timeout == 15.0
        assert client.config.circuit_breaker.failure_threshold == 5

    @pytest.mark.asyncio
    async def test_set_default_client(self):
        custom = ResilientClient(
            transport=httpx.MockTransport(lambda request: httpx.Response(200)),
            export_prometheus=False,
        )

        set_default_client(custom)

        assert get_default_client() is custom

    @pytest.mark.asyncio
    async def test_reset_creates_new_instance(self):
        first = get_default_client()

        await reset_default_client()

        assert get_default_client() is not first
