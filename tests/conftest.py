"""Pytest fixtures for airframe_mcp tests."""

import httpx
import pytest

from airframe_mcp.bridge import AirframeBridge
from helpers import DEFAULT_SERVER_URL, VALID_API_KEY, RecordingSink, RemoteServer


@pytest.fixture
def remote():
    """Scripted remote server."""
    return RemoteServer()


@pytest.fixture
def sink():
    return RecordingSink()


@pytest.fixture
def make_bridge(remote, sink):
    """Factory for bridges wired to the scripted remote server."""

    def _make(**kwargs):
        kwargs.setdefault("sink", sink)
        return AirframeBridge(
            kwargs.pop("api_key", VALID_API_KEY),
            kwargs.pop("server_url", DEFAULT_SERVER_URL),
            transport=httpx.MockTransport(remote.handler),
            **kwargs,
        )

    return _make
