"""
Shared fixtures: a TCP target on loopback and a factory for bridge servers
pointed at it.
"""
import asyncio
import contextlib
import socket

import pytest
import pytest_asyncio

from wsbridge.config import ServerConfig
from wsbridge.server import BridgeServer


class Target:
    """TCP service that hands every accepted connection to the test."""

    def __init__(self):
        self.connections = asyncio.Queue()
        self.writers = []
        self.port = None

    async def accept(self, reader, writer):
        self.writers.append(writer)
        await self.connections.put((reader, writer))

    async def next_connection(self, timeout=5):
        return await asyncio.wait_for(self.connections.get(), timeout)


@pytest.fixture
def unused_port():
    with socket.socket() as sock:
        sock.bind(("127.0.0.1", 0))
        return sock.getsockname()[1]


@pytest_asyncio.fixture
async def target():
    t = Target()
    server = await asyncio.start_server(t.accept, "127.0.0.1", 0)
    t.port = server.sockets[0].getsockname()[1]
    yield t
    for writer in t.writers:
        writer.close()
    server.close()
    await server.wait_closed()


@pytest_asyncio.fixture
async def bridge_server(target):
    """Start a bridge server; returns ``(BridgeServer, ws_url)``."""
    async with contextlib.AsyncExitStack() as stack:

        async def start(target_port=None, **kwargs):
            config = ServerConfig(
                "127.0.0.1", 0, "127.0.0.1", target_port or target.port, **kwargs
            )
            bridge = BridgeServer(config)
            server = await stack.enter_async_context(await bridge.serve())
            port = list(server.sockets)[0].getsockname()[1]
            return bridge, f"ws://127.0.0.1:{port}/"

        yield start


@pytest.fixture
def web_root(tmp_path):
    (tmp_path / "index.html").write_text("<h1>client bundle</h1>")
    (tmp_path / "app.js").write_text("console.log('hi')")
    (tmp_path / "vendor").mkdir()
    (tmp_path / "vendor" / "lib.js").write_text("// lib")
    return tmp_path


class FakeConnection:
    """Stands in for a ``ServerConnection`` in router and gate tests."""

    def __init__(self):
        self.remote_address = ("127.0.0.1", 50000)
        self.closed = asyncio.Event()

    async def wait_closed(self):
        await self.closed.wait()


@pytest.fixture
def fake_connection():
    return FakeConnection
