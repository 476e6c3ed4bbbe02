"""Shared test fixtures for signbox test suite."""

from __future__ import annotations

import asyncio
import email.parser
import email.policy
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from unittest.mock import patch

import httpx
import pytest

from signbox.constants import (
    ENV_ACQUIRE_TIMEOUT,
    ENV_API_KEY,
    ENV_MAX_CONNECTIONS,
    ENV_PASS,
    ENV_TIMEOUT,
    ENV_UNCLASSIFIED_STATUS,
    ENV_URL,
    ENV_USER,
)
from signbox.network.pool import ConnectionPool

ENDPOINT = "https://signbox.example.com/api/sign"

# Ten bytes of binary content, including a NUL and high bytes
TEN_BYTES = b"%PDF\x00\xff\x10\x80ab"

_ALL_ENV = (
    ENV_URL,
    ENV_API_KEY,
    ENV_USER,
    ENV_PASS,
    ENV_MAX_CONNECTIONS,
    ENV_ACQUIRE_TIMEOUT,
    ENV_TIMEOUT,
    ENV_UNCLASSIFIED_STATUS,
)


@pytest.fixture
def clean_env(monkeypatch):
    """Remove every SIGNBOX_* variable from the environment."""
    for name in _ALL_ENV:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def config_dir(tmp_path, clean_env):
    """Redirect config to a temp directory and disable the real keyring."""
    config_file = tmp_path / "config.json"
    with (
        patch("signbox.config._storage.CONFIG_DIR", tmp_path),
        patch("signbox.config._storage.CONFIG_FILE", config_file),
        patch("signbox.config.credentials._keyring_enabled", False),
    ):
        yield tmp_path, config_file


@pytest.fixture
def mock_pool_factory():
    """Build pools whose requests are answered by an httpx.MockTransport handler."""

    def _make(handler, **kwargs) -> ConnectionPool:
        return ConnectionPool(transport=httpx.MockTransport(handler), **kwargs)

    return _make


def parse_multipart(request: httpx.Request) -> dict[str, tuple[str | None, str, bytes]]:
    """Split a multipart request into {name: (filename, content_type, payload)}."""
    raw = (
        b"Content-Type: " + request.headers["content-type"].encode("latin-1") + b"\r\n\r\n"
    ) + request.content
    message = email.parser.BytesParser(policy=email.policy.HTTP).parsebytes(raw)
    parts = {}
    for part in message.iter_parts():
        name = part.get_param("name", header="content-disposition")
        parts[name] = (
            part.get_filename(),
            part.get_content_type(),
            part.get_payload(decode=True),
        )
    return parts


# ── Local HTTP server ───────────────────────────────────────────────


@dataclass
class ServerState:
    """Connection and request bookkeeping for :func:`serve`."""

    requests: int = 0
    active: int = 0
    max_active: int = 0
    open_connections: int = 0
    max_open_connections: int = 0
    received: asyncio.Event = field(default_factory=asyncio.Event)
    tasks: set[asyncio.Task] = field(default_factory=set)


async def _read_body(reader: asyncio.StreamReader, headers: dict[str, str]) -> bytes:
    if "content-length" in headers:
        return await reader.readexactly(int(headers["content-length"]))
    if headers.get("transfer-encoding", "").lower() == "chunked":
        chunks = []
        while True:
            size = int((await reader.readline()).strip().split(b";")[0], 16)
            if size == 0:
                await reader.readline()
                return b"".join(chunks)
            chunks.append(await reader.readexactly(size))
            await reader.readline()
    return b""


@asynccontextmanager
async def serve(handler):
    """Run a keep-alive HTTP/1.1 server on localhost.

    *handler* is ``async (state, headers, body) -> (status, headers, body)``.
    Yields ``(url, state)``.
    """
    state = ServerState()

    async def on_connection(reader, writer):
        state.tasks.add(asyncio.current_task())
        state.open_connections += 1
        state.max_open_connections = max(state.max_open_connections, state.open_connections)
        try:
            while True:
                request_line = await reader.readline()
                if not request_line:
                    break
                headers = {}
                while True:
                    line = await reader.readline()
                    if line in (b"\r\n", b"\n", b""):
                        break
                    key, _, value = line.decode("latin-1").partition(":")
                    headers[key.strip().lower()] = value.strip()
                body = await _read_body(reader, headers)

                state.requests += 1
                state.active += 1
                state.max_active = max(state.max_active, state.active)
                state.received.set()
                try:
                    status, extra_headers, payload = await handler(state, headers, body)
                finally:
                    state.active -= 1

                head = [f"HTTP/1.1 {status} {httpx.codes.get_reason_phrase(status)}"]
                head.append(f"Content-Length: {len(payload)}")
                head.extend(f"{k}: {v}" for k, v in extra_headers.items())
                writer.write(("\r\n".join(head) + "\r\n\r\n").encode("latin-1") + payload)
                await writer.drain()
        except (ConnectionError, asyncio.IncompleteReadError):
            pass
        finally:
            state.open_connections -= 1
            writer.close()

    server = await asyncio.start_server(on_connection, "127.0.0.1", 0)
    port = server.sockets[0].getsockname()[1]
    try:
        yield f"http://127.0.0.1:{port}/sign", state
    finally:
        server.close()
        for task in state.tasks:
            task.cancel()
        await asyncio.gather(*state.tasks, return_exceptions=True)
        await server.wait_closed()
