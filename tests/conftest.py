"""Shared pytest fixtures for all tests."""

import json

import pytest


class FakeChannel:
    """In-memory stand-in for SecureChannel that replays one response frame."""

    def __init__(self, response):
        self.response = response
        self.sent_frames = []
        self.written = bytearray()
        self.writes = 0
        self.closed = False

    async def send_frame(self, payload: bytes):
        self.sent_frames.append(payload)

    async def recv_frame(self) -> bytes:
        if isinstance(self.response, dict):
            return json.dumps(self.response).encode('utf-8')
        return self.response

    async def write(self, data: bytes):
        self.written += data
        self.writes += 1

    async def close(self):
        self.closed = True

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.close()

    @property
    def request(self) -> dict:
        """The decoded request frame sent by the client."""
        assert len(self.sent_frames) == 1
        return json.loads(self.sent_frames[0])


def connector_for(channel):
    """Build a connector coroutine that always hands back the given channel."""
    calls = []

    async def connect(host, port):
        calls.append((host, port))
        return channel

    connect.calls = calls
    return connect


@pytest.fixture
def file_content():
    """1000 bytes where every offset is distinguishable."""
    return bytes(i % 251 for i in range(1000))


@pytest.fixture
def sample_file(tmp_path, file_content):
    """
    Create a 1000-byte sample file.

    Args:
        tmp_path: pytest tmp_path fixture

    Returns:
        Path to the sample file
    """
    file_path = tmp_path / 'payload.bin'
    file_path.write_bytes(file_content)
    return file_path


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Keep RESUMESEND_* variables from the outer environment out of tests."""
    import os
    for name in list(os.environ):
        if name.startswith('RESUMESEND_'):
            monkeypatch.delenv(name)
