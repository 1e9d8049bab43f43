"""
Secure Channel

TCP connection upgraded to TLS, carrying length-prefixed frames
followed by a raw byte stream.

Connect and handshake have no deadline of their own. Callers that need
bounded latency wrap the whole transfer in asyncio.wait_for(); the
channel is closed by its async context manager on cancellation.
"""

import asyncio
import logging
import math
import ssl
from typing import Optional

from ..errors import HandshakeError, ProtocolError
from .protocol import FRAME_HEADER, MAX_FRAME_SIZE, frame

logger = logging.getLogger(__name__)

# asyncio defaults to a 60s handshake timeout; the handshake waits forever
HANDSHAKE_TIMEOUT = math.inf


class SecureChannel:
    """
    One client connection to the receiving service.

    Usage:
        async with await SecureChannel.connect(host, port, context) as channel:
            await channel.send_frame(payload)
            reply = await channel.recv_frame()
    """

    def __init__(self, reader: asyncio.StreamReader,
                 writer: asyncio.StreamWriter):
        self.reader = reader
        self.writer = writer
        self._closed = False

    @classmethod
    async def connect(cls, host: str, port: int,
                      ssl_context: Optional[ssl.SSLContext],
                      server_hostname: Optional[str] = None) -> 'SecureChannel':
        """
        Open a TCP connection and upgrade it to TLS.

        Passing ssl_context=None skips the upgrade (loopback testing).

        Raises:
            OSError: TCP connect failed (ConnectionRefusedError when refused)
            socket.gaierror: host name could not be resolved
            HandshakeError: TLS upgrade failed
        """
        reader, writer = await asyncio.open_connection(host, port)
        logger.debug(f"TCP connected to {host}:{port}")

        if ssl_context is not None:
            try:
                await writer.start_tls(
                    ssl_context,
                    server_hostname=server_hostname or host,
                    ssl_handshake_timeout=HANDSHAKE_TIMEOUT,
                )
            except (ssl.SSLError, ConnectionError) as e:
                writer.close()
                raise HandshakeError(f"TLS handshake with {host}:{port} failed: {e}") from e
            except asyncio.CancelledError:
                writer.close()
                raise
            logger.debug(f"TLS established with {host}:{port}")

        return cls(reader, writer)

    async def send_frame(self, payload: bytes):
        """Send one length-prefixed frame."""
        if self._closed:
            raise ConnectionError("Channel closed")

        self.writer.write(frame(payload))
        await self.writer.drain()
        logger.debug(f"Sent frame ({len(payload)} bytes)")

    async def recv_frame(self) -> bytes:
        """
        Receive exactly one length-prefixed frame.

        Raises:
            ProtocolError: peer closed mid-frame or announced an oversized frame
        """
        if self._closed:
            raise ConnectionError("Channel closed")

        try:
            header = await self.reader.readexactly(FRAME_HEADER.size)
            (length,) = FRAME_HEADER.unpack(header)

            if length > MAX_FRAME_SIZE:
                raise ProtocolError(f"Frame too large: {length}")

            payload = await self.reader.readexactly(length) if length else b''
        except asyncio.IncompleteReadError as e:
            raise ProtocolError(
                f"Connection closed after {len(e.partial)} bytes of frame"
            ) from e

        logger.debug(f"Received frame ({length} bytes)")
        return payload

    async def write(self, data: bytes):
        """Write raw bytes outside of framing and wait for the buffer to drain."""
        if self._closed:
            raise ConnectionError("Channel closed")

        self.writer.write(data)
        await self.writer.drain()

    async def close(self):
        """Close the connection. Safe to call more than once."""
        if self._closed:
            return
        self._closed = True
        self.writer.close()
        try:
            await self.writer.wait_closed()
        except (ConnectionError, ssl.SSLError) as e:
            # Peer already gone; the transport is closed either way
            logger.debug(f"Error while closing channel: {e}")

    async def __aenter__(self) -> 'SecureChannel':
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.close()
