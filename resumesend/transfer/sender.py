"""
File Sender

Design Decision: Resuming Partial Transfers
============================================

Options Considered:
1. Client keeps a journal of what it already sent
   - Works offline
   - Journal can disagree with what the server actually stored

2. Server reports how much it holds, keyed by name + checksum
   - Single source of truth
   - Client stays stateless between calls

Decision: Server-reported resume offset
- Client sends {filename, selector, size, checksum}
- Server answers ALREADY_DOWNLOADED, RESUME(existing_size) or ERROR
- Client streams bytes [existing_size, size) and closes

Send Flow:
1. Read size (stat) and checksum of the local file
2. Connect and upgrade to TLS
3. Send the request frame, wait for exactly one response frame
4. Stream the missing tail (RESUME only)
5. Close the channel on every exit path

The resumed tail is trusted as-is: no digest is re-checked after
streaming and no acknowledgement is read.
"""

import logging
import ssl
from pathlib import Path
from typing import Awaitable, Callable, Optional

import aiofiles

from ..config import Config
from ..errors import (
    ProtocolError, ServerRejected, TransferOutcome, TransferResult, map_error,
)
from ..file import FileAttributes, FileHasher, read_file_attributes
from .channel import SecureChannel
from .protocol import (
    AlreadyDownloaded, DestinationSelector, OutboundMessage, ResumeAt,
    ServerError, decode_response, encode_request,
)

logger = logging.getLogger(__name__)

# Streaming block size: 64KB
CHUNK_SIZE = 64 * 1024

# (bytes_sent, bytes_to_send)
ProgressCallback = Callable[[int, int], None]
Connector = Callable[[str, int], Awaitable[SecureChannel]]


class FileSender:
    """
    Sends one local file to the receiving service, resuming where it left off.

    Features:
    - Content checksum so the server can trust its partial copy
    - Streams only the missing tail
    - Every failure returned as a TransferFailure, never raised
    """

    def __init__(self, hasher: Optional[FileHasher] = None,
                 ssl_context: Optional[ssl.SSLContext] = None,
                 server_hostname: Optional[str] = None,
                 chunk_size: int = CHUNK_SIZE,
                 connector: Optional[Connector] = None):
        """
        Args:
            hasher: Checksum computer (MD5 if not provided)
            ssl_context: TLS context for the channel
            server_hostname: Name to verify in the server certificate
            chunk_size: Bytes per write while streaming the tail
            connector: Coroutine (host, port) -> SecureChannel, replaces TLS connect
        """
        self.hasher = hasher or FileHasher()
        self.ssl_context = ssl_context
        self.server_hostname = server_hostname
        self.chunk_size = chunk_size
        self._connector = connector or self._connect

    @classmethod
    def from_config(cls, config: Config) -> 'FileSender':
        """Build a sender from loaded configuration."""
        return cls(
            hasher=FileHasher(config.checksum_algorithm, config.chunk_size),
            ssl_context=config.ssl_context(),
            server_hostname=config.server_hostname,
            chunk_size=config.chunk_size,
        )

    async def _connect(self, host: str, port: int) -> SecureChannel:
        return await SecureChannel.connect(
            host, port, self.ssl_context, server_hostname=self.server_hostname
        )

    async def send_file(self, host: str, port: int, file_path: Path,
                        selector: DestinationSelector,
                        on_progress: Optional[ProgressCallback] = None) -> TransferOutcome:
        """
        Send a file, resuming any partial copy the server already holds.

        Returns:
            TransferResult on success, TransferFailure otherwise.
            Cancellation is not caught; the channel is closed before it propagates.
        """
        file_path = Path(file_path)
        try:
            return await self._send(host, port, file_path, selector, on_progress)
        except Exception as e:
            failure = map_error(e)
            logger.warning(f"Send of {file_path.name} to {host}:{port} failed: "
                           f"{failure.kind.value} ({failure.message})")
            return failure

    async def _send(self, host: str, port: int, file_path: Path,
                    selector: DestinationSelector,
                    on_progress: Optional[ProgressCallback]) -> TransferResult:
        attributes = await read_file_attributes(file_path, self.hasher)
        message = OutboundMessage(
            filename=attributes.basename,
            selector=selector,
            size=attributes.size,
            checksum=attributes.checksum,
        )

        channel = await self._connector(host, port)
        async with channel:
            logger.info(f"Connected to {host}:{port}, offering {attributes.basename} "
                        f"({attributes.size:,} bytes)")
            await channel.send_frame(encode_request(message))
            response = decode_response(await channel.recv_frame())

            if isinstance(response, AlreadyDownloaded):
                logger.info(f"{attributes.basename} already on server")
                return TransferResult(bytes_sent=0, file_size=attributes.size)

            if isinstance(response, ServerError):
                raise ServerRejected(response.reason)

            if isinstance(response, ResumeAt):
                bytes_sent = await self._stream_tail(
                    channel, file_path, attributes, response.existing_size, on_progress
                )
                return TransferResult(bytes_sent=bytes_sent, file_size=attributes.size)

            raise ProtocolError(f"Unhandled response: {response!r}")

    async def _stream_tail(self, channel: SecureChannel, file_path: Path,
                           attributes: FileAttributes, offset: int,
                           on_progress: Optional[ProgressCallback]) -> int:
        """Stream bytes [offset, EOF) of the file. Returns bytes streamed."""
        if offset > attributes.size:
            raise ProtocolError(
                f"Server holds {offset:,} bytes of a {attributes.size:,} byte file"
            )

        to_send = attributes.size - offset
        logger.info(f"Resuming {attributes.basename} at byte {offset:,} "
                    f"({to_send:,} bytes to send)")

        bytes_sent = 0
        async with aiofiles.open(file_path, 'rb') as f:
            await f.seek(offset)
            while True:
                chunk = await f.read(self.chunk_size)
                if not chunk:
                    break
                await channel.write(chunk)
                bytes_sent += len(chunk)

                if on_progress:
                    on_progress(bytes_sent, to_send)

        logger.debug(f"Streamed {bytes_sent:,} bytes of {attributes.basename}")
        return bytes_sent


async def send_file(host: str, port: int, file_path: Path,
                    selector: DestinationSelector,
                    config: Optional[Config] = None,
                    on_progress: Optional[ProgressCallback] = None) -> TransferOutcome:
    """
    Send a file with settings from config (environment and .env if not provided).
    """
    try:
        sender = FileSender.from_config(config or Config.from_env())
    except (OSError, ValueError) as e:
        # Unreadable cert/key or an unsupported checksum algorithm
        return map_error(e)
    return await sender.send_file(host, port, file_path, selector, on_progress)
