"""
Transfer Errors

Design Decision: Where Errors Are Normalized
=============================================

Options Considered:
1. Catch and translate at every call site
   - Each step knows its own failure modes
   - Duplicated rules, easy to miss one

2. Return error values from every step
   - Explicit, but noisy in async code

3. Raise freely, translate once at the engine boundary
   - Internal code stays linear
   - One table of rules to audit

Decision: Option 3
- Internal steps raise ordinary Python exceptions (or TransferError
  subclasses when they know the kind)
- map_error() is called exactly once, in FileSender.send_file
- Anything not matched by a rule becomes UNKNOWN and is logged
"""

import asyncio
import errno
import logging
import socket
import ssl
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union

logger = logging.getLogger(__name__)


class ErrorKind(str, Enum):
    """Caller-facing failure kinds."""
    CONNECTION_REFUSED = "connection_refused"
    UNKNOWN_HOST = "unknown_host"
    HANDSHAKE_FAILED = "handshake_failed"
    FILE_NOT_FOUND = "file_not_found"
    PERMISSION_DENIED = "permission_denied"
    PROTOCOL_ERROR = "protocol_error"
    UNKNOWN = "unknown"


class TransferError(Exception):
    """Base class for errors raised inside the transfer client."""
    kind = ErrorKind.UNKNOWN

    def __init__(self, message: str, kind: Optional[ErrorKind] = None):
        super().__init__(message)
        if kind is not None:
            self.kind = kind


class ProtocolError(TransferError):
    """The peer sent something the protocol does not allow."""
    kind = ErrorKind.PROTOCOL_ERROR


class HandshakeError(TransferError):
    """TLS upgrade of an established TCP connection failed."""
    kind = ErrorKind.HANDSHAKE_FAILED


class ChecksumError(TransferError):
    """The local file could not be read for checksumming."""

    def __init__(self, path, cause: OSError):
        super().__init__(f"Cannot checksum {path}: {cause.strerror or cause}")
        self.path = path


# Kinds a server ERROR reason may carry; anything else is a protocol error
SERVER_KINDS = {
    ErrorKind.PERMISSION_DENIED.value: ErrorKind.PERMISSION_DENIED,
    ErrorKind.FILE_NOT_FOUND.value: ErrorKind.FILE_NOT_FOUND,
}


class ServerRejected(TransferError):
    """The server answered with an ERROR response."""

    def __init__(self, reason: str):
        kind = SERVER_KINDS.get(reason, ErrorKind.PROTOCOL_ERROR)
        super().__init__(f"Server rejected transfer: {reason}", kind)
        self.reason = reason


@dataclass(frozen=True)
class TransferResult:
    """A completed transfer."""
    bytes_sent: int
    file_size: int

    ok = True


@dataclass(frozen=True)
class TransferFailure:
    """A failed transfer, already normalized."""
    kind: ErrorKind
    message: str
    reason: Optional[str] = None

    ok = False


TransferOutcome = Union[TransferResult, TransferFailure]


def _classify(exc: BaseException) -> Optional[ErrorKind]:
    """Return the kind for a known fault, or None if no rule matches."""
    if isinstance(exc, ChecksumError) and exc.__cause__ is not None:
        return _classify(exc.__cause__)
    if isinstance(exc, TransferError):
        return exc.kind

    if isinstance(exc, BaseExceptionGroup):
        kinds = [_classify(e) for e in exc.exceptions]
        for kind in kinds:
            if kind is not None and kind != ErrorKind.UNKNOWN:
                return kind
        return None

    # Order matters: SSLError and gaierror are both OSError subclasses
    if isinstance(exc, ssl.SSLError):
        return ErrorKind.HANDSHAKE_FAILED
    if isinstance(exc, socket.gaierror):
        return ErrorKind.UNKNOWN_HOST
    if isinstance(exc, ConnectionRefusedError):
        return ErrorKind.CONNECTION_REFUSED
    if isinstance(exc, (FileNotFoundError, IsADirectoryError, NotADirectoryError)):
        return ErrorKind.FILE_NOT_FOUND
    if isinstance(exc, PermissionError):
        return ErrorKind.PERMISSION_DENIED
    if isinstance(exc, asyncio.IncompleteReadError):
        return ErrorKind.PROTOCOL_ERROR
    if isinstance(exc, OSError) and exc.errno == errno.ECONNREFUSED:
        return ErrorKind.CONNECTION_REFUSED
    return None


def map_error(exc: BaseException) -> TransferFailure:
    """
    Translate any fault raised during a transfer into a TransferFailure.

    Unrecognized faults are logged with their traceback and reported
    as ErrorKind.UNKNOWN.
    """
    kind = _classify(exc)
    if kind is None or kind == ErrorKind.UNKNOWN:
        logger.error(f"Unhandled transfer fault: {exc!r}", exc_info=exc)
        kind = ErrorKind.UNKNOWN

    reason = exc.reason if isinstance(exc, ServerRejected) else None
    return TransferFailure(kind=kind, message=str(exc) or type(exc).__name__,
                           reason=reason)
