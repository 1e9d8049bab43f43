"""
Resumable Send Protocol

Design Decision: Message Encoding
==================================

Options Considered:
1. Fixed binary structs
   - Compact
   - Every field change breaks the wire format

2. JSON payload inside a length-prefixed frame
   - Self-describing, easy to debug with a packet capture
   - Field order is stable (dicts keep insertion order)

3. Protocol Buffers
   - Typed, compact
   - Needs generated code on both ends

Decision: JSON inside a 4-byte length-prefixed frame
- Receiver reads exactly one message per frame
- Tagged by a "type" field, so the decoder never assumes the shape

Exchange:
```
client                                   server
  | -- frame: SEND_FILE {filename, selector, size, checksum} --> |
  | <-- frame: ALREADY_DOWNLOADED | RESUME {existing_size}       |
  |            | ERROR {reason} ---------------------------------|
  | -- raw bytes [existing_size, size) (RESUME only) ----------> |
```
"""

import json
import logging
import struct
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Union

from ..errors import ProtocolError

logger = logging.getLogger(__name__)

# 4-byte big-endian unsigned length header
FRAME_HEADER = struct.Struct('>I')

# Responses are tiny; anything larger is a misbehaving peer
MAX_FRAME_SIZE = 16 * 1024 * 1024


class MessageType(Enum):
    """Message tags carried in the "type" field."""
    SEND_FILE = "SEND_FILE"
    ALREADY_DOWNLOADED = "ALREADY_DOWNLOADED"
    RESUME = "RESUME"
    ERROR = "ERROR"


# === Destination selector ===

@dataclass(frozen=True)
class Destination:
    """Place the file at an explicit path on the server."""
    path: str

    tag = "destination"

    @property
    def value(self) -> str:
        return self.path


@dataclass(frozen=True)
class Uuid:
    """Place the file under a server-side identifier."""
    id: str

    tag = "uuid"

    @property
    def value(self) -> str:
        return self.id


@dataclass(frozen=True)
class Directory:
    """Place the file inside a server-side directory."""
    path: str

    tag = "directory"

    @property
    def value(self) -> str:
        return self.path


DestinationSelector = Union[Destination, Uuid, Directory]


# === Messages ===

@dataclass(frozen=True)
class OutboundMessage:
    """The single request frame sent by the client."""
    filename: str
    selector: DestinationSelector
    size: int
    checksum: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            'type': MessageType.SEND_FILE.value,
            'filename': self.filename,
            'selector': {self.selector.tag: self.selector.value},
            'size': self.size,
            'checksum': self.checksum,
        }


@dataclass(frozen=True)
class AlreadyDownloaded:
    """Server already holds a complete, verified copy."""


@dataclass(frozen=True)
class ResumeAt:
    """Server holds the first `existing_size` bytes; send the rest."""
    existing_size: int


@dataclass(frozen=True)
class ServerError:
    """Server refused the transfer."""
    reason: str


ServerResponse = Union[AlreadyDownloaded, ResumeAt, ServerError]


# === Codec ===

def frame(payload: bytes) -> bytes:
    """Prefix a payload with its 4-byte length."""
    return FRAME_HEADER.pack(len(payload)) + payload


def encode_request(message: OutboundMessage) -> bytes:
    """Serialize the request into a frame payload."""
    return json.dumps(message.to_dict()).encode('utf-8')


def decode_response(payload: bytes) -> ServerResponse:
    """
    Parse a response frame payload.

    Raises:
        ProtocolError: if the payload is not a JSON object, the tag is
            unknown, or a required field is missing or malformed.
    """
    try:
        data = json.loads(payload.decode('utf-8'))
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise ProtocolError(f"Malformed response payload: {e}") from e

    if not isinstance(data, dict):
        raise ProtocolError(f"Response is not an object: {data!r}")

    tag = data.get('type')
    try:
        msg_type = MessageType(tag)
    except ValueError:
        raise ProtocolError(f"Unknown response type: {tag!r}") from None

    if msg_type == MessageType.ALREADY_DOWNLOADED:
        return AlreadyDownloaded()

    if msg_type == MessageType.RESUME:
        existing_size = data.get('existing_size')
        # bool is an int subclass; reject it explicitly
        if (not isinstance(existing_size, int) or isinstance(existing_size, bool)
                or existing_size < 0):
            raise ProtocolError(f"Invalid existing_size: {existing_size!r}")
        return ResumeAt(existing_size)

    if msg_type == MessageType.ERROR:
        reason = data.get('reason')
        if not isinstance(reason, str):
            raise ProtocolError(f"Invalid error reason: {reason!r}")
        return ServerError(reason)

    raise ProtocolError(f"Unexpected response type: {msg_type.value}")
