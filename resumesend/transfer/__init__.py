"""
Transfer Module - Resumable File Send

Handles the TLS channel, the request/response protocol and streaming
of the missing tail.
"""

from .channel import SecureChannel
from .protocol import (
    Destination, Uuid, Directory, DestinationSelector,
    AlreadyDownloaded, ResumeAt, ServerError, ServerResponse,
)
from .sender import FileSender, send_file

__all__ = [
    'SecureChannel',
    'Destination',
    'Uuid',
    'Directory',
    'DestinationSelector',
    'AlreadyDownloaded',
    'ResumeAt',
    'ServerError',
    'ServerResponse',
    'FileSender',
    'send_file',
]
