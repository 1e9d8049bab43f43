"""
resumesend - resumable single-file upload client

Sends one local file to a receiving service over TLS. If an earlier
attempt left a partial copy on the server, only the missing tail is
sent.
"""

from .errors import ErrorKind, TransferFailure, TransferOutcome, TransferResult
from .transfer import Destination, Directory, FileSender, Uuid, send_file

__version__ = '0.1.0'

__all__ = [
    'ErrorKind',
    'TransferFailure',
    'TransferOutcome',
    'TransferResult',
    'Destination',
    'Directory',
    'Uuid',
    'FileSender',
    'send_file',
]
