"""
File Module - Checksums and Attributes

Reads what the receiving service needs to know about the local file.
"""

from .checksum import FileHasher, DEFAULT_ALGORITHM
from .attributes import FileAttributes, read_file_attributes

__all__ = [
    'FileHasher',
    'DEFAULT_ALGORITHM',
    'FileAttributes',
    'read_file_attributes',
]
