"""
File Attributes

Size, name and checksum of the file being sent, read once per transfer.

Size comes from stat(), independently of the checksum pass. Nothing is
locked: if the file changes between the two reads the request
describes a mix of both versions.
"""

import logging
import stat
from dataclasses import dataclass
from pathlib import Path

import aiofiles.os

from .checksum import FileHasher

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FileAttributes:
    """Snapshot of the local file taken at the start of a transfer."""
    size: int
    checksum: str
    basename: str


async def read_file_attributes(file_path: Path, hasher: FileHasher) -> FileAttributes:
    """
    Read size, basename and checksum of a local file.

    Raises:
        FileNotFoundError: path does not exist
        IsADirectoryError: path is a directory
        PermissionError: file cannot be stat'ed
        ChecksumError: file cannot be read
    """
    file_path = Path(file_path)
    info = await aiofiles.os.stat(file_path)
    if stat.S_ISDIR(info.st_mode):
        raise IsADirectoryError(f"Not a file: {file_path}")

    checksum = await hasher.compute(file_path)

    attributes = FileAttributes(
        size=info.st_size,
        checksum=checksum,
        basename=file_path.name,
    )
    logger.debug(f"Attributes for {file_path}: {attributes}")
    return attributes
