"""
File Checksum

Design Decision: Digest Algorithm
=================================

The receiving service decides whether its partial copy can be resumed
by comparing the checksum we send against the one it recorded for the
earlier attempt. Both ends must therefore compute the same digest.

Decision: MD5 by default, configurable
- The receiving service records MD5 digests
- Any hashlib algorithm can be selected when the server is built to match
- Hex encoding keeps the value printable inside the JSON request
"""

import hashlib
import logging
from pathlib import Path

import aiofiles

from ..errors import ChecksumError

logger = logging.getLogger(__name__)

DEFAULT_ALGORITHM = 'md5'
READ_SIZE = 64 * 1024


class FileHasher:
    """Computes a whole-file content digest."""

    def __init__(self, algorithm: str = DEFAULT_ALGORITHM, read_size: int = READ_SIZE):
        # SHAKE digests need an explicit output length
        if algorithm not in hashlib.algorithms_available or algorithm.startswith('shake_'):
            raise ValueError(f"Unsupported checksum algorithm: {algorithm}")
        self.algorithm = algorithm
        self.read_size = read_size

    async def compute(self, file_path: Path) -> str:
        """
        Compute the hex digest of the entire file.

        Raises:
            ChecksumError: if the file cannot be opened or read
        """
        hasher = hashlib.new(self.algorithm)

        try:
            async with aiofiles.open(file_path, 'rb') as f:
                while True:
                    chunk = await f.read(self.read_size)
                    if not chunk:
                        break
                    hasher.update(chunk)
        except OSError as e:
            raise ChecksumError(file_path, e) from e

        digest = hasher.hexdigest()
        logger.debug(f"{self.algorithm}({file_path.name}) = {digest}")
        return digest
