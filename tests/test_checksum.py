"""Tests for checksums and file attributes."""

import hashlib
import os

import pytest

from resumesend.errors import ChecksumError
from resumesend.file import FileAttributes, FileHasher, read_file_attributes


class TestFileHasher:

    @pytest.mark.asyncio
    async def test_md5_by_default(self, sample_file, file_content):
        digest = await FileHasher().compute(sample_file)

        assert digest == hashlib.md5(file_content).hexdigest()

    @pytest.mark.asyncio
    async def test_stable_across_calls(self, sample_file):
        hasher = FileHasher()

        assert await hasher.compute(sample_file) == await hasher.compute(sample_file)

    @pytest.mark.asyncio
    async def test_read_size_does_not_change_digest(self, sample_file):
        small = await FileHasher(read_size=7).compute(sample_file)
        large = await FileHasher(read_size=1 << 20).compute(sample_file)

        assert small == large

    @pytest.mark.asyncio
    async def test_other_algorithm(self, sample_file, file_content):
        digest = await FileHasher('sha256').compute(sample_file)

        assert digest == hashlib.sha256(file_content).hexdigest()

    def test_unknown_algorithm_rejected(self):
        with pytest.raises(ValueError, match='Unsupported'):
            FileHasher('crc-nope')

    @pytest.mark.parametrize('algorithm', ['shake_128', 'shake_256'])
    def test_variable_length_digests_rejected(self, algorithm):
        with pytest.raises(ValueError, match='Unsupported'):
            FileHasher(algorithm)

    @pytest.mark.asyncio
    async def test_missing_file(self, tmp_path):
        missing = tmp_path / 'missing.bin'

        with pytest.raises(ChecksumError) as exc_info:
            await FileHasher().compute(missing)

        assert isinstance(exc_info.value.__cause__, FileNotFoundError)
        assert 'missing.bin' in str(exc_info.value)

    @pytest.mark.asyncio
    @pytest.mark.skipif(os.name != 'posix' or os.geteuid() == 0,
                        reason='root ignores file permissions')
    async def test_unreadable_file(self, sample_file):
        sample_file.chmod(0)
        try:
            with pytest.raises(ChecksumError) as exc_info:
                await FileHasher().compute(sample_file)
        finally:
            sample_file.chmod(0o644)

        assert isinstance(exc_info.value.__cause__, PermissionError)


class TestReadFileAttributes:

    @pytest.mark.asyncio
    async def test_attributes(self, sample_file, file_content):
        attributes = await read_file_attributes(sample_file, FileHasher())

        assert attributes == FileAttributes(
            size=1000,
            checksum=hashlib.md5(file_content).hexdigest(),
            basename='payload.bin',
        )

    @pytest.mark.asyncio
    async def test_accepts_string_path(self, sample_file):
        attributes = await read_file_attributes(str(sample_file), FileHasher())

        assert attributes.basename == 'payload.bin'

    @pytest.mark.asyncio
    async def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            await read_file_attributes(tmp_path / 'nope', FileHasher())

    @pytest.mark.asyncio
    async def test_directory(self, tmp_path):
        with pytest.raises(IsADirectoryError):
            await read_file_attributes(tmp_path, FileHasher())
