"""Tests for normalizing faults into caller-facing kinds."""

import asyncio
import errno
import logging
import socket
import ssl
from pathlib import Path

import pytest

from resumesend.errors import (
    ChecksumError, ErrorKind, HandshakeError, ProtocolError, ServerRejected,
    TransferFailure, map_error,
)


class TestMapError:

    @pytest.mark.parametrize('exc, kind', [
        (ConnectionRefusedError(errno.ECONNREFUSED, 'refused'), ErrorKind.CONNECTION_REFUSED),
        (OSError(errno.ECONNREFUSED, 'refused'), ErrorKind.CONNECTION_REFUSED),
        (socket.gaierror(socket.EAI_NONAME, 'Name or service not known'), ErrorKind.UNKNOWN_HOST),
        (ssl.SSLError(1, 'handshake failure'), ErrorKind.HANDSHAKE_FAILED),
        (HandshakeError('bad cert'), ErrorKind.HANDSHAKE_FAILED),
        (FileNotFoundError(errno.ENOENT, 'No such file'), ErrorKind.FILE_NOT_FOUND),
        (IsADirectoryError(errno.EISDIR, 'Is a directory'), ErrorKind.FILE_NOT_FOUND),
        (PermissionError(errno.EACCES, 'Permission denied'), ErrorKind.PERMISSION_DENIED),
        (ProtocolError('bad tag'), ErrorKind.PROTOCOL_ERROR),
        (asyncio.IncompleteReadError(b'ab', 4), ErrorKind.PROTOCOL_ERROR),
    ])
    def test_known_faults(self, exc, kind):
        failure = map_error(exc)

        assert isinstance(failure, TransferFailure)
        assert failure.kind == kind
        assert failure.reason is None

    def test_checksum_error_maps_its_cause(self):
        cause = PermissionError(errno.EACCES, 'Permission denied')
        try:
            raise ChecksumError(Path('a.bin'), cause) from cause
        except ChecksumError as e:
            failure = map_error(e)

        assert failure.kind == ErrorKind.PERMISSION_DENIED
        assert 'a.bin' in failure.message

    def test_exception_group_uses_first_specific_member(self):
        group = ExceptionGroup('connect failed', [
            RuntimeError('odd'),
            ConnectionRefusedError(errno.ECONNREFUSED, 'refused'),
        ])

        assert map_error(group).kind == ErrorKind.CONNECTION_REFUSED

    def test_server_reason_naming_a_kind(self):
        failure = map_error(ServerRejected('permission_denied'))

        assert failure.kind == ErrorKind.PERMISSION_DENIED
        assert failure.reason == 'permission_denied'

    def test_server_reason_not_naming_a_kind(self):
        failure = map_error(ServerRejected('disk_full'))

        assert failure.kind == ErrorKind.PROTOCOL_ERROR
        assert failure.reason == 'disk_full'

    @pytest.mark.parametrize('reason', [
        'connection_refused', 'unknown_host', 'handshake_failed', 'protocol_error', 'unknown',
    ])
    def test_server_reason_never_claims_local_kind(self, reason, caplog):
        with caplog.at_level(logging.ERROR, logger='resumesend.errors'):
            failure = map_error(ServerRejected(reason))

        assert failure.kind == ErrorKind.PROTOCOL_ERROR
        assert failure.reason == reason
        assert 'Unhandled transfer fault' not in caplog.text

    def test_server_file_not_found(self):
        assert map_error(ServerRejected('file_not_found')).kind == ErrorKind.FILE_NOT_FOUND

    def test_unknown_fault_is_logged(self, caplog):
        with caplog.at_level(logging.ERROR, logger='resumesend.errors'):
            failure = map_error(ValueError('strange'))

        assert failure.kind == ErrorKind.UNKNOWN
        assert failure.message == 'strange'
        assert 'strange' in caplog.text

    def test_message_falls_back_to_type_name(self):
        assert map_error(KeyError()).message == 'KeyError'
