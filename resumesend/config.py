"""
Configuration Management

Handles loading configuration from environment variables and config files.
"""

import os
import ssl
from pathlib import Path
from dataclasses import dataclass, fields
from typing import Optional
import json

from dotenv import load_dotenv

DEFAULT_PORT = 1055


def _optional_path(value) -> Optional[Path]:
    return Path(value) if value else None


def _parse_bool(value: str) -> bool:
    return value.strip().lower() in ('1', 'true', 'yes', 'on')


def create_ssl_context(certfile: Optional[Path] = None,
                       keyfile: Optional[Path] = None,
                       cafile: Optional[Path] = None,
                       verify: bool = True) -> ssl.SSLContext:
    """
    Build the client-side TLS context.

    Args:
        certfile: Certificate presented to the server (optional)
        keyfile: Private key for certfile (defaults to certfile itself)
        cafile: CA bundle used to verify the server (system store if None)
        verify: Verify the server certificate and hostname
    """
    context = ssl.SSLContext(ssl.PROTOCOL_TLS_CLIENT)

    if certfile:
        context.load_cert_chain(certfile=str(certfile),
                                keyfile=str(keyfile) if keyfile else None)

    if verify:
        if cafile:
            context.load_verify_locations(cafile=str(cafile))
        else:
            context.load_default_certs(ssl.Purpose.SERVER_AUTH)
    else:
        context.check_hostname = False
        context.verify_mode = ssl.CERT_NONE

    return context


@dataclass
class Config:
    """
    Client Configuration.

    Configuration priority (highest to lowest):
    1. Environment variables (RESUMESEND_*)
    2. Config file (config.json)
    3. Default values
    """
    # Network
    host: str = '127.0.0.1'
    port: int = DEFAULT_PORT

    # TLS
    certfile: Optional[Path] = None
    keyfile: Optional[Path] = None
    cafile: Optional[Path] = None
    verify_server: bool = True
    server_hostname: Optional[str] = None  # Defaults to host

    # Transfer
    chunk_size: int = 64 * 1024  # 64KB
    checksum_algorithm: str = 'md5'

    # Outer deadline for the whole send (seconds); None waits forever
    timeout: Optional[float] = None

    # Logging
    log_level: str = 'INFO'

    @classmethod
    def from_env(cls, base: Optional['Config'] = None) -> 'Config':
        """
        Load configuration from environment variables.

        Variables that are not set keep the value from base (or the defaults).
        """
        load_dotenv()

        config = cls(**{f.name: getattr(base, f.name) for f in fields(cls)}) if base else cls()

        # Network
        config.host = os.getenv('RESUMESEND_HOST', config.host)
        config.port = int(os.getenv('RESUMESEND_PORT', config.port))

        # TLS
        for name in ('certfile', 'keyfile', 'cafile'):
            value = os.getenv(f'RESUMESEND_{name.upper()}')
            if value:
                setattr(config, name, Path(value))

        verify = os.getenv('RESUMESEND_VERIFY_SERVER')
        if verify is not None:
            config.verify_server = _parse_bool(verify)
        config.server_hostname = os.getenv('RESUMESEND_SERVER_HOSTNAME', config.server_hostname)

        # Transfer
        config.chunk_size = int(os.getenv('RESUMESEND_CHUNK_SIZE', config.chunk_size))
        config.checksum_algorithm = os.getenv(
            'RESUMESEND_CHECKSUM_ALGORITHM', config.checksum_algorithm
        )

        timeout = os.getenv('RESUMESEND_TIMEOUT')
        if timeout:
            config.timeout = float(timeout)

        # Logging
        config.log_level = os.getenv('RESUMESEND_LOG_LEVEL', config.log_level)

        return config

    @classmethod
    def from_file(cls, path: Path) -> 'Config':
        """Load configuration from a JSON file."""
        if not path.exists():
            return cls()

        with open(path) as f:
            data = json.load(f)

        config = cls()

        # Network
        config.host = data.get('host', config.host)
        config.port = data.get('port', config.port)

        # TLS
        config.certfile = _optional_path(data.get('certfile'))
        config.keyfile = _optional_path(data.get('keyfile'))
        config.cafile = _optional_path(data.get('cafile'))
        config.verify_server = data.get('verify_server', config.verify_server)
        config.server_hostname = data.get('server_hostname', config.server_hostname)

        # Transfer
        config.chunk_size = data.get('chunk_size', config.chunk_size)
        config.checksum_algorithm = data.get('checksum_algorithm', config.checksum_algorithm)
        config.timeout = data.get('timeout', config.timeout)

        # Logging
        config.log_level = data.get('log_level', config.log_level)

        return config

    def ssl_context(self) -> ssl.SSLContext:
        """Build the TLS context from the configured cert/key/CA paths."""
        return create_ssl_context(
            certfile=self.certfile,
            keyfile=self.keyfile,
            cafile=self.cafile,
            verify=self.verify_server,
        )

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            'host': self.host,
            'port': self.port,
            'certfile': str(self.certfile) if self.certfile else None,
            'keyfile': str(self.keyfile) if self.keyfile else None,
            'cafile': str(self.cafile) if self.cafile else None,
            'verify_server': self.verify_server,
            'server_hostname': self.server_hostname,
            'chunk_size': self.chunk_size,
            'checksum_algorithm': self.checksum_algorithm,
            'timeout': self.timeout,
            'log_level': self.log_level,
        }

    def save(self, path: Path):
        """Save configuration to a JSON file."""
        with open(path, 'w') as f:
            json.dump(self.to_dict(), f, indent=2)


def load_config(config_path: Optional[Path] = None) -> Config:
    """
    Load configuration from file and environment.

    Environment variables override file settings.
    """
    config = Config()

    if config_path and config_path.exists():
        config = Config.from_file(config_path)

    return Config.from_env(base=config)


# Example config file template
EXAMPLE_CONFIG = """
{
  "host": "files.example.org",
  "port": 1055,
  "certfile": "/etc/resumesend/client.crt",
  "keyfile": "/etc/resumesend/client.key",
  "cafile": "/etc/resumesend/ca.crt",
  "verify_server": true,
  "chunk_size": 65536,
  "checksum_algorithm": "md5",
  "log_level": "INFO"
}
"""
