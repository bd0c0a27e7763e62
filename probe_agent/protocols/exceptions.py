"""
Exception types raised by protocol plugins.

Every probe failure is a ProtocolError subclass carrying the status it maps
to. ProtocolPlugin.run() converts them into ProtocolResult values, so callers
only ever see UnknownProtocolError raised directly.
"""

from typing import Optional

from .models import ProtocolTestStatus


class ProtocolError(Exception):
    """Exception raised by protocol plugins."""

    status = ProtocolTestStatus.CONNECTION_ERROR

    def __init__(self, message: str, protocol: Optional[str] = None,
                 target: Optional[str] = None):
        super().__init__(message)
        self.protocol = protocol
        self.target = target


class ConfigurationError(ProtocolError):
    """A recognized argument carries an invalid value."""

    status = ProtocolTestStatus.CONFIG_ERROR


class ProbeConnectionError(ProtocolError):
    """The TCP connection could not be established or broke mid-probe."""

    status = ProtocolTestStatus.CONNECTION_ERROR


class ProbeTimeoutError(ProtocolError):
    """Connect, handshake or read did not finish within the timeout."""

    status = ProtocolTestStatus.TIMEOUT


class TLSHandshakeError(ProtocolError):
    """TLS negotiation or certificate verification failed."""

    status = ProtocolTestStatus.TLS_ERROR


class ProbeValidationError(ProtocolError):
    """The service answered, but not the way the protocol expects."""

    status = ProtocolTestStatus.FAILED


class UnknownProtocolError(ValueError):
    """Lookup of a protocol name that was never registered."""

    def __init__(self, protocol: str):
        super().__init__(f"Unknown protocol: {protocol}")
        self.protocol = protocol
