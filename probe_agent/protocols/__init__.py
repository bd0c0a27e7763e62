"""
Protocol plugins package for network probe agents.

This package contains the protocol plugin framework (argument parsing,
connection primitives, plugin contract and registry) and the IMAPS, SMTP and
SSH plugins built on it.
"""

from .base import ProtocolPlugin, ProtocolRegistry
from .exceptions import (
    ConfigurationError, ProbeConnectionError, ProbeTimeoutError, ProtocolError,
    ProbeValidationError, TLSHandshakeError, UnknownProtocolError
)
from .models import ProbeOptions, ProtocolResult, ProtocolTestStatus
from .registry import execute_protocol_test, get_protocol_registry

__all__ = [
    'ProtocolPlugin',
    'ProtocolRegistry',
    'ProtocolResult',
    'ProtocolTestStatus',
    'ProbeOptions',
    'ProtocolError',
    'ConfigurationError',
    'ProbeConnectionError',
    'ProbeTimeoutError',
    'TLSHandshakeError',
    'ProbeValidationError',
    'UnknownProtocolError',
    'execute_protocol_test',
    'get_protocol_registry'
]
