"""
Base protocol plugin framework for network probe agents.

This module defines the abstract base class every protocol plugin must
implement, and the registry that maps protocol names to plugin factories.

A plugin instance is configured once and run once:

    plugin = registry.get_plugin('smtp')
    plugin.set_line('mail.example.com must run smtp with port 2525')
    plugin.set_options(ProbeOptions(timeout=5.0))
    result = await plugin.run('mail.example.com')
"""

import logging
import re
import ssl
import time
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, List, Optional

from .arguments import parse_arguments
from .connection import ConnectionValidator, probe_connection
from .exceptions import ConfigurationError, ProtocolError, UnknownProtocolError
from .models import ProbeOptions, ProtocolResult, ProtocolTestStatus


logger = logging.getLogger(__name__)

PORT_PATTERN = r'^[0-9]+$'
MAX_PORT = 65535


class ProtocolPlugin(ABC):
    """
    Abstract base class for all protocol plugins.

    Subclasses set default_port, extend arguments with the keywords they
    understand, and implement create_validator(). TLS plugins also override
    create_ssl_context().
    """

    default_port: int = 0

    # keyword -> regular expression its value must match
    arguments: Dict[str, str] = {'port': PORT_PATTERN}

    example: str = ''

    def __init__(self):
        self._name = self.__class__.__name__.lower().replace('plugin', '')
        self._line = ''
        self._options = ProbeOptions()

    @property
    def name(self) -> str:
        """Get the plugin name."""
        return self._name

    @property
    def line(self) -> str:
        return self._line

    @property
    def options(self) -> ProbeOptions:
        return self._options

    def set_line(self, line: Optional[str]) -> None:
        """Store the complete instruction line this test was defined by."""
        self._line = line or ''

    def set_options(self, options: ProbeOptions) -> None:
        """Store the shared options for this test."""
        self._options = options

    def parse_arguments(self) -> Dict[str, str]:
        """
        Parse and validate the arguments of the configured line.

        Raises:
            ConfigurationError: If a recognized argument has an invalid value
        """
        parsed = parse_arguments(self._line, known=self.arguments.keys())
        for key, value in parsed.items():
            if not re.match(self.arguments[key], value, re.IGNORECASE):
                raise ConfigurationError(
                    f"Invalid value {value!r} for argument '{key}'",
                    protocol=self.name
                )
        return parsed

    def get_port(self, args: Dict[str, str]) -> int:
        """Effective port: the 'port' argument if given, else default_port."""
        if 'port' not in args:
            return self.default_port
        try:
            port = int(args['port'])
        except ValueError:
            raise ConfigurationError(f"Port must be numeric, got {args['port']!r}",
                                     protocol=self.name)
        if not 0 <= port <= MAX_PORT:
            raise ConfigurationError(f"Port {port} out of range", protocol=self.name)
        return port

    def create_ssl_context(self, args: Dict[str, str]) -> Optional[ssl.SSLContext]:
        """TLS context for the connection, None for plaintext protocols."""
        return None

    @abstractmethod
    def create_validator(self, args: Dict[str, str]) -> ConnectionValidator:
        """
        Build the predicate that decides whether the target is healthy.

        Args:
            args: Validated arguments from the instruction line
        """
        pass

    async def run(self, target: str) -> ProtocolResult:
        """
        Execute the test against the specified target.

        Failures are reported in the returned result, never raised.

        Args:
            target: Hostname or IP address (IPv6 without brackets)

        Returns:
            ProtocolResult describing success or the kind of failure
        """
        start_time = time.time()
        port = None

        try:
            if not target:
                raise ConfigurationError("Target must not be empty")
            args = self.parse_arguments()
            port = self.get_port(args)
            ssl_context = self.create_ssl_context(args)
            validator = self.create_validator(args)

            observed = await probe_connection(
                target, port, self._options.timeout, validator, ssl_context
            )
        except ProtocolError as e:
            e.protocol = e.protocol or self.name
            e.target = e.target or target
            duration_ms = (time.time() - start_time) * 1000
            logger.info("%s test against %s failed (%s): %s",
                        self.name, target, e.status.value, e)
            return ProtocolResult(
                protocol=self.name,
                target=target,
                port=port,
                status=e.status,
                duration_ms=round(duration_ms, 2),
                error_message=str(e),
                raw_data={'line': self._line}
            )

        duration_ms = (time.time() - start_time) * 1000
        logger.info("%s test against %s passed", self.name, target)
        connect_time = observed.pop('connect_time_ms', None)
        return ProtocolResult(
            protocol=self.name,
            target=target,
            port=port,
            status=ProtocolTestStatus.SUCCESS,
            duration_ms=round(duration_ms, 2),
            metrics={'connect_time_ms': connect_time},
            raw_data=dict(observed, line=self._line)
        )

    def describe(self) -> Dict[str, Any]:
        """Self-documentation: name, default port, arguments and usage."""
        return {
            'name': self.name,
            'default_port': self.default_port,
            'arguments': dict(self.arguments),
            'example': self.example.strip()
        }


PluginFactory = Callable[[], ProtocolPlugin]


class ProtocolRegistry:
    """
    Registry for protocol plugins.

    Maps protocol names to zero-argument factories. Every lookup builds a new
    plugin instance, so concurrent runs never share plugin state.
    """

    def __init__(self):
        self._factories: Dict[str, PluginFactory] = {}

    def register(self, name: str, factory: PluginFactory) -> None:
        """
        Register a factory under a protocol name.

        Raises:
            ValueError: If the name is empty, already registered, or the
                factory is not callable
        """
        if not name:
            raise ValueError("Protocol name must not be empty")
        if not callable(factory):
            raise ValueError(f"Factory for '{name}' must be callable")
        if name in self._factories:
            raise ValueError(f"Protocol '{name}' is already registered")

        self._factories[name] = factory
        logger.debug("Registered protocol plugin: %s", name)

    def unregister(self, name: str) -> None:
        """Remove a protocol; unknown names are ignored."""
        self._factories.pop(name, None)

    def get_plugin(self, protocol: str) -> ProtocolPlugin:
        """
        Get a fresh plugin instance for the specified protocol.

        Raises:
            UnknownProtocolError: If protocol is not registered
        """
        try:
            factory = self._factories[protocol]
        except KeyError:
            raise UnknownProtocolError(protocol)
        return factory()

    def list_protocols(self) -> List[str]:
        """Get list of registered protocol names."""
        return list(self._factories.keys())

    def is_supported(self, protocol: str) -> bool:
        return protocol in self._factories

    def get_plugin_info(self, protocol: str) -> Dict[str, Any]:
        """
        Get information about a protocol plugin.

        Raises:
            UnknownProtocolError: If protocol is not registered
        """
        return self.get_plugin(protocol).describe()
